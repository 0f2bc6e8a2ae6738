from chapel_lsp.server import main

main()
