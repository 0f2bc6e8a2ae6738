"""
chapel_lsp - Language Server Protocol para Chapel

Propósito:
    Servidor LSP que oferece completamento de palavras reservadas e hover
    com o tipo resolvido pelo compilador `chpl` no VSCode e outros
    editores compatíveis com LSP.

Componentes principais:
    - server: Servidor principal usando pygls
    - documents: Estado dos documentos abertos
    - compiler / pass_log: Ponte com o compilador e leitura do pass-log
    - hover: Pipeline do textDocument/hover

Dependências críticas:
    - pygls: Framework LSP
    - chpl: Compilador Chapel (executável externo)

Exemplo de uso:
    python -m chapel_lsp
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
import re


def _read_version_from_pyproject() -> str:
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    try:
        text = pyproject.read_text(encoding="utf-8")
    except OSError:
        return "0.0.0"
    match = re.search(r'(?m)^version = "([^"]+)"\s*$', text)
    return match.group(1) if match else "0.0.0"


try:
    __version__ = _pkg_version("chapel-lsp")
except PackageNotFoundError:
    __version__ = _read_version_from_pyproject()

__all__ = ["server", "documents", "completion", "compiler", "pass_log", "hover"]
