"""
Testes para chapel_lsp/completion.py

Cobertura:
- Catálogo contém todas as palavras reservadas, em ordem
- Resultado não depende de chamada anterior (cópia nova)
- completionItem/resolve devolve o item sem alterações
"""

from lsprotocol.types import CompletionItem, CompletionItemKind

from chapel_lsp.completion import (
    CHAPEL_KEYWORDS,
    completion_items,
    resolve_completion_item,
)


def test_catalog_has_all_keywords_in_order():
    items = completion_items()
    assert [i.label for i in items] == list(CHAPEL_KEYWORDS)


def test_catalog_kind_keyword():
    assert all(i.kind == CompletionItemKind.Keyword for i in completion_items())


def test_catalog_known_entries():
    labels = {i.label for i in completion_items()}
    for keyword in ("proc", "var", "forall", "coforall", "record", "zip"):
        assert keyword in labels


def test_catalog_labels_unique():
    labels = [i.label for i in completion_items()]
    assert len(labels) == len(set(labels))


def test_catalog_is_stable():
    """Mesma lista a cada chamada, mesmo se o chamador alterar a anterior."""
    first = completion_items()
    first[0].label = "alterado"
    first.pop()

    second = completion_items()
    assert [i.label for i in second] == list(CHAPEL_KEYWORDS)


def test_resolve_returns_same_item():
    item = CompletionItem(label="proc", kind=CompletionItemKind.Keyword, detail="x")
    resolved = resolve_completion_item(item)
    assert resolved == item
    assert resolved is item
