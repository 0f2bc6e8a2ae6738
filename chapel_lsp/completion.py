"""
completion.py - Catálogo estático de completamento

Propósito:
    Oferece as palavras reservadas de Chapel como itens de completamento.

Notas de implementação:
    - Lista fixa, independente de posição, prefixo ou documento
    - Construída uma vez no import; cada chamada devolve uma lista nova
      para que o chamador não altere o catálogo
    - CompletionItemKind.Keyword para todas as entradas
"""

from __future__ import annotations

from lsprotocol.types import CompletionItem, CompletionItemKind

# Palavras reservadas de Chapel, na ordem em que são oferecidas
CHAPEL_KEYWORDS: tuple[str, ...] = (
    "align", "as", "atomic", "begin", "break", "by", "class",
    "cobegin", "coforall", "config", "const", "continue", "delete", "dmapped",
    "inout", "do", "iter", "domain", "label", "else", "let", "enum", "local",
    "except", "module", "export", "new", "extern", "nil", "for", "noinit",
    "forall", "on", "if", "only", "in", "otherwise", "index", "out", "inline",
    "param", "private", "subdomain", "proc", "sync", "public", "then", "record",
    "type", "reduce", "union", "ref", "use", "require", "var", "return", "when",
    "scan", "where", "select", "while", "serial", "with", "single", "yield", "sparse",
    "zip",
)


def _build_catalog() -> tuple[tuple[str, CompletionItemKind], ...]:
    return tuple((keyword, CompletionItemKind.Keyword) for keyword in CHAPEL_KEYWORDS)


_CATALOG = _build_catalog()


def completion_items() -> list[CompletionItem]:
    """Retorna o catálogo completo, sempre na mesma ordem."""
    return [CompletionItem(label=label, kind=kind) for label, kind in _CATALOG]


def resolve_completion_item(item: CompletionItem) -> CompletionItem:
    """completionItem/resolve: nada a acrescentar, devolve o item recebido."""
    return item
