"""
symbols.py - Identificador sob o cursor

Propósito:
    Tokeniza o texto Chapel e mapeia uma Position LSP (linha, caractere)
    para o identificador que a contém. É o que decide qual símbolo o
    hover procura no pass-log.

Componentes principais:
    - tokenize: gera Token(kind, text, start, end) para o texto inteiro
    - symbol_at_position: identificador na posição, ou None

Notas de implementação:
    - Comentários (// e /* */), strings e números são tokens próprios,
      então um cursor dentro deles não produz símbolo
    - Palavras reservadas não são símbolos
    - Linhas terminam em \\n, \\r\\n ou \\r, como no protocolo
    - Cursor logo após o último caractere do identificador também conta
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from lsprotocol.types import Position, Range

from chapel_lsp.completion import CHAPEL_KEYWORDS

_KEYWORDS = frozenset(CHAPEL_KEYWORDS)

_TOKEN_RE = re.compile(
    r"""
    (?P<block_comment>/\*.*?(?:\*/|\Z))
  | (?P<line_comment>//[^\r\n]*)
  | (?P<string>"(?:\\.|[^"\\\r\n])*"?|'(?:\\.|[^'\\\r\n])*'?)
  | (?P<number>\d[\w]*(?:\.\d+)?(?:[eE][+-]?\d+)?)
  | (?P<identifier>[A-Za-z_][\w$]*)
    """,
    re.VERBOSE | re.DOTALL,
)
_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class SymbolAtPosition:
    """Identificador encontrado e seu Range no documento."""

    name: str
    range: Range


def tokenize(source: str) -> Iterator[Token]:
    """Gera os tokens relevantes do texto, em ordem."""
    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup
        yield Token(kind=kind, text=match.group(kind), start=match.start(), end=match.end())


def symbol_at_position(source: str, position: Position) -> Optional[SymbolAtPosition]:
    """
    Retorna o identificador sob o cursor.

    Args:
        source: Texto completo do documento
        position: Posição do cursor (0-based)

    Returns:
        SymbolAtPosition ou None se o cursor não está sobre um identificador
    """
    line_starts = _line_starts(source)
    offset = _offset_at(source, line_starts, position)
    if offset is None:
        return None

    candidate: Optional[Token] = None
    for token in tokenize(source):
        if token.start > offset:
            break
        if token.start <= offset < token.end:
            candidate = token
            break
        if token.end == offset:
            # Cursor logo após o token; continua caso o próximo comece aqui
            candidate = token

    if candidate is None or candidate.kind != "identifier":
        return None
    if candidate.text in _KEYWORDS:
        return None

    return SymbolAtPosition(
        name=candidate.text,
        range=Range(
            start=_position_at(line_starts, candidate.start),
            end=_position_at(line_starts, candidate.end),
        ),
    )


def _line_starts(source: str) -> list[int]:
    starts = [0]
    starts.extend(m.end() for m in _NEWLINE_RE.finditer(source))
    return starts


def _offset_at(source: str, line_starts: list[int], position: Position) -> Optional[int]:
    if position.line < 0 or position.line >= len(line_starts):
        return None
    start = line_starts[position.line]
    if position.line + 1 < len(line_starts):
        line_end = line_starts[position.line + 1]
        newline = _NEWLINE_RE.search(source, start, line_end)
        if newline:
            line_end = newline.start()
    else:
        line_end = len(source)
    if position.character < 0 or start + position.character > line_end:
        return None
    return start + position.character


def _position_at(line_starts: list[int], offset: int) -> Position:
    line = 0
    for idx, start in enumerate(line_starts):
        if start > offset:
            break
        line = idx
    return Position(line=line, character=offset - line_starts[line])
