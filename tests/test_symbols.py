"""
test_symbols.py - Testes para identificador sob o cursor

Propósito:
    Validar tokenize e symbol_at_position: identificadores, palavras
    reservadas, comentários, strings e limites de linha.
"""

from __future__ import annotations

from lsprotocol.types import Position

from chapel_lsp.symbols import symbol_at_position, tokenize

SOURCE = (
    "proc main() {\n"
    "  var s = 42;\n"
    "  // s em comentário\n"
    '  writeln("s", s);\n'
    "}\n"
)


def _at(line, character, source=SOURCE):
    return symbol_at_position(source, Position(line=line, character=character))


def test_identifier_under_cursor():
    found = _at(1, 6)
    assert found.name == "s"
    assert found.range.start == Position(line=1, character=6)
    assert found.range.end == Position(line=1, character=7)


def test_identifier_middle():
    found = _at(0, 6)
    assert found.name == "main"
    assert found.range.start.character == 5


def test_cursor_right_after_identifier():
    """Cursor logo após o identificador ainda o seleciona."""
    found = _at(0, 9)
    assert found.name == "main"


def test_keyword_is_not_symbol():
    assert _at(0, 1) is None
    assert _at(1, 3) is None


def test_comment_is_not_symbol():
    assert _at(2, 5) is None


def test_string_is_not_symbol():
    assert _at(3, 12) is None


def test_identifier_after_string():
    found = _at(3, 15)
    assert found.name == "s"
    assert found.range.start == Position(line=3, character=15)


def test_number_is_not_symbol():
    assert _at(1, 11) is None


def test_whitespace_is_not_symbol():
    assert _at(1, 0) is None


def test_position_out_of_range():
    assert _at(99, 0) is None
    assert _at(1, 200) is None


def test_crlf_line_endings():
    source = "var a = 1;\r\nvar b = a;\r\n"
    found = _at(1, 4, source)
    assert found.name == "b"
    assert found.range.start == Position(line=1, character=4)


def test_block_comment_spans_lines():
    source = "/* var x\n   x */ var y;\n"
    assert _at(1, 3, source) is None
    assert _at(1, 12, source).name == "y"


def test_identifier_with_dollar():
    found = _at(0, 5, "var a$b = 1;")
    assert found.name == "a$b"


def test_tokenize_kinds():
    kinds = [(t.kind, t.text) for t in tokenize('var x = "y"; // z\n1.5e3')]
    assert kinds == [
        ("identifier", "var"),
        ("identifier", "x"),
        ("string", '"y"'),
        ("line_comment", "// z"),
        ("number", "1.5e3"),
    ]
