"""
test_hover.py - Testes para o pipeline de textDocument/hover

Propósito:
    Validar HoverResolver com ponte de compilação falsa: escolha do
    símbolo, propagação de falhas, resolver nunca chamado após falha de
    compilação, e serialização de hovers concorrentes.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import pytest
from lsprotocol.types import MarkupKind, Position

from chapel_lsp.compiler import StagedCompilation
from chapel_lsp.config import CompilerSettings
from chapel_lsp.documents import DocumentStore
from chapel_lsp.errors import (
    ArtifactNotFound,
    CompilationFailed,
    DocumentNotFound,
    ResourceUnavailable,
)
from chapel_lsp.hover import HoverResolver, HoverResult, build_hover
from chapel_lsp.pass_log import PassLogResolver

URI = "file:///ws/hello.chpl"
SOURCE = "proc main() {\n  var s = 42;\n  writeln(s);\n}\n"


class FakeBridge:
    """Ponte que grava um pass-log fixo em vez de executar o chpl."""

    def __init__(self, tmp_path, dump="", error=None, events=None):
        self.settings = CompilerSettings()
        self.tmp_path = tmp_path
        self.dump = dump
        self.error = error
        self.events = events if events is not None else []
        self.texts: list[str] = []

    @asynccontextmanager
    async def invoke(self, document_text):
        self.texts.append(document_text)
        self.events.append(("compile-start", document_text))
        await asyncio.sleep(0.01)
        if self.error:
            raise self.error
        log_dir = self.tmp_path / "log"
        log_dir.mkdir(exist_ok=True)
        artifact = log_dir / self.settings.artifact_name
        if self.dump is not None:
            artifact.write_text(self.dump, encoding="utf-8")
        self.events.append(("compile-end", document_text))
        yield StagedCompilation(
            workdir=self.tmp_path,
            source_path=self.tmp_path / "text.chpl",
            log_dir=log_dir,
            artifact_path=artifact,
        )


def _store(text=SOURCE):
    store = DocumentStore()
    store.open(URI, "chapel", 1, text)
    return store


def test_hover_resolves_symbol_under_cursor(tmp_path):
    bridge = FakeBridge(tmp_path, dump="(def s[3]:int(7)\n")
    resolver = HoverResolver(_store(), bridge=bridge)

    result = asyncio.run(resolver.hover(URI, Position(line=2, character=10)))

    assert result.symbol == "s"
    assert result.matched_span == "int(7)"
    assert result.range.start == Position(line=2, character=10)
    assert bridge.texts == [SOURCE]


def test_hover_symbol_absent_in_dump(tmp_path):
    bridge = FakeBridge(tmp_path, dump="(def main[1]:void(1)\n")
    resolver = HoverResolver(_store(), bridge=bridge)

    result = asyncio.run(resolver.hover(URI, Position(line=1, character=6)))

    assert result == HoverResult(symbol="s", matched_span=None, range=result.range)
    assert build_hover(result) is None


def test_hover_no_identifier_skips_compiler(tmp_path):
    """Cursor em palavra reservada: nenhuma compilação é feita."""
    bridge = FakeBridge(tmp_path, dump="")
    resolver = HoverResolver(_store(), bridge=bridge)

    assert asyncio.run(resolver.hover(URI, Position(line=1, character=3))) is None
    assert bridge.texts == []


def test_hover_fixed_symbol(tmp_path):
    """fixedSymbol ignora a posição do cursor."""
    bridge = FakeBridge(tmp_path, dump="s[3]:int(7)")
    resolver = HoverResolver(_store(), bridge=bridge)
    resolver.configure(CompilerSettings(fixed_symbol="s"))

    result = asyncio.run(resolver.hover(URI, Position(line=0, character=0)))
    assert result.symbol == "s"
    assert result.matched_span == "int(7)"
    assert result.range is None
    assert bridge.settings.fixed_symbol == "s"


def test_hover_unknown_document(tmp_path):
    bridge = FakeBridge(tmp_path)
    resolver = HoverResolver(DocumentStore(), bridge=bridge)

    with pytest.raises(DocumentNotFound):
        asyncio.run(resolver.hover(URI, Position(line=0, character=0)))
    assert bridge.texts == []


@pytest.mark.parametrize(
    "error",
    [
        CompilationFailed("chpl terminou com status 1", returncode=1),
        ResourceUnavailable("disco cheio"),
    ],
)
def test_compile_failure_never_reaches_resolver(tmp_path, error):
    bridge = FakeBridge(tmp_path, error=error)
    pass_log = MagicMock(spec=PassLogResolver)
    resolver = HoverResolver(_store(), bridge=bridge, resolver=pass_log)

    with pytest.raises(type(error)):
        asyncio.run(resolver.hover(URI, Position(line=1, character=6)))

    pass_log.resolve_type.assert_not_called()
    assert not (tmp_path / "log").exists()


def test_missing_artifact_after_compile(tmp_path):
    bridge = FakeBridge(tmp_path, dump=None)
    resolver = HoverResolver(_store(), bridge=bridge)

    with pytest.raises(ArtifactNotFound):
        asyncio.run(resolver.hover(URI, Position(line=1, character=6)))


def test_hover_uses_current_text(tmp_path):
    """Sem cache: cada hover recompila com o texto atual."""
    store = _store()
    bridge = FakeBridge(tmp_path, dump="s[3]:int(7)")
    resolver = HoverResolver(store, bridge=bridge)

    asyncio.run(resolver.hover(URI, Position(line=1, character=6)))
    store.change(URI, 2, SOURCE + "// fim\n")
    asyncio.run(resolver.hover(URI, Position(line=1, character=6)))
    asyncio.run(resolver.hover(URI, Position(line=1, character=6)))

    assert bridge.texts == [SOURCE, SOURCE + "// fim\n", SOURCE + "// fim\n"]


def test_concurrent_hovers_are_serialized(tmp_path):
    """Segundo hover só compila depois que o primeiro leu o pass-log."""
    events = []
    bridge = FakeBridge(tmp_path, dump="s[3]:int(7)", events=events)

    class RecordingResolver(PassLogResolver):
        def resolve_type(self, artifact_path, symbol):
            events.append(("resolve", symbol))
            return super().resolve_type(artifact_path, symbol)

    store = _store()
    store.open("file:///ws/other.chpl", "chapel", 1, "var s = 1.0;\n")
    resolver = HoverResolver(store, bridge=bridge, resolver=RecordingResolver())

    async def run():
        return await asyncio.gather(
            resolver.hover(URI, Position(line=1, character=6)),
            resolver.hover("file:///ws/other.chpl", Position(line=0, character=4)),
        )

    first, second = asyncio.run(run())

    assert first.matched_span == second.matched_span == "int(7)"
    assert [kind for kind, _ in events] == [
        "compile-start", "compile-end", "resolve",
        "compile-start", "compile-end", "resolve",
    ]
    assert events[0][1] == SOURCE
    assert events[3][1] == "var s = 1.0;\n"


def test_build_hover_markdown():
    hover = build_hover(HoverResult(symbol="s", matched_span="int(7)"))
    assert hover.contents.kind == MarkupKind.Markdown
    assert "s: int(7)" in hover.contents.value
    assert hover.range is None
