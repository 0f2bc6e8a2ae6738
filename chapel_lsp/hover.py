"""
hover.py - Tipo resolvido ao passar o mouse (textDocument/hover)

Propósito:
    Operação completa do hover: busca o documento, decide o símbolo,
    compila o texto atual até o pass resolve e lê o tipo no pass-log.

Componentes principais:
    - HoverResult: símbolo e span casado (ou None)
    - HoverResolver: compõe DocumentStore, CompilerBridge e PassLogResolver
    - build_hover: HoverResult -> lsprotocol Hover

Notas de implementação:
    - Sem cache: todo hover recompila, mesmo com texto inalterado
    - Compilação + leitura do pass-log serializadas por asyncio.Lock;
      um segundo hover só compila após o primeiro terminar
    - Falha de compilação interrompe o hover antes de ler o pass-log
    - Símbolo vem da posição do cursor; setting fixedSymbol sobrepõe
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from lsprotocol.types import Hover, MarkupContent, MarkupKind, Position, Range

from chapel_lsp.compiler import CompilerBridge
from chapel_lsp.config import CompilerSettings
from chapel_lsp.documents import DocumentStore
from chapel_lsp.errors import ArtifactNotFound
from chapel_lsp.pass_log import PassLogResolver
from chapel_lsp.symbols import symbol_at_position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoverResult:
    symbol: str
    matched_span: Optional[str]
    range: Optional[Range] = None


class HoverResolver:
    """Pipeline de hover ligado a uma requisição."""

    def __init__(
        self,
        documents: DocumentStore,
        settings: Optional[CompilerSettings] = None,
        bridge: Optional[CompilerBridge] = None,
        resolver: Optional[PassLogResolver] = None,
    ):
        self.documents = documents
        self.settings = settings or CompilerSettings()
        self.bridge = bridge or CompilerBridge(self.settings)
        self.resolver = resolver or PassLogResolver()
        self._lock = asyncio.Lock()

    def configure(self, settings: CompilerSettings) -> None:
        """Aplica novos settings; vale a partir do próximo hover."""
        self.settings = settings
        self.bridge.settings = settings

    async def hover(self, uri: str, position: Position) -> Optional[HoverResult]:
        """
        Resolve o tipo do símbolo em position.

        Returns:
            HoverResult (matched_span None se o símbolo não aparece no dump),
            ou None se não há símbolo na posição

        Raises:
            DocumentNotFound, CompilationFailed, ResourceUnavailable,
            ArtifactNotFound
        """
        doc = self.documents.get(uri)

        symbol_name, symbol_range = self._symbol_for(doc.text, position)
        if not symbol_name:
            logger.debug(f"Nenhum identificador em {uri}:{position.line}:{position.character}")
            return None

        async with self._lock:
            async with self.bridge.invoke(doc.text) as staged:
                try:
                    resolved = self.resolver.resolve_type(staged.artifact_path, symbol_name)
                except ArtifactNotFound:
                    logger.error(
                        f"Compilação concluiu sem gerar {staged.artifact_path.name}; "
                        f"pass '{self.settings.pass_name}' e artefato não correspondem"
                    )
                    raise

        return HoverResult(
            symbol=symbol_name,
            matched_span=resolved.span if resolved else None,
            range=symbol_range,
        )

    def _symbol_for(self, text: str, position: Position):
        if self.settings.fixed_symbol:
            return self.settings.fixed_symbol, None
        found = symbol_at_position(text, position)
        if not found:
            return None, None
        return found.name, found.range


def build_hover(result: Optional[HoverResult]) -> Optional[Hover]:
    """Formata o resultado como Markdown; None quando não há tipo."""
    if not result or not result.matched_span:
        return None
    return Hover(
        contents=MarkupContent(
            kind=MarkupKind.Markdown,
            value=f"```chapel\n{result.symbol}: {result.matched_span}\n```",
        ),
        range=result.range,
    )
