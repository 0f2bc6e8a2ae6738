"""
state.py - Estado do servidor durante a sessão do editor

Propósito:
    Agrupa em um único objeto tudo que o servidor mantém entre mensagens:
    fase do ciclo de vida, capacidades do cliente, settings, documentos
    abertos e o pipeline de hover.

Ciclo de vida:
    UNINITIALIZED --initialize--> INITIALIZED --shutdown--> SHUTDOWN
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from lsprotocol.types import ClientCapabilities

from chapel_lsp.config import CompilerSettings
from chapel_lsp.documents import DocumentStore
from chapel_lsp.errors import ServerNotInitialized
from chapel_lsp.hover import HoverResolver

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class ClientCapabilityFlags:
    """Capacidades do cliente relevantes para o servidor."""

    configuration: bool = False
    workspace_folders: bool = False
    diagnostic_related_information: bool = False

    @classmethod
    def from_capabilities(cls, capabilities) -> "ClientCapabilityFlags":
        if capabilities is None:
            return cls()
        workspace = getattr(capabilities, "workspace", None)
        text_document = getattr(capabilities, "text_document", None)
        publish = getattr(text_document, "publish_diagnostics", None) if text_document else None
        return cls(
            configuration=bool(workspace and workspace.configuration),
            workspace_folders=bool(workspace and workspace.workspace_folders),
            diagnostic_related_information=bool(publish and publish.related_information),
        )


class ServerState:
    """Estado próprio de uma instância do servidor."""

    def __init__(self, settings: Optional[CompilerSettings] = None):
        self.phase = Phase.UNINITIALIZED
        self.capabilities = ClientCapabilityFlags()
        self.settings = settings or CompilerSettings()
        self.documents = DocumentStore()
        self.hover = HoverResolver(self.documents, self.settings)

    @property
    def initialized(self) -> bool:
        return self.phase is Phase.INITIALIZED

    def initialize(self, capabilities: Optional[ClientCapabilities]) -> None:
        self.capabilities = ClientCapabilityFlags.from_capabilities(capabilities)
        self.phase = Phase.INITIALIZED
        logger.info(f"Servidor inicializado: {self.capabilities}")

    def require_initialized(self, method: str) -> None:
        if not self.initialized:
            raise ServerNotInitialized(method)

    def apply_settings(self, settings: CompilerSettings) -> None:
        self.settings = settings
        self.hover.configure(settings)
        logger.info(f"Configuração atualizada: {settings}")

    def shutdown(self) -> None:
        self.phase = Phase.SHUTDOWN
        self.documents.clear()
        logger.info("Servidor encerrado")
