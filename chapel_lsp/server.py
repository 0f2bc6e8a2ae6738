"""
server.py - Servidor LSP principal para Chapel usando pygls

Propósito:
    Servidor Language Server Protocol que oferece completamento de
    palavras reservadas e hover com o tipo resolvido pelo compilador
    `chpl` para arquivos Chapel (.chpl).

Componentes principais:
    - ChapelLanguageServer: Servidor pygls com ServerState próprio
    - Ciclo de vida: initialize, initialized, shutdown
    - Documentos: did_open, did_change, did_close (sincronização completa)
    - Features: completion, completionItem/resolve, hover
    - Workspace: didChangeConfiguration, didChangeWatchedFiles,
      didChangeWorkspaceFolders

Dependências críticas:
    - pygls: Framework LSP
    - chapel_lsp.hover: Pipeline compilador -> pass-log

Exemplo de uso:
    python -m chapel_lsp

Notas de implementação:
    - Comunica via STDIO (entrada/saída padrão); logs vão para stderr
    - Documentos, capacidades e settings vivem em ls.state, não em globais
    - Erros de domínio viram respostas JSON-RPC; só a requisição falha
    - Notificações com erro são logadas (nunca crasha)
"""

from __future__ import annotations

import logging
import sys
import uuid
from typing import Optional

from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_HOVER,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    WORKSPACE_DID_CHANGE_WATCHED_FILES,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    CompletionItem,
    CompletionOptions,
    CompletionParams,
    ConfigurationItem,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidChangeWatchedFilesParams,
    DidChangeWorkspaceFoldersParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    Hover,
    HoverParams,
    InitializedParams,
    InitializeParams,
    Registration,
    RegistrationParams,
    TextDocumentSyncKind,
    WorkspaceConfigurationParams,
)
from pygls.exceptions import JsonRpcException
from pygls.server import LanguageServer

from chapel_lsp import __version__
from chapel_lsp.completion import completion_items, resolve_completion_item
from chapel_lsp.config import CONFIG_SECTION, CompilerSettings
from chapel_lsp.errors import (
    ArtifactNotFound,
    ChapelLspError,
    DocumentNotFound,
    IncrementalChangeRejected,
)
from chapel_lsp.hover import build_hover
from chapel_lsp.state import ServerState

# Configuração de logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class ChapelLanguageServer(LanguageServer):
    """
    Servidor LSP especializado para Chapel.

    Attributes:
        state: ServerState com fase do ciclo de vida, capacidades do cliente,
               settings do compilador, documentos abertos e pipeline de hover
    """

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("text_document_sync_kind", TextDocumentSyncKind.Full)
        super().__init__(*args, **kwargs)
        self.state: ServerState = ServerState()


# Instância global do servidor
server = ChapelLanguageServer("chapel-lsp", f"v{__version__}")


def _rpc_error(error: ChapelLspError) -> JsonRpcException:
    """Converte erro de domínio em resposta JSON-RPC."""
    return JsonRpcException(code=error.code, message=error.message)


@server.feature(INITIALIZE)
def initialize(ls: ChapelLanguageServer, params: InitializeParams) -> None:
    """
    Registra as capacidades do cliente.

    As capacidades do servidor (sync completo, completion com resolve,
    hover) são montadas pelo pygls a partir das features registradas.
    """
    ls.state.initialize(params.capabilities)
    if params.initialization_options:
        ls.state.apply_settings(
            CompilerSettings.from_lsp_settings(params.initialization_options)
        )


@server.feature(INITIALIZED)
def initialized(ls: ChapelLanguageServer, params: InitializedParams) -> None:
    """Registra didChangeConfiguration se o cliente suporta configuration."""
    if ls.state.capabilities.configuration:
        try:
            ls.register_capability(
                RegistrationParams(
                    registrations=[
                        Registration(
                            id=str(uuid.uuid4()),
                            method=WORKSPACE_DID_CHANGE_CONFIGURATION,
                        )
                    ]
                )
            )
            logger.info("Registrado para workspace/didChangeConfiguration")
        except Exception as e:
            logger.warning(f"Falha ao registrar didChangeConfiguration: {e}")


@server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
def did_change_workspace_folders(
    ls: ChapelLanguageServer, params: DidChangeWorkspaceFoldersParams
) -> None:
    if ls.state.capabilities.workspace_folders:
        logger.info("Mudança de workspace folders recebida")


@server.feature(SHUTDOWN)
def shutdown(ls: ChapelLanguageServer, params) -> None:
    ls.state.shutdown()


@server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
async def did_change_configuration(
    ls: ChapelLanguageServer, params: DidChangeConfigurationParams
) -> None:
    """
    Handler para mudanças na configuração do workspace.

    A seção 'chapel' normalmente vem em params.settings. Se não vier e o
    cliente suporta workspace/configuration, ela é solicitada ao cliente.
    Os novos settings valem a partir do próximo hover.
    """
    settings = params.settings
    if not _has_section(settings) and ls.state.capabilities.configuration:
        try:
            items = await ls.get_configuration_async(
                WorkspaceConfigurationParams(
                    items=[ConfigurationItem(section=CONFIG_SECTION)]
                )
            )
            settings = items[0] if items else None
        except Exception as e:
            logger.warning(f"Falha ao obter configuração do cliente: {e}")

    ls.state.apply_settings(CompilerSettings.from_lsp_settings(settings))


def _has_section(settings) -> bool:
    return isinstance(settings, dict) and isinstance(settings.get(CONFIG_SECTION), dict)


@server.feature(WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(
    ls: ChapelLanguageServer, params: DidChangeWatchedFilesParams
) -> None:
    """Arquivos monitorados mudaram; o hover sempre recompila, então só loga."""
    for change in params.changes:
        logger.info(f"Arquivo monitorado mudou: {change.uri} (tipo: {change.type.name})")


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: ChapelLanguageServer, params: DidOpenTextDocumentParams) -> None:
    """Registra o texto completo do documento aberto."""
    doc = params.text_document
    if not ls.state.initialized:
        logger.warning(f"didOpen antes de initialize ignorado: {doc.uri}")
        return

    ls.state.documents.open(doc.uri, doc.language_id, doc.version, doc.text)
    logger.info(f"Documento aberto: {doc.uri}")


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: ChapelLanguageServer, params: DidChangeTextDocumentParams) -> None:
    """
    Handler para mudanças no documento.

    Sincronização completa: o texto da última mudança substitui o
    documento inteiro. Mudanças com range são rejeitadas.
    """
    uri = params.text_document.uri
    if not ls.state.initialized:
        logger.warning(f"didChange antes de initialize ignorado: {uri}")
        return
    if not params.content_changes:
        return

    last = params.content_changes[-1]
    try:
        if getattr(last, "range", None) is not None:
            raise IncrementalChangeRejected(uri)
        ls.state.documents.change(uri, params.text_document.version, last.text)
        logger.info(f"Documento modificado: {uri} (v{params.text_document.version})")
    except (DocumentNotFound, IncrementalChangeRejected) as e:
        logger.error(f"didChange rejeitado: {e.message}")


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: ChapelLanguageServer, params: DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.state.documents.close(uri)
    logger.info(f"Documento fechado: {uri}")


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(resolve_provider=True),
)
def completion(ls: ChapelLanguageServer, params: CompletionParams) -> list[CompletionItem]:
    """
    Retorna as palavras reservadas de Chapel.

    A posição do cursor é ignorada: o catálogo é sempre o mesmo.
    """
    try:
        ls.state.require_initialized(TEXT_DOCUMENT_COMPLETION)
    except ChapelLspError as e:
        raise _rpc_error(e) from e
    return completion_items()


@server.feature(COMPLETION_ITEM_RESOLVE)
def completion_item_resolve(ls: ChapelLanguageServer, item: CompletionItem) -> CompletionItem:
    return resolve_completion_item(item)


@server.feature(TEXT_DOCUMENT_HOVER)
async def hover(ls: ChapelLanguageServer, params: HoverParams) -> Optional[Hover]:
    """
    Retorna o tipo resolvido do identificador sob o cursor.

    Compila o texto atual com `chpl --stop-after-pass resolve` e lê o
    tipo no pass-log. Falhas de compilação/filesystem viram erro da
    requisição; o servidor continua atendendo.
    """
    uri = params.text_document.uri
    try:
        ls.state.require_initialized(TEXT_DOCUMENT_HOVER)
        result = await ls.state.hover.hover(uri, params.position)
    except ArtifactNotFound as e:
        logger.error(f"Configuração inconsistente do pass-log: {e.message}")
        raise _rpc_error(e) from e
    except ChapelLspError as e:
        logger.warning(f"Hover falhou para {uri}: {e.message}")
        raise _rpc_error(e) from e

    return build_hover(result)


def main() -> None:
    """
    Ponto de entrada principal do servidor.

    Inicia servidor LSP em modo STDIO para comunicação com o editor.
    """
    logger.info("Iniciando Chapel Language Server...")
    logger.info("Python executable: %s", sys.executable)
    logger.info("chapel-lsp: %s", __version__)
    server.start_io()


if __name__ == "__main__":
    main()
