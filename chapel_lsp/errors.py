"""
errors.py - Taxonomia de erros do servidor Chapel

Propósito:
    Erros de domínio levantados pelo Document Store, pela ponte com o
    compilador e pelo leitor de pass-logs. O dispatcher (server.py) traduz
    cada um para uma resposta JSON-RPC, de modo que apenas a requisição
    que falhou falha.

Componentes principais:
    - ChapelLspError: base, carrega código JSON-RPC
    - DocumentNotFound, IncrementalChangeRejected
    - CompilationFailed, CompilationTimeout, ResourceUnavailable
    - ArtifactNotFound, ServerNotInitialized

Notas de implementação:
    - Códigos na faixa reservada a servidores (-32000 a -32099)
    - ArtifactNotFound após compilação bem-sucedida indica pass/artefato
      inconsistentes na configuração
"""

from __future__ import annotations

from typing import Optional


class ChapelLspError(Exception):
    """Erro base do servidor."""

    code: int = -32603

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DocumentNotFound(ChapelLspError):
    """URI não está aberto no Document Store."""

    code = -32001

    def __init__(self, uri: str):
        super().__init__(f"Documento não está aberto: {uri}")
        self.uri = uri


class IncrementalChangeRejected(ChapelLspError):
    """didChange com range: o servidor só aceita sincronização completa."""

    code = -32602

    def __init__(self, uri: str):
        super().__init__(
            f"Mudança incremental rejeitada para {uri}: "
            "o servidor usa TextDocumentSyncKind.Full"
        )
        self.uri = uri


class CompilationFailed(ChapelLspError):
    """Compilador terminou com status diferente de zero."""

    code = -32010

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CompilationTimeout(CompilationFailed):
    """Compilador excedeu compilerTimeout e foi encerrado."""

    code = -32011

    def __init__(self, timeout: float):
        super().__init__(f"Compilador excedeu o tempo limite de {timeout:g}s")
        self.timeout = timeout


class ResourceUnavailable(ChapelLspError):
    """Falha de filesystem ao preparar a área de trabalho ou executar o compilador."""

    code = -32012


class ArtifactNotFound(ChapelLspError):
    """Arquivo de pass-log esperado não existe."""

    code = -32013

    def __init__(self, path):
        super().__init__(
            f"Pass-log não encontrado: {path} "
            "(verifique passName/passNumber/artifactTemplate)"
        )
        self.path = path


class ServerNotInitialized(ChapelLspError):
    """Requisição recebida antes de initialize."""

    code = -32002

    def __init__(self, method: str):
        super().__init__(f"Servidor não inicializado: {method}")
        self.method = method
