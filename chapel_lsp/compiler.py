"""
compiler.py - Ponte com o compilador Chapel (chpl)

Propósito:
    Produz um dump de tipos resolvidos para o texto atual de um documento:
    grava o texto em um arquivo de staging, executa o `chpl` até o pass
    configurado e entrega o caminho do pass-log gerado.

Componentes principais:
    - StagedCompilation: caminhos da invocação (workdir, fonte, log, artefato)
    - CompilerBridge.invoke: async context manager de uma compilação

Fluxo de invoke(text):
    1. Cria diretório de trabalho temporário exclusivo da invocação
    2. Remove log/ anterior (se houver) e grava <stem>.chpl
    3. Executa: chpl <stem>.chpl --log-pass <p> --stop-after-pass <pass>
    4. Aguarda término (com timeout); status != 0 -> CompilationFailed
    5. Entrega StagedCompilation; diretório removido ao sair do bloco

Notas de implementação:
    - Processo via asyncio.create_subprocess_exec: o loop do pygls continua
      atendendo outras mensagens durante a compilação
    - Timeout ou cancelamento ($/cancelRequest) matam o processo
    - Falhas de filesystem e compilador ausente -> ResourceUnavailable
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

from chapel_lsp.config import CompilerSettings
from chapel_lsp.errors import CompilationFailed, CompilationTimeout, ResourceUnavailable

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 20


@dataclass(frozen=True)
class StagedCompilation:
    """Resultado de uma invocação bem-sucedida do compilador."""

    workdir: Path
    source_path: Path
    log_dir: Path
    artifact_path: Path


class CompilerBridge:
    """Executa o compilador sobre uma cópia em disco do documento."""

    def __init__(self, settings: CompilerSettings):
        self.settings = settings

    @asynccontextmanager
    async def invoke(self, document_text: str) -> AsyncIterator[StagedCompilation]:
        """
        Compila document_text até o pass configurado.

        Yields:
            StagedCompilation com o caminho do pass-log

        Raises:
            CompilationFailed: status de saída diferente de zero
            CompilationTimeout: compilador excedeu compiler_timeout
            ResourceUnavailable: falha de filesystem ou compilador ausente
        """
        try:
            workdir = Path(tempfile.mkdtemp(prefix="chapel-lsp-"))
        except OSError as e:
            raise ResourceUnavailable(f"Falha ao criar diretório de trabalho: {e}") from e

        try:
            staged = self._stage(workdir, document_text)
            await self._run(staged)
            yield staged
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def _stage(self, workdir: Path, document_text: str) -> StagedCompilation:
        settings = self.settings
        log_dir = workdir / settings.log_dir_name
        source_path = workdir / settings.staging_filename
        try:
            if log_dir.exists():
                shutil.rmtree(log_dir)
            # newline="" preserva as quebras de linha do editor
            source_path.write_text(document_text, encoding="utf-8", newline="")
        except OSError as e:
            raise ResourceUnavailable(f"Falha ao preparar {workdir}: {e}") from e

        logger.debug(f"Documento gravado para compilação: {source_path}")
        return StagedCompilation(
            workdir=workdir,
            source_path=source_path,
            log_dir=log_dir,
            artifact_path=log_dir / settings.artifact_name,
        )

    async def _run(self, staged: StagedCompilation) -> None:
        settings = self.settings
        command = settings.compiler_command(staged.source_path.name)
        logger.info(f"Executando compilador: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(staged.workdir),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ResourceUnavailable(
                f"Compilador não encontrado: {settings.compiler_path}"
            ) from e
        except OSError as e:
            raise ResourceUnavailable(
                f"Falha ao executar {settings.compiler_path}: {e}"
            ) from e

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=settings.compiler_timeout
            )
        except asyncio.TimeoutError:
            await _kill(process)
            logger.warning(f"Compilador excedeu {settings.compiler_timeout:g}s, processo encerrado")
            raise CompilationTimeout(settings.compiler_timeout) from None
        except asyncio.CancelledError:
            await _kill(process)
            logger.info("Compilação cancelada pelo cliente")
            raise

        if process.returncode != 0:
            stderr_text = _tail(stderr.decode("utf-8", errors="replace"))
            raise CompilationFailed(
                f"{settings.compiler_path} terminou com status {process.returncode}"
                + (f":\n{stderr_text}" if stderr_text else ""),
                returncode=process.returncode,
                stderr=stderr_text,
            )

        logger.debug(f"Compilação concluída: {staged.artifact_path}")


async def _kill(process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _tail(text: str) -> str:
    lines = text.strip().splitlines()
    return "\n".join(lines[-_STDERR_TAIL_LINES:])
