"""
pass_log.py - Extração de tipos resolvidos do pass-log do compilador

Propósito:
    Lê o dump produzido por `chpl --log-pass ... --stop-after-pass resolve`
    e encontra o tipo resolvido de um símbolo.

Formato esperado no dump:
    <símbolo>[<id>]:<tipo>(<linha>)      ex.: s[3]:int(7)

Notas de implementação:
    - Primeira ocorrência vence; declarações que sombreiam o mesmo nome
      mais adiante não são desambiguadas
    - Ausência de ocorrência não é erro: retorna None
    - Arquivo inexistente levanta ArtifactNotFound
    - O símbolo não pode estar colado a outro identificador à esquerda
      (s não casa dentro de xs[...])
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chapel_lsp.errors import ArtifactNotFound, ResourceUnavailable

logger = logging.getLogger(__name__)

# Gramática do dump do pass resolve; {symbol} é substituído já escapado
RESOLVED_SYMBOL_PATTERN = (
    r"(?<![\w$]){symbol}\[(?P<id>\d+)\]:(?P<type>\w+)\((?P<line>\d+)\)"
)


@dataclass(frozen=True)
class ResolvedType:
    """Primeira ocorrência do símbolo no dump."""

    symbol: str
    symbol_id: int
    type_name: str
    line: int

    @property
    def span(self) -> str:
        """Texto de tipo/localização capturado, ex.: 'int(7)'."""
        return f"{self.type_name}({self.line})"


def compile_symbol_pattern(symbol: str) -> re.Pattern:
    return re.compile(RESOLVED_SYMBOL_PATTERN.format(symbol=re.escape(symbol)))


def find_resolved_type(dump: str, symbol: str) -> Optional[ResolvedType]:
    """Procura a primeira ocorrência de symbol no texto do dump."""
    match = compile_symbol_pattern(symbol).search(dump)
    if not match:
        return None
    return ResolvedType(
        symbol=symbol,
        symbol_id=int(match.group("id")),
        type_name=match.group("type"),
        line=int(match.group("line")),
    )


class PassLogResolver:
    """Lê o artefato de pass-log e resolve tipos de símbolos."""

    def resolve_type(self, artifact_path: Path, symbol: str) -> Optional[ResolvedType]:
        """
        Resolve o tipo de symbol no artefato.

        Args:
            artifact_path: Caminho do pass-log (StagedCompilation.artifact_path)
            symbol: Nome do identificador

        Returns:
            ResolvedType da primeira ocorrência, ou None se não houver

        Raises:
            ArtifactNotFound: se o arquivo não existe
            ResourceUnavailable: se o arquivo existe mas não pode ser lido
        """
        try:
            dump = Path(artifact_path).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            raise ArtifactNotFound(artifact_path) from None
        except OSError as e:
            raise ResourceUnavailable(f"Falha ao ler pass-log {artifact_path}: {e}") from e

        resolved = find_resolved_type(dump, symbol)
        if resolved:
            logger.debug(f"Tipo resolvido: {symbol} -> {resolved.span}")
        else:
            logger.debug(f"Símbolo sem tipo no pass-log: {symbol}")
        return resolved
