"""
config.py - Configuração da ponte com o compilador Chapel

Propósito:
    Reúne em um único lugar o nome do pass, o formato do artefato e o
    comando do compilador, para que uma mudança de versão do `chpl` seja
    uma atualização de configuração.

Componentes principais:
    - CompilerSettings: dataclass imutável com os parâmetros
    - CompilerSettings.from_lsp_settings: constrói a partir de
      workspace/didChangeConfiguration

Notas de implementação:
    - Settings podem vir como {'chapel': {...}} ou diretamente {...}
    - Valores inválidos voltam ao padrão com warning (nunca crasha)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_SECTION = "chapel"

DEFAULT_COMPILER_PATH = "chpl"
DEFAULT_PASS_NAME = "resolve"
DEFAULT_LOG_PASS = "r"
DEFAULT_PASS_NUMBER = 13
DEFAULT_ARTIFACT_TEMPLATE = "{stem}_{pass_number}{pass_name}.ast"
DEFAULT_LOG_DIR_NAME = "log"
DEFAULT_STAGING_STEM = "text"
DEFAULT_COMPILER_TIMEOUT = 30.0

# Chave camelCase (cliente) → campo do dataclass
_SETTING_KEYS = {
    "compilerPath": "compiler_path",
    "passName": "pass_name",
    "logPass": "log_pass",
    "passNumber": "pass_number",
    "artifactTemplate": "artifact_template",
    "logDirName": "log_dir_name",
    "stagingStem": "staging_stem",
    "compilerTimeout": "compiler_timeout",
    "fixedSymbol": "fixed_symbol",
}


@dataclass(frozen=True)
class CompilerSettings:
    """Parâmetros de invocação do compilador e de leitura do pass-log."""

    compiler_path: str = DEFAULT_COMPILER_PATH
    pass_name: str = DEFAULT_PASS_NAME
    log_pass: str = DEFAULT_LOG_PASS
    pass_number: int = DEFAULT_PASS_NUMBER
    artifact_template: str = DEFAULT_ARTIFACT_TEMPLATE
    log_dir_name: str = DEFAULT_LOG_DIR_NAME
    staging_stem: str = DEFAULT_STAGING_STEM
    compiler_timeout: float = DEFAULT_COMPILER_TIMEOUT
    fixed_symbol: Optional[str] = None

    @property
    def staging_filename(self) -> str:
        return f"{self.staging_stem}.chpl"

    @property
    def artifact_name(self) -> str:
        """Nome do arquivo de pass-log lido pelo PassLogResolver."""
        return self.artifact_template.format(
            stem=self.staging_stem,
            pass_number=self.pass_number,
            pass_name=self.pass_name,
        )

    def compiler_command(self, source: str) -> list[str]:
        """Linha de comando: para logo após o pass configurado."""
        return [
            self.compiler_path,
            source,
            "--log-pass",
            self.log_pass,
            "--stop-after-pass",
            self.pass_name,
        ]

    @classmethod
    def from_lsp_settings(cls, settings) -> "CompilerSettings":
        """
        Constrói settings a partir do payload de didChangeConfiguration.

        Args:
            settings: {'chapel': {...}}, a própria seção, ou None

        Returns:
            CompilerSettings com padrões para chaves ausentes ou inválidas
        """
        if not isinstance(settings, dict):
            return cls()

        section = settings.get(CONFIG_SECTION, settings)
        if not isinstance(section, dict):
            return cls()

        defaults = cls()
        values = {}
        for key, attr in _SETTING_KEYS.items():
            if key not in section or section[key] is None:
                continue
            raw = section[key]
            try:
                values[attr] = _coerce(attr, raw)
            except (TypeError, ValueError):
                logger.warning(
                    f"Configuração inválida chapel.{key}={raw!r}, "
                    f"usando padrão {getattr(defaults, attr)!r}"
                )

        result = replace(defaults, **values)
        try:
            result.artifact_name
        except (KeyError, IndexError, ValueError):
            logger.warning(
                f"artifactTemplate inválido: {result.artifact_template!r}, usando padrão"
            )
            result = replace(result, artifact_template=DEFAULT_ARTIFACT_TEMPLATE)
        return result


def _coerce(attr: str, raw):
    if attr == "pass_number":
        if isinstance(raw, bool):
            raise TypeError(attr)
        return int(raw)
    if attr == "compiler_timeout":
        if isinstance(raw, bool):
            raise TypeError(attr)
        value = float(raw)
        if value <= 0:
            raise ValueError(attr)
        return value
    if not isinstance(raw, str) or not raw.strip():
        raise TypeError(attr)
    return raw.strip()
