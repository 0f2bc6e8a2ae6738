"""
documents.py - Estado dos documentos abertos

Propósito:
    Mantém o texto autoritativo de cada documento aberto no editor,
    atualizado pelos eventos didOpen/didChange/didClose.

Componentes principais:
    - Document: snapshot imutável (uri, language_id, version, text)
    - DocumentStore: dicionário uri -> Document

Notas de implementação:
    - Sincronização completa: change substitui o texto inteiro
    - Nenhum outro componente guarda referência a Document; sempre get(uri)
    - Sem lock: o dispatcher processa uma mensagem por vez
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chapel_lsp.errors import DocumentNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Documento aberto no editor."""

    uri: str
    language_id: str
    version: int
    text: str


class DocumentStore:
    """Documentos abertos por URI."""

    def __init__(self):
        self._documents: dict[str, Document] = {}

    def open(self, uri: str, language_id: str, version: int, text: str) -> Document:
        """Cria ou substitui o documento para uri."""
        doc = Document(uri=uri, language_id=language_id, version=version, text=text)
        self._documents[uri] = doc
        logger.debug(f"Documento registrado: {uri} (v{version})")
        return doc

    def change(self, uri: str, version: int, full_text: str) -> Document:
        """
        Substitui texto e versão de um documento já aberto.

        Raises:
            DocumentNotFound: se uri não foi aberto
        """
        current = self.get(uri)
        doc = Document(
            uri=uri,
            language_id=current.language_id,
            version=version,
            text=full_text,
        )
        self._documents[uri] = doc
        return doc

    def close(self, uri: str) -> None:
        """Remove documento. Fechar uri desconhecido não é erro."""
        if self._documents.pop(uri, None):
            logger.debug(f"Documento removido: {uri}")

    def get(self, uri: str) -> Document:
        """Retorna o documento ou levanta DocumentNotFound."""
        try:
            return self._documents[uri]
        except KeyError:
            raise DocumentNotFound(uri) from None

    def uris(self) -> list[str]:
        return list(self._documents)

    def clear(self) -> None:
        self._documents.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)
