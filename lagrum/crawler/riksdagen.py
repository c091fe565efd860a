"""Cliente da API de dados abertos do Riksdagen (Svensk författningssamling)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List

import requests

from ..extractor.document import html_to_text
from .types import RiksdagenDocument, SearchResult

USER_AGENT = "LagrumImportBot/0.1 (+https://data.riksdagen.se)"


class RiksdagenError(RuntimeError):
    """Falha de rede ou resposta inválida da API do Riksdagen."""


def _normalize_url(url: str) -> str:
    # a API devolve links sem protocolo ("//data.riksdagen.se/...")
    if url.startswith("//"):
        return f"https:{url}"
    return url


def _as_list(dokument) -> List[dict]:
    if not dokument:
        return []
    if isinstance(dokument, dict):
        return [dokument]
    return [item for item in dokument if isinstance(item, dict)]


def _parse_hits(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class RiksdagenClient:
    """Busca documentos na dokumentlista e baixa o texto integral."""

    session: requests.Session = field(default_factory=requests.Session)

    BASE_URL = "https://data.riksdagen.se/dokumentlista/"
    TIMEOUT = 60

    def __post_init__(self) -> None:
        self.session.headers.update({"User-Agent": USER_AGENT})

    def search(self, query: str, *, doc_type: str = "sfs", page: int = 1) -> SearchResult:
        termo = (query or "").strip()
        if not termo:
            raise ValueError("Informe um termo de busca.")

        params = {
            "sok": termo,
            "doktyp": doc_type,
            "utformat": "json",
            "sort": "rel",
            "sortorder": "desc",
            "p": str(page),
        }
        try:
            response = self.session.get(self.BASE_URL, params=params, timeout=self.TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RiksdagenError(f"Não foi possível consultar o Riksdagen ('{termo}'): {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RiksdagenError(f"Resposta JSON inválida do Riksdagen para '{termo}'.") from exc

        lista = (payload or {}).get("dokumentlista") or {}
        itens = _as_list(lista.get("dokument"))
        documentos = [RiksdagenDocument.from_api(item) for item in itens]
        total = _parse_hits(lista.get("@traffar")) if documentos else 0
        logging.info("Riksdagen: %s documento(s) na página %s (%s no total) para '%s'.", len(documentos), page, total, termo)
        return SearchResult(documents=documentos, total_hits=total)

    def iter_search(self, query: str, *, doc_type: str = "sfs", limit: int = 20) -> Iterable[RiksdagenDocument]:
        """Percorre as páginas da busca até atingir o limite ou esgotar os resultados."""
        emitidos = 0
        pagina = 1
        while emitidos < limit:
            resultado = self.search(query, doc_type=doc_type, page=pagina)
            if not resultado.documents:
                return
            for documento in resultado.documents:
                if emitidos >= limit:
                    return
                emitidos += 1
                yield documento
            if emitidos >= resultado.total_hits:
                return
            pagina += 1

    def fetch_text(self, documento: RiksdagenDocument) -> str:
        """Baixa o texto do documento; sem versão texto, converte o HTML."""
        if documento.dokument_url_text:
            texto = self._get(documento.dokument_url_text)
            if texto.strip():
                return self._sanitize_text(texto)
        if documento.dokument_url_html:
            texto = html_to_text(self._get(documento.dokument_url_html))
            if texto.strip():
                return self._sanitize_text(texto)
        raise RiksdagenError(f"Documento {documento.dok_id} sem texto disponível.")

    def _get(self, url: str) -> str:
        try:
            response = self.session.get(_normalize_url(url), timeout=self.TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RiksdagenError(f"Falha ao baixar {url}: {exc}") from exc
        response.encoding = response.encoding or "utf-8"
        return response.text

    @staticmethod
    def _sanitize_text(texto: str) -> str:
        texto = texto.replace("\r\n", "\n").replace("\r", "\n")
        texto = re.sub(r"\n{3,}", "\n\n", texto)
        return texto.strip()
