"""Extração de texto de PDFs, HTML e texto puro antes da segmentação."""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF
from bs4 import BeautifulSoup

from ..utils import llm as llm_utils

DEFAULT_MAX_PAGES = 50


class ExtractionError(RuntimeError):
    """Documento ilegível ou sem texto aproveitável."""


@dataclass
class ExtractedText:
    """Texto extraído e páginas processadas (o extrator pode truncar o documento)."""

    text: str
    pages_total: int = 0
    pages_processed: int = 0
    method: str = "text"


def resolve_max_pages(max_pages: Optional[int] = None) -> int:
    if max_pages:
        return max_pages
    return int(os.getenv("LAGRUM_MAX_PAGES", str(DEFAULT_MAX_PAGES)))


def _guess_kind(filename: Optional[str], content_type: Optional[str]) -> str:
    tipo = content_type or (mimetypes.guess_type(filename)[0] if filename else None) or ""
    if tipo == "application/pdf":
        return "pdf"
    if tipo in {"text/html", "application/xhtml+xml"}:
        return "html"
    return "text"


def extract_text(
    data: bytes,
    *,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    max_pages: Optional[int] = None,
    use_llm_fallback: bool = True,
) -> ExtractedText:
    """Despacha pelo tipo do documento e retorna o texto bruto."""
    tipo = _guess_kind(filename, content_type)
    if tipo == "pdf":
        return extract_pdf_text(data, max_pages=max_pages, use_llm_fallback=use_llm_fallback)
    if tipo == "html":
        return ExtractedText(text=html_to_text(data.decode("utf-8", errors="replace")), method="html")
    return ExtractedText(text=data.decode("utf-8", errors="replace"), method="text")


def extract_pdf_text(
    data: bytes,
    *,
    max_pages: Optional[int] = None,
    use_llm_fallback: bool = True,
) -> ExtractedText:
    limite = resolve_max_pages(max_pages)
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:  # noqa: BLE001
        raise ExtractionError(f"Não foi possível abrir o PDF: {exc}") from exc

    try:
        total = doc.page_count
        processadas = min(total, limite)
        paginas = [doc.load_page(idx).get_text("text") for idx in range(processadas)]
    finally:
        doc.close()

    if total > processadas:
        logging.warning("PDF com %s páginas; processando apenas as primeiras %s.", total, processadas)

    texto = "\n".join(paginas)
    if texto.strip():
        return ExtractedText(text=texto, pages_total=total, pages_processed=processadas, method="pdf")

    if not use_llm_fallback:
        raise ExtractionError("PDF sem camada de texto (apenas imagens).")

    logging.info("PDF sem camada de texto. Solicitando extração ao LLM.")
    texto = llm_utils.extract_text_from_document(data, "application/pdf")
    if not texto:
        raise ExtractionError("O LLM não retornou texto para o PDF.")
    return ExtractedText(text=texto, pages_total=total, pages_processed=processadas, method="llm")


def html_to_text(content: str) -> str:
    soup = BeautifulSoup(content, "html.parser")
    for script in soup(["script", "style"]):
        script.extract()
    raiz = soup.body or soup
    return raiz.get_text("\n")
