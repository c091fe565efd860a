"""Utilitários para dividir textos extensos em chunks seguros para a extração de krav."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

DEFAULT_MAX_CHARS = 30000

BOUNDARY_REGEX = re.compile(r"\n[ \t]*\n|\n(?=\s*\d+\s*[a-zåäö]?\s*(?:kap\.|§))")


@dataclass
class TextoChunk:
    """Representa um trecho sequencial do texto da legal_source."""

    indice: int
    inicio: int
    fim: int
    texto: str


def resolve_max_chars(max_chars: Optional[int] = None) -> int:
    if max_chars:
        return max_chars
    return int(os.getenv("LAGRUM_MAX_AI_CHARS", str(DEFAULT_MAX_CHARS)))


def _ultimo_limite(texto: str, inicio: int, fim: int) -> Optional[int]:
    """Último fim de parágrafo/bloco dentro de [inicio, fim)."""
    limite = None
    for match in BOUNDARY_REGEX.finditer(texto, inicio, fim):
        if match.end() > inicio:
            limite = match.end()
    return limite


def gerar_chunks(texto: str, *, max_chars: Optional[int] = None) -> List[TextoChunk]:
    """Divide o texto em chunks de até max_chars, cortando em fronteiras de bloco quando possível."""
    limite_chars = resolve_max_chars(max_chars)
    if len(texto) <= limite_chars:
        return [TextoChunk(indice=0, inicio=0, fim=len(texto), texto=texto)]

    chunks: List[TextoChunk] = []
    inicio = 0
    total_len = len(texto)

    while inicio < total_len:
        candidato = min(inicio + limite_chars, total_len)
        if candidato >= total_len:
            fim = total_len
        else:
            # sem fronteira no trecho, corta no limite bruto
            fim = _ultimo_limite(texto, inicio, candidato) or candidato
        chunks.append(TextoChunk(indice=len(chunks), inicio=inicio, fim=fim, texto=texto[inicio:fim]))
        inicio = fim

    return chunks


def combinar_resultados(chunk_results: List[List[Dict]]) -> List[Dict]:
    """Une os krav retornados pelos chunks, descartando repetidos (mesmo título e paragraf)."""
    combinado: List[Dict] = []
    vistos = set()
    for resultado in chunk_results:
        for krav in resultado or []:
            chave = ((krav.get("titel") or "").strip().lower(), (krav.get("paragraf") or "").strip())
            if chave in vistos:
                continue
            vistos.add(chave)
            combinado.append(krav)
    return combinado
