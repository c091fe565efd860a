"""Gera krav (requirements) de compliance a partir de uma legal_source."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..utils import db as db_utils
from ..utils import llm as llm_utils
from .chunking import combinar_resultados, gerar_chunks

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


class LegalSourceNotFound(LookupError):
    """legal_source inexistente ou sem texto."""


def _lista(valor: Any) -> List[Any]:
    if valor is None:
        return []
    if isinstance(valor, list):
        return valor
    return [valor]


def montar_requirement(krav: Dict[str, Any], fonte: Dict[str, Any]) -> Dict[str, Any]:
    """Mapeia um krav do LLM para uma linha da tabela requirement."""
    titel = (krav.get("titel") or "").strip() or (fonte.get("title") or "Krav")
    beskrivning = (krav.get("beskrivning") or "").strip()
    paragraf = (krav.get("paragraf") or "").strip()
    linha = {
        "legal_source_id": fonte["id"],
        "title": titel,
        "description": f"{beskrivning} ({paragraf})" if paragraf and paragraf not in beskrivning else beskrivning,
        "titel": titel,
        "beskrivning": beskrivning,
        "obligation": krav.get("obligation"),
        "subjekt": _lista(krav.get("subjekt")),
        "trigger": _lista(krav.get("trigger")),
        "undantag": _lista(krav.get("undantag")),
        "åtgärder": _lista(krav.get("åtgärder")),
        "risknivå": krav.get("risknivå"),
    }
    if fonte.get("workspace_id"):
        linha["workspace_id"] = fonte["workspace_id"]
    return linha


def gerar_requirements(
    source_id: str,
    *,
    max_chars: Optional[int] = None,
    model: Optional[str] = None,
    dry_run: bool = False,
) -> List[Dict[str, Any]]:
    fonte = db_utils.fetch_legal_source(source_id)
    if not fonte:
        raise LegalSourceNotFound(f"legal_source {source_id} não encontrada.")
    texto = fonte.get("full_text") or fonte.get("content") or ""
    if not texto.strip():
        raise LegalSourceNotFound(f"legal_source {source_id} não possui texto.")

    chunks = gerar_chunks(texto, max_chars=max_chars)
    logging.info("Gerando krav para %s (%s caracteres, %s chunk(s)).", fonte.get("lagrum") or source_id, len(texto), len(chunks))

    resultados = []
    for chunk in chunks:
        krav = llm_utils.extract_requirements(chunk.texto, fonte, model=model)
        logging.info("Chunk %s/%s: %s krav.", chunk.indice + 1, len(chunks), len(krav))
        resultados.append(krav)

    linhas = [montar_requirement(krav, fonte) for krav in combinar_resultados(resultados)]
    if dry_run:
        return linhas

    inseridos = db_utils.insert_requirements(linhas)
    logging.info("%s requirement(s) inserido(s) para %s.", inseridos, source_id)
    return linhas


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Extrai krav de uma legal_source usando LLM.")
    parser.add_argument("--source-id", required=True, help="ID da legal_source.")
    parser.add_argument("--max-chars", type=int, help="Tamanho máximo de cada chunk enviado ao LLM.")
    parser.add_argument("--model", help="Modelo Gemini (padrão: GEMINI_MODEL).")
    parser.add_argument("--dry-run", action="store_true", help="Mostra os krav sem gravar.")
    args = parser.parse_args(argv)

    try:
        linhas = gerar_requirements(
            args.source_id,
            max_chars=args.max_chars,
            model=args.model,
            dry_run=args.dry_run,
        )
    except (LegalSourceNotFound, llm_utils.LLMNotConfigured) as exc:
        raise SystemExit(str(exc)) from exc

    if args.dry_run:
        print(json.dumps(linhas, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
