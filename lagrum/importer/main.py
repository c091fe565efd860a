"""CLI de importação: extrai o texto, segmenta em lagrum e grava em legal_source."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from ..extractor import document as extractor
from ..segmenter.deterministic import describe_heuristics, segment, summarize_blocks
from ..segmenter.types import InputTooLargeError, LawBlock, SegmentationConfig, ValidationError
from ..utils import db as db_utils
from ..utils import storage as storage_utils
from . import records as records_utils

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


class NoBlocksFound(RuntimeError):
    """A segmentação não produziu nenhum bloco (texto extraído vazio)."""


@dataclass
class ImportResult:
    """Resumo de uma importação, incluindo páginas totais vs. processadas."""

    inserted: int
    pages: int = 0
    processed_pages: int = 0
    blocks: List[LawBlock] = field(default_factory=list)
    skipped: int = 0


def _validar_nome(regulation_name: Optional[str]) -> str:
    nome = (regulation_name or "").strip()
    if not nome:
        raise ValidationError("regulation_name é obrigatório.")
    return nome


def import_text(
    texto: str,
    regulation_name: str,
    *,
    doc_type: str = "lag",
    reference: Optional[str] = None,
    workspace_id: Optional[str] = None,
    config: Optional[SegmentationConfig] = None,
    pages: int = 0,
    processed_pages: int = 0,
    dry_run: bool = False,
    append_only: bool = False,
) -> ImportResult:
    """Segmenta um texto já extraído e grava um registro por bloco."""
    nome = _validar_nome(regulation_name)

    logging.info("Segmentando %s caracteres de '%s'.", len(texto), nome)
    blocos = segment(texto, nome, config)
    if not blocos:
        raise NoBlocksFound(f"Nenhuma seção legal encontrada no documento de '{nome}'.")
    logging.info("'%s' segmentado em %s bloco%s.", nome, len(blocos), "" if len(blocos) == 1 else "s")

    a_gravar = blocos
    if append_only and not dry_run:
        existentes = {
            linha.get("lagrum")
            for linha in db_utils.fetch_legal_sources_by_regulation(nome, workspace_id=workspace_id)
        }
        a_gravar = [bloco for bloco in blocos if bloco.citation not in existentes]
        if len(a_gravar) < len(blocos):
            logging.info("%s bloco(s) já existentes para '%s' serão mantidos.", len(blocos) - len(a_gravar), nome)

    registros = records_utils.build_records(
        a_gravar,
        nome,
        doc_type=doc_type,
        reference=reference,
        workspace_id=workspace_id,
    )
    resultado = ImportResult(
        inserted=0,
        pages=pages,
        processed_pages=processed_pages,
        blocks=blocos,
        skipped=len(blocos) - len(a_gravar),
    )
    if dry_run:
        return resultado

    resultado.inserted = db_utils.insert_legal_sources(records_utils.as_rows(registros))
    logging.info("%s legal source(s) inserida(s) para '%s'.", resultado.inserted, nome)
    return resultado


def import_document(
    data: bytes,
    regulation_name: str,
    *,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    doc_type: str = "lag",
    reference: Optional[str] = None,
    workspace_id: Optional[str] = None,
    config: Optional[SegmentationConfig] = None,
    max_pages: Optional[int] = None,
    dry_run: bool = False,
    append_only: bool = False,
    save_text: bool = False,
) -> ImportResult:
    """Extrai o texto do documento e delega a segmentação/gravação a import_text."""
    nome = _validar_nome(regulation_name)

    extraido = extractor.extract_text(
        data,
        filename=filename,
        content_type=content_type,
        max_pages=max_pages,
    )
    logging.info(
        "Extraídos %s caracteres de %s (%s/%s páginas, método %s).",
        len(extraido.text),
        filename or "documento",
        extraido.pages_processed,
        extraido.pages_total,
        extraido.method,
    )
    if not extraido.text.strip():
        raise extractor.ExtractionError(f"Documento de '{nome}' sem texto extraível.")

    if save_text and not dry_run:
        caminho = storage_utils.upload_text(nome, filename or "documento", extraido.text)
        logging.info("Texto extraído salvo em %s.", caminho)

    return import_text(
        extraido.text,
        nome,
        doc_type=doc_type,
        reference=reference,
        workspace_id=workspace_id,
        config=config,
        pages=extraido.pages_total,
        processed_pages=extraido.pages_processed,
        dry_run=dry_run,
        append_only=append_only,
    )


def build_config(args: argparse.Namespace) -> SegmentationConfig:
    overrides = {}
    if args.min_length is not None:
        overrides["min_block_length"] = args.min_length
    if args.max_chars is not None:
        overrides["max_input_chars"] = args.max_chars
        overrides["oversize_policy"] = "truncate"
    if args.bare_citations:
        overrides["qualify_citations"] = False
    return SegmentationConfig(**overrides)


def add_segmentation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--min-length", type=int, help="Tamanho mínimo (caracteres) de um bloco.")
    parser.add_argument("--max-chars", type=int, help="Trunca o texto extraído neste número de caracteres.")
    parser.add_argument(
        "--bare-citations",
        action="store_true",
        help="Grava o lagrum sem o nome do regelverk como prefixo.",
    )
    parser.add_argument(
        "--append-only",
        action="store_true",
        help="Não grava blocos cujo lagrum já existe para o regelverk.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Executa sem gravar no banco.")


def print_blocks(nome: str, resultado: ImportResult) -> None:
    print(f"\n--- Blocos ({nome}) ---")
    for linha in summarize_blocks(resultado.blocks, max_items=None):
        print(linha)
    print("--- fim ---\n")


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Importa um documento legal e o segmenta em lagrum.")
    origem = parser.add_mutually_exclusive_group()
    origem.add_argument("--file", help="Caminho local do documento (PDF, HTML ou texto).")
    origem.add_argument("--storage-path", help="Documento no Supabase Storage ('bucket/chave').")
    parser.add_argument("--regulation", help="Nome do regelverk (ex.: 'Arbetsmiljölagen').")
    parser.add_argument("--typ", default="lag", help="Tipo do documento (lag, förordning, föreskrift...).")
    parser.add_argument("--referens", help="Referência externa (ex.: 'SFS 1977:1160').")
    parser.add_argument("--workspace-id", help="Workspace dono dos registros.")
    parser.add_argument("--max-pages", type=int, help="Máximo de páginas do PDF a processar.")
    parser.add_argument("--save-text", action="store_true", help="Salva o texto extraído no Storage.")
    parser.add_argument("--explain", action="store_true", help="Mostra as heurísticas do segmentador e sai.")
    add_segmentation_arguments(parser)

    args = parser.parse_args(argv)
    config = build_config(args)

    if args.explain:
        print(describe_heuristics(config))
        return
    if not args.file and not args.storage_path:
        raise SystemExit("Informe --file ou --storage-path.")

    if args.file:
        caminho = Path(args.file)
        data = caminho.read_bytes()
        filename = caminho.name
    else:
        data = storage_utils.download_document(args.storage_path)
        filename = Path(args.storage_path).name

    try:
        resultado = import_document(
            data,
            args.regulation,
            filename=filename,
            doc_type=args.typ,
            reference=args.referens,
            workspace_id=args.workspace_id,
            config=config,
            max_pages=args.max_pages,
            dry_run=args.dry_run,
            append_only=args.append_only,
            save_text=args.save_text,
        )
    except (ValidationError, InputTooLargeError) as exc:
        raise SystemExit(str(exc)) from exc
    except (extractor.ExtractionError, NoBlocksFound) as exc:
        logging.error("Falha ao importar %s: %s", filename, exc)
        raise SystemExit(1) from exc

    if args.dry_run:
        print_blocks(args.regulation, resultado)

    logging.info(
        "Importação concluída para '%s': %s bloco(s), %s inserido(s), %s mantido(s), %s/%s páginas %sprocessadas.",
        args.regulation,
        len(resultado.blocks),
        resultado.inserted,
        resultado.skipped,
        resultado.processed_pages,
        resultado.pages,
        "dry-run " if args.dry_run else "",
    )


if __name__ == "__main__":
    main()
