"""Busca leis no Riksdagen e importa as selecionadas como legal_source."""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, List, Optional

from ..importer.main import (
    ImportResult,
    NoBlocksFound,
    add_segmentation_arguments,
    build_config,
    import_text,
    print_blocks,
)
from ..segmenter.types import SegmentationConfig
from .riksdagen import RiksdagenClient, RiksdagenError
from .types import RiksdagenDocument

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)


def importar_documento(
    client: RiksdagenClient,
    documento: RiksdagenDocument,
    *,
    config: Optional[SegmentationConfig] = None,
    workspace_id: Optional[str] = None,
    dry_run: bool = False,
    append_only: bool = False,
) -> ImportResult:
    """Baixa o texto de um documento SFS e o importa segmentado."""
    texto = client.fetch_text(documento)
    logging.info("Texto de %s (%s) baixado: %s caracteres.", documento.dok_id, documento.beteckning, len(texto))
    return import_text(
        texto,
        documento.regulation_name,
        doc_type="lag",
        reference=documento.reference,
        workspace_id=workspace_id,
        config=config,
        dry_run=dry_run,
        append_only=append_only,
    )


def listar(documentos: List[RiksdagenDocument], total: int) -> None:
    print(f"\n--- {len(documentos)} de {total} documento(s) ---")
    for documento in documentos:
        print(f"{documento.dok_id:<12} {documento.beteckning:<12} {documento.titel}")
    print("--- fim ---\n")


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Busca e importação de SFS pela API do Riksdagen.")
    parser.add_argument("--query", required=True, help="Termo de busca (ex.: 'arbetsmiljö').")
    parser.add_argument("--doktyp", default="sfs", help="Tipo de documento no Riksdagen.")
    parser.add_argument("--page", type=int, default=1, help="Página de resultados.")
    parser.add_argument(
        "--import",
        dest="import_ids",
        action="append",
        help="dok_id a importar (pode repetir). Sem ele apenas lista os resultados.",
    )
    parser.add_argument(
        "--import-all",
        action="store_true",
        help="Importa todos os documentos encontrados (combine com --limit).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Percorre as páginas a partir da primeira até reunir este número de documentos.",
    )
    parser.add_argument("--workspace-id", help="Workspace dono dos registros.")
    add_segmentation_arguments(parser)

    args = parser.parse_args(argv)
    config = build_config(args)
    client = RiksdagenClient()

    try:
        if args.limit:
            documentos = list(client.iter_search(args.query, doc_type=args.doktyp, limit=args.limit))
            total = len(documentos)
        else:
            resultado = client.search(args.query, doc_type=args.doktyp, page=args.page)
            documentos, total = resultado.documents, resultado.total_hits
    except (RiksdagenError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    if not args.import_ids and not args.import_all:
        listar(documentos, total)
        return

    por_id = {documento.dok_id: documento for documento in documentos}
    selecionados = list(por_id) if args.import_all else list(dict.fromkeys(args.import_ids))
    importados = falhas = 0
    for dok_id in selecionados:
        documento = por_id.get(dok_id)
        if documento is None:
            logging.warning("dok_id %s não está entre os resultados da busca; ignorando.", dok_id)
            falhas += 1
            continue
        try:
            importado = importar_documento(
                client,
                documento,
                config=config,
                workspace_id=args.workspace_id,
                dry_run=args.dry_run,
                append_only=args.append_only,
            )
        except (RiksdagenError, NoBlocksFound) as exc:
            falhas += 1
            logging.error("Falha ao importar %s: %s", dok_id, exc)
            continue
        except Exception as exc:  # noqa: BLE001
            falhas += 1
            logging.exception("Erro não tratado ao importar %s: %s", dok_id, exc)
            continue
        importados += 1
        if args.dry_run:
            print_blocks(documento.regulation_name, importado)

    logging.info("Importação do Riksdagen concluída: importados=%s falhas=%s", importados, falhas)


if __name__ == "__main__":
    main()
