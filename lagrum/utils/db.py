"""Acesso ao Supabase para as tabelas legal_source e requirement."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List, Optional

from dotenv import load_dotenv
from supabase import Client, create_client

load_dotenv()

TABLE_LEGAL_SOURCE = "legal_source"
TABLE_REQUIREMENT = "requirement"
DEFAULT_BATCH_SIZE = 50


class MissingSupabaseConfig(RuntimeError):
    """Configuração obrigatória do Supabase não encontrada."""


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise MissingSupabaseConfig(
            "Defina SUPABASE_URL e SUPABASE_SERVICE_ROLE_KEY no ambiente para usar a API do Supabase."
        )
    return create_client(url, key)


def resolve_batch_size(batch_size: Optional[int] = None) -> int:
    if batch_size:
        return batch_size
    return int(os.getenv("LAGRUM_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))


def _batches(rows: List[dict], size: int) -> Iterable[List[dict]]:
    for inicio in range(0, len(rows), size):
        yield rows[inicio : inicio + size]


def insert_legal_sources(rows: List[dict], *, batch_size: Optional[int] = None) -> int:
    """Insere os blocos em lotes para respeitar o limite de tamanho das requisições."""
    if not rows:
        return 0
    client = get_supabase_client()
    inseridos = 0
    for lote in _batches(rows, resolve_batch_size(batch_size)):
        response = client.table(TABLE_LEGAL_SOURCE).insert(lote).execute()
        inseridos += len(response.data or [])
    return inseridos


def fetch_legal_source(source_id: str) -> Optional[dict]:
    client = get_supabase_client()
    response = client.table(TABLE_LEGAL_SOURCE).select("*").eq("id", source_id).limit(1).execute()
    data = response.data or []
    return data[0] if data else None


def fetch_legal_sources_by_regulation(
    regulation_name: str,
    *,
    workspace_id: Optional[str] = None,
) -> List[dict]:
    client = get_supabase_client()
    query = (
        client.table(TABLE_LEGAL_SOURCE)
        .select("id,lagrum,title")
        .eq("regelverk_name", regulation_name)
        .order("created_at")
    )
    if workspace_id:
        query = query.eq("workspace_id", workspace_id)
    response = query.execute()
    return response.data or []


def insert_requirements(rows: List[dict]) -> int:
    if not rows:
        return 0
    client = get_supabase_client()
    response = client.table(TABLE_REQUIREMENT).insert(rows).execute()
    return len(response.data or [])
