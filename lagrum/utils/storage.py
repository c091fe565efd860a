"""Helpers para trabalhar com o Supabase Storage."""

from __future__ import annotations

import os
import time
import unicodedata
from pathlib import PurePosixPath

from dotenv import load_dotenv
from supabase import Client, create_client

load_dotenv()

BUCKET_DOCUMENTS = "legal_documents"
BUCKET_EXTRACTED_TEXT = "extracted_text"


def _get_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise RuntimeError("SUPABASE_URL e SUPABASE_SERVICE_ROLE_KEY são obrigatórios")
    return create_client(url, key)


def _slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = value.strip().replace(" ", "-").replace("/", "-").replace(":", "-").lower()
    return value


def build_text_path(regulation_name: str, filename: str) -> str:
    stem = PurePosixPath(filename).stem or "documento"
    chave = PurePosixPath(_slugify(regulation_name), _slugify(stem))
    return f"{BUCKET_EXTRACTED_TEXT}/{chave}.txt"


def _split_bucket_path(path: str):
    if "/" not in path:
        raise ValueError(f"Caminho inválido para storage: {path}")
    bucket, key = path.split("/", 1)
    return bucket, key


def download_document(path: str) -> bytes:
    """Baixa um arquivo no formato 'bucket/chave' (sem bucket, usa legal_documents)."""
    client = _get_client()
    if "/" not in path:
        path = f"{BUCKET_DOCUMENTS}/{path}"
    bucket, key = _split_bucket_path(path)
    return client.storage.from_(bucket).download(key)


def upload_text(regulation_name: str, filename: str, content: str) -> str:
    """Guarda o texto extraído para reprocessamento sem nova extração."""
    client = _get_client()
    path = build_text_path(regulation_name, filename)
    bucket, relative_path = _split_bucket_path(path)
    attempts = 0
    backoff = 0.5

    while True:
        try:
            client.storage.from_(bucket).upload(
                relative_path,
                content.encode("utf-8"),
                file_options={"content-type": "text/plain", "upsert": "true"},
            )
            break
        except Exception:  # noqa: BLE001
            attempts += 1
            if attempts >= 3:
                raise
            time.sleep(backoff)
            backoff *= 2
    return path
