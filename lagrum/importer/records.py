"""Schema das linhas de legal_source geradas a partir dos blocos segmentados."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..segmenter.types import LawBlock

PREVIEW_CHARS = 500


class LegalSourceRecord(BaseModel):
    """Uma linha de legal_source: um bloco com prévia curta e texto integral."""

    regelverk_name: str = Field(..., min_length=1)
    typ: str = "lag"
    lagrum: str
    title: str
    referens: Optional[str] = None
    content: str = Field(..., max_length=PREVIEW_CHARS)
    full_text: str
    workspace_id: Optional[str] = None


def build_records(
    blocks: List[LawBlock],
    regulation_name: str,
    *,
    doc_type: str = "lag",
    reference: Optional[str] = None,
    workspace_id: Optional[str] = None,
) -> List[LegalSourceRecord]:
    return [
        LegalSourceRecord(
            regelverk_name=regulation_name,
            typ=doc_type,
            lagrum=block.citation,
            title=block.citation,
            referens=reference,
            content=block.text[:PREVIEW_CHARS],
            full_text=block.text,
            workspace_id=workspace_id,
        )
        for block in blocks
    ]


def as_rows(records: List[LegalSourceRecord]) -> List[dict]:
    return [record.model_dump(exclude_none=True) for record in records]
