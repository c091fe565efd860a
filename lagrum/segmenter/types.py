"""Tipos do segmentador de textos legais."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

DEFAULT_MIN_BLOCK_LENGTH = 50
DEFAULT_MIN_CHAPTER_BLOCK_LENGTH = 500

CHAPTER_PATTERN = r"\d+(?:\s*[a-zåäö](?![a-zåäö]))?\s*kap\."
PARAGRAPH_PATTERN = r"\d+(?:\s*[a-zåäö](?![a-zåäö]))?\s*§(?!\s*§)"


class ValidationError(ValueError):
    """Entrada inválida fornecida pelo chamador (ex.: nome de regelverk vazio)."""


class InputTooLargeError(ValueError):
    """Texto excede o limite configurado de caracteres."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"Texto com {length} caracteres excede o limite de {limit}.")
        self.length = length
        self.limit = limit


@dataclass(frozen=True)
class LawBlock:
    """Bloco legal endereçável por um lagrum (ex.: '8 kap. 4 §')."""

    citation: str
    text: str


@dataclass(frozen=True)
class SegmentationConfig:
    """Parâmetros do segmentador. Os padrões são regex sem âncoras."""

    min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH
    max_blocks: Optional[int] = None
    chapter_pattern: str = CHAPTER_PATTERN
    paragraph_pattern: str = PARAGRAPH_PATTERN
    combined_pattern: Optional[str] = None
    qualify_citations: bool = True
    min_chapter_block_length: int = DEFAULT_MIN_CHAPTER_BLOCK_LENGTH
    max_input_chars: Optional[int] = None
    oversize_policy: Literal["reject", "truncate"] = "reject"

    def resolved_combined_pattern(self) -> str:
        if self.combined_pattern:
            return self.combined_pattern
        return rf"{self.chapter_pattern}\s*{self.paragraph_pattern}"
