"""Padrões de marcadores (kapitel/paragraf) e heurísticas de referência cruzada."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Match, Optional, Pattern

from .types import SegmentationConfig

WHITESPACE_REGEX = re.compile(r"\s+")
GLUED_SECTION_SIGN_REGEX = re.compile(r"(?<=\w)(?=§)")
SECTION_SPLIT_REGEX = re.compile(r"\n(?:[ \t]*\n)+")

# Palavras que, imediatamente antes de um marcador, indicam citação e não início de paragraf.
REFERENCE_PREFIX_TERMINALS = {
    "enligt",
    "i",
    "av",
    "till",
    "se",
    "och",
    "eller",
    "samt",
    "med",
    "från",
    "jfr",
    "mot",
    "om",
    "under",
    "vid",
    "på",
    "ur",
    "som",
}

# Continuação em minúscula logo após o marcador: "5 § första stycket", "3 § p. 2", "4 § och 6 §".
REFERENCE_SUFFIX_REGEX = re.compile(
    r"^[,;:\s]*(?:"
    r"(?:första|andra|tredje|fjärde|femte|sjätte|sjunde|åttonde|nionde|tionde)\s+(?:stycket|meningen|punkten)"
    r"|st\.|p\.|punkt(?:en|erna)?\b|stycket\b"
    r"|(?:och|eller|samt|till)\s+\d"
    r"|[-–]\s*\d"
    r"|,\s*\d"
    r"|(?:i\s+)?(?:lagen|förordningen|balken|denna\s+lag|samma\s+lag)\b"
    r")"
)

PREFIX_TOKEN_REGEX = re.compile(r"[\wåäöÅÄÖ§.]+")


@dataclass(frozen=True)
class MarkerPatterns:
    """Regex compiladas a partir de uma SegmentationConfig."""

    chapter: Pattern
    paragraph: Pattern
    combined: Pattern
    line_chapter: Pattern
    line_paragraph: Pattern
    line_combined: Pattern
    unified: Pattern


@lru_cache(maxsize=32)
def _compile(chapter: str, paragraph: str, combined: str) -> MarkerPatterns:
    flags = re.IGNORECASE | re.UNICODE
    return MarkerPatterns(
        chapter=re.compile(chapter, flags),
        paragraph=re.compile(paragraph, flags),
        combined=re.compile(combined, flags),
        line_chapter=re.compile(rf"(?P<marker>{chapter})", flags),
        line_paragraph=re.compile(rf"(?P<marker>{paragraph})", flags),
        line_combined=re.compile(rf"(?P<marker>{combined})", flags),
        unified=re.compile(
            rf"(?P<combined>{combined})|(?P<paragraph>{paragraph})|(?P<chapter>{chapter})",
            flags,
        ),
    )


def compile_patterns(config: SegmentationConfig) -> MarkerPatterns:
    return _compile(config.chapter_pattern, config.paragraph_pattern, config.resolved_combined_pattern())


def normalize_label(texto: str) -> str:
    """Colapsa espaços internos e separa o '§' colado ao número ('4§' -> '4 §')."""
    texto = WHITESPACE_REGEX.sub(" ", texto).strip()
    return GLUED_SECTION_SIGN_REGEX.sub(" ", texto)


def chapter_of(label: str, patterns: MarkerPatterns) -> Optional[str]:
    """Extrai o kapitel de um marcador combinado ('1 kap. 2 §' -> '1 kap.')."""
    match = patterns.chapter.match(label)
    if not match:
        return None
    return normalize_label(match.group(0))


def ends_with_reference_word(texto: str) -> bool:
    """True quando o trecho termina com palavra que introduz citação ('enligt', 'i', ...)."""
    tokens = PREFIX_TOKEN_REGEX.findall(texto[-40:].lower())
    if not tokens:
        return False
    return tokens[-1] in REFERENCE_PREFIX_TERMINALS


def continues_as_reference(resto: str) -> bool:
    """True quando o texto após o marcador continua uma citação ('första stycket', 'och 4 §')."""
    return bool(REFERENCE_SUFFIX_REGEX.match(resto))


def match_looks_like_reference(texto: str, match: Match) -> bool:
    """Heurística para diferenciar citações de marcadores reais no modo por spans."""
    inicio, fim = match.span()
    if ends_with_reference_word(texto[max(0, inicio - 40) : inicio]):
        return True
    return continues_as_reference(texto[fim : fim + 60])
