"""Segmentador determinístico de textos legais suecos em blocos de lagrum."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, replace
from functools import partial, reduce
from typing import Any, List, Match, Optional, Tuple

from . import patterns as marker_patterns
from .patterns import SECTION_SPLIT_REGEX, WHITESPACE_REGEX, MarkerPatterns, normalize_label
from .types import InputTooLargeError, LawBlock, SegmentationConfig, ValidationError

DEFAULT_CONFIG = SegmentationConfig()

Rotulado = Tuple[str, str]


@dataclass(frozen=True)
class _ScanState:
    """Estado da varredura por linhas (um registro imutável por linha processada).

    O corpo do bloco ativo é guardado como intervalo [start, end) das linhas já
    limpas e os blocos prontos como lista encadeada (bloco, anteriores), para que
    cada passo custe O(1).
    """

    chapter: Optional[str] = None
    citation: Optional[str] = None
    head: str = ""
    start: int = 0
    end: int = 0
    blocks: Optional[Tuple[Rotulado, Any]] = None
    previous: str = ""


def segment(
    full_text: str,
    regulation_name: str,
    config: Optional[SegmentationConfig] = None,
) -> List[LawBlock]:
    """Divide o texto bruto em blocos de lagrum, na ordem do documento.

    Tenta primeiro a varredura por linhas; se nenhum bloco for gerado, a
    varredura por spans sobre o texto com espaços normalizados. Sem marcadores
    reconhecíveis, cai para as seções separadas por linha em branco e, por
    último, para um bloco único com o texto inteiro.
    """
    config = config or DEFAULT_CONFIG
    nome = (regulation_name or "").strip()
    if not nome:
        raise ValidationError("regulation_name é obrigatório para qualificar os lagrum.")

    bruto = _limit(full_text or "", config)
    if not bruto.strip():
        return []
    texto = _normalize(bruto)

    patterns = marker_patterns.compile_patterns(config)
    rotulados = _segment_by_lines(texto, patterns, config) or _segment_by_spans(texto, patterns, config)
    if rotulados:
        blocos = [LawBlock(citation=_qualify(nome, citacao, config), text=corpo) for citacao, corpo in rotulados]
    else:
        blocos = _segment_unstructured(texto, bruto, nome, config)

    if config.max_blocks is not None:
        blocos = blocos[: config.max_blocks]
    return blocos


def _limit(texto: str, config: SegmentationConfig) -> str:
    limite = config.max_input_chars
    if limite is not None and len(texto) > limite:
        if config.oversize_policy != "truncate":
            raise InputTooLargeError(len(texto), limite)
        texto = texto[:limite]
    return texto


def _normalize(texto: str) -> str:
    return texto.replace("\r\n", "\n").replace("\r", "\n").replace("\u00a0", " ")


def _qualify(nome: str, citacao: str, config: SegmentationConfig) -> str:
    return f"{nome} {citacao}" if config.qualify_citations else citacao


# --- Modo A: varredura por linhas ---


def _segment_by_lines(texto: str, patterns: MarkerPatterns, config: SegmentationConfig) -> List[Rotulado]:
    linhas = [linha.strip() for linha in texto.split("\n")]
    passo = partial(_scan_line, patterns, config, linhas)
    estado = reduce(passo, enumerate(linhas), _ScanState())
    return _unroll(_flush(estado, linhas, config).blocks)


def _scan_line(
    patterns: MarkerPatterns,
    config: SegmentationConfig,
    linhas: List[str],
    estado: _ScanState,
    item: Tuple[int, str],
) -> _ScanState:
    indice, linha = item
    anterior = linha or estado.previous
    marcador = _line_marker(linha, estado.previous, patterns)

    if marcador is None:
        if estado.citation is None:
            # Texto antes do primeiro marcador não pertence a nenhum lagrum.
            return replace(estado, previous=anterior)
        return replace(estado, end=indice + 1, previous=anterior)

    tipo, rotulo, resto = marcador
    estado = _flush(estado, linhas, config)

    if tipo == "chapter":
        # Cabeçalho de kapitel encerra o bloco ativo; o título não é atribuído a ninguém.
        return replace(estado, chapter=rotulo, previous=anterior)

    if tipo == "combined":
        capitulo = marker_patterns.chapter_of(rotulo, patterns) or estado.chapter
        citacao = rotulo
    else:
        capitulo = estado.chapter
        citacao = f"{capitulo} {rotulo}" if capitulo else rotulo

    return replace(
        estado,
        chapter=capitulo,
        citation=citacao,
        head=resto,
        start=indice + 1,
        end=indice + 1,
        previous=anterior,
    )


def _line_marker(linha: str, anterior: str, patterns: MarkerPatterns) -> Optional[Tuple[str, str, str]]:
    """Retorna (tipo, rótulo, resto da linha) quando a linha começa com um marcador real."""
    if not linha or marker_patterns.ends_with_reference_word(anterior):
        return None

    for tipo, regex in (
        ("combined", patterns.line_combined),
        ("chapter", patterns.line_chapter),
        ("paragraph", patterns.line_paragraph),
    ):
        match = regex.match(linha)
        if match is None:
            continue
        resto = linha[match.end() :].strip()
        if tipo == "chapter" and (resto[:1].isdigit() or resto[:1].islower()):
            return None
        if tipo != "chapter" and marker_patterns.continues_as_reference(resto):
            return None
        return tipo, normalize_label(match.group("marker")), resto
    return None


def _flush(estado: _ScanState, linhas: List[str], config: SegmentationConfig) -> _ScanState:
    if estado.citation is None:
        return estado
    corpo_linhas = linhas[estado.start : estado.end]
    if estado.head:
        corpo_linhas = [estado.head, *corpo_linhas]
    corpo = "\n".join(corpo_linhas).strip()
    blocos = estado.blocks
    if len(corpo) > config.min_block_length:
        blocos = ((estado.citation, corpo), blocos)
    return replace(estado, citation=None, head="", start=estado.end, blocks=blocos)


def _unroll(blocos: Optional[Tuple[Rotulado, Any]]) -> List[Rotulado]:
    rotulados: List[Rotulado] = []
    while blocos is not None:
        bloco, blocos = blocos
        rotulados.append(bloco)
    rotulados.reverse()
    return rotulados


# --- Modo B: varredura por spans ---


def _segment_by_spans(texto: str, patterns: MarkerPatterns, config: SegmentationConfig) -> List[Rotulado]:
    normalizado = WHITESPACE_REGEX.sub(" ", texto).strip()
    marcadores = [
        match
        for match in patterns.unified.finditer(normalizado)
        if not marker_patterns.match_looks_like_reference(normalizado, match)
    ]

    blocos: List[Rotulado] = []
    capitulo: Optional[str] = None
    for idx, match in enumerate(marcadores):
        fim = marcadores[idx + 1].start() if idx + 1 < len(marcadores) else len(normalizado)
        # o span inclui o próprio marcador, diferente da varredura por linhas
        corpo = normalizado[match.start() : fim].strip()
        rotulo = normalize_label(match.group(0))
        tipo = _match_kind(match)

        if tipo == "chapter":
            capitulo = rotulo
            if len(corpo) > config.min_chapter_block_length:
                blocos.append((rotulo, corpo))
            continue

        if tipo == "combined":
            capitulo = marker_patterns.chapter_of(rotulo, patterns) or capitulo
            citacao = rotulo
        else:
            citacao = f"{capitulo} {rotulo}" if capitulo else rotulo

        if len(corpo) > config.min_block_length:
            blocos.append((citacao, corpo))
    return blocos


def _match_kind(match: Match) -> str:
    if match.group("combined") is not None:
        return "combined"
    if match.group("paragraph") is not None:
        return "paragraph"
    return "chapter"


# --- Fallback sem estrutura ---


def _segment_unstructured(texto: str, bruto: str, nome: str, config: SegmentationConfig) -> List[LawBlock]:
    secoes = SECTION_SPLIT_REGEX.split(texto.strip())
    if len(secoes) > 1:
        substanciais = [secao.strip() for secao in secoes if len(secao.strip()) > config.min_block_length]
        if substanciais:
            return [
                LawBlock(citation=f"{nome} § {idx}", text=secao)
                for idx, secao in enumerate(substanciais, start=1)
            ]
    # bloco único com o texto como recebido, sem normalizar quebras de linha
    return [LawBlock(citation=nome, text=bruto.strip())]


def summarize_blocks(blocks: List[LawBlock], max_items: Optional[int] = 5, width: int = 120) -> List[str]:
    """Cria linhas resumidas para debug em terminal."""
    blocos_iter = blocks if max_items is None else blocks[:max_items]
    return [_formatar_linha(bloco.citation, bloco.text, width) for bloco in blocos_iter]


def _formatar_linha(citacao: str, texto: str, width: int) -> str:
    resumo = WHITESPACE_REGEX.sub(" ", texto)
    return textwrap.shorten(f"{citacao}: {resumo}", width=width, placeholder=" ...")


def describe_heuristics(config: Optional[SegmentationConfig] = None) -> str:
    """Retorna uma descrição textual das regex/heurísticas atuais."""
    config = config or DEFAULT_CONFIG
    patterns = marker_patterns.compile_patterns(config)
    return textwrap.dedent(
        f"""
        Regex utilizadas pelo segmentador:
        - CHAPTER: {patterns.chapter.pattern}
        - PARAGRAPH: {patterns.paragraph.pattern}
        - COMBINED: {patterns.combined.pattern}
        - REFERENCE_SUFFIX: {marker_patterns.REFERENCE_SUFFIX_REGEX.pattern}
        Limites: bloco mínimo > {config.min_block_length} caracteres; kapitel sem paragraf > {config.min_chapter_block_length} (modo por spans).
        Regras atuais: varredura por linhas com kapitel herdado pelos paragraf seguintes; cabeçalho de kapitel encerra o bloco ativo; texto anterior ao primeiro marcador é descartado; se nada for encontrado, varredura por spans sobre o texto normalizado, com o marcador incluído no texto do bloco; sem marcadores, seções separadas por linha em branco viram '<regelverk> § n' e, em último caso, um bloco único com o nome do regelverk; citações precedidas de 'enligt', 'i', 'och' etc. ou seguidas de 'första stycket', 'p.', 'och 4 §' não iniciam blocos.
        """
    ).strip()
