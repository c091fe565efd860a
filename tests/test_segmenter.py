import time

import pytest

from lagrum.segmenter.deterministic import describe_heuristics, segment, summarize_blocks
from lagrum.segmenter.types import InputTooLargeError, LawBlock, SegmentationConfig, ValidationError

AML = "Arbetsmiljölagen"

KAPITEL_TEXT = """Arbetsmiljölag (1977:1160)

1 kap. Lagens ändamål och tillämpningsområde
1 § Lagens ändamål är att förebygga ohälsa och olycksfall i arbetet samt att även i övrigt uppnå en god arbetsmiljö.
2 § Denna lag gäller varje verksamhet i vilken arbetstagare utför arbete för en arbetsgivares räkning.
2 kap. Arbetsmiljöns beskaffenhet
1 § Arbetsmiljön skall vara tillfredsställande med hänsyn till arbetets natur och den sociala och tekniska utvecklingen.
2 a § Arbetet skall planläggas och anordnas så att det kan utföras i sund och säker miljö för alla anställda.
"""

PLATT_TEXT = (
    "4 § Arbetsgivaren ska dokumentera riskbedömningen skriftligt och hålla den tillgänglig.\n"
    "5 § Undantag gäller när verksamheten bedrivs av en enskild näringsidkare utan anställda.\n"
)

OSTRUKTURERAD_TEXT = (
    "Riktlinjen beskriver hur verksamheten ska arbeta systematiskt med informationssäkerhet.\n"
    "\n"
    "Varje enhet ska utse en ansvarig person som följer upp åtgärderna minst en gång per år.\n"
    "\n"
    "Avvikelser rapporteras till ledningen utan dröjsmål och dokumenteras i ärendesystemet.\n"
)

KORT = SegmentationConfig(min_block_length=10)
BARA = SegmentationConfig(qualify_citations=False)


def test_segment_is_deterministic():
    assert segment(KAPITEL_TEXT, AML) == segment(KAPITEL_TEXT, AML)


def test_non_empty_input_always_produces_blocks():
    for texto in (KAPITEL_TEXT, PLATT_TEXT, OSTRUKTURERAD_TEXT, "bara några ord"):
        assert segment(texto, AML)


@pytest.mark.parametrize("texto", ["", "   ", "\n\n\t\n", None])
def test_empty_input_returns_no_blocks(texto):
    assert segment(texto, AML) == []


@pytest.mark.parametrize("nome", ["", "   ", None])
def test_blank_regulation_name_is_rejected(nome):
    with pytest.raises(ValidationError):
        segment(KAPITEL_TEXT, nome)


def test_chapters_are_inherited_by_following_paragraphs():
    blocos = segment(KAPITEL_TEXT, AML, BARA)

    assert [bloco.citation for bloco in blocos] == [
        "1 kap. 1 §",
        "1 kap. 2 §",
        "2 kap. 1 §",
        "2 kap. 2 a §",
    ]
    assert blocos[0].text.startswith("Lagens ändamål")
    assert all("kap." not in bloco.text for bloco in blocos)


def test_citations_are_qualified_with_regulation_name_by_default():
    blocos = segment(KAPITEL_TEXT, AML)

    assert blocos[0].citation == "Arbetsmiljölagen 1 kap. 1 §"
    assert all(bloco.citation.startswith(f"{AML} ") for bloco in blocos)


def test_chapter_inheritance_on_short_paragraphs():
    texto = "1 kap.\nInledande bestämmelser\n1 §\nFörsta stycket text.\n2 §\nAndra stycket text."

    blocos = segment(texto, AML, KORT)

    assert blocos == [
        LawBlock(citation=f"{AML} 1 kap. 1 §", text="Första stycket text."),
        LawBlock(citation=f"{AML} 1 kap. 2 §", text="Andra stycket text."),
    ]


def test_flat_statute_keeps_paragraph_citations():
    texto = "4 § Subject to the following conditions...\n5 § Exceptions apply when..."

    blocos = segment(texto, AML, SegmentationConfig(min_block_length=10, qualify_citations=False))

    assert [bloco.citation for bloco in blocos] == ["4 §", "5 §"]
    assert blocos[0].text == "Subject to the following conditions..."
    assert blocos[1].text == "Exceptions apply when..."


def test_blocks_follow_document_order_without_overlap():
    blocos = segment(PLATT_TEXT + KAPITEL_TEXT, AML)

    posicao = 0
    for bloco in blocos:
        encontrado = (PLATT_TEXT + KAPITEL_TEXT).find(bloco.text, posicao)
        assert encontrado >= posicao
        posicao = encontrado + len(bloco.text)


def test_unstructured_text_falls_back_to_blank_line_sections():
    blocos = segment(OSTRUKTURERAD_TEXT, "Riktlinje IT")

    assert [bloco.citation for bloco in blocos] == [
        "Riktlinje IT § 1",
        "Riktlinje IT § 2",
        "Riktlinje IT § 3",
    ]
    assert blocos[1].text.startswith("Varje enhet")


def test_short_blocks_are_dropped():
    texto = "1 § Upphävd.\n2 § Arbetsgivaren ska regelbundet undersöka arbetsförhållandena och bedöma risker.\n"

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["2 §"]


def test_threshold_is_strictly_greater_than():
    corpo = "x" * 50
    texto = f"1 § {corpo}\n2 § {corpo}y\n"

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["2 §"]


def test_single_blob_without_sections_becomes_one_block():
    texto = "  Ett kort meddelande utan struktur.  "

    assert segment(texto, AML) == [LawBlock(citation=AML, text="Ett kort meddelande utan struktur.")]


def test_single_blob_keeps_input_characters():
    texto = "  Ett kort meddelande\r\nutan struktur.  "

    assert segment(texto, AML) == [LawBlock(citation=AML, text="Ett kort meddelande\r\nutan struktur.")]


def test_short_sections_fall_back_to_single_block():
    texto = "Kort.\n\nOckså kort."

    assert segment(texto, AML) == [LawBlock(citation=AML, text="Kort.\n\nOckså kort.")]


def test_chapter_heading_closes_active_block():
    texto = (
        "1 § Arbetsgivaren ska se till att arbetstagaren får god kännedom om förhållandena.\n"
        "2 kap. Tillsyn\n"
        "Inledande text som inte hör till någon paragraf.\n"
        "1 § Arbetsmiljöverket utövar tillsyn över efterlevnaden av denna lag och föreskrifter.\n"
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 §", "2 kap. 1 §"]
    assert "Tillsyn" not in blocos[0].text
    assert "Inledande text" not in blocos[1].text


def test_text_before_first_marker_is_discarded():
    blocos = segment(KAPITEL_TEXT, AML)

    assert all("1977:1160" not in bloco.text for bloco in blocos)


def test_combined_marker_sets_chapter():
    texto = (
        "3 kap. 2 § Arbetsgivaren skall vidta alla åtgärder som behövs för att förebygga ohälsa.\n"
        "3 § Arbetstagaren skall medverka i arbetsmiljöarbetet och delta i genomförandet av åtgärder.\n"
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["3 kap. 2 §", "3 kap. 3 §"]


def test_cross_references_do_not_start_blocks():
    texto = (
        "1 § Arbetsgivaren ska lämna de uppgifter som behövs för tillsynen enligt\n"
        "3 kap. 2 § och följa de föreskrifter som meddelas.\n"
        "2 § Skyddsombudet ska få del av uppgifterna utan dröjsmål och kan begära komplettering.\n"
        "4 § första stycket gäller inte för arbete som utförs i arbetsgivarens hushåll.\n"
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 §", "2 §"]
    assert "3 kap. 2 § och följa" in blocos[0].text
    assert "4 § första stycket" in blocos[1].text


def test_chapter_line_with_lowercase_continuation_is_not_a_heading():
    texto = (
        "1 § Bestämmelser om skyddsombud finns i lagen och gäller för alla arbetsställen.\n"
        "6 kap. lagen innehåller ytterligare regler om skyddskommittéer.\n"
        "2 § Arbetsgivaren ska bekosta den utbildning som skyddsombudet behöver för sitt uppdrag.\n"
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 §", "2 §"]
    assert "6 kap. lagen" in blocos[0].text


def test_glued_section_sign_is_normalized():
    texto = "4§ Arbetsgivaren ska dokumentera riskbedömningen skriftligt och hålla den tillgänglig.\n"

    assert segment(texto, AML, BARA)[0].citation == "4 §"


def test_inline_markers_use_span_scan():
    texto = (
        "Arbetsmiljölagen 1 kap. Lagens ändamål 1 § Lagens ändamål är att förebygga ohälsa och olycksfall "
        "i arbetet samt att uppnå en god arbetsmiljö. 2 § Denna lag gäller varje verksamhet där "
        "arbetstagare utför arbete för en arbetsgivares räkning."
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 kap. 1 §", "1 kap. 2 §"]
    assert blocos[0].text.startswith("1 § Lagens ändamål är att")
    assert blocos[1].text.startswith("2 § Denna lag gäller")


def _capitulo_em_linha(tamanho_corpo):
    return (
        "Förord 1 kap. "
        + "a" * tamanho_corpo
        + " 2 kap. 1 § Arbetsgivaren ska vidta alla åtgärder som behövs för att förebygga ohälsa."
    )


def test_span_scan_emits_long_chapter_as_its_own_block():
    blocos = segment(_capitulo_em_linha(494), AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 kap.", "2 kap. 1 §"]
    assert len(blocos[0].text) == 501
    assert blocos[0].text.startswith("1 kap. aaa")
    assert blocos[1].text.startswith("2 kap. 1 § Arbetsgivaren")


def test_span_scan_short_chapter_only_sets_chapter():
    texto = (
        "Förord 1 kap. Allmänna bestämmelser 1 § Arbetsgivaren ska vidta alla åtgärder som behövs "
        "för att förebygga ohälsa och olycksfall."
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 kap. 1 §"]


def test_span_scan_chapter_at_threshold_is_not_a_block():
    blocos = segment(_capitulo_em_linha(493), AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["2 kap. 1 §"]


def test_span_scan_skips_cross_references():
    texto = (
        "Inledning 1 § Arbetsgivaren ska vidta åtgärder enligt 3 § och dokumentera dem skriftligt varje år. "
        "2 § Skyddsombudet ska få del av dokumentationen och kan begära komplettering."
    )

    blocos = segment(texto, AML, BARA)

    assert [bloco.citation for bloco in blocos] == ["1 §", "2 §"]
    assert "enligt 3 § och dokumentera" in blocos[0].text


def test_line_scan_cost_grows_linearly():
    def tempo(linhas):
        texto = "1 § Start.\n" + "Rad utan markör i brödtexten.\n" * linhas
        melhor = None
        for _ in range(3):
            inicio = time.perf_counter()
            blocos = segment(texto, AML, BARA)
            decorrido = time.perf_counter() - inicio
            melhor = decorrido if melhor is None else min(melhor, decorrido)
        assert len(blocos) == 1
        assert blocos[0].text.count("\n") == linhas
        return melhor

    pequeno = tempo(20_000)
    grande = tempo(80_000)

    assert grande < pequeno * 10


def test_many_blocks_keep_document_order():
    texto = "".join(f"{idx} § Arbetsgivaren ska dokumentera åtgärd nummer {idx} skriftligt och årligen.\n" for idx in range(1, 5001))

    blocos = segment(texto, AML, BARA)

    assert len(blocos) == 5000
    assert [bloco.citation for bloco in blocos[:3]] == ["1 §", "2 §", "3 §"]
    assert blocos[-1].citation == "5000 §"


def test_max_blocks_limits_output():
    blocos = segment(KAPITEL_TEXT, AML, SegmentationConfig(max_blocks=2))

    assert len(blocos) == 2
    assert blocos[1].citation == f"{AML} 1 kap. 2 §"


def test_oversized_input_is_rejected():
    with pytest.raises(InputTooLargeError) as excinfo:
        segment(KAPITEL_TEXT, AML, SegmentationConfig(max_input_chars=100))

    assert excinfo.value.limit == 100
    assert excinfo.value.length == len(KAPITEL_TEXT)


def test_oversized_input_can_be_truncated():
    limite = KAPITEL_TEXT.index("2 kap.")
    config = SegmentationConfig(max_input_chars=limite, oversize_policy="truncate", qualify_citations=False)

    blocos = segment(KAPITEL_TEXT, AML, config)

    assert [bloco.citation for bloco in blocos] == ["1 kap. 1 §", "1 kap. 2 §"]


def test_windows_line_endings_are_handled():
    texto = KAPITEL_TEXT.replace("\n", "\r\n")

    assert segment(texto, AML) == segment(KAPITEL_TEXT, AML)


def test_summarize_blocks_shortens_lines():
    blocos = segment(KAPITEL_TEXT, AML)

    linhas = summarize_blocks(blocos, max_items=2, width=60)

    assert len(linhas) == 2
    assert linhas[0].startswith(f"{AML} 1 kap. 1 §:")
    assert all(len(linha) <= 60 for linha in linhas)


def test_describe_heuristics_reports_thresholds():
    descricao = describe_heuristics(SegmentationConfig(min_block_length=80))

    assert "CHAPTER:" in descricao
    assert "> 80" in descricao
