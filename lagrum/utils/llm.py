"""Integração com LLMs (Gemini) para extração de texto e de krav."""

from __future__ import annotations

import json
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

try:
    import google.generativeai as genai  # type: ignore
    from google.api_core import exceptions as google_exceptions  # type: ignore
except ImportError:  # pragma: no cover - biblioteca opcional
    genai = None
    google_exceptions = None


class LLMNotConfigured(RuntimeError):
    """Disparado quando as credenciais/SDK do LLM não estão disponíveis."""


JSON_BLOCK_REGEX = re.compile(r"\{[\s\S]*\}")
MAX_ATTEMPTS = 3
INITIAL_BACKOFF = 2.0

EXTRACT_TEXT_PROMPT = (
    "Extract all text from this Swedish legal document. "
    "Return ONLY the raw text content, no explanations or formatting. "
    "Keep chapter headings ('1 kap.') and paragraph markers ('1 §') at the start of their own lines."
)

REQUIREMENTS_PROMPT = """
Du är en juridiskt skolad AI-assistent som omvandlar juridisk text (lagar, förordningar,
direktiv, föreskrifter, riktlinjer) till maskinläsbara compliance-krav för företag och organisationer.

Du ska INTE ge juridisk rådgivning. Du ska ENBART identifiera och strukturera de krav som
faktiskt framgår ur texten, strikt utifrån ordalydelsen.

Svara ALLTID med strikt giltig JSON enligt modellen:
{{
  "krav": [
    {{
      "titel": "STRING",
      "beskrivning": "STRING",
      "paragraf": "STRING (exakt referens, t.ex. '8 kap. 18 §')",
      "subjekt": ["STRING"],
      "trigger": ["STRING"],
      "undantag": ["STRING"],
      "obligation": "STRING",
      "åtgärder": [{{"typ": "process|dokumentation|rapportering|styrning|tekniskt", "namn": "STRING", "beskrivning": "STRING"}}],
      "risknivå": "hög|medel|låg"
    }}
  ]
}}

Regler:
- Om texten saknar materiella krav: sätt "krav": [].
- Paragrafnummer anges exakt som i lagen.
- Ingen extra text, inga kommentarer – bara JSON.

Källa: {fonte}

Text:
\"\"\"{texto}\"\"\"
"""


@dataclass
class LLMConfig:
    api_key: str
    model: str


def _get_config(model: Optional[str] = None) -> LLMConfig:
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise LLMNotConfigured("Defina GEMINI_API_KEY para utilizar a extração assistida por LLM.")
    resolved_model = model or os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    return LLMConfig(api_key=api_key, model=resolved_model)


def _get_model(model: Optional[str], generation_config: Optional[Dict[str, Any]] = None):
    if genai is None:
        raise LLMNotConfigured("Pacote google-generativeai não disponível. Instale para usar o LLM.")
    config = _get_config(model)
    genai.configure(api_key=config.api_key)
    return genai.GenerativeModel(config.model, generation_config=generation_config)


def _is_rate_limited(exc: Exception) -> bool:
    if google_exceptions is not None and isinstance(exc, google_exceptions.ResourceExhausted):
        return True
    return "429" in str(exc)


def _generate(modelo, conteudo) -> str:
    """Chama o modelo com backoff exponencial quando a cota é excedida."""
    backoff = INITIAL_BACKOFF
    for tentativa in range(1, MAX_ATTEMPTS + 1):
        try:
            resposta = modelo.generate_content(conteudo)  # type: ignore[no-untyped-call]
            break
        except Exception as exc:  # noqa: BLE001
            if tentativa >= MAX_ATTEMPTS or not _is_rate_limited(exc):
                raise
            logging.warning("LLM com limite de requisições (tentativa %s/%s). Aguardando %.1fs.", tentativa, MAX_ATTEMPTS, backoff)
            time.sleep(backoff)
            backoff *= 2

    if not resposta.candidates:
        raise RuntimeError("Resposta vazia do LLM.")
    return resposta.candidates[0].content.parts[0].text  # type: ignore[attr-defined]


def _extract_first_json_block(text: str) -> str:
    match = JSON_BLOCK_REGEX.search(text)
    if not match:
        raise ValueError("Não foi possível localizar um bloco JSON na resposta do LLM.")
    bloco = match.group(0)
    bloco_limpo = "".join(ch for ch in bloco if ord(ch) >= 32 or ch in "\n\r\t")
    return bloco_limpo


def extract_text_from_document(
    data: bytes,
    mime_type: str = "application/pdf",
    *,
    model: Optional[str] = None,
) -> str:
    """Extrai o texto bruto de um documento (ex.: PDF escaneado) usando o Gemini."""
    modelo = _get_model(model, {"temperature": 0.0})
    texto = _generate(modelo, [{"mime_type": mime_type, "data": data}, EXTRACT_TEXT_PROMPT])
    return texto.strip()


def extract_requirements(
    texto: str,
    fonte: Dict[str, Any],
    *,
    model: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Retorna a lista de krav extraída do texto de uma legal_source."""
    metadados = {
        "regelverk": fonte.get("regelverk_name"),
        "lagrum": fonte.get("lagrum"),
        "typ": fonte.get("typ"),
        "referens": fonte.get("referens"),
    }
    prompt = REQUIREMENTS_PROMPT.format(fonte=json.dumps(metadados, ensure_ascii=False), texto=texto).strip()
    modelo = _get_model(model, {"response_mime_type": "application/json", "temperature": 0.0})
    resposta = _generate(modelo, prompt)

    dados = json.loads(_extract_first_json_block(resposta))
    krav = dados.get("krav")
    if not isinstance(krav, list):
        return []
    return [item for item in krav if isinstance(item, dict)]
