"""Tipos auxiliares para a busca na API de dados abertos do Riksdagen."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class RiksdagenDocument:
    """Representa um documento retornado pela dokumentlista."""

    dok_id: str
    titel: str
    beteckning: str = ""
    doktyp: str = "sfs"
    rm: Optional[str] = None
    publicerad: Optional[str] = None
    undertitel: Optional[str] = None
    dokument_url_text: Optional[str] = None
    dokument_url_html: Optional[str] = None
    metadados_brutos: Dict[str, Any] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "RiksdagenDocument":
        return cls(
            dok_id=str(item.get("dok_id") or item.get("id") or ""),
            titel=item.get("titel") or "",
            beteckning=item.get("beteckning") or "",
            doktyp=item.get("doktyp") or "sfs",
            rm=item.get("rm"),
            publicerad=item.get("publicerad"),
            undertitel=item.get("undertitel"),
            dokument_url_text=item.get("dokument_url_text"),
            dokument_url_html=item.get("dokument_url_html"),
            metadados_brutos=item,
        )

    @property
    def regulation_name(self) -> str:
        """Nome usado como regelverk ao importar: 'SFS <beteckning>' ou o título."""
        if self.beteckning:
            return f"SFS {self.beteckning}"
        return self.titel

    @property
    def reference(self) -> Optional[str]:
        return self.beteckning or None


@dataclass
class SearchResult:
    documents: List[RiksdagenDocument] = field(default_factory=list)
    total_hits: int = 0
