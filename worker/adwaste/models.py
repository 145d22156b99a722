"""Core data models shared by the SERP extraction and analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Union


@dataclass(slots=True)
class ResultEntry:
    """One ranked listing. ``position`` is -1 when the extraction path does not rank its matches."""

    position: int
    raw: str
    css_selector: str
    domain: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "cssSelector": self.css_selector,
            "raw": self.raw,
            "domain": self.domain,
        }


@dataclass(slots=True)
class SearchResultSet:
    """Everything captured for one scrape session."""

    keywords: str
    url: str = ""
    user_agent: str = ""
    device: str = ""
    sea: List[ResultEntry] = field(default_factory=list)
    seo: List[ResultEntry] = field(default_factory=list)
    sea_unranked: List[ResultEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "keywords": self.keywords,
            "url": self.url,
            "userAgent": self.user_agent,
            "mobile": self.device,
            "seo": [entry.to_dict() for entry in self.seo],
            "sea": [entry.to_dict() for entry in self.sea],
        }
        if self.sea_unranked:
            payload["seaUnranked"] = [entry.to_dict() for entry in self.sea_unranked]
        return payload

    def summary_lines(self) -> List[str]:
        lines = [
            f"keywords: {self.keywords}, url: {self.url}, device: {self.device}, user agent: {self.user_agent}",
            "sea:",
        ]
        lines.extend(f"{entry.position} - {entry.domain} - {entry.raw}" for entry in self.sea)
        lines.append("seo:")
        lines.extend(f"{entry.position} - {entry.domain} - {entry.raw}" for entry in self.seo)
        return lines


@dataclass(frozen=True)
class WasteAssessment:
    """Overlap between paid and organic placements of the tracked domain."""

    tracked_domain: str
    parent_domain: Optional[str]
    first_sea_position: int
    first_seo_position: int
    gap: Optional[int]
    density: Optional[float]
    waste: bool


class MetricObservation(NamedTuple):
    name: str
    value: Union[int, float, str]
