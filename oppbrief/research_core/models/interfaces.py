from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


ExtractMethod = Literal["selector", "trafilatura", "none"]


@dataclass(slots=True)
class FetchRequest:
    url: str
    timeout_seconds: float = 10.0


@dataclass(slots=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    html: str
    timing_ms: int


@dataclass(slots=True)
class ExtractedPage:
    url: str
    method: ExtractMethod
    text: str


@dataclass(slots=True)
class CeoMention:
    name: str
    pattern: str
    former: bool
    context: str


@dataclass(slots=True)
class CrawledFacts:
    website: str
    pages_crawled: list[str] = field(default_factory=list)
    corpus: str = ""
    ceo: str | None = None
    founded: str | None = None
    size: str | None = None
    headquarters: str | None = None
    industry: str | None = None
    business_description: str | None = None
    products: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    key_capabilities: list[str] = field(default_factory=list)
    target_markets: list[str] = field(default_factory=list)
    market_position: str | None = None
    latest_news: str | None = None
    ceo_source: Literal["llm", "regex"] | None = None

    @property
    def is_empty(self) -> bool:
        return not self.pages_crawled

    def company_facts(self) -> dict[str, Any]:
        """Non-empty facts keyed the way the brief's company section names them."""
        facts = {
            "ceo": self.ceo,
            "founded": self.founded,
            "size": self.size,
            "headquarters": self.headquarters,
            "industry": self.industry,
            "summary": self.business_description,
            "market_position": self.market_position,
            "latest_news": self.latest_news,
        }
        return {key: value for key, value in facts.items() if value}
