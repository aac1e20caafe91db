"""Strict brief schema and the permissive raw-candidate shape it is repaired from."""
from __future__ import annotations

import re
from typing import Annotated, Any, Iterable, Literal, Optional
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    computed_field,
    model_validator,
)

from oppbrief.errors import ReconciliationError
from oppbrief.tools.web_utils import (
    is_valid_url,
    normalize_company_name,
    normalize_url,
    registrable_domain,
)

USE_CASE_COUNT = 5
MIN_COMPETITORS = 2
MAX_COMPETITORS = 6
MIN_TRENDS = 4
MAX_TRENDS = 6
MIN_MOVES = 3
MAX_MOVES = 5
MIN_COMPANY_SUMMARY = 100
MIN_INDUSTRY_SUMMARY = 20
MAX_INDUSTRY_SUMMARY = 300
MAX_TREND_CHARS = 200
MIN_EVIDENCE_PAGES = 2
MAX_EVIDENCE_PAGES = 5
MAX_CITATIONS = 20

BRIEF_SECTIONS = ("company", "industry", "strategic_moves", "competitors", "use_cases", "citations")

# Review sites and directories list companies; they are never competitors themselves.
DIRECTORY_DOMAINS = frozenset(
    {
        "owler.com",
        "g2.com",
        "softwareadvice.com",
        "softwaresuggest.com",
        "crunchbase.com",
        "zoominfo.com",
        "cbinsights.com",
        "linkedin.com",
        "wikipedia.org",
        "indeed.com",
        "glassdoor.com",
    }
)


def is_directory_domain(url_or_host: str) -> bool:
    return registrable_domain(url_or_host) in DIRECTORY_DOMAINS


def title_suffix_pattern(company_name: str) -> re.Pattern[str]:
    """Matches a trailing "- for <company>" on use-case titles."""
    return re.compile(
        rf"\s*[—–-]+\s*for\s+{re.escape(company_name.strip())}\s*$",
        re.IGNORECASE,
    )


def section_confidence(urls: Iterable[str]) -> str:
    hosts = {urlparse(url).netloc.lower() for url in urls if is_valid_url(url)}
    if len(hosts) >= 5:
        return "High"
    if len(hosts) >= 2:
        return "Medium"
    return "Low"


def _check_url(value: str) -> str:
    if not is_valid_url(value):
        raise ValueError(f"invalid URL: {value!r}")
    return value


def _unique_urls(values: list[str]) -> list[str]:
    keys = [normalize_url(value) for value in values]
    if len(set(keys)) != len(keys):
        raise ValueError("duplicate URLs")
    return values


def _unique_strings(values: list[str]) -> list[str]:
    if len(set(values)) != len(values):
        raise ValueError("duplicate entries")
    return values


Url = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_check_url)]
UrlList = Annotated[list[Url], AfterValidator(_unique_urls)]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Trend = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_TREND_CHARS)
]
ValueDriver = Literal["revenue", "cost", "risk", "speed"]
Confidence = Literal["High", "Medium", "Low"]


class Company(BaseModel):
    name: NonEmpty
    website: Url
    summary: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=MIN_COMPANY_SUMMARY)
    ]
    size: Optional[NonEmpty] = None
    industry: Optional[NonEmpty] = None
    headquarters: Optional[NonEmpty] = None
    founded: Optional[NonEmpty] = None
    ceo: Optional[NonEmpty] = None
    market_position: Optional[NonEmpty] = None
    latest_news: Optional[NonEmpty] = None


class Industry(BaseModel):
    summary: Annotated[
        str,
        StringConstraints(
            strip_whitespace=True,
            min_length=MIN_INDUSTRY_SUMMARY,
            max_length=MAX_INDUSTRY_SUMMARY,
        ),
    ]
    trends: Annotated[
        list[Trend],
        Field(min_length=MIN_TRENDS, max_length=MAX_TRENDS),
        AfterValidator(_unique_strings),
    ]


class StrategicMove(BaseModel):
    move: NonEmpty
    owner: NonEmpty
    horizon_quarters: int = Field(ge=1, le=4)
    rationale: NonEmpty
    synthesized: bool = False


class Competitor(BaseModel):
    name: NonEmpty
    website: Url
    positioning: NonEmpty
    ai_maturity: NonEmpty
    innovation_focus: NonEmpty
    employee_band: NonEmpty
    geo_fit: NonEmpty
    evidence_pages: Annotated[
        UrlList, Field(min_length=MIN_EVIDENCE_PAGES, max_length=MAX_EVIDENCE_PAGES)
    ]
    citations: UrlList = Field(default_factory=list)
    synthesized: bool = False


class UseCase(BaseModel):
    title: NonEmpty
    description: NonEmpty
    value_driver: ValueDriver
    complexity: int = Field(ge=1, le=5)
    effort: int = Field(ge=1, le=5)
    annual_benefit: float = Field(gt=0)
    one_time_cost: float = Field(ge=0)
    ongoing_cost: float = Field(ge=0)
    payback_months: int = Field(ge=1)
    data_requirements: NonEmpty
    risks: NonEmpty
    next_steps: NonEmpty
    citations: UrlList = Field(default_factory=list)
    synthesized: bool = False


class RoiSummary(BaseModel):
    total_benefit: float = Field(ge=0)
    total_investment: float = Field(ge=0)
    overall_roi_pct: float
    weighted_payback_months: int = Field(ge=0)


class Brief(BaseModel):
    """The validated brief. ``roi`` and ``confidence`` are derived, never stored."""

    company: Company
    industry: Industry
    strategic_moves: list[StrategicMove] = Field(min_length=MIN_MOVES, max_length=MAX_MOVES)
    competitors: list[Competitor] = Field(min_length=MIN_COMPETITORS, max_length=MAX_COMPETITORS)
    use_cases: list[UseCase] = Field(min_length=USE_CASE_COUNT, max_length=USE_CASE_COUNT)
    citations: Annotated[UrlList, Field(max_length=MAX_CITATIONS)] = Field(default_factory=list)
    synthesized_fields: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def roi(self) -> RoiSummary:
        from oppbrief.agents.roi import compute_roi

        return compute_roi(self.use_cases)

    @computed_field
    @property
    def confidence(self) -> dict[str, Confidence]:
        competitor_urls = [
            url for c in self.competitors for url in (c.evidence_pages + c.citations)
        ]
        return {
            "company": section_confidence(self.citations),
            "competitors": section_confidence(competitor_urls),
            "use_cases": section_confidence(
                [url for uc in self.use_cases for url in uc.citations]
            ),
        }

    @model_validator(mode="after")
    def _check_competitors(self) -> "Brief":
        subject = normalize_company_name(self.company.name)
        subject_domain = registrable_domain(self.company.website)
        seen: set[tuple[str, str]] = set()
        for competitor in self.competitors:
            name = normalize_company_name(competitor.name)
            domain = registrable_domain(competitor.website)
            if not name:
                raise ValueError(f"competitor name {competitor.name!r} has no letters or digits")
            if name == subject or domain == subject_domain:
                raise ValueError(f"competitor {competitor.name!r} is the subject company")
            if domain in DIRECTORY_DOMAINS:
                raise ValueError(f"competitor {competitor.name!r} is a directory site")
            key = (name, domain)
            if key in seen:
                raise ValueError(f"duplicate competitor {competitor.name!r}")
            seen.add(key)
        return self

    @model_validator(mode="after")
    def _check_labels(self) -> "Brief":
        moves = [normalize_company_name(m.move) for m in self.strategic_moves]
        if len(set(moves)) != len(moves):
            raise ValueError("duplicate strategic moves")

        suffix = title_suffix_pattern(self.company.name)
        titles: set[str] = set()
        for use_case in self.use_cases:
            label = normalize_company_name(use_case.title)
            if not label:
                raise ValueError(f"use case title {use_case.title!r} has no letters or digits")
            if label in titles:
                raise ValueError(f"duplicate use case {use_case.title!r}")
            if suffix.search(use_case.title):
                raise ValueError(f"use case title {use_case.title!r} names the company")
            titles.add(label)
        return self


class RawCandidate(BaseModel):
    """Whatever the provider returned. Nothing here is trusted."""

    model_config = ConfigDict(extra="allow")

    company: Any = None
    industry: Any = None
    strategic_moves: Any = None
    competitors: Any = None
    use_cases: Any = None
    citations: Any = None

    def has_any_section(self) -> bool:
        return any(getattr(self, section) is not None for section in BRIEF_SECTIONS)


def validate_brief(data: dict[str, Any] | Brief) -> Brief:
    """Gate a reconciled brief. A failure here is a reconciliation defect."""
    if isinstance(data, Brief):
        data = data.model_dump()
    try:
        return Brief.model_validate(data)
    except ValidationError as exc:
        raise ReconciliationError(f"Reconciled brief failed schema validation: {exc}") from exc
