"""Deterministic repair pass from a raw provider candidate to a valid Brief.

Every field follows one policy: absent values are synthesized from defaults,
invalid values are clamped or discarded, duplicates are dropped (first wins),
short collections are padded and oversized ones truncated. Nothing here talks
to the network.
"""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote_plus

from pydantic import ValidationError

from oppbrief.agents.roi import compute_payback_months, round_half_up
from oppbrief.errors import ReconciliationError
from oppbrief.models.brief import (
    BRIEF_SECTIONS,
    MAX_CITATIONS,
    MAX_COMPETITORS,
    MAX_EVIDENCE_PAGES,
    MAX_INDUSTRY_SUMMARY,
    MAX_MOVES,
    MAX_TREND_CHARS,
    MAX_TRENDS,
    MIN_COMPANY_SUMMARY,
    MIN_COMPETITORS,
    MIN_EVIDENCE_PAGES,
    MIN_INDUSTRY_SUMMARY,
    MIN_MOVES,
    MIN_TRENDS,
    USE_CASE_COUNT,
    Brief,
    RawCandidate,
    UseCase,
    is_directory_domain,
    title_suffix_pattern,
    validate_brief,
)
from oppbrief.services.logger import logger
from oppbrief.tools.web_utils import (
    dedupe_urls,
    is_valid_url,
    normalize_company_name,
    normalize_website,
    registrable_domain,
)

GENERIC_COMPANY_SENTENCE = (
    "The company focuses on delivering quality solutions to its customers while "
    "maintaining operational excellence and continuous improvement in its market segment."
)

DEFAULT_INDUSTRY_SUMMARY = (
    "The industry is being reshaped by AI, automation, and data analytics, improving "
    "efficiency, quality, and speed while enabling smarter operations and faster decisions."
)

DEFAULT_TRENDS = (
    "AI-driven predictive maintenance reduces downtime by 20%",
    "Smart factories use ML to optimize production schedules",
    "AI forecasting improves inventory accuracy by 30%",
    "Sustainability analytics help meet compliance faster",
    "Digital twins enable real-time process optimization",
)

DEFAULT_MOVES = (
    {
        "move": "Deploy AI-powered quality control system",
        "owner": "Head of Operations",
        "horizon_quarters": 2,
        "rationale": "Reduces defects and rework while freeing inspection capacity.",
    },
    {
        "move": "Implement predictive maintenance analytics",
        "owner": "Head of Manufacturing",
        "horizon_quarters": 3,
        "rationale": "Cuts unplanned downtime by acting on equipment signals early.",
    },
    {
        "move": "Launch AI-driven customer insights platform",
        "owner": "Head of Sales",
        "horizon_quarters": 4,
        "rationale": "Improves targeting and retention using existing customer data.",
    },
)

DEFAULT_MOVE_OWNER = "Executive Leadership"
DEFAULT_GEO_FIT = "Regional market"
NOT_DOCUMENTED = "Not publicly documented"

PLACEHOLDER_BENEFIT = 50000
PLACEHOLDER_BENEFIT_STEP = 10000
PLACEHOLDER_ONE_TIME = 75000
PLACEHOLDER_ONGOING = 15000
PLACEHOLDER_PAYBACK = 18
PLACEHOLDER_SCORE = 3
PLACEHOLDER_DATA_REQUIREMENTS = "Historical operational data and current process metrics"
PLACEHOLDER_RISKS = "Implementation complexity and change management"
PLACEHOLDER_NEXT_STEPS = "Assess current data infrastructure and define pilot scope"

VALUE_DRIVER_SYNONYMS = {
    "revenue": "revenue",
    "growth": "revenue",
    "sales": "revenue",
    "cost": "cost",
    "costs": "cost",
    "efficiency": "cost",
    "savings": "cost",
    "risk": "risk",
    "quality": "risk",
    "compliance": "risk",
    "safety": "risk",
    "speed": "speed",
    "time": "speed",
    "agility": "speed",
    "time-to-market": "speed",
}

_NUMBER_RE = re.compile(r"-?\d[\d,]*(?:\.\d+)?")
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "mm": 1_000_000, "million": 1_000_000, "bn": 1_000_000_000}
_SUFFIX_RE = re.compile(r"^(million|mm|bn|k|m)\b")


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _NUMBER_RE.search(value)
    if not match:
        return None
    number = float(match.group(0).replace(",", ""))
    suffix = _SUFFIX_RE.match(value[match.end():].strip().lower())
    if suffix:
        return number * _MULTIPLIERS[suffix.group(1)]
    return number


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    number = _number(value)
    if number is None:
        return default
    return min(max(round_half_up(number), low), high)


def _money(value: Any) -> float:
    number = _number(value)
    if number is None:
        return 0.0
    return max(number, 0.0)


def _mark(synthesized: list[str], path: str) -> None:
    if path not in synthesized:
        synthesized.append(path)


def _coerce_candidate(raw: Any) -> RawCandidate:
    if isinstance(raw, Brief):
        raw = raw.model_dump()
    if isinstance(raw, RawCandidate):
        candidate = raw
    elif isinstance(raw, dict):
        candidate = RawCandidate.model_validate(raw)
    else:
        raise ReconciliationError(
            f"Candidate brief must be a JSON object, got {type(raw).__name__}"
        )
    if not candidate.has_any_section():
        raise ReconciliationError(
            f"Candidate brief contains none of the sections {', '.join(BRIEF_SECTIONS)}"
        )
    return candidate


def reconcile_company(
    raw: Any,
    company_name: str,
    website: str,
    synthesized: list[str],
) -> dict[str, Any]:
    data = raw if isinstance(raw, dict) else {}
    if not data:
        _mark(synthesized, "company")

    founded = data.get("founded")
    if isinstance(founded, int) and not isinstance(founded, bool):
        founded = str(founded)

    summary = _text(_first(data, "summary", "description", "businessDescription"))
    if summary is None:
        summary = f"{company_name} is the company behind {website}."
        _mark(synthesized, "company.summary")
    while len(summary) < MIN_COMPANY_SUMMARY:
        if not summary.endswith((".", "!", "?")):
            summary += "."
        summary = f"{summary} {GENERIC_COMPANY_SENTENCE}"
        _mark(synthesized, "company.summary")

    return {
        "name": company_name.strip(),
        "website": website,
        "summary": summary,
        "size": _text(data.get("size")),
        "industry": _text(data.get("industry")),
        "headquarters": _text(data.get("headquarters")),
        "founded": _text(founded),
        "ceo": _text(data.get("ceo")),
        "market_position": _text(_first(data, "market_position", "marketPosition")),
        "latest_news": _text(_first(data, "latest_news", "latestNews")),
    }


def _trend_text(item: Any) -> str | None:
    if isinstance(item, str):
        return _text(item)
    if isinstance(item, dict):
        name = _text(_first(item, "name", "trend", "title"))
        impact = _text(_first(item, "impact", "description"))
        if name and impact:
            return f"{name}: {impact}"
        return name or impact
    return None


def reconcile_industry(raw: Any, synthesized: list[str]) -> dict[str, Any]:
    data = raw if isinstance(raw, dict) else {}

    summary = _text(data.get("summary"))
    if summary is None or len(summary) < MIN_INDUSTRY_SUMMARY:
        summary = DEFAULT_INDUSTRY_SUMMARY
        _mark(synthesized, "industry.summary")
    elif len(summary) > MAX_INDUSTRY_SUMMARY:
        summary = summary[: MAX_INDUSTRY_SUMMARY - 3] + "..."

    trends: list[str] = []
    for item in _as_list(data.get("trends")):
        trend = _trend_text(item)
        if not trend:
            continue
        if len(trend) > MAX_TREND_CHARS:
            trend = trend[: MAX_TREND_CHARS - 3] + "..."
        if trend not in trends:
            trends.append(trend)

    for default in DEFAULT_TRENDS:
        if len(trends) >= MIN_TRENDS:
            break
        if default not in trends:
            trends.append(default)
            _mark(synthesized, "industry.trends")

    return {"summary": summary, "trends": trends[:MAX_TRENDS]}


def reconcile_strategic_moves(raw: Any) -> list[dict[str, Any]]:
    moves: list[dict[str, Any]] = []
    seen: set[str] = set()

    for item in _as_list(raw):
        if isinstance(item, str):
            item = {"move": item}
        if not isinstance(item, dict):
            continue
        move = _text(_first(item, "move", "title", "name"))
        if not move or normalize_company_name(move) in seen:
            continue
        seen.add(normalize_company_name(move))
        moves.append(
            {
                "move": move,
                "owner": _text(item.get("owner")) or DEFAULT_MOVE_OWNER,
                "horizon_quarters": _clamp_int(
                    _first(item, "horizon_quarters", "horizon", "quarters"), 1, 4, 2
                ),
                "rationale": _text(_first(item, "rationale", "impact", "description")) or move,
                "synthesized": item.get("synthesized") is True,
            }
        )

    for default in DEFAULT_MOVES:
        if len(moves) >= MIN_MOVES:
            break
        if normalize_company_name(default["move"]) in seen:
            continue
        seen.add(normalize_company_name(default["move"]))
        moves.append({**default, "synthesized": True})

    return moves[:MAX_MOVES]


def _placeholder_competitor(index: int, company: dict[str, Any]) -> dict[str, Any]:
    industry = company.get("industry") or "industry"
    region = company.get("headquarters") or ""
    query = " ".join(part for part in (industry, "companies", region) if part)
    return {
        "name": f"Industry peer benchmark {index}",
        "website": f"https://duckduckgo.com/?q={quote_plus(query)}",
        "positioning": f"Unidentified peer in {industry}; research needed to name a direct competitor.",
        "ai_maturity": NOT_DOCUMENTED,
        "innovation_focus": NOT_DOCUMENTED,
        "employee_band": company.get("size") or "Unknown",
        "geo_fit": region or DEFAULT_GEO_FIT,
        "evidence_pages": [
            f"https://duckduckgo.com/?q={quote_plus(query)}",
            f"https://www.bing.com/search?q={quote_plus(query)}",
        ],
        "citations": [],
        "synthesized": True,
    }


def reconcile_competitors(
    raw: Any,
    company: dict[str, Any],
    *,
    max_competitors: int = MAX_COMPETITORS,
) -> list[dict[str, Any]]:
    limit = min(max(int(max_competitors), MIN_COMPETITORS), MAX_COMPETITORS)
    subject_name = normalize_company_name(company["name"])
    subject_domain = registrable_domain(company["website"])
    seen: set[tuple[str, str]] = set()
    competitors: list[dict[str, Any]] = []

    for item in _as_list(raw):
        if len(competitors) >= limit:
            break
        if not isinstance(item, dict):
            continue
        name = _text(item.get("name"))
        website = _text(_first(item, "website", "url"))
        if not name or not website:
            continue
        if not is_valid_url(website):
            website = normalize_website(website)
        if not is_valid_url(website):
            continue
        if is_directory_domain(website):
            logger.debug(f"Skipping directory site listed as competitor: {website}")
            continue

        key = (normalize_company_name(name), registrable_domain(website))
        if not key[0] or key[0] == subject_name or key[1] == subject_domain:
            continue
        if key in seen:
            continue
        seen.add(key)

        evidence = dedupe_urls(_as_list(_first(item, "evidence_pages", "evidence")))
        if len(evidence) < MIN_EVIDENCE_PAGES:
            root = website.rstrip("/")
            evidence = dedupe_urls(evidence + [website, f"{root}/about"])

        competitors.append(
            {
                "name": name,
                "website": website,
                "positioning": _text(item.get("positioning"))
                or f"{name} competes with {company['name']} for the same customers.",
                "ai_maturity": _text(item.get("ai_maturity")) or NOT_DOCUMENTED,
                "innovation_focus": _text(item.get("innovation_focus")) or NOT_DOCUMENTED,
                "employee_band": _text(_first(item, "employee_band", "size")) or "Unknown",
                "geo_fit": _text(item.get("geo_fit"))
                or _text(item.get("headquarters"))
                or company.get("headquarters")
                or DEFAULT_GEO_FIT,
                "evidence_pages": evidence[:MAX_EVIDENCE_PAGES],
                "citations": dedupe_urls(_as_list(item.get("citations"))),
                "synthesized": item.get("synthesized") is True,
            }
        )

    if len(competitors) < MIN_COMPETITORS:
        logger.warning(
            f"Only {len(competitors)} usable competitors for {company['name']}; "
            f"padding to {MIN_COMPETITORS} with peer benchmarks"
        )
        index = 1
        while len(competitors) < MIN_COMPETITORS:
            placeholder = _placeholder_competitor(index, company)
            key = (
                normalize_company_name(placeholder["name"]),
                registrable_domain(placeholder["website"]),
            )
            index += 1
            if key in seen:
                continue
            seen.add(key)
            competitors.append(placeholder)

    return competitors


def _strip_title_suffix(title: str, company_name: str) -> str:
    if not company_name.strip():
        return title
    pattern = title_suffix_pattern(company_name)
    while pattern.search(title):
        title = pattern.sub("", title).strip()
    return title


def _value_driver(value: Any) -> str:
    text = (_text(value) or "").lower()
    if text in VALUE_DRIVER_SYNONYMS:
        return VALUE_DRIVER_SYNONYMS[text]
    for word, driver in VALUE_DRIVER_SYNONYMS.items():
        if word in text:
            return driver
    return "cost"


def _use_case_from_raw(item: dict[str, Any], title: str) -> dict[str, Any]:
    benefit = _money(_first(item, "annual_benefit", "benefit", "est_annual_benefit"))
    one_time = _money(_first(item, "one_time_cost", "one_time", "est_one_time_cost"))
    ongoing = _money(_first(item, "ongoing_cost", "ongoing", "est_ongoing_cost"))

    supplied_payback = _number(item.get("payback_months"))
    if supplied_payback is not None and supplied_payback > 0:
        payback = max(1, round_half_up(supplied_payback))
    else:
        payback = compute_payback_months(one_time, ongoing, benefit)

    return {
        "title": title,
        "description": _text(item.get("description")) or title,
        "value_driver": _value_driver(item.get("value_driver")),
        "complexity": _clamp_int(item.get("complexity"), 1, 5, PLACEHOLDER_SCORE),
        "effort": _clamp_int(item.get("effort"), 1, 5, PLACEHOLDER_SCORE),
        "annual_benefit": benefit,
        "one_time_cost": one_time,
        "ongoing_cost": ongoing,
        "payback_months": payback,
        "data_requirements": _text(item.get("data_requirements")) or PLACEHOLDER_DATA_REQUIREMENTS,
        "risks": _text(item.get("risks")) or PLACEHOLDER_RISKS,
        "next_steps": _text(item.get("next_steps")) or PLACEHOLDER_NEXT_STEPS,
        "citations": dedupe_urls(_as_list(item.get("citations"))),
        "synthesized": item.get("synthesized") is True,
    }


def _placeholder_use_case(index: int, taken: set[str]) -> dict[str, Any]:
    number = index + 1
    while normalize_company_name(f"AI Opportunity {number}") in taken:
        number += 1
    title = f"AI Opportunity {number}"
    return {
        "title": title,
        "description": f"{title}: a candidate AI initiative pending detailed scoping.",
        "value_driver": "cost",
        "complexity": PLACEHOLDER_SCORE,
        "effort": PLACEHOLDER_SCORE,
        "annual_benefit": float(PLACEHOLDER_BENEFIT + index * PLACEHOLDER_BENEFIT_STEP),
        "one_time_cost": float(PLACEHOLDER_ONE_TIME),
        "ongoing_cost": float(PLACEHOLDER_ONGOING),
        "payback_months": PLACEHOLDER_PAYBACK,
        "data_requirements": PLACEHOLDER_DATA_REQUIREMENTS,
        "risks": PLACEHOLDER_RISKS,
        "next_steps": PLACEHOLDER_NEXT_STEPS,
        "citations": [],
        "synthesized": True,
    }


def _pad_use_cases(use_cases: list[dict[str, Any]]) -> list[dict[str, Any]]:
    taken = {normalize_company_name(uc["title"]) for uc in use_cases}
    while len(use_cases) < USE_CASE_COUNT:
        placeholder = _placeholder_use_case(len(use_cases), taken)
        taken.add(normalize_company_name(placeholder["title"]))
        use_cases.append(placeholder)
    return use_cases[:USE_CASE_COUNT]


def reconcile_use_cases(raw: Any, company_name: str) -> list[dict[str, Any]]:
    use_cases: list[dict[str, Any]] = []
    seen: set[str] = set()

    for item in _as_list(raw):
        if not isinstance(item, dict):
            continue
        title = _text(_first(item, "title", "name"))
        if not title:
            continue
        title = _strip_title_suffix(title, company_name)
        key = normalize_company_name(title)
        if not key or key in seen:
            continue
        seen.add(key)
        use_cases.append(_use_case_from_raw(item, title))

    use_cases = _pad_use_cases(use_cases)

    positive = [uc for uc in use_cases if uc["annual_benefit"] > 0]
    if len(positive) < len(use_cases):
        logger.info(
            f"Dropping {len(use_cases) - len(positive)} use cases without a positive benefit"
        )
        use_cases = _pad_use_cases(positive)
    return use_cases


def reconcile(
    raw: Any,
    company_name: str,
    company_website: str,
    *,
    max_competitors: int = MAX_COMPETITORS,
) -> Brief:
    """Repair a raw candidate into a schema-valid Brief."""
    candidate = _coerce_candidate(raw)
    website = company_website.strip()
    if not is_valid_url(website):
        website = normalize_website(website)

    carried = (candidate.model_extra or {}).get("synthesized_fields")
    synthesized = [path for path in _as_list(carried) if isinstance(path, str)]

    company = reconcile_company(candidate.company, company_name, website, synthesized)
    industry = reconcile_industry(candidate.industry, synthesized)
    moves = reconcile_strategic_moves(candidate.strategic_moves)
    competitors = reconcile_competitors(
        candidate.competitors, company, max_competitors=max_competitors
    )
    use_cases = reconcile_use_cases(candidate.use_cases, company["name"])
    citations = dedupe_urls(_as_list(candidate.citations))[:MAX_CITATIONS]

    context = {
        "company": company["name"],
        "use_cases": len(use_cases),
        "competitors": len(competitors),
        "trends": len(industry["trends"]),
        "moves": len(moves),
    }
    if len(use_cases) != USE_CASE_COUNT:
        logger.error(f"Reconciliation produced {len(use_cases)} use cases: {context}")
        raise ReconciliationError(
            f"Expected exactly {USE_CASE_COUNT} use cases after reconciliation, got {len(use_cases)}"
        )

    try:
        for use_case in use_cases:
            UseCase.model_validate(use_case)
    except ValidationError as exc:
        logger.error(f"Reconciled use case is invalid: {context}: {exc}")
        raise ReconciliationError(f"Reconciled use case failed validation: {exc}") from exc

    data = {
        "company": company,
        "industry": industry,
        "strategic_moves": moves,
        "competitors": competitors,
        "use_cases": use_cases,
        "citations": citations,
        "synthesized_fields": synthesized,
    }
    try:
        return validate_brief(data)
    except ReconciliationError:
        logger.error(f"Reconciled brief failed validation: {context}")
        raise
