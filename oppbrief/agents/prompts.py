from __future__ import annotations

from oppbrief.research_core.models.interfaces import CrawledFacts

RESEARCH_SYSTEM_PROMPT = (
    "You are a senior strategy analyst who researches companies on the web and proposes "
    "practical AI opportunities. Use only real sources and real URLs. Never invent domains. "
    "Answer with a single JSON object and nothing else."
)

RESEARCH_PROMPT = """Research the company "{name}" (website: {website}) and produce an AI opportunity brief.

{site_context}
Return ONE JSON object with exactly these top-level keys:
{{
  "company": {{
    "name": "string",
    "website": "url",
    "summary": "at least 100 characters describing what the company does",
    "size": "e.g. '250 employees' or null",
    "industry": "string or null",
    "headquarters": "City, Country or null",
    "founded": "Founded in YYYY or null",
    "ceo": "current CEO full name or null",
    "market_position": "string or null",
    "latest_news": "one recent development or null"
  }},
  "industry": {{
    "summary": "20-300 characters on how AI is changing this industry",
    "trends": ["4-6 short trend statements, max 200 characters each"]
  }},
  "strategic_moves": [
    {{"move": "string", "owner": "role", "horizon_quarters": 1, "rationale": "string"}}
  ],
  "competitors": [
    {{
      "name": "string",
      "website": "url",
      "positioning": "string",
      "ai_maturity": "string",
      "innovation_focus": "string",
      "employee_band": "string",
      "geo_fit": "string",
      "evidence_pages": ["at least 2 URLs on the competitor's own domain"],
      "citations": ["url"]
    }}
  ],
  "use_cases": [
    {{
      "title": "string",
      "description": "string",
      "value_driver": "revenue | cost | risk | speed",
      "complexity": 1,
      "effort": 1,
      "annual_benefit": 0,
      "one_time_cost": 0,
      "ongoing_cost": 0,
      "payback_months": 1,
      "data_requirements": "string",
      "risks": "string",
      "next_steps": "string",
      "citations": ["url"]
    }}
  ],
  "citations": ["urls supporting the company and industry facts"]
}}

Requirements:
- 3-5 strategic moves, horizon_quarters between 1 and 4.
- 3-6 real competitors of similar size in the same market; never list {name} itself.
- Exactly 5 distinct use cases; complexity and effort between 1 and 5; money values in the company's currency as plain numbers.
- Titles must not end with "for {name}".
"""


def format_site_context(facts: CrawledFacts | None) -> str:
    """Summarize what the crawler found so the provider can build on it."""
    if facts is None or facts.is_empty:
        return ""

    lines = [f"Facts verified on the company's own website ({len(facts.pages_crawled)} pages):"]
    for label, value in (
        ("CEO", facts.ceo),
        ("Founded", facts.founded),
        ("Size", facts.size),
        ("Headquarters", facts.headquarters),
        ("Industry", facts.industry),
        ("Description", facts.business_description),
        ("Market position", facts.market_position),
        ("Latest news", facts.latest_news),
    ):
        if value:
            lines.append(f"- {label}: {value}")
    for label, values in (
        ("Products", facts.products),
        ("Services", facts.services),
        ("Capabilities", facts.key_capabilities),
        ("Target markets", facts.target_markets),
    ):
        if values:
            lines.append(f"- {label}: {', '.join(values[:8])}")
    lines.append("Prefer these facts over conflicting third-party sources.")
    return "\n".join(lines) + "\n"


def build_research_prompt(name: str, website: str, facts: CrawledFacts | None = None) -> str:
    return RESEARCH_PROMPT.format(
        name=name,
        website=website,
        site_context=format_site_context(facts),
    )
