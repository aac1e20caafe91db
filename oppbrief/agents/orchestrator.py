"""Research pipeline: crawl, one composite provider call, reconcile, validate."""
from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from typing import Any

from oppbrief.agents.prompts import RESEARCH_SYSTEM_PROMPT, build_research_prompt
from oppbrief.agents.reconciler import reconcile
from oppbrief.config import Settings, settings as default_settings
from oppbrief.errors import ConfigurationError, PipelineError, ReconciliationError
from oppbrief.models.brief import Brief, RawCandidate
from oppbrief.research_core.crawl.facts import validate_ceo_name
from oppbrief.research_core.crawl.service import SiteCrawler
from oppbrief.research_core.models.interfaces import CrawledFacts
from oppbrief.services.logger import log_pipeline_step, logger
from oppbrief.tools.search_provider import SearchProvider
from oppbrief.tools.structured_extraction import StructuredExtractor
from oppbrief.tools.web_utils import is_valid_url, normalize_website

# Site facts that beat provider answers; the rest only fill gaps.
# An LLM-extracted CEO also wins. A regex guess only replaces a missing or implausible one.
AUTHORITATIVE_SITE_FACTS = ("founded",)


@dataclass(slots=True)
class PipelineContext:
    """Everything one pipeline invocation needs, built by the caller."""

    config: Settings
    extractor: StructuredExtractor
    search: SearchProvider | None = None
    crawler: SiteCrawler | None = None


@dataclass(slots=True)
class PipelineResult:
    brief: Brief
    runtime_ms: int = 0

    @property
    def citations(self) -> list[str]:
        return self.brief.citations


def build_context(config: Settings | None = None) -> PipelineContext:
    """Construct providers from settings. Missing keys fail here, before any I/O."""
    config = config or default_settings
    extractor = StructuredExtractor.from_settings(config)
    search = SearchProvider.from_settings(config) if config.search_enabled else None
    crawler = (
        SiteCrawler.from_settings(config, extractor=extractor) if config.crawl_enabled else None
    )
    return PipelineContext(config=config, extractor=extractor, search=search, crawler=crawler)


async def close_context(context: PipelineContext) -> None:
    """Release the provider clients a context holds."""
    try:
        await context.extractor.aclose()
    except Exception as exc:
        logger.warning(f"Failed to close extraction client: {exc}")


def _unwrap(candidate: dict[str, Any]) -> dict[str, Any]:
    inner = candidate.get("brief")
    if isinstance(inner, dict) and len(candidate) == 1:
        return inner
    return candidate


def merge_crawled_facts(candidate: dict[str, Any], facts: CrawledFacts | None) -> dict[str, Any]:
    """Fold website facts into the provider candidate without mutating it."""
    merged = copy.deepcopy(candidate)
    if facts is None or facts.is_empty:
        return merged

    company = merged.get("company")
    company = dict(company) if isinstance(company, dict) else {}
    for key, value in facts.company_facts().items():
        current = company.get(key)
        missing = not (isinstance(current, str) and current.strip())
        if key == "ceo":
            if facts.ceo_source == "llm" or missing or validate_ceo_name(current) is None:
                company[key] = value
        elif key in AUTHORITATIVE_SITE_FACTS or missing:
            company[key] = value
    merged["company"] = company

    citations = merged.get("citations")
    citations = list(citations) if isinstance(citations, list) else []
    merged["citations"] = citations + [url for url in facts.pages_crawled if url not in citations]
    return merged


class ResearchOrchestrator:
    """Drives one research invocation. Provider calls run strictly one after another."""

    def __init__(self, context: PipelineContext):
        self.context = context

    async def gather_candidate(self, name: str, website: str) -> dict[str, Any]:
        """Crawl the site and ask the provider for the full brief shape in one prompt."""
        facts: CrawledFacts | None = None
        if self.context.crawler is not None:
            log_pipeline_step(name, "crawl", "started", {"website": website})
            facts = await self.context.crawler.crawl(website, name)
            log_pipeline_step(
                name,
                "crawl",
                "completed",
                {"pages": len(facts.pages_crawled), "ceo_source": facts.ceo_source},
            )

        prompt = build_research_prompt(name, website, facts)
        log_pipeline_step(name, "research", "started")
        if self.context.search is not None:
            raw = await self.context.search.search_json(prompt, RESEARCH_SYSTEM_PROMPT)
        else:
            raw = await self.context.extractor.generate_json(
                RESEARCH_SYSTEM_PROMPT,
                prompt,
                caller="research_orchestrator",
            )
        raw = _unwrap(raw)
        if not RawCandidate.model_validate(raw).has_any_section():
            raise ReconciliationError(
                f"Provider response has no brief sections (keys: {sorted(raw)[:10]})"
            )
        log_pipeline_step(name, "research", "completed", {"sections": sorted(raw)})
        return merge_crawled_facts(raw, facts)

    async def research(self, name: str, website: str) -> Brief:
        name = (name or "").strip()
        if not name:
            raise ValueError("Company name is required")
        website = normalize_website(website)
        if not is_valid_url(website):
            raise ValueError(f"Invalid company website: {website!r}")

        candidate = await self.gather_candidate(name, website)
        brief = reconcile(
            candidate,
            name,
            website,
            max_competitors=self.context.config.max_competitors,
        )
        log_pipeline_step(
            name,
            "reconcile",
            "completed",
            {
                "competitors": len(brief.competitors),
                "synthesized": brief.synthesized_fields,
                "roi_pct": brief.roi.overall_roi_pct,
            },
        )
        return brief


async def run_research_pipeline(
    name: str,
    website: str,
    *,
    context: PipelineContext | None = None,
) -> PipelineResult:
    """Run one invocation. Raises PipelineError on any failure except configuration.

    A context built here is closed here; a caller-supplied one is left open.
    """
    owned = context is None
    context = context or build_context()
    orchestrator = ResearchOrchestrator(context)
    started = time.monotonic()
    try:
        brief = await orchestrator.research(name, website)
    except ConfigurationError:
        raise
    except Exception as exc:
        log_pipeline_step(name, "pipeline", "failed", {"error": f"{type(exc).__name__}: {exc}"})
        raise PipelineError(f"Failed to generate brief for {name}: {exc}", cause=exc) from exc
    finally:
        if owned:
            await close_context(context)

    runtime_ms = int((time.monotonic() - started) * 1000)
    logger.info(f"Brief for {name} generated in {runtime_ms}ms")
    return PipelineResult(brief=brief, runtime_ms=runtime_ms)
