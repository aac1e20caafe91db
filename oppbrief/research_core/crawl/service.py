from __future__ import annotations

import asyncio
from typing import Any

from oppbrief.config import Settings, settings as default_settings
from oppbrief.research_core.crawl.facts import (
    clean_string_list,
    clean_text,
    find_ceo_mentions,
    former_ceo_names,
    regex_ceo_fallback,
    validate_ceo_name,
    validate_founded,
    validate_size,
)
from oppbrief.research_core.extract.service import ContentExtractor
from oppbrief.research_core.models.interfaces import (
    CrawledFacts,
    ExtractedPage,
    FetchRequest,
)
from oppbrief.research_core.scrape.service import Fetcher, HttpFetcher
from oppbrief.services.logger import logger
from oppbrief.tools.structured_extraction import StructuredExtractor
from oppbrief.tools.web_utils import normalize_website, site_origin

# Priority order; only the first ``max_pages`` are fetched.
CANDIDATE_PATHS = (
    "",
    "/about",
    "/company",
    "/about-us",
    "/aboutus",
    "/leadership",
    "/team",
    "/management",
    "/executives",
    "/our-team",
    "/who-we-are",
    "/people",
    "/board",
    "/board-of-directors",
    "/vorstand",
    "/geschaeftsfuehrung",
    "/services",
    "/products",
    "/what-we-do",
)

EXTRACTION_SYSTEM_PROMPT = (
    "You are a data extraction assistant. Extract ONLY factual information that is "
    "explicitly stated in the provided website content. Do NOT infer, estimate, or guess. "
    "Return valid JSON only."
)

EXTRACTION_PROMPT = """Extract structured information about {company} from the following website content crawled from {origin}.

Website Content:
{corpus}

Extract the following information (ONLY if explicitly stated in the content):
1. CEO name: look for "Group CEO", "CEO", "Chief Executive Officer", "Geschäftsführer" or "Managing Director" next to a person's full name. Return ONLY the current CEO's full name, never a former one.
2. Founded year: "founded", "established", "incorporated" followed by a year. Return "Founded in YYYY".
3. Company size: an explicit employee count ("employees", "workforce", "headcount", "Mitarbeiter"). Return "X employees" or "X-Y employees".
4. Headquarters as "City, Country".
5. Industry: the primary industry sector.
6. Business description: what the company does (2-3 sentences).
7. Products (array of strings).
8. Services (array of strings).
9. Key capabilities (array of strings).
10. Target markets or customer segments (array of strings).
11. Market position.
12. Latest news: one recent announcement.

If a field is not found, return null for it.

Return a JSON object with these exact keys:
{{
  "ceo": "string or null",
  "founded": "string or null",
  "size": "string or null",
  "headquarters": "string or null",
  "industry": "string or null",
  "businessDescription": "string or null",
  "products": ["string"] or null,
  "services": ["string"] or null,
  "keyCapabilities": ["string"] or null,
  "targetMarkets": ["string"] or null,
  "marketPosition": "string or null",
  "latestNews": "string or null"
}}"""


def build_corpus(pages: list[ExtractedPage], max_chars: int) -> str:
    combined = "\n\n".join(f"=== {page.url} ===\n{page.text}" for page in pages)
    return combined[:max_chars]


def apply_extracted_facts(
    facts: CrawledFacts,
    extracted: dict[str, Any],
    former_names: set[str],
) -> None:
    """Copy individually validated LLM fields onto ``facts``."""
    ceo = validate_ceo_name(extracted.get("ceo"), former_names)
    if ceo:
        facts.ceo = ceo
        facts.ceo_source = "llm"
    facts.founded = validate_founded(extracted.get("founded"))
    facts.size = validate_size(extracted.get("size"))
    facts.headquarters = clean_text(extracted.get("headquarters"))
    facts.industry = clean_text(extracted.get("industry"))
    facts.business_description = clean_text(extracted.get("businessDescription"))
    facts.products = clean_string_list(extracted.get("products"))
    facts.services = clean_string_list(extracted.get("services"))
    facts.key_capabilities = clean_string_list(extracted.get("keyCapabilities"))
    facts.target_markets = clean_string_list(extracted.get("targetMarkets"))
    facts.market_position = clean_text(extracted.get("marketPosition"))
    facts.latest_news = clean_text(extracted.get("latestNews"))


class SiteCrawler:
    """Concurrent crawl of a company's own pages plus fact extraction."""

    def __init__(
        self,
        *,
        extractor: StructuredExtractor | None = None,
        fetcher: Fetcher | None = None,
        content_extractor: ContentExtractor | None = None,
        max_pages: int = 8,
        page_timeout_seconds: float = 10.0,
        min_page_chars: int = 200,
        max_page_chars: int = 10000,
        max_corpus_chars: int = 50000,
        extraction_timeout_seconds: float = 30.0,
    ):
        self._extractor = extractor
        self._fetcher = fetcher or HttpFetcher()
        self._content = content_extractor or ContentExtractor(max_chars=max_page_chars)
        self.max_pages = max(int(max_pages), 1)
        self.page_timeout_seconds = float(page_timeout_seconds)
        self.min_page_chars = int(min_page_chars)
        self.max_corpus_chars = int(max_corpus_chars)
        self.extraction_timeout_seconds = float(extraction_timeout_seconds)

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        extractor: StructuredExtractor | None = None,
        fetcher: Fetcher | None = None,
    ) -> "SiteCrawler":
        config = config or default_settings
        return cls(
            extractor=extractor,
            fetcher=fetcher,
            max_pages=config.crawl_max_pages,
            page_timeout_seconds=config.crawl_page_timeout_seconds,
            min_page_chars=config.crawl_min_page_chars,
            max_page_chars=config.crawl_max_page_chars,
            max_corpus_chars=config.crawl_max_corpus_chars,
            extraction_timeout_seconds=config.crawl_extraction_timeout_seconds,
        )

    def candidate_urls(self, website: str) -> list[str]:
        origin = site_origin(website)
        return [f"{origin}{path}" for path in CANDIDATE_PATHS[: self.max_pages]]

    async def crawl(self, website: str, company_name: str) -> CrawledFacts:
        """Crawl the site and extract validated facts. Never raises."""
        website = normalize_website(website)
        facts = CrawledFacts(website=website)
        try:
            urls = self.candidate_urls(website)
        except ValueError as exc:
            logger.warning(f"Cannot crawl {website!r}: {exc}")
            return facts

        results = await asyncio.gather(
            *(self._crawl_page(url) for url in urls),
            return_exceptions=True,
        )
        pages: list[ExtractedPage] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                logger.info(f"Skipping {url}: {type(result).__name__}: {result}")
            elif result is not None:
                pages.append(result)

        if not pages:
            logger.warning(f"No pages successfully crawled for {website}")
            return facts

        facts.pages_crawled = [page.url for page in pages]
        facts.corpus = build_corpus(pages, self.max_corpus_chars)
        logger.info(
            f"Crawled {len(pages)}/{len(urls)} pages for {company_name} "
            f"({len(facts.corpus)} chars)"
        )

        mentions = find_ceo_mentions(facts.corpus)
        formers = former_ceo_names(mentions)

        if self._extractor is not None:
            prompt = EXTRACTION_PROMPT.format(
                company=company_name,
                origin=site_origin(website),
                corpus=facts.corpus,
            )
            try:
                extracted = await self._extractor.generate_json(
                    EXTRACTION_SYSTEM_PROMPT,
                    prompt,
                    timeout_seconds=self.extraction_timeout_seconds,
                    caller="site_crawler",
                )
            except Exception as exc:
                logger.warning(f"Structured extraction failed for {website}: {exc}")
            else:
                apply_extracted_facts(facts, extracted, formers)

        if not facts.ceo:
            fallback = regex_ceo_fallback(mentions)
            if fallback:
                facts.ceo = fallback
                facts.ceo_source = "regex"
                logger.info(f"Using pattern-matched CEO for {company_name}")

        return facts

    async def _crawl_page(self, url: str) -> ExtractedPage | None:
        try:
            page = await asyncio.wait_for(
                self._fetcher(FetchRequest(url=url, timeout_seconds=self.page_timeout_seconds)),
                self.page_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.info(f"Timeout fetching {url}")
            return None
        if page is None:
            return None

        extracted = self._content.extract(url=url, raw_html=page.html)
        if len(extracted.text) <= self.min_page_chars:
            logger.debug(f"Discarding {url}: only {len(extracted.text)} chars of content")
            return None
        return extracted
