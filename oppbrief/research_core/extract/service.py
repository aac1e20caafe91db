from __future__ import annotations

import re

from bs4 import BeautifulSoup

from oppbrief.research_core.models.interfaces import ExtractedPage

MAIN_SELECTORS = (
    "main",
    "article",
    "[role=main]",
    ".content",
    ".main-content",
    "#content",
    "#main",
    "body",
)

STRIP_TAGS = ("script", "style", "noscript")


def _normalize_text(text: str) -> str:
    text = text.replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def _truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]


class ContentExtractor:
    """Strip non-content markup and return a bounded plain-text excerpt."""

    def __init__(self, *, max_chars: int = 10000, substantial_chars: int = 500):
        self.max_chars = max(int(max_chars), 1)
        self.substantial_chars = substantial_chars

    def extract(self, *, url: str, raw_html: str) -> ExtractedPage:
        text = self._extract_selectors(raw_html)
        method = "selector"
        if not text:
            text = self._extract_trafilatura(raw_html)
            method = "trafilatura" if text else "none"
        return ExtractedPage(
            url=url,
            method=method,  # type: ignore[arg-type]
            text=_truncate(text, self.max_chars),
        )

    def _extract_selectors(self, raw_html: str) -> str:
        soup = BeautifulSoup(raw_html, "html.parser")
        for tag in soup(list(STRIP_TAGS)):
            tag.decompose()

        content = ""
        for selector in MAIN_SELECTORS:
            node = soup.select_one(selector)
            if node is None:
                continue
            content = _normalize_text(node.get_text(" "))
            if len(content) > self.substantial_chars:
                break

        if len(content) < self.substantial_chars and soup.body is not None:
            content = _normalize_text(soup.body.get_text(" "))
        return content

    def _extract_trafilatura(self, raw_html: str) -> str:
        import trafilatura

        if not raw_html.strip():
            return ""

        extracted = trafilatura.extract(raw_html, output_format="txt")
        return _normalize_text(extracted) if isinstance(extracted, str) else ""
