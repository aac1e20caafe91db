"""Deterministic validators for facts pulled from a company's own website."""
from __future__ import annotations

import re
from typing import Any, Iterable

from oppbrief.research_core.models.interfaces import CeoMention

CEO_DENYLIST = {
    "john doe",
    "jane doe",
    "test user",
    "test name",
    "example name",
    "sample name",
    "placeholder",
    "demo",
    "test",
    "user",
    "name",
    "ceo name",
    "company ceo",
    "the ceo",
    "our ceo",
}

FORMER_RE = re.compile(
    r"\b(?:former|formerly|retired|retiring|outgoing|previous|previously|emeritus|ehemalige?r?)\b|\bex-",
    re.IGNORECASE,
)

_TITLE = r"(?:Group\s+)?(?:CEO|Chief\s+Executive\s+Officer|Geschäftsführer(?:in)?|Managing\s+Director)"
_NAME_TOKEN = r"[A-ZÀ-ÖØ-Þ][A-Za-zà-öø-ÿ'\-]+"
_NAME = rf"({_NAME_TOKEN}(?:\s+(?:[A-Z]\.\s+)?{_NAME_TOKEN}){{1,3}})"

CEO_PATTERNS = {
    "title_then_name": re.compile(rf"\b{_TITLE}\s*[:,\-–—]?\s*{_NAME}"),
    "name_then_title": re.compile(
        rf"{_NAME}\s*[,\-–—(]\s*(?:[A-Za-z\-]+\s+){{0,2}}{_TITLE}\b"
    ),
}

_TITLE_STRIP_RE = re.compile(rf"[,(\-–—]?\s*(?:the\s+)?{_TITLE}\)?", re.IGNORECASE)
_LEADING_NOISE_RE = re.compile(r"^(?:Meet|Our|The|Mr\.?|Mrs\.?|Ms\.?|Dr\.?)\s+")

BEFORE_WINDOW = 40
AFTER_WINDOW = 12

FOUNDED_RE = re.compile(r"\b(19|20)\d{2}\b")
SIZE_RE = re.compile(
    r"\d+[\s-]*(?:employees?|mitarbeiter|staff|workforce|headcount|people)",
    re.IGNORECASE,
)


def is_former_mention(text: str) -> bool:
    return bool(FORMER_RE.search(text or ""))


def _clean_name(name: str) -> str:
    name = _TITLE_STRIP_RE.sub("", name)
    name = _LEADING_NOISE_RE.sub("", name.strip())
    return re.sub(r"\s+", " ", name).strip(" ,.;:-")


def find_ceo_mentions(corpus: str) -> list[CeoMention]:
    """Scan the corpus for chief-executive naming patterns, in document order."""
    mentions: list[tuple[int, CeoMention]] = []
    for pattern_name, pattern in CEO_PATTERNS.items():
        for match in pattern.finditer(corpus or ""):
            name = _clean_name(match.group(1))
            if not name:
                continue
            start = max(0, match.start() - BEFORE_WINDOW)
            end = min(len(corpus), match.end() + AFTER_WINDOW)
            context = corpus[start:end]
            mentions.append(
                (
                    match.start(),
                    CeoMention(
                        name=name,
                        pattern=pattern_name,
                        former=is_former_mention(context),
                        context=context,
                    ),
                )
            )
    mentions.sort(key=lambda item: item[0])
    return [mention for _, mention in mentions]


def former_ceo_names(mentions: Iterable[CeoMention]) -> set[str]:
    return {m.name.lower() for m in mentions if m.former}


def validate_ceo_name(candidate: Any, former_names: Iterable[str] = ()) -> str | None:
    """Return a cleaned CEO name, or None when it is a placeholder or a former CEO."""
    if not isinstance(candidate, str) or not candidate.strip():
        return None
    if is_former_mention(candidate):
        return None
    name = _clean_name(candidate)
    lowered = name.lower()
    if lowered in CEO_DENYLIST:
        return None
    if len(name.split()) < 2:
        return None
    if lowered in {n.lower() for n in former_names}:
        return None
    return name


def regex_ceo_fallback(mentions: Iterable[CeoMention]) -> str | None:
    mentions = list(mentions)
    formers = former_ceo_names(mentions)
    for mention in mentions:
        if mention.former:
            continue
        name = validate_ceo_name(mention.name, formers)
        if name:
            return name
    return None


def validate_founded(value: Any) -> str | None:
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None
    match = FOUNDED_RE.search(value)
    if not match:
        return None
    return f"Founded in {match.group(0)}"


def validate_size(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    if not SIZE_RE.search(value):
        return None
    return value.strip()


def clean_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def clean_string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
