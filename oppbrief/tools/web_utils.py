from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# Second-level registries where companies register one label below the suffix.
MULTI_PART_SUFFIXES = frozenset(
    {
        # Europe
        "co.uk", "org.uk", "ac.uk", "gov.uk", "ltd.uk", "plc.uk", "me.uk",
        "co.at", "or.at", "ac.at", "gv.at",
        "com.tr", "org.tr", "net.tr",
        "com.pl", "net.pl", "org.pl",
        "com.es", "org.es",
        "com.pt", "com.gr", "com.cy", "com.mt", "com.ua", "co.hu",
        # Asia Pacific
        "com.au", "net.au", "org.au", "edu.au", "gov.au",
        "co.nz", "org.nz", "net.nz",
        "co.jp", "or.jp", "ne.jp", "ac.jp",
        "com.cn", "net.cn", "org.cn",
        "com.hk", "org.hk",
        "com.tw", "org.tw",
        "com.sg", "edu.sg",
        "co.in", "net.in", "org.in", "firm.in",
        "co.kr", "or.kr",
        "com.my", "com.ph", "com.vn", "co.th", "co.id", "com.pk",
        # Middle East and Africa
        "co.il", "org.il", "ac.il",
        "com.sa", "com.eg", "com.qa",
        "co.za", "org.za", "co.ke", "com.ng",
        # Americas
        "com.br", "net.br", "org.br",
        "com.mx", "org.mx",
        "com.ar", "com.co", "com.pe", "com.uy", "com.ve", "com.ec",
        "co.cr",
    }
)


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except (TypeError, ValueError, AttributeError):
        return False


def normalize_website(url: str) -> str:
    """Ensure a scheme and strip trailing slashes."""
    url = (url or "").strip()
    if not url:
        return url
    if not re.match(r"^https?://", url, re.IGNORECASE):
        url = "https://" + url
    return url.rstrip("/")


def site_origin(url: str) -> str:
    parsed = urlparse(normalize_website(url))
    return f"{parsed.scheme}://{parsed.netloc}"


def normalize_url(url: str) -> str:
    """Canonical key for citation dedup: no fragment, sorted query, lowercase host."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return url
    query = urlencode(sorted(parse_qsl(parsed.query, keep_blank_values=True)))
    path = parsed.path
    if len(path) > 1:
        path = path.rstrip("/")
    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, query, "")
    )


def dedupe_urls(urls: list[str]) -> list[str]:
    """Drop invalid and duplicate URLs, keeping the first spelling seen."""
    seen: set[str] = set()
    unique: list[str] = []
    for url in urls:
        if not isinstance(url, str) or not is_valid_url(url.strip()):
            continue
        key = normalize_url(url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(url.strip())
    return unique


def extract_host(url: str) -> str:
    if "://" not in url:
        url = "https://" + url
    try:
        host = (urlparse(url).hostname or "").lower().strip()
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host


def registrable_domain(url_or_host: str) -> str:
    """eTLD+1 approximation used as a competitor dedup key."""
    host = extract_host(url_or_host or "")
    labels = [label for label in host.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    if ".".join(labels[-2:]) in MULTI_PART_SUFFIXES:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def normalize_company_name(name: str) -> str:
    text = re.sub(r"[^\w\s]", " ", (name or "").lower())
    return re.sub(r"\s+", " ", text).strip()
