from __future__ import annotations

import pytest

from oppbrief.tools.web_utils import (
    dedupe_urls,
    is_valid_url,
    normalize_company_name,
    normalize_url,
    normalize_website,
    registrable_domain,
    site_origin,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("acme.com", "https://acme.com"),
        ("  https://acme.com/  ", "https://acme.com"),
        ("http://acme.com/en//", "http://acme.com/en"),
        ("HTTPS://acme.com", "HTTPS://acme.com"),
    ],
)
def test_normalize_website(raw, expected):
    assert normalize_website(raw) == expected


def test_is_valid_url():
    assert is_valid_url("https://acme.com/about")
    assert not is_valid_url("acme.com")
    assert not is_valid_url("ftp://acme.com")
    assert not is_valid_url("")


def test_site_origin_drops_path():
    assert site_origin("acme.com/en/home") == "https://acme.com"


def test_normalize_url_ignores_fragment_and_query_order():
    assert normalize_url("https://Acme.com/a/?b=2&a=1#x") == normalize_url("https://acme.com/a?a=1&b=2")


def test_dedupe_urls_keeps_first_spelling_and_drops_invalid():
    urls = [
        "https://acme.com/about#team",
        "https://acme.com/about",
        "not-a-url",
        "https://news.example.com/story?id=1",
    ]

    assert dedupe_urls(urls) == [
        "https://acme.com/about#team",
        "https://news.example.com/story?id=1",
    ]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://www.acme.com/about", "acme.com"),
        ("shop.eu.acme.com", "acme.com"),
        ("https://www.acme.co.uk", "acme.co.uk"),
        ("https://portal.acme.com.au/x", "acme.com.au"),
        ("https://www.acme.co.at", "acme.co.at"),
        ("shop.acme.com.tr", "acme.com.tr"),
        ("https://acme.co.il/he", "acme.co.il"),
        ("https://www.acme.com.hk", "acme.com.hk"),
        ("localhost", "localhost"),
    ],
)
def test_registrable_domain(value, expected):
    assert registrable_domain(value) == expected


def test_normalize_company_name():
    assert normalize_company_name("  ACME, Corp. ") == "acme corp"
    assert normalize_company_name("Müller-Werke AG") == "müller werke ag"
