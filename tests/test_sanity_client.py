"""Tests for the Sanity sponsor source."""

import logging

import httpx
import pytest

from adapters.sanity_client import (
    SPONSOR_SECTIONS_QUERY,
    SanitySponsorSource,
    SponsorSourceError,
    flatten_sponsor_sections,
)


PAGES = [
    {
        "sponsorSections": [
            {
                "_type": "sponsorSection",
                "sponsors": [{"_key": "a", "title": "Acme"}, {"_key": "b", "title": "Beta"}],
                "supportingSponsors": [{"_key": "s1", "title": "Small Co"}],
            },
            {"_type": "heroSection", "sponsors": [{"title": "Ignored"}]},
        ]
    },
    {"sponsorSections": None},
    {},
    {
        "sponsorSections": [
            {"_type": "sponsorSection", "sponsors": [{"_key": "c"}], "supportingSponsors": None},
        ]
    },
]


def test_flatten_preserves_page_then_array_order():
    collection = flatten_sponsor_sections(PAGES)

    assert [s.title for s in collection.sponsors] == ["Acme", "Beta", None]
    assert [s.title for s in collection.supporting_sponsors] == ["Small Co"]
    assert [s.key for s in collection.combined] == ["a", "b", "c", "s1"]


def test_malformed_sponsor_is_skipped_with_warning(caplog):
    caplog.set_level(logging.WARNING)
    pages = [
        {
            "sponsorSections": [
                {
                    "_type": "sponsorSection",
                    "sponsors": [{"_key": "bad", "title": ["not", "a", "string"]}, {"_key": "a", "title": "Acme"}],
                    "supportingSponsors": [{"_key": {"nested": True}, "title": "Small Co"}],
                }
            ]
        }
    ]

    collection = flatten_sponsor_sections(pages)

    assert [s.title for s in collection.sponsors] == ["Acme"]
    assert collection.supporting_sponsors == []
    assert caplog.text.count("Skipping malformed sponsor") == 2


def test_flatten_tolerates_missing_result():
    collection = flatten_sponsor_sections(None)

    assert collection.combined == []


def test_extra_cms_fields_are_kept():
    collection = flatten_sponsor_sections(
        [{"sponsorSections": [{"_type": "sponsorSection", "sponsors": [{"title": "Acme", "tier": "gold"}]}]}]
    )

    assert collection.sponsors[0].model_extra == {"tier": "gold"}


@pytest.mark.asyncio
async def test_fetch_sponsors_sends_query_and_bearer_token(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"result": PAGES})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    collection = await SanitySponsorSource(settings, http).fetch_sponsors()

    assert seen["url"].host == "proj123.api.sanity.io"
    assert seen["url"].path == "/v2025-03-04/data/query/production"
    assert seen["url"].params["query"] == SPONSOR_SECTIONS_QUERY
    assert seen["url"].params["perspective"] == "published"
    assert seen["auth"] == "Bearer token-abc"
    assert len(collection.combined) == 4


@pytest.mark.asyncio
async def test_non_2xx_is_fatal(settings, caplog):
    def handler(request):
        return httpx.Response(401, text='{"error": "unauthorized"}')

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(SponsorSourceError, match="401"):
        await SanitySponsorSource(settings, http).fetch_sponsors()
    assert "unauthorized" in caplog.text


@pytest.mark.asyncio
async def test_invalid_json_is_fatal(settings):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(SponsorSourceError, match="parse"):
        await SanitySponsorSource(settings, http).fetch_sponsors()


@pytest.mark.asyncio
async def test_timeout_is_fatal(settings):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(SponsorSourceError, match="timeout"):
        await SanitySponsorSource(settings, http).fetch_sponsors()
