"""Sponsor source: Sanity content lake.

One GROQ query returns every `page` document with its sponsor-section
components; the sponsors are flattened here so the core only ever sees a
`SponsorCollection`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import client_session, describe_response
from core.config import AppSettings
from core.domain.models import Sponsor, SponsorCollection


logger = logging.getLogger(__name__)

SPONSOR_SECTIONS_QUERY = """*[_type == "page"]{
  "sponsorSections": components[_type == "sponsorSection"]
}"""

SPONSOR_SECTION_TYPE = "sponsorSection"


class SponsorSourceError(RuntimeError):
    """The sponsor list could not be retrieved. Fatal for a run."""


def _parse_sponsors(raw_items: Any) -> list[Sponsor]:
    parsed: list[Sponsor] = []
    for raw in raw_items or []:
        if not isinstance(raw, dict):
            continue
        try:
            parsed.append(Sponsor.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed sponsor %r: %s", raw.get("_key"), exc.errors()[:1])
    return parsed


def flatten_sponsor_sections(pages: list[Any] | None) -> SponsorCollection:
    """Collect sponsors from every sponsor section, preserving order."""

    sponsors: list[Sponsor] = []
    supporting: list[Sponsor] = []
    for page in pages or []:
        if not isinstance(page, dict):
            continue
        for section in page.get("sponsorSections") or []:
            if not isinstance(section, dict) or section.get("_type") != SPONSOR_SECTION_TYPE:
                continue
            sponsors.extend(_parse_sponsors(section.get("sponsors")))
            supporting.extend(_parse_sponsors(section.get("supportingSponsors")))
    return SponsorCollection(sponsors=sponsors, supporting_sponsors=supporting)


class SanitySponsorSource:
    """Reads sponsors from the Sanity HTTP query API."""

    def __init__(self, settings: AppSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client

    @property
    def query_url(self) -> str:
        s = self._settings
        return f"https://{s.sanity_project_id}.api.sanity.io/{s.sanity_api_version}/data/query/{s.sanity_dataset}"

    async def fetch_sponsors(self) -> SponsorCollection:
        logger.info("Fetching sponsors from Sanity API (perspective=%s)", self._settings.sanity_perspective)
        async with client_session(self._settings, self._client) as client:
            payload = await self._query(client)

        pages = payload.get("result") if isinstance(payload, dict) else None
        collection = flatten_sponsor_sections(pages if isinstance(pages, list) else None)
        logger.info(
            "Found %d main sponsors and %d supporting sponsors",
            len(collection.sponsors),
            len(collection.supporting_sponsors),
        )
        return collection

    async def _query(self, client: httpx.AsyncClient) -> Any:
        params = {
            "query": SPONSOR_SECTIONS_QUERY,
            "perspective": self._settings.sanity_perspective,
        }
        headers = {
            "Authorization": f"Bearer {self._settings.sanity_api_read_token}",
            "Content-Type": "application/json",
        }
        try:
            response = await client.get(
                self.query_url,
                params=params,
                headers=headers,
                timeout=self._settings.http_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise SponsorSourceError("Request timeout") from exc
        except httpx.HTTPError as exc:
            raise SponsorSourceError(f"Request failed: {exc}") from exc

        if not response.is_success:
            logger.error("API Error Response: %s", response.text)
            raise SponsorSourceError(f"API request failed: {describe_response(response)}")
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Raw response: %s", response.text)
            raise SponsorSourceError(f"Failed to parse API response: {exc}") from exc
