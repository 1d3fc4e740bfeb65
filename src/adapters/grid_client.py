"""Directory client: The Grid GraphQL API.

Batches are sent strictly one after another with a fixed pause in between;
the upstream API rate-limits bursts, so do not gather them concurrently.
A failing batch is logged and skipped: its slugs simply come back as
"not found" in the reconciliation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterator, Sequence, TypeVar

import httpx
from pydantic import ValidationError

from adapters.http_client import client_session, describe_response
from core.config import AppSettings
from core.domain.models import DirectoryProfile, ExternalTag


logger = logging.getLogger(__name__)

T = TypeVar("T")

BATCH_PROFILES_QUERY = """query BatchProfiles($slugs: [String!]!) {
  roots(where: {slug: {_in: $slugs}}) {
    id
    slug
    urlMain
    profileTags {
      id
      tagId
      tag {
        id
        name
      }
    }
  }
}"""

TAG_DETAILS_QUERY = """query GetTagDetails($tagIds: [String!]!) {
  tags(where: {id: {_in: $tagIds}}) {
    id
    name
  }
}"""


class GraphQLRequestError(RuntimeError):
    """Transport, HTTP status or decoding failure of a GraphQL call."""


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Consecutive slices of `size` items; the last one may be shorter."""

    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def _data_list(payload: Any, key: str) -> list[Any]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return []
    value = data.get(key)
    return value if isinstance(value, list) else []


class GridDirectoryClient:
    """Looks up Grid profiles and tags by slug/id."""

    def __init__(
        self,
        settings: AppSettings,
        client: httpx.AsyncClient | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._client = client
        self._sleep = sleep

    async def fetch_batch(self, slugs: Sequence[str]) -> list[DirectoryProfile]:
        """Fetch profiles for `slugs`, in API return order across batches."""

        batches = list(chunked(slugs, self._settings.batch_size))
        profiles: list[DirectoryProfile] = []
        if not batches:
            return profiles

        async with client_session(self._settings, self._client) as client:
            for index, batch in enumerate(batches, start=1):
                if index > 1:
                    await self._sleep(self._settings.batch_delay_seconds)
                logger.info("Fetching batch %d/%d (%d slugs)", index, len(batches), len(batch))
                try:
                    payload = await self._post(client, BATCH_PROFILES_QUERY, {"slugs": batch})
                except GraphQLRequestError as exc:
                    logger.error("Error fetching Grid batch %d/%d: %s", index, len(batches), exc)
                    continue
                profiles.extend(self._parse_profiles(_data_list(payload, "roots")))

        logger.info("Retrieved %d profiles from Grid", len(profiles))
        return profiles

    async def fetch_tag_details(self, tag_ids: Sequence[str]) -> list[ExternalTag]:
        """Resolve tag ids to names. Never raises; failures yield `[]`."""

        if not tag_ids:
            return []
        try:
            async with client_session(self._settings, self._client) as client:
                payload = await self._post(client, TAG_DETAILS_QUERY, {"tagIds": list(tag_ids)})
        except GraphQLRequestError as exc:
            logger.error("Error fetching tag details: %s", exc)
            return []

        tags: list[ExternalTag] = []
        for raw in _data_list(payload, "tags"):
            if not isinstance(raw, dict) or not raw.get("id"):
                continue
            name = raw.get("name")
            if isinstance(name, str) and name:
                tags.append(ExternalTag(id=str(raw["id"]), name=name))
            else:
                tags.append(ExternalTag(id=str(raw["id"])))
        return tags

    async def _post(self, client: httpx.AsyncClient, query: str, variables: dict[str, Any]) -> Any:
        try:
            response = await client.post(
                self._settings.grid_graphql_url,
                json={"query": query, "variables": variables},
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise GraphQLRequestError("Request timeout") from exc
        except httpx.HTTPError as exc:
            raise GraphQLRequestError(f"Request failed: {exc}") from exc

        if not response.is_success:
            logger.error("GraphQL Error Response: %s", response.text)
            raise GraphQLRequestError(f"GraphQL request failed: {describe_response(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Raw response: %s", response.text)
            raise GraphQLRequestError(f"Failed to parse GraphQL response: {exc}") from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            logger.warning("GraphQL returned errors: %s", errors)
        return payload

    @staticmethod
    def _parse_profiles(raw_roots: list[Any]) -> list[DirectoryProfile]:
        profiles: list[DirectoryProfile] = []
        for raw in raw_roots:
            if not isinstance(raw, dict):
                continue
            try:
                profiles.append(DirectoryProfile.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed Grid profile %r: %s", raw.get("slug"), exc.errors()[:1])
        return profiles

