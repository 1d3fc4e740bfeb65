"""Contracts for the two upstream data sources.

Why Protocol:
- Structural typing (duck typing) without rigid inheritance.
- Adapters (Sanity, Grid) stay swappable and testable without coupling the
  core to httpx.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from core.domain.models import DirectoryProfile, ExternalTag, SponsorCollection


@runtime_checkable
class SponsorSource(Protocol):
    """Where the published sponsor list comes from."""

    async def fetch_sponsors(self) -> SponsorCollection:
        """Return every sponsor and supporting sponsor. Raises on failure."""

        ...


@runtime_checkable
class ProfileDirectory(Protocol):
    """A slug-addressable profile directory.

    Rules:
    - `fetch_batch` degrades per batch instead of raising.
    - `fetch_tag_details` never raises; failures yield an empty list.
    """

    async def fetch_batch(self, slugs: Sequence[str]) -> list[DirectoryProfile]:
        ...

    async def fetch_tag_details(self, tag_ids: Sequence[str]) -> list[ExternalTag]:
        ...
