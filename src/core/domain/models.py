"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edge for loosely shaped CMS and GraphQL payloads.
- Optional fields are explicit: an absent sponsor title and a null
  reference slug are different things and stay different.

Note:
- These models describe *what* the data is, not *how* it is fetched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


UNKNOWN_TAG_NAME = "Unknown"
PROFILE_NOT_FOUND = "Profile not found"


class Sponsor(BaseModel):
    """A sponsor entry embedded in a CMS sponsor section."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = Field(
        default=None,
        description="Display name; may be missing on half-edited entries.",
    )
    key: str | None = Field(
        default=None,
        alias="_key",
        description="Sanity array item key.",
    )


class SponsorCollection(BaseModel):
    """Sponsors flattened from every sponsor section of every page."""

    sponsors: list[Sponsor] = Field(
        default_factory=list,
        description="Main sponsors, in page order then array order.",
    )
    supporting_sponsors: list[Sponsor] = Field(
        default_factory=list,
        description="Supporting sponsors, in page order then array order.",
    )

    @property
    def combined(self) -> list[Sponsor]:
        return [*self.sponsors, *self.supporting_sponsors]


class TagRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None


class ProfileTag(BaseModel):
    """Join row between a Grid profile and a tag."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = None
    tag_id: str | None = Field(default=None, alias="tagId")
    tag: TagRef | None = None


class DirectoryProfile(BaseModel):
    """A Grid profile ("root") as returned by the GraphQL API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = Field(default=None, description="Grid root id.")
    slug: str = Field(..., min_length=1, description="Grid slug.")
    url_main: str | None = Field(
        default=None,
        alias="urlMain",
        description="Canonical URL of the organisation.",
    )
    profile_tags: list[ProfileTag] = Field(
        default_factory=list,
        alias="profileTags",
        description="Tags attached to the profile.",
    )


class ExternalTag(BaseModel):
    """A tag with a display name; unresolved names use a placeholder."""

    id: str | None = None
    name: str = UNKNOWN_TAG_NAME


class ProfileCheck(BaseModel):
    """Outcome of looking up one reference slug in the Grid."""

    sponsor_title: str | None = Field(
        default=None,
        description="Reference-table title that owns the slug.",
    )
    slug: str = Field(..., min_length=1)
    exists: bool = False
    profile_id: str | None = None
    profile_slug: str | None = None
    url_main: str | None = None
    has_target_tag: bool = False
    external_tags: list[ExternalTag] = Field(default_factory=list)
    error: str | None = None

    @property
    def has_event_tag(self) -> bool:
        # The event cohort is identified by the target tag.
        return self.has_target_tag


class ReconciliationResult(BaseModel):
    """Read-only aggregate of a validation run."""

    model_config = ConfigDict(frozen=True)

    sponsors: SponsorCollection
    sponsor_titles: list[str] = Field(default_factory=list)
    reference_keys: list[str] = Field(default_factory=list)
    reference: dict[str, str | None] = Field(default_factory=dict)
    missing_in_constants: list[str] = Field(default_factory=list)
    extra_in_constants: list[str] = Field(default_factory=list)
    profile_checks: list[ProfileCheck] = Field(default_factory=list)
    profiles_retrieved: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.missing_in_constants and not self.extra_in_constants

    @property
    def existing_profiles(self) -> list[ProfileCheck]:
        return [c for c in self.profile_checks if c.exists]

    @property
    def missing_profiles(self) -> list[ProfileCheck]:
        return [c for c in self.profile_checks if not c.exists]

    @property
    def errored_profiles(self) -> list[ProfileCheck]:
        return [c for c in self.profile_checks if c.error and c.error != PROFILE_NOT_FOUND]

    @property
    def target_tag_profiles(self) -> list[ProfileCheck]:
        return [c for c in self.profile_checks if c.has_target_tag]

    @property
    def sponsors_without_titles(self) -> list[Sponsor]:
        return [s for s in self.sponsors.combined if not s.title]
