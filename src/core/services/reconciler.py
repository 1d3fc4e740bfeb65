"""Reconciliation of CMS sponsors, the reference table and Grid profiles.

Everything here is pure: same inputs, same result. The two joins are
independent:

- title diff: sponsor titles vs. reference-table keys (as sorted sets);
- profile join: reference slugs vs. profiles returned by the Grid.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from core.domain.models import (
    PROFILE_NOT_FOUND,
    UNKNOWN_TAG_NAME,
    DirectoryProfile,
    ExternalTag,
    ProfileCheck,
    ReconciliationResult,
    Sponsor,
    SponsorCollection,
)
from core.reference import ReferenceTable, reference_slugs, slug_owners


@dataclass(frozen=True)
class TitleDiff:
    sponsor_titles: list[str] = field(default_factory=list)
    reference_keys: list[str] = field(default_factory=list)
    missing_in_constants: list[str] = field(default_factory=list)
    extra_in_constants: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.missing_in_constants and not self.extra_in_constants


def diff_titles(sponsors: Iterable[Sponsor], reference: ReferenceTable) -> TitleDiff:
    """Compare sponsor titles with the non-null reference keys.

    Both sides are reduced to sorted unique values first, so a sponsor that
    appears on several pages counts once.
    """

    titles = sorted({s.title for s in sponsors if s.title})
    keys = sorted({title for title, slug in reference.items() if slug is not None})
    key_set = set(keys)
    title_set = set(titles)
    return TitleDiff(
        sponsor_titles=titles,
        reference_keys=keys,
        missing_in_constants=[t for t in titles if t not in key_set],
        extra_in_constants=[k for k in keys if k not in title_set],
    )


def build_profile_lookup(profiles: Iterable[DirectoryProfile]) -> dict[str, DirectoryProfile]:
    """slug -> profile. A slug returned twice keeps the last profile seen."""

    lookup: dict[str, DirectoryProfile] = {}
    for profile in profiles:
        lookup[profile.slug] = profile
    return lookup


def external_tags(profile: DirectoryProfile) -> list[ExternalTag]:
    tags: list[ExternalTag] = []
    for profile_tag in profile.profile_tags:
        tag = profile_tag.tag
        tag_id = (tag.id if tag and tag.id else None) or profile_tag.tag_id or profile_tag.id
        name = tag.name if tag and tag.name else UNKNOWN_TAG_NAME
        tags.append(ExternalTag(id=tag_id, name=name))
    return tags


def has_target_tag(profile: DirectoryProfile, target_tag_id: str) -> bool:
    return any(pt.tag is not None and pt.tag.id == target_tag_id for pt in profile.profile_tags)


def collect_tag_ids(profiles: Iterable[DirectoryProfile]) -> set[str]:
    return {pt.tag.id for p in profiles for pt in p.profile_tags if pt.tag and pt.tag.id}


def join_profiles(
    profiles: Iterable[DirectoryProfile],
    slugs: Sequence[str],
    owners: Mapping[str, str],
    target_tag_id: str,
) -> list[ProfileCheck]:
    """One `ProfileCheck` per submitted slug, in submission order."""

    lookup = build_profile_lookup(profiles)
    checks: list[ProfileCheck] = []
    for slug in slugs:
        profile = lookup.get(slug)
        if profile is None:
            checks.append(
                ProfileCheck(
                    sponsor_title=owners.get(slug),
                    slug=slug,
                    exists=False,
                    error=PROFILE_NOT_FOUND,
                )
            )
            continue
        checks.append(
            ProfileCheck(
                sponsor_title=owners.get(slug),
                slug=slug,
                exists=True,
                profile_id=profile.id,
                profile_slug=profile.slug,
                url_main=profile.url_main,
                has_target_tag=has_target_tag(profile, target_tag_id),
                external_tags=external_tags(profile),
            )
        )
    return checks


def unresolved_tag_ids(profiles: Iterable[DirectoryProfile]) -> list[str]:
    """Tag ids that would carry the placeholder name, first-seen order."""

    seen: dict[str, None] = {}
    for profile in profiles:
        for tag in external_tags(profile):
            if tag.id and tag.name == UNKNOWN_TAG_NAME:
                seen.setdefault(tag.id, None)
    return list(seen)


def apply_tag_names(checks: Sequence[ProfileCheck], tags: Iterable[ExternalTag]) -> list[ProfileCheck]:
    names = {t.id: t.name for t in tags if t.id and t.name != UNKNOWN_TAG_NAME}
    if not names:
        return list(checks)
    updated: list[ProfileCheck] = []
    for check in checks:
        new_tags = [
            ExternalTag(id=t.id, name=names[t.id]) if t.name == UNKNOWN_TAG_NAME and t.id in names else t
            for t in check.external_tags
        ]
        updated.append(check.model_copy(update={"external_tags": new_tags}))
    return updated


def reconcile(
    *,
    sponsors: SponsorCollection,
    reference: ReferenceTable,
    profiles: Sequence[DirectoryProfile],
    target_tag_id: str,
    tag_details: Iterable[ExternalTag] = (),
) -> ReconciliationResult:
    diff = diff_titles(sponsors.combined, reference)
    slugs = reference_slugs(reference)
    checks = join_profiles(profiles, slugs, slug_owners(reference), target_tag_id)
    checks = apply_tag_names(checks, tag_details)
    return ReconciliationResult(
        sponsors=sponsors,
        sponsor_titles=diff.sponsor_titles,
        reference_keys=diff.reference_keys,
        reference=dict(reference),
        missing_in_constants=diff.missing_in_constants,
        extra_in_constants=diff.extra_in_constants,
        profile_checks=checks,
        profiles_retrieved=len(profiles),
        metadata={"target_tag_id": target_tag_id, "tags_seen": len(collect_tag_ids(profiles))},
    )
