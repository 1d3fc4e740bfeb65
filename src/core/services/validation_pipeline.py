"""Sponsor validation orchestration.

The CLI only parses options and prints; the ordered sequence of remote
calls lives here so it can be reused from tests or other entry points.
Every call is awaited in turn: sponsors, Grid profiles, tag names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.config import AppSettings
from core.domain.models import ReconciliationResult
from core.interfaces.sources import ProfileDirectory, SponsorSource
from core.reference import ReferenceTable, reference_slugs
from core.services.reconciler import collect_tag_ids, reconcile, unresolved_tag_ids


logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output of a pipeline invocation."""

    result: ReconciliationResult
    slugs_checked: list[str]
    warnings: list[str] = field(default_factory=list)


async def run_validation(
    *,
    settings: AppSettings,
    reference: ReferenceTable,
    source: SponsorSource,
    directory: ProfileDirectory,
) -> PipelineResult:
    sponsors = await source.fetch_sponsors()
    warnings: list[str] = []

    slugs = reference_slugs(reference)
    logger.info("Found %d slugs to check in Grid", len(slugs))
    profiles = await directory.fetch_batch(slugs)

    target_tag_id = settings.target_tag_id
    tag_ids = collect_tag_ids(profiles)
    logger.info("Found %d unique tags from profiles", len(tag_ids))
    if target_tag_id in tag_ids:
        logger.info("Target %s tag found in data", settings.target_tag_label)
    else:
        message = f"Target {settings.target_tag_label} tag ({target_tag_id}) not found in any profile"
        logger.warning(message)
        warnings.append(message)

    # Names missing from the nested payload are looked up in one extra call.
    pending = unresolved_tag_ids(profiles)
    tag_details = await directory.fetch_tag_details(pending) if pending else []

    result = reconcile(
        sponsors=sponsors,
        reference=reference,
        profiles=profiles,
        target_tag_id=target_tag_id,
        tag_details=tag_details,
    )
    return PipelineResult(result=result, slugs_checked=slugs, warnings=warnings)
