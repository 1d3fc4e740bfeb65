"""Shared fixtures for sponsor-check tests."""

import pytest

from core.config import AppSettings
from core.domain.models import DirectoryProfile, Sponsor, SponsorCollection


TARGET_TAG_ID = "id1760088086-NEyjzLNeTcyFkhytuCu6RQ"


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Settings that never read a real .env file."""
    return AppSettings(
        _env_file=None,
        sanity_project_id="proj123",
        sanity_dataset="production",
        sanity_api_read_token="token-abc",
        reference_table_path=tmp_path / "constants-grid.json",
        batch_delay_seconds=0.0,
    )


@pytest.fixture
def make_profile():
    """Factory for Grid profiles with optional tag ids."""

    def _make(slug: str, *tag_ids: str, profile_id: str | None = None) -> DirectoryProfile:
        return DirectoryProfile.model_validate(
            {
                "id": profile_id or f"id-{slug}",
                "slug": slug,
                "urlMain": f"https://{slug}.example.com",
                "profileTags": [
                    {"id": f"pt-{tag_id}", "tagId": tag_id, "tag": {"id": tag_id, "name": f"Tag {tag_id}"}}
                    for tag_id in tag_ids
                ],
            }
        )

    return _make


@pytest.fixture
def sponsors_acme_gamma() -> SponsorCollection:
    return SponsorCollection(
        sponsors=[Sponsor(title="Acme", key="k1")],
        supporting_sponsors=[Sponsor(title="Gamma", key="k2")],
    )
