"""Pipeline and CLI tests with fake upstream sources."""

import json
from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

import cli.main as cli_main
from adapters.sanity_client import SponsorSourceError
from core.domain.models import DirectoryProfile, ExternalTag, Sponsor, SponsorCollection
from core.services.validation_pipeline import run_validation

from conftest import TARGET_TAG_ID


class FakeSource:
    def __init__(self, collection=None, error=None):
        self.collection = collection or SponsorCollection()
        self.error = error

    async def fetch_sponsors(self):
        if self.error:
            raise self.error
        return self.collection


class FakeDirectory:
    def __init__(self, profiles=(), tags=()):
        self.profiles = list(profiles)
        self.tags = list(tags)
        self.batch_calls = []
        self.tag_calls = []

    async def fetch_batch(self, slugs):
        self.batch_calls.append(list(slugs))
        return [p for p in self.profiles if p.slug in slugs]

    async def fetch_tag_details(self, tag_ids):
        self.tag_calls.append(list(tag_ids))
        return [t for t in self.tags if t.id in tag_ids]


@pytest.mark.asyncio
async def test_only_non_null_slugs_are_sent(settings, make_profile, sponsors_acme_gamma):
    directory = FakeDirectory([make_profile("acme-corp", TARGET_TAG_ID)])

    outcome = await run_validation(
        settings=settings,
        reference={"Acme": "acme-corp", "Beta": None},
        source=FakeSource(sponsors_acme_gamma),
        directory=directory,
    )

    assert directory.batch_calls == [["acme-corp"]]
    assert directory.tag_calls == []
    assert outcome.slugs_checked == ["acme-corp"]
    assert outcome.result.missing_in_constants == ["Gamma"]
    assert outcome.result.extra_in_constants == []
    assert outcome.warnings == []


@pytest.mark.asyncio
async def test_placeholder_tag_names_are_resolved(settings, sponsors_acme_gamma):
    profile = DirectoryProfile.model_validate({"slug": "acme-corp", "profileTags": [{"tagId": "t1"}]})
    directory = FakeDirectory([profile], tags=[ExternalTag(id="t1", name="Sponsor 2025")])

    outcome = await run_validation(
        settings=settings,
        reference={"Acme": "acme-corp"},
        source=FakeSource(sponsors_acme_gamma),
        directory=directory,
    )

    assert directory.tag_calls == [["t1"]]
    assert outcome.result.profile_checks[0].external_tags == [ExternalTag(id="t1", name="Sponsor 2025")]
    assert any("not found in any profile" in w for w in outcome.warnings)


@pytest.mark.asyncio
async def test_source_failure_propagates(settings):
    with pytest.raises(SponsorSourceError):
        await run_validation(
            settings=settings,
            reference={},
            source=FakeSource(error=SponsorSourceError("API request failed: 500")),
            directory=FakeDirectory(),
        )


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    env = tmp_path / ".env"
    env.write_text(
        "NEXT_PUBLIC_SANITY_PROJECT_ID=proj\n"
        "NEXT_PUBLIC_SANITY_DATASET=production\n"
        "SANITY_API_READ_TOKEN=secret\n",
        encoding="utf-8",
    )
    reference = tmp_path / "constants-grid.json"
    monkeypatch.chdir(tmp_path)
    return env, reference


def _patch_sources(monkeypatch, source, directory):
    monkeypatch.setattr(cli_main, "SanitySponsorSource", lambda settings: source)
    monkeypatch.setattr(cli_main, "GridDirectoryClient", lambda settings: directory)


def _invoke(*args):
    return CliRunner().invoke(cli_main.app, ["check", "--no-banner", *args])


def test_cli_reports_discrepancy_and_writes_csv(cli_env, monkeypatch, make_profile, sponsors_acme_gamma, tmp_path):
    env, reference = cli_env
    reference.write_text(json.dumps({"Acme": "acme-corp", "Beta": None}), encoding="utf-8")
    _patch_sources(monkeypatch, FakeSource(sponsors_acme_gamma), FakeDirectory([make_profile("acme-corp")]))

    result = _invoke("--env-file", str(env), "-r", str(reference), "-o", str(tmp_path / "out"))

    assert result.exit_code == 1
    assert "Gamma" in result.output
    day = datetime.now(timezone.utc).date().isoformat()
    csv_path = tmp_path / "out" / f"sponsor-validation-{day}.csv"
    assert csv_path.is_file()
    assert len(csv_path.read_text(encoding="utf-8").split("\n")) == 2


def test_cli_exit_zero_when_everything_matches(cli_env, monkeypatch, make_profile):
    env, reference = cli_env
    reference.write_text(json.dumps({"Acme": "acme-corp"}), encoding="utf-8")
    source = FakeSource(SponsorCollection(sponsors=[Sponsor(title="Acme")]))
    _patch_sources(monkeypatch, source, FakeDirectory([make_profile("acme-corp")]))

    result = _invoke("--env-file", str(env), "-r", str(reference), "--no-csv")

    assert result.exit_code == 0
    assert "All sponsors match" in result.output


def test_cli_missing_credentials_is_fatal(tmp_path, monkeypatch):
    for name in ("NEXT_PUBLIC_SANITY_PROJECT_ID", "NEXT_PUBLIC_SANITY_DATASET", "SANITY_API_READ_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    env = tmp_path / "empty.env"
    env.write_text("NEXT_PUBLIC_SANITY_DATASET=production\n", encoding="utf-8")

    result = _invoke("--env-file", str(env))

    assert result.exit_code == 1


def test_cli_sponsor_fetch_failure_is_fatal(cli_env, monkeypatch):
    env, reference = cli_env
    reference.write_text("{}", encoding="utf-8")
    directory = FakeDirectory()
    _patch_sources(monkeypatch, FakeSource(error=SponsorSourceError("API request failed: 503")), directory)

    result = _invoke("--env-file", str(env), "-r", str(reference), "--no-csv")

    assert result.exit_code == 1
    assert directory.batch_calls == []


def test_cli_csv_write_failure_is_logged_not_fatal(cli_env, monkeypatch, make_profile, tmp_path, caplog):
    env, reference = cli_env
    reference.write_text(json.dumps({"Acme": "acme-corp"}), encoding="utf-8")
    source = FakeSource(SponsorCollection(sponsors=[Sponsor(title="Acme")]))
    _patch_sources(monkeypatch, source, FakeDirectory([make_profile("acme-corp")]))
    # Keep caplog's handler on the root logger.
    monkeypatch.setattr(cli_main, "setup_logging", lambda *args, **kwargs: None)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    result = _invoke("--env-file", str(env), "-r", str(reference), "-o", str(blocker))

    assert result.exit_code == 0
    assert "Error saving CSV file" in caplog.text
    assert "CSV report saved" not in result.output
