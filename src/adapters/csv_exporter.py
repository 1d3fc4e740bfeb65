"""CSV export of the Grid profile check.

Why hand-built rows instead of `csv.writer`:
- The sheet is pasted into a shared spreadsheet that expects every cell
  wrapped in double quotes, including booleans and counts.
- Values are passed through as-is; a value that itself contains a double
  quote is not escaped.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path

from core.domain.models import UNKNOWN_TAG_NAME, ProfileCheck, ReconciliationResult


LIST_SEPARATOR = "; "


def csv_headers(tag_label: str) -> list[str]:
    return [
        "Sponsor Title",
        "Slug",
        "Profile Exists in Grid",
        "Profile ID",
        "Profile Slug",
        "Main URL",
        f"Has {tag_label} Tag",
        "Has Target Tag",
        "External Tags Count",
        "Tag IDs",
        "Tag Names",
        "Error",
    ]


def _quote(value: object) -> str:
    return f'"{"" if value is None else value}"'


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def csv_row(check: ProfileCheck) -> list[str]:
    tag_ids = LIST_SEPARATOR.join(t.id for t in check.external_tags if t.id)
    tag_names = LIST_SEPARATOR.join(t.name for t in check.external_tags if t.name != UNKNOWN_TAG_NAME)
    values: list[object] = [
        check.sponsor_title,
        check.slug,
        _yes_no(check.exists),
        check.profile_id,
        check.profile_slug,
        check.url_main,
        _yes_no(check.has_event_tag),
        _yes_no(check.has_target_tag),
        len(check.external_tags),
        tag_ids,
        tag_names,
        check.error,
    ]
    return [_quote(v) for v in values]


def render_csv(result: ReconciliationResult, *, tag_label: str = "Breakpoint 2025") -> str:
    """Header row plus one row per profile check, joined with `\\n`."""

    rows = [",".join(_quote(h) for h in csv_headers(tag_label))]
    rows.extend(",".join(csv_row(check)) for check in result.profile_checks)
    return "\n".join(rows)


def default_csv_filename(day: date | None = None) -> str:
    day = day or datetime.now(timezone.utc).date()
    return f"sponsor-validation-{day.isoformat()}.csv"


def export_csv(
    *,
    result: ReconciliationResult,
    output_path: Path,
    tag_label: str = "Breakpoint 2025",
) -> Path:
    """Write the CSV, replacing any file of the same name."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_csv(result, tag_label=tag_label), encoding="utf-8")
    return output_path
