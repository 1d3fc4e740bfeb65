"""Reference table loader.

The reference table is a hand-maintained JSON object mapping sponsor titles
to Grid slugs. `null` marks a sponsor that is known but not yet linked to a
Grid profile.

Example:
    {"Acme": "acme-corp", "Beta": null}
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from core.config import ConfigurationError


ReferenceTable = dict[str, str | None]

_ADAPTER: TypeAdapter[ReferenceTable] = TypeAdapter(ReferenceTable)


def parse_reference_table(data: object) -> ReferenceTable:
    try:
        return _ADAPTER.validate_python(data, strict=True)
    except ValidationError as exc:
        raise ConfigurationError(
            "Reference table must be an object of title -> slug (string or null)"
        ) from exc


def load_reference_table(path: Path) -> ReferenceTable:
    if not path.is_file():
        raise ConfigurationError(f"Reference table not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read reference table {path}: {exc}") from exc
    return parse_reference_table(data)


def reference_slugs(table: ReferenceTable) -> list[str]:
    """Non-null slugs in table order (these are sent to the Grid)."""

    return [slug for slug in table.values() if slug]


def slug_owners(table: ReferenceTable) -> dict[str, str]:
    """slug -> sponsor title; when two titles share a slug the last one wins."""

    owners: dict[str, str] = {}
    for title, slug in table.items():
        if slug:
            owners[slug] = title
    return owners
