"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets `check` and `doctor` share panels and tables.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ReconciliationResult


YES = "✅"
NO = "❌"
ELLIPSIS = "..."

# (header, width) for the profile table.
PROFILE_TABLE_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Sponsor", 20),
    ("Slug", 15),
    ("Profile Exists", 15),
    ("Profile ID", 12),
    ("{label}", 15),
    ("Target Tag", 12),
    ("Tags Count", 12),
)


def truncate(value: str | None, width: int) -> str:
    """Fit `value` into `width`, cutting to width-3 chars plus '...'."""

    text = value or ""
    if len(text) <= width:
        return text
    return text[: max(width - len(ELLIPSIS), 0)] + ELLIPSIS


def glyph(flag: bool) -> str:
    return YES if flag else NO


def print_banner(console: Console) -> None:
    title = Text("SPONSOR CHECK", style="bold cyan")
    subtitle = Text("Sanity sponsors • reference table • Grid profiles", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def profile_table_rows(result: ReconciliationResult) -> list[list[str]]:
    widths = [width for _, width in PROFILE_TABLE_COLUMNS]
    rows: list[list[str]] = []
    for check in result.profile_checks:
        cells = [
            check.sponsor_title or "",
            check.slug,
            glyph(check.exists),
            check.profile_id or "",
            glyph(check.has_event_tag),
            glyph(check.has_target_tag),
            str(len(check.external_tags)),
        ]
        rows.append([truncate(cell, width) for cell, width in zip(cells, widths)])
    return rows


def build_profiles_table(result: ReconciliationResult, *, tag_label: str = "Breakpoint 2025") -> Table:
    """Fixed-width table of every Grid profile check."""

    table = Table(title="Sponsor Grid Profile Check", show_lines=False)
    for header, width in PROFILE_TABLE_COLUMNS:
        table.add_column(
            Text(header.format(label=tag_label)),
            width=width,
            min_width=width,
            max_width=width,
            no_wrap=True,
            overflow="crop",
        )
    # Titles and slugs are user data; Text keeps brackets literal.
    for row in profile_table_rows(result):
        table.add_row(*(Text(cell) for cell in row))
    return table


def build_summary_panel(result: ReconciliationResult, *, tag_label: str = "Breakpoint 2025") -> Panel:
    checks = result.profile_checks
    body = Text()
    body.append("Summary\n", style="bold")
    body.append(f"  API sponsors total: {len(result.sponsors.combined)}\n")
    body.append(f"  API sponsors with titles: {len(result.sponsor_titles)}\n")
    body.append(f"  Constants grid entries: {len(result.reference_keys)}\n")
    body.append(f"  Missing from constants: {len(result.missing_in_constants)}\n")
    body.append(f"  Extra in constants: {len(result.extra_in_constants)}\n")
    body.append(f"  Grid slugs checked: {len(checks)}\n\n")

    body.append("Grid profile check\n", style="bold")
    body.append(f"  Profiles found in Grid: {len(result.existing_profiles)}/{len(checks)}\n")
    body.append(f"  Profiles retrieved from Grid: {result.profiles_retrieved}\n")
    body.append(f"  Unique tags seen: {result.metadata.get('tags_seen', 0)}\n")
    body.append(f"  Profiles not found: {len(result.missing_profiles)}\n")
    body.append(f"  Profiles with errors: {len(result.errored_profiles)}\n")
    body.append(f'  Sponsors with "{tag_label}" tag: {len(result.target_tag_profiles)}')

    style = "green" if result.is_valid else "red"
    return Panel(body, title=Text("Sponsor Validation Report", style=f"bold {style}"), border_style=style)


def print_report(console: Console, result: ReconciliationResult, *, tag_label: str = "Breakpoint 2025") -> None:
    """Summary, discrepancy lists and the profile table."""

    console.print(build_summary_panel(result, tag_label=tag_label))

    if result.extra_in_constants:
        console.print(f"\n[yellow]Constants not found in API ({len(result.extra_in_constants)}):[/yellow]")
        for key in result.extra_in_constants:
            console.print(f"   • {key} → {result.reference.get(key)}", markup=False)

    if result.is_valid:
        console.print(f"\n[green]{YES} All sponsors match! No discrepancies found.[/green]")

    if result.missing_in_constants:
        console.print(
            f"\n[red]{NO} Sponsors in API but missing from constants ({len(result.missing_in_constants)}):[/red]"
        )
        for title in result.missing_in_constants:
            console.print(f"   • {title}", markup=False)

    if result.missing_profiles:
        console.print(f"\n[red]{NO} Missing profiles:[/red]")
        for check in result.missing_profiles:
            console.print(f"   • {check.sponsor_title} ({check.slug})", markup=False)

    console.print("\n[bold]Detailed breakdown:[/bold]")
    console.print(f"   Main sponsors: {len(result.sponsors.sponsors)}")
    console.print(f"   Supporting sponsors: {len(result.sponsors.supporting_sponsors)}")

    untitled = result.sponsors_without_titles
    if untitled:
        console.print(f"\n[yellow]Sponsors without titles ({len(untitled)}):[/yellow]")
        for index, sponsor in enumerate(untitled, start=1):
            console.print(f"   • Sponsor {index} (key: {sponsor.key or 'N/A'})", markup=False)

    console.print()
    console.print(build_profiles_table(result, tag_label=tag_label))
