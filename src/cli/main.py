"""sponsor-check CLI (Typer).

Commands:
- `check`: fetch, reconcile, print the report and write the CSV.
- `doctor`: configuration and connectivity diagnostics.

Exit codes for `check`: 0 when sponsor titles and the reference table agree,
1 on any discrepancy or fatal error.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.csv_exporter import default_csv_filename, export_csv
from adapters.grid_client import GridDirectoryClient
from adapters.sanity_client import SanitySponsorSource, SponsorSourceError
from cli import doctor
from cli.ui_components import NO, print_banner, print_report
from core.config import AppSettings, ConfigurationError, load_settings
from core.log import setup_logging
from core.reference import load_reference_table
from core.services.validation_pipeline import PipelineResult, run_validation


logger = logging.getLogger(__name__)

app = typer.Typer(
    no_args_is_help=True,
    help="Validate CMS sponsors against the reference table and The Grid.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def _fail(message: str) -> typer.Exit:
    _err_console.print(f"{NO} {message}", markup=False, highlight=False)
    return typer.Exit(code=1)


async def _run(settings: AppSettings, reference: dict[str, str | None]) -> PipelineResult:
    source = SanitySponsorSource(settings)
    directory = GridDirectoryClient(settings)
    return await run_validation(
        settings=settings,
        reference=reference,
        source=source,
        directory=directory,
    )


@app.command()
def check(
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Read credentials from this .env instead of ./.env.",
    ),
    reference_path: Optional[Path] = typer.Option(
        None,
        "--reference",
        "-r",
        help="Reference table JSON (title -> slug or null).",
    ),
    output_dir: Path = typer.Option(
        Path("."),
        "--output-dir",
        "-o",
        help="Directory for the dated CSV report.",
    ),
    write_csv: bool = typer.Option(True, "--csv/--no-csv", help="Write the CSV report."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    banner: bool = typer.Option(True, "--banner/--no-banner", help="Show the banner."),
) -> None:
    """Run the sponsor validation."""

    setup_logging("DEBUG" if verbose else "INFO")
    try:
        settings = load_settings(env_file)
        if not verbose:
            setup_logging(settings.log_level)
        reference = load_reference_table(reference_path or settings.reference_table_path)
    except ConfigurationError as exc:
        raise _fail(str(exc)) from exc

    if banner:
        print_banner(_console)

    try:
        outcome = asyncio.run(_run(settings, reference))
    except SponsorSourceError as exc:
        raise _fail(f"Error fetching sponsors from API: {exc}") from exc

    result = outcome.result
    print_report(_console, result, tag_label=settings.target_tag_label)

    if write_csv:
        target = output_dir / default_csv_filename()
        try:
            export_csv(result=result, output_path=target, tag_label=settings.target_tag_label)
        except OSError as exc:
            logger.error("Error saving CSV file: %s", exc)
        else:
            _console.print(f"\nCSV report saved to: {target}", markup=False)

    raise typer.Exit(code=0 if result.is_valid else 1)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
