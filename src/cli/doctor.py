"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client, describe_response
from adapters.sanity_client import SanitySponsorSource
from core.config import REQUIRED_ENV_VARS, AppSettings, ConfigurationError
from core.reference import load_reference_table, reference_slugs

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings, method: str, url: str, **kwargs: object) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.request(method, url, **kwargs)
        return response.is_success, f"HTTP {describe_response(response)}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_reference(path: Path) -> tuple[bool, str]:
    try:
        table = load_reference_table(path)
    except ConfigurationError as exc:
        return False, str(exc)
    return True, f"{len(table)} entries, {len(reference_slugs(table))} with slugs"


@app.command()
def run(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Alternative .env file."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings(_env_file=str(env_file)) if env_file else AppSettings()

    table = Table(title="Sponsor Check Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    missing = set(settings.missing_credentials())
    for env_name in REQUIRED_ENV_VARS.values():
        table.add_row(env_name, "FAIL" if env_name in missing else "OK", "missing" if env_name in missing else "set")
    table.add_row("Perspective", "OK", settings.sanity_perspective)

    ok_ref, detail_ref = _check_reference(settings.reference_table_path)
    table.add_row("Reference table", "OK" if ok_ref else "FAIL", detail_ref)

    # Connectivity (best-effort)
    if not missing:
        url = SanitySponsorSource(settings).query_url
        ok_sanity, detail_sanity = asyncio.run(
            _check_http(
                settings,
                "GET",
                url,
                params={"query": "count(*[_type == \"page\"])", "perspective": settings.sanity_perspective},
                headers={"Authorization": f"Bearer {settings.sanity_api_read_token}"},
            )
        )
        table.add_row("Sanity API", "OK" if ok_sanity else "FAIL", detail_sanity)
    else:
        table.add_row("Sanity API", "SKIPPED", "credentials missing")

    ok_grid, detail_grid = asyncio.run(
        _check_http(settings, "POST", settings.grid_graphql_url, json={"query": "{ __typename }"})
    )
    table.add_row("Grid GraphQL", "OK" if ok_grid else "FAIL", detail_grid)

    _console.print(table)

    if missing:
        _console.print(
            "\n[yellow]Note:[/yellow] add the missing variables to `.env` in the working directory."
        )
