"""CLI entrypoint for the PHA circulation service."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from aiohttp import web

from .errors import CycleAborted
from .logger import setup_logging
from .settings import CacheBackend, CirculationSettings, DryRunFormat, SourceMode
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Circulating supply of PHA across chains, refreshed into a cache and served over HTTP.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("pha_circulation")


def _load_settings(
    config_path: Path | None,
    **overrides: object,
) -> CirculationSettings:
    if config_path:
        os.environ["PHA_CIRCULATION_CONFIG"] = str(config_path)
    init_kwargs = {key: value for key, value in overrides.items() if value is not None}
    settings = CirculationSettings(**init_kwargs)
    setup_logging(settings.log_level)
    return settings


def _check_cache(settings: CirculationSettings) -> None:
    if settings.cache_backend is CacheBackend.REDIS and settings.redis_url is None:
        raise typer.BadParameter(
            "redis_url is required when cache_backend is redis.",
            param_hint=["--redis-url", "PHA_CIRCULATION_REDIS_URL"],
        )


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [pha_circulation] table).",
    ),
]
RedisOption = Annotated[
    str | None, typer.Option("--redis-url", help="Redis connection URL.")
]
BackendOption = Annotated[
    CacheBackend | None,
    typer.Option("--cache-backend", help="Cache store (redis or memory)."),
]
ModeOption = Annotated[
    SourceMode | None,
    typer.Option(
        "--source-mode",
        help="Read figures from chain RPC or from the GraphQL indexer.",
    ),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]
ShowConfigOption = Annotated[
    bool,
    typer.Option(
        "--show-config",
        help="Print effective config (with secrets redacted) and exit.",
    ),
]


@app.command()
def serve(
    config_path: ConfigOption = None,
    redis_url: RedisOption = None,
    cache_backend: BackendOption = None,
    source_mode: ModeOption = None,
    host: Annotated[str | None, typer.Option("--host")] = None,
    port: Annotated[int | None, typer.Option("--port")] = None,
    refresh_interval: Annotated[
        float | None,
        typer.Option(
            "--refresh-interval", help="Seconds between refresh cycles."
        ),
    ] = None,
    no_refresh: Annotated[
        bool,
        typer.Option(
            "--no-refresh",
            help="Serve the cache only; another process runs the refresh job.",
        ),
    ] = False,
    log_level: LogLevelOption = None,
    show_config: ShowConfigOption = False,
):
    """Serve the HTTP API and run the periodic refresh job."""
    settings = _load_settings(
        config_path,
        redis_url=redis_url,
        cache_backend=cache_backend,
        source_mode=source_mode,
        host=host,
        port=port,
        refresh_interval_seconds=refresh_interval,
        log_level=log_level.upper() if log_level else None,
    )
    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)
    _check_cache(settings)

    from .api import create_app
    from .job import RefreshJob

    state = AppState.from_settings(settings, _build_logger())
    job = None if no_refresh else RefreshJob(state)
    web.run_app(
        create_app(state, job),
        host=settings.host,
        port=settings.port,
        print=None,
    )


@app.command()
def refresh(
    config_path: ConfigOption = None,
    redis_url: RedisOption = None,
    cache_backend: BackendOption = None,
    source_mode: ModeOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run/--commit", help="Compute without writing the cache."),
    ] = False,
    output_format: Annotated[
        DryRunFormat | None,
        typer.Option("--format", help="Output format for the result (table or json)."),
    ] = None,
    log_level: LogLevelOption = None,
    show_config: ShowConfigOption = False,
):
    """Run a single refresh cycle."""
    settings = _load_settings(
        config_path,
        redis_url=redis_url,
        cache_backend=cache_backend,
        source_mode=source_mode,
        dry_run_format=output_format,
        log_level=log_level.upper() if log_level else None,
    )
    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)
    if not dry_run:
        _check_cache(settings)
    elif settings.cache_backend is CacheBackend.REDIS and settings.redis_url is None:
        settings.cache_backend = CacheBackend.MEMORY

    from .pipeline import run_refresh
    from .report import print_result

    state = AppState.from_settings(settings, _build_logger())

    async def _run():
        try:
            return await run_refresh(state, dry_run=dry_run)
        finally:
            await state.close()

    try:
        result = asyncio.run(_run())
    except CycleAborted as e:
        typer.echo(f"Refresh failed: {e}", err=True)
        raise typer.Exit(code=1) from e

    if settings.dry_run_format is DryRunFormat.JSON:
        typer.echo(json.dumps(result.to_record(), indent=2))
    else:
        print_result(result)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
