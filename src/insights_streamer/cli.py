"""insights-streamer Command Line Interface.

Entry point for the insights-streamer CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from insights_streamer import __version__
from insights_streamer.contracts.config import RuntimeStreamerConfig
from insights_streamer.contracts.errors import TransportError
from insights_streamer.core.config import load_settings
from insights_streamer.normalization.envelope import SEVERITY_FIELD, EnvelopeBuilder
from insights_streamer.streamer.transports.console import envelope_to_wire

__all__ = ["app"]

app = typer.Typer(
    name="insights-streamer",
    help="insights-streamer: normalize structured log records for Application Insights.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"insights-streamer version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables (APPINSIGHTS_*, INSIGHTS_STREAMER_*) from .env.

    Raises:
        typer.Exit: If an explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _load_runtime_config(settings_path: Path | None) -> RuntimeStreamerConfig:
    """Load settings and build the runtime config, exiting 1 on bad config."""
    try:
        settings = load_settings(settings_path)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.secho("Configuration errors:", fg=typer.colors.RED, err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            typer.secho(f"  - {loc}: {error['msg']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    return RuntimeStreamerConfig.from_settings(settings)


def _parse_record(text: str, source: str) -> dict[str, Any]:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        typer.secho(f"Error: invalid JSON in {source}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    if not isinstance(record, dict):
        typer.secho(f"Error: {source} must be a JSON object, got {type(record).__name__}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return record


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """insights-streamer: normalize structured log records for Application Insights."""
    from insights_streamer.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def normalize(
    record: str = typer.Argument(..., help="Record as a JSON object."),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Print the envelope a record would produce, without sending it."""
    config = _load_runtime_config(settings)
    parsed = _parse_record(record, "RECORD")

    envelope = EnvelopeBuilder(config).normalize(parsed)
    if envelope is None:
        typer.echo(f"Suppressed: severity {parsed.get(SEVERITY_FIELD)!r} is below the minimum level")
        return
    typer.echo(json.dumps(envelope_to_wire(envelope, dict(config.common_properties)), indent=2, default=str))


@app.command()
def replay(
    records_file: Path = typer.Argument(..., help="File with one JSON record per line."),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Send every record in a JSON-lines file through the configured transport."""
    from insights_streamer.streamer.factory import create_streamer

    if not records_file.exists():
        typer.secho(f"Error: records file not found: {records_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    config = _load_runtime_config(settings)
    try:
        streamer = create_streamer(config)
    except TransportError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    default_level = config.vocabulary.levels[0]
    try:
        with records_file.open(encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                parsed = _parse_record(line, f"{records_file}:{line_number}")
                level = parsed.get(SEVERITY_FIELD, default_level)
                streamer.log(level if isinstance(level, str) else default_level, parsed)
    finally:
        streamer.close()


if __name__ == "__main__":
    app()
