"""pioconsole CLI - offline helpers for build flags, baud rates and selection."""

from __future__ import annotations

import json
from pathlib import Path

import click
import pydantic

from pioconsole.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.pass_context
def cli(ctx: click.Context, debug: bool, json_output: bool) -> None:
    """pioconsole - PlatformIO build and serial console tooling."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["json_output"] = json_output
    setup_logging(level="DEBUG" if debug else "WARNING", json_output=json_output)


def _parse_define(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected NAME=VALUE, got {raw!r}", param_hint="DEFINES")
    return name.strip(), value


@cli.command()
@click.argument("defines", nargs=-1)
@click.option(
    "--profile", "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Saved profile JSON file to read defines from",
)
@click.pass_context
def flags(ctx: click.Context, defines: tuple[str, ...], profile_path: Path | None) -> None:
    """Print -D build flags for NAME=VALUE pairs (after any --profile defines)."""
    from pioconsole.config.build_flags import build_flags_from_defines
    from pioconsole.config.models import SavedProfile

    values: dict[str, str] = {}
    if profile_path is not None:
        try:
            profile = SavedProfile.model_validate_json(profile_path.read_text(encoding="utf-8"))
        except pydantic.ValidationError as exc:
            raise click.ClickException(f"Invalid profile file {profile_path}: {exc}") from exc
        values.update(profile.defines)
        logger.debug("cli_profile_loaded", profile=profile.name, defines=len(profile.defines))

    for raw in defines:
        name, value = _parse_define(raw)
        values[name] = value

    result = build_flags_from_defines(values)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(result))
    else:
        for flag in result:
            click.echo(flag)


@cli.command("baud-rates")
@click.pass_context
def baud_rates(ctx: click.Context) -> None:
    """List the baud rates accepted when opening a serial port."""
    from pioconsole.serial.models import VALID_BAUD_RATES

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(list(VALID_BAUD_RATES)))
    else:
        for rate in VALID_BAUD_RATES:
            click.echo(str(rate))


@cli.command()
@click.argument("available", nargs=-1)
@click.option("--primary", default=None, help="Value requested explicitly (e.g. from a URL)")
@click.option("--persisted", default=None, help="Previously stored value")
@click.option("--fallback", default=None, help="Default when nothing else matches")
@click.pass_context
def resolve(
    ctx: click.Context,
    available: tuple[str, ...],
    primary: str | None,
    persisted: str | None,
    fallback: str | None,
) -> None:
    """Resolve which of AVAILABLE should be selected."""
    from pioconsole.core.selection import resolve_selection

    chosen = resolve_selection(primary, persisted, list(available), fallback)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps({"selected": chosen}))
    elif chosen is None:
        click.echo("No selection.")
    else:
        click.echo(chosen)


if __name__ == "__main__":
    cli()
