"""Command-line interface for stepladder."""

from pathlib import Path

import click
import yaml
from sqlalchemy.exc import SQLAlchemyError

from stepladder import __version__
from stepladder.config import Config
from stepladder.errors import MigrationError
from stepladder.logging import get_logger, setup_logging
from stepladder.migrator import Direction, MigrationPlan, Migrator

log = get_logger("cli")

# Failures reported as "Error: ..." with exit status 1
COMMAND_ERRORS = (MigrationError, FileNotFoundError, SQLAlchemyError)


def _format_version(version: int | None) -> str:
    return "none" if version is None else str(version)


def _get_migrator(ctx: click.Context) -> Migrator:
    """Build a migrator from the configured database and migrations directory."""
    from stepladder.discovery import build_registry
    from stepladder.sql import SqlAdaptor

    config = ctx.obj["config"]
    registry = build_registry(ctx.obj["migrations_dir"])
    return Migrator(SqlAdaptor.from_config(config), registry)


def _run(ctx: click.Context, action) -> None:
    """Run a migrator action, reporting the version change."""
    try:
        migrator = _get_migrator(ctx)
        before = migrator.current_version()
        plan = action(migrator)
        after = migrator.current_version()
    except COMMAND_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    log.info("migrate_command_finished", before=before, after=after, steps=len(plan))

    if not plan:
        click.echo(f"Database already at version {_format_version(after)}")
    else:
        click.echo(
            f"Migrated from version {_format_version(before)} "
            f"to {_format_version(after)} ({len(plan)} step(s))"
        )


def _echo_plan(plan: MigrationPlan) -> None:
    if not plan:
        click.echo("No pending migrations")
        return
    for step in plan.steps:
        verb = "apply " if step.direction is Direction.UP else "revert"
        click.echo(f"  {verb} {step.version}: {step.migration.description}")


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "-m",
    "--migrations-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of migration files (overrides config).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    migrations_dir: Path | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    """stepladder - versioned schema migrations.

    Applies and reverts migration files against a database, in version order.
    """
    ctx.ensure_object(dict)

    try:
        config = Config.load_or_default(config_file)
    except (ValueError, yaml.YAMLError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)

    ctx.obj["config"] = config
    ctx.obj["migrations_dir"] = migrations_dir or config.migrations.directory

    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json
    setup_logging(json_output=effective_log_json, level=effective_log_level)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"stepladder {__version__}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show migration status."""
    try:
        current = _get_migrator(ctx).status()
    except COMMAND_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    config = ctx.obj["config"]
    click.echo(f"Database: {config.database.url}")
    click.echo(f"Current version: {_format_version(current.current_version)}")
    click.echo(f"Applied migrations: {len(current.applied)}")

    if current.pending:
        click.echo(f"Pending migrations: {len(current.pending)}")
        for migration in current.pending:
            click.echo(f"  {migration.version}: {migration.description}")
    else:
        click.echo("No pending migrations")

    if current.unregistered:
        versions = ", ".join(str(v) for v in current.unregistered)
        click.echo(f"Applied but not registered: {versions}")


@cli.command()
@click.option(
    "--target",
    type=int,
    default=None,
    help="Target version, inclusive (default: latest).",
)
@click.pass_context
def plan(ctx: click.Context, target: int | None) -> None:
    """Show the steps a migration would run, without running them."""
    try:
        migrator = _get_migrator(ctx)
        result = migrator.plan_up() if target is None else migrator.plan(target)
    except COMMAND_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    _echo_plan(result)


@cli.command()
@click.option(
    "--target",
    type=int,
    default=None,
    help="Target version, inclusive (default: latest).",
)
@click.pass_context
def up(ctx: click.Context, target: int | None) -> None:
    """Apply pending migrations."""
    if target is None:
        _run(ctx, lambda m: m.migrate_up())
    else:
        _run(ctx, lambda m: m.migrate_to(target))


@cli.command()
@click.option(
    "--target",
    type=int,
    default=None,
    help="Version to keep, inclusive (default: revert everything).",
)
@click.pass_context
def down(ctx: click.Context, target: int | None) -> None:
    """Revert applied migrations."""
    if target is None:
        _run(ctx, lambda m: m.migrate_down())
    else:
        _run(ctx, lambda m: m.migrate_to(target))
