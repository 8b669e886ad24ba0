#!/usr/bin/env python3
"""
Main CLI Entry Point for jobledger

Provides the command-line interface for bulk transaction imports.
"""


import click

from ..core.config import get_config


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    jobledger - Construction Job-Cost Transaction Import

    Imports accounting-system exports, matches vendors, clients, and projects,
    classifies costs, and reconciles duplicates against recorded expenses.
    """
    ctx.ensure_object(dict)

    if config_env:
        import os

        os.environ["JOBLEDGER_ENV"] = config_env

    if debug:
        import logging
        import os

        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("jobledger").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = get_config()

    if verbose:
        click.echo(f"Environment: {ctx.obj['config'].environment.value}")
        click.echo(f"Data directory: {ctx.obj['config'].data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from jobledger import __version__

    click.echo(f"jobledger v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Store Directory: {config_obj.store_dir}")
    click.echo(f"  Reports Directory: {config_obj.reports_dir}")
    click.echo(f"  Auto-accept Threshold: {config_obj.matching.auto_accept_threshold}")
    click.echo(f"  Review Threshold: {config_obj.matching.review_threshold}")
    click.echo(f"  Auto-create Payees: {config_obj.importer.auto_create_payees}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


from .importer import import_group  # noqa: E402

main.add_command(import_group)


if __name__ == "__main__":
    main()
