"""
folio CLI Main Entry Point

Usage:
    folio plugins init [--out config/plugins.yaml]
    folio plugins list [--config plugins.yaml] [--bare]
    folio plugins api [--config plugins.yaml]
    folio version
"""
import logging

import click

from .. import __version__
from .plugins_cmds import plugins


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("--verbose", "-v", is_flag=True, help="Log resolution details")
def cli(verbose: bool):
    """folio CLI - plugin resolution tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


cli.add_command(plugins)


@cli.command("version")
def version():
    """Show the folio version."""
    click.echo(f"folio {__version__}")


# Entry point
def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
