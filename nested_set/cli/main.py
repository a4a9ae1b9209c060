"""Main CLI entry point for nested-set management commands."""

import click

from nested_set import __version__
from nested_set.cli.commands import tree
from nested_set.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="nested-set")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Nested-set CLI - inspect and repair interval-encoded trees.

    \b
    Command Groups:
      tree       Root initialisation, display, checks and repair

    \b
    Quick Start:
      nested-set tree init-root       # Create tables and the root row
      nested-set tree show            # Print the tree
      nested-set tree check           # Verify stored intervals
      nested-set tree rebuild         # Recompute intervals from parent_id
    """
    ctx.ensure_object(dict)


cli.add_command(tree.tree)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
