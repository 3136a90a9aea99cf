"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from matchlist import __version__
from matchlist.config import MatchListConfig


@click.group()
@click.version_option(version=__version__, prog_name="matchlist")
@click.option(
    "--store",
    "-s",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the YAML preference file holding the lists.",
)
@click.option(
    "--list",
    "-l",
    "list_name",
    default=None,
    help="Name of the list to operate on.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(
    ctx: click.Context,
    store: str | None,
    list_name: str | None,
    verbose: bool,
) -> None:
    """matchlist — manage the rule lists used to classify connections."""
    config = MatchListConfig.load()
    if store:
        config.store_path = Path(store)
    if list_name:
        config.default_list = list_name
    config.verbose = verbose

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from matchlist.cli.check import check  # noqa: F811
    from matchlist.cli.rules import add, clear, dump, export, import_, remove, show  # noqa: F811

    main.add_command(show)
    main.add_command(add)
    main.add_command(remove)
    main.add_command(clear)
    main.add_command(dump)
    main.add_command(import_)
    main.add_command(export)
    main.add_command(check)


_register_commands()
