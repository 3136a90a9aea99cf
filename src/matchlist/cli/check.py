"""CLI command: matchlist check — test a connection against the list."""

from __future__ import annotations

import click
from rich.console import Console

from matchlist.cli.common import open_list
from matchlist.connection import ConnectionDescriptor

console = Console()


@click.command()
@click.option("--uid", type=int, default=-1, help="Numeric app identity (pid).")
@click.option("--ip", "dst_ip", default="", help="Destination IP address.")
@click.option("--host", default="", help="Destination host name.")
@click.option("--proto", default="", help="Application protocol, e.g. HTTPS.")
@click.option("--country", default="", help="ISO country code.")
@click.pass_context
def check(
    ctx: click.Context,
    uid: int,
    dst_ip: str,
    host: str,
    proto: str,
    country: str,
) -> None:
    """Report whether a connection matches the list."""
    match_list = open_list(ctx)
    conn = ConnectionDescriptor(
        uid=uid,
        dst_ip=dst_ip,
        country=country,
        l7proto=proto,
        info=host,
    )

    if match_list.matches(conn):
        console.print(f"[bold red]match[/bold red] in {match_list.pref_name}")
    else:
        console.print(f"[green]no match[/green] in {match_list.pref_name}")
