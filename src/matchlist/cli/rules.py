"""CLI commands that inspect and edit a list."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from matchlist.cli.common import RULE_TYPE_CHOICE, open_list, save_list
from matchlist.rules.match_list import MatchList
from matchlist.rules.models import Rule, RuleType
from matchlist.storage.prefs import MemoryStore

console = Console(stderr=True)


@click.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Show the rules of the list."""
    match_list = open_list(ctx)

    if match_list.is_empty():
        console.print(f"[dim]{match_list.pref_name} is empty.[/dim]")
        return

    table = Table(title=match_list.pref_name)
    table.add_column("Type", style="bold")
    table.add_column("Value")
    table.add_column("Label", style="dim")
    for rule in match_list.iter_rules():
        table.add_row(rule.type.name, rule.value, rule.label)
    Console().print(table)


@click.command()
@click.argument("rule_type", metavar="TYPE", type=RULE_TYPE_CHOICE)
@click.argument("value")
@click.pass_context
def add(ctx: click.Context, rule_type: str, value: str) -> None:
    """Add a rule. APP rules accept a package name or a numeric uid."""
    match_list = open_list(ctx)
    tp = RuleType[rule_type.upper()]

    if tp is RuleType.APP and value.isdigit():
        added = match_list.add_app_uid(int(value))
    else:
        added = match_list.add_rule(tp, value)

    if not added:
        console.print(f"[yellow]Not added:[/yellow] {tp.name} {value}")
        return

    save_list(match_list)
    console.print(f"[green]Added[/green] {tp.name} {value}")


@click.command()
@click.argument("rule_type", metavar="TYPE", type=RULE_TYPE_CHOICE)
@click.argument("value")
@click.pass_context
def remove(ctx: click.Context, rule_type: str, value: str) -> None:
    """Remove a rule."""
    match_list = open_list(ctx)
    tp = RuleType[rule_type.upper()]

    if tp is RuleType.APP and value.isdigit():
        removed = match_list.remove_app_uid(int(value))
    else:
        removed = match_list.remove_rule(Rule(tp, value))

    if not removed:
        console.print(f"[yellow]No such rule:[/yellow] {tp.name} {value}")
        return

    save_list(match_list)
    console.print(f"[green]Removed[/green] {tp.name} {value}")


@click.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Remove every rule from the list."""
    match_list = open_list(ctx)
    match_list.clear()
    save_list(match_list)
    console.print(f"[green]Cleared[/green] {match_list.pref_name}")


@click.command()
@click.option("--pretty", is_flag=True, help="Indent the JSON output.")
@click.pass_context
def dump(ctx: click.Context, pretty: bool) -> None:
    """Print the list as a JSON document."""
    match_list = open_list(ctx)
    click.echo(match_list.to_json(pretty=pretty))


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_(ctx: click.Context, path: str) -> None:
    """Merge the rules of a JSON list document into the list."""
    match_list = open_list(ctx)

    other = MatchList(MemoryStore(), "import", match_list.resolver)
    if not other.from_json(Path(path).read_text(encoding="utf-8")):
        console.print(f"[red]Error:[/red] {path} is not a valid list document")
        sys.exit(1)

    num_added = match_list.add_rules(other)
    if num_added > 0:
        save_list(match_list)
    console.print(f"[green]Imported {num_added} rule(s)[/green] into {match_list.pref_name}")


@click.command()
@click.pass_context
def export(ctx: click.Context) -> None:
    """Print the hosts, ips and app uids of the list as JSON."""
    match_list = open_list(ctx)
    descriptor = match_list.to_list_descriptor()
    click.echo(json.dumps(descriptor.to_dict(), indent=2))
