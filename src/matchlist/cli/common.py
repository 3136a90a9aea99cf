"""Helpers shared by the CLI commands."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from matchlist.apps import AppsResolver, ProcessAppsResolver
from matchlist.config import MatchListConfig
from matchlist.rules.match_list import MatchList
from matchlist.rules.models import RuleType
from matchlist.storage.prefs import PreferenceFileError, YamlPreferenceStore

RULE_TYPE_CHOICE = click.Choice([t.name for t in RuleType], case_sensitive=False)


def make_resolver() -> AppsResolver:
    return ProcessAppsResolver()


def open_list(ctx: click.Context) -> MatchList:
    """Open the list selected by the global options."""
    config: MatchListConfig = ctx.obj["config"]
    store = YamlPreferenceStore(config.store_path)
    return MatchList(store, config.default_list, make_resolver())


def save_list(match_list: MatchList) -> None:
    """Persist *match_list*, exiting with an error if the store refuses."""
    try:
        match_list.save()
    except PreferenceFileError as exc:
        Console(stderr=True).print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
