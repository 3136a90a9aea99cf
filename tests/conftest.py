"""Shared test fixtures."""

from __future__ import annotations

import pytest

from matchlist.apps import AppDescriptor, StaticAppsResolver
from matchlist.rules.match_list import MatchList
from matchlist.storage.prefs import MemoryStore

LIST_NAME = "blocklist"


@pytest.fixture
def resolver() -> StaticAppsResolver:
    return StaticAppsResolver(
        [
            AppDescriptor(name="Example", package_name="com.example.app", uid=10023),
            AppDescriptor(name="Browser", package_name="org.browser", uid=10050),
            AppDescriptor(name="Mail", package_name="org.mail", uid=10077),
        ]
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def match_list(store: MemoryStore, resolver: StaticAppsResolver) -> MatchList:
    return MatchList(store, LIST_NAME, resolver)
