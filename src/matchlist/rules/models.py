"""Rule data models — immutable values shared by the store, serializer and CLI."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class RuleType(enum.Enum):
    """What a rule matches on. Enum names are the persisted type tags."""

    APP = "app"
    IP = "ip"
    HOST = "host"
    PROTOCOL = "protocol"
    COUNTRY = "country"


# Type tags written by older releases
LEGACY_TYPE_ALIASES: dict[str, RuleType] = {
    "ROOT_DOMAIN": RuleType.HOST,
}


@dataclass(frozen=True)
class Rule:
    """A single list criterion. Identity is (type, value); label is display-only."""

    type: RuleType
    value: str
    label: str = field(default="", compare=False)

    @property
    def key(self) -> tuple[RuleType, str]:
        return (self.type, self.value)


@dataclass
class ListDescriptor:
    """Flat projection of a list for an external filtering engine.

    Only APP, HOST and IP rules can be represented. Apps are listed by their
    numeric identity as decimal strings.
    """

    apps: list[str] = field(default_factory=list)
    hosts: list[str] = field(default_factory=list)
    ips: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {"apps": list(self.apps), "hosts": list(self.hosts), "ips": list(self.ips)}


@runtime_checkable
class AppExemptions(Protocol):
    """Apps that must be left out of an exported list."""

    def contains_app(self, uid: int) -> bool:
        ...
