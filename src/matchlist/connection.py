"""Connection record consumed by list matching."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ConnectionDescriptor:
    """The parts of an observed connection that lists can match on."""

    uid: int
    dst_ip: str
    country: str = ""
    l7proto: str = ""
    info: str = ""
    dst_port: int = 0
    protocol: str = "tcp"
