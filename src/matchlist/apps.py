"""Application identity resolution.

Rules refer to apps by a stable package name so they survive restarts and
reinstalls, while live connections carry a volatile numeric identity (uid).
Resolvers translate between the two:

1. ``get(uid)`` maps a numeric identity to an :class:`AppDescriptor`
2. ``get_uid(package_name)`` maps a package name back to a uid, returning
   :data:`UID_NO_FILTER` when the app is not currently known
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import psutil

logger = logging.getLogger(__name__)

# Returned by get_uid() when a package name cannot be resolved.
UID_NO_FILTER = -1


@dataclass(frozen=True)
class AppDescriptor:
    """Resolved information about an installed/running application."""

    name: str
    package_name: str
    uid: int


@runtime_checkable
class AppsResolver(Protocol):
    """Protocol for app identity resolvers."""

    def get(self, uid: int, flags: int = 0) -> AppDescriptor | None:
        """Return the app owning *uid*, or None if unknown."""
        ...

    def get_uid(self, package_name: str) -> int:
        """Return the uid of *package_name*, or UID_NO_FILTER."""
        ...


class StaticAppsResolver:
    """Resolver backed by a fixed set of app descriptors."""

    def __init__(self, apps: list[AppDescriptor] | None = None) -> None:
        self._by_uid: dict[int, AppDescriptor] = {}
        self._by_package: dict[str, AppDescriptor] = {}
        for app in apps or ():
            self.register(app)

    def register(self, app: AppDescriptor) -> None:
        self._by_uid[app.uid] = app
        self._by_package[app.package_name] = app

    def unregister(self, package_name: str) -> None:
        app = self._by_package.pop(package_name, None)
        if app is not None and self._by_uid.get(app.uid) is app:
            del self._by_uid[app.uid]

    def get(self, uid: int, flags: int = 0) -> AppDescriptor | None:
        return self._by_uid.get(uid)

    def get_uid(self, package_name: str) -> int:
        app = self._by_package.get(package_name)
        return app.uid if app is not None else UID_NO_FILTER


@dataclass
class ProcessAppsResolver:
    """Resolves apps against the running processes using psutil.

    The package name of an app is its executable name; its numeric identity
    is the lowest pid currently running that executable. Results are cached
    for the lifetime of the resolver instance; call :meth:`refresh` to drop
    the cache when the process table is known to have changed.
    """

    _by_uid: dict[int, AppDescriptor | None] = field(default_factory=dict)
    _by_package: dict[str, int] = field(default_factory=dict)

    def refresh(self) -> None:
        self._by_uid.clear()
        self._by_package.clear()

    def get(self, uid: int, flags: int = 0) -> AppDescriptor | None:
        if uid in self._by_uid:
            return self._by_uid[uid]

        app = self._describe_pid(uid)
        self._by_uid[uid] = app
        return app

    def get_uid(self, package_name: str) -> int:
        if package_name in self._by_package:
            return self._by_package[package_name]

        uid = self._find_pid(package_name)
        if uid != UID_NO_FILTER:
            self._by_package[package_name] = uid
        return uid

    @staticmethod
    def _describe_pid(pid: int) -> AppDescriptor | None:
        try:
            proc = psutil.Process(pid)
            name = proc.name()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return None
        except ValueError:
            # negative pid
            return None
        if not name:
            return None
        return AppDescriptor(name=name, package_name=name, uid=pid)

    @staticmethod
    def _find_pid(package_name: str) -> int:
        found = UID_NO_FILTER
        for proc in psutil.process_iter(["pid", "name"]):
            info = proc.info
            if info.get("name") != package_name:
                continue
            pid = info["pid"]
            if found == UID_NO_FILTER or pid < found:
                found = pid

        if found == UID_NO_FILTER:
            logger.debug("No running process for %s", package_name)
        return found
