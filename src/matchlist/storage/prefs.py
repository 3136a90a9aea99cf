"""Preference stores: named string slots holding serialized lists."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

logger = logging.getLogger(__name__)


@runtime_checkable
class PreferenceStore(Protocol):
    """Protocol for the key-value store a list persists into."""

    def read(self, key: str) -> str | None:
        """Return the value stored under *key*, or None if absent."""
        ...

    def write(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...


class MemoryStore:
    """In-process store, used for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1
class PreferenceFileError(ValueError):
    """The preference file exists but does not hold a YAML mapping."""


class YamlPreferenceStore:
    """All slots kept as one YAML mapping file.

    The file is created on first write and replaced atomically on every
    write. A file that cannot be parsed as a mapping reads as empty, but is
    never overwritten: ``write()`` raises PreferenceFileError instead.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self, key: str) -> str | None:
        try:
            data = self._load()
        except PreferenceFileError as exc:
            logger.warning("Failed to load preferences: %s", exc)
            return None

        value = data.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning("Ignoring non-string value for %s in %s", key, self.path)
            return None
        return value

    def write(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved %s to %s", key, self.path)

    def keys(self) -> list[str]:
        return sorted(self._load())

    def _load(self) -> dict:
        if not self.path.is_file():
            return {}

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise PreferenceFileError(f"Cannot parse {self.path}: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise PreferenceFileError(f"{self.path} does not hold a mapping")
        return data
