"""Global configuration — XDG paths, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "matchlist"
    return Path.home() / ".local" / "share" / "matchlist"


@dataclass
class MatchListConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    store_path: Path | None = None
    default_list: str = "blocklist"
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.store_path is None:
            self.store_path = self.data_dir / "lists.yaml"

    @classmethod
    def load(cls) -> MatchListConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_store = os.environ.get("MATCHLIST_STORE")
        if env_store:
            config.store_path = Path(env_store).expanduser()

        env_list = os.environ.get("MATCHLIST_DEFAULT_LIST")
        if env_list:
            config.default_list = env_list

        return config
