"""Key-value persistence for serialized lists."""

from matchlist.storage.prefs import (
    MemoryStore,
    PreferenceFileError,
    PreferenceStore,
    YamlPreferenceStore,
)

__all__ = ["MemoryStore", "PreferenceFileError", "PreferenceStore", "YamlPreferenceStore"]
