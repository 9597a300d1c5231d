"""A JSON record of the SDKs that have been installed."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SDK:
    """A software development kit that can be downloaded and installed."""

    name: str
    version: str = ""
    url: str = ""
    checksum: str = ""
    install_path: str = ""


@dataclass
class CacheEntry:
    """One installed SDK as stored in the cache file."""

    name: str = ""
    version: str = ""
    checksum: str = ""
    install_path: str = ""

    def _as_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "version": self.version,
            "checksum": self.checksum,
            "installPath": self.install_path,
        }

    @classmethod
    def _from_dict(cls, payload: Any) -> CacheEntry:
        if not isinstance(payload, dict):
            raise ValueError("cache entry must be a JSON object")
        return cls(
            name=payload.get("name") or "",
            version=payload.get("version") or "",
            checksum=payload.get("checksum") or "",
            install_path=payload.get("installPath") or "",
        )


@dataclass
class Cache:
    """The set of installed SDKs, kept in a JSON file at ``path``."""

    path: str
    entries: dict[str, CacheEntry] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str) -> Cache:
        """Read the cache at ``path``; a missing or empty file gives an empty cache."""
        cache = cls(path=path)
        if not os.path.exists(path):
            return cache
        with open(path, "rb") as handle:
            data = handle.read()
        if not data:
            return cache
        payload = json.loads(data)
        if not isinstance(payload, dict):
            raise ValueError("cache file must hold a JSON object")
        raw_entries = payload.get("entries")
        if raw_entries is None:
            return cache
        if not isinstance(raw_entries, dict):
            raise ValueError("cache entries must be a JSON object")
        cache.entries = {
            name: CacheEntry._from_dict(entry) for name, entry in raw_entries.items()
        }
        return cache

    def save(self) -> None:
        """Write the cache to its file as indented JSON."""
        document = {
            "entries": {
                name: self.entries[name]._as_dict() for name in sorted(self.entries)
            }
        }
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(document, indent=2, ensure_ascii=False))

    def is_cached(self, sdk: SDK) -> bool:
        """Return True if ``sdk`` is recorded with the same checksum and path."""
        entry = self.entries.get(sdk.name)
        if entry is None:
            return False
        return entry.checksum == sdk.checksum and entry.install_path == sdk.install_path

    def add(self, sdk: SDK) -> None:
        """Record ``sdk`` as installed."""
        self.entries[sdk.name] = CacheEntry(
            name=sdk.name,
            version=sdk.version,
            checksum=sdk.checksum,
            install_path=sdk.install_path,
        )