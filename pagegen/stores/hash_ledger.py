"""Persistent fingerprint ledger and the change detector built on it."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..fs import atomic_write_text
from ..logging import get_logger

_LEDGER_VERSION = 1

logger = get_logger("stores.ledger")


def fingerprint(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of the exact document bytes."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    return hashlib.sha256(data).hexdigest()


class HashLedger:
    """Maps source filenames to the fingerprint seen on the last processed build."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, str] = {}
        self._dirty = False
        self.loaded = False

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> "HashLedger":
        """Read the ledger from disk; any failure degrades to an empty ledger."""
        self._entries = {}
        self._dirty = False
        self.loaded = False
        if self._path is None:
            return self
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Hash ledger %s not found; every document will be rebuilt", self._path)
            return self
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Hash ledger %s unreadable (%s); every document will be rebuilt", self._path, exc)
            return self
        if not isinstance(data, dict) or data.get("version") != _LEDGER_VERSION:
            logger.warning("Hash ledger %s has an unknown format; every document will be rebuilt", self._path)
            return self
        files = data.get("files")
        if not isinstance(files, dict):
            logger.warning("Hash ledger %s has no file table; every document will be rebuilt", self._path)
            return self
        self._entries = {
            name: digest
            for name, digest in files.items()
            if isinstance(name, str) and isinstance(digest, str)
        }
        self.loaded = True
        return self

    def get(self, filename: str) -> Optional[str]:
        return self._entries.get(filename)

    def set(self, filename: str, digest: str) -> None:
        if self._entries.get(filename) != digest:
            self._entries[filename] = digest
            self._dirty = True

    def forget(self, filename: str) -> None:
        if self._entries.pop(filename, None) is not None:
            self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> list[str]:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        for key in removed:
            del self._entries[key]
        if removed:
            self._dirty = True
        return removed

    def snapshot(self) -> Dict[str, str]:
        return dict(sorted(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, filename: object) -> bool:
        return filename in self._entries

    def persist(self) -> None:
        """Write the ledger atomically. Raises ``OSError`` when the write fails."""
        if self._path is None:
            return
        if not self._dirty and self._path.exists():
            return
        payload = {"version": _LEDGER_VERSION, "files": self.snapshot()}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self._path, json.dumps(payload, indent=2, sort_keys=True) + "\n")
        self._dirty = False


class ChangeDetector:
    """Decides whether a document needs regeneration by comparing fingerprints."""

    def __init__(self, ledger: HashLedger) -> None:
        self.ledger = ledger

    def has_changed(self, filename: str, content: str | bytes) -> bool:
        """Return True when ``content`` differs from the ledger; always records the new fingerprint."""
        digest = fingerprint(content)
        previous = self.ledger.get(filename)
        self.ledger.set(filename, digest)
        return previous != digest


__all__ = ["ChangeDetector", "HashLedger", "fingerprint"]
