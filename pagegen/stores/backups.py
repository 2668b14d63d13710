"""Timestamped manifest snapshots with count-based retention."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Mapping

from ..constants import BACKUP_PREFIX
from ..fs import atomic_write_text
from ..logging import get_logger
from ..models import Manifest

logger = get_logger("stores.backups")


@dataclass
class SnapshotInfo:
    """Describes a snapshot file on disk."""

    name: str
    path: Path
    size: int
    modified: datetime

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "path": str(self.path),
            "size": self.size,
            "modified": self.modified.isoformat().replace("+00:00", "Z"),
        }


class BackupManager:
    """Writes one snapshot per successful build and prunes beyond a retention count."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def snapshot(self, manifest: Manifest, hashes: Mapping[str, str] | None = None) -> Path:
        """Persist a snapshot of ``manifest``; the file name sorts by creation time."""
        self.directory.mkdir(parents=True, exist_ok=True)
        now = datetime.now(UTC)
        path = self._unique_path(now)
        payload = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "manifest": manifest.to_dict(),
            "statistics": manifest.statistics.to_dict(),
            "fileHashes": dict(sorted((hashes or {}).items())),
        }
        atomic_write_text(path, json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n")
        logger.debug("Backup snapshot written to %s", path)
        return path

    def prune(self, retention_count: int) -> List[Path]:
        """Delete all but the ``retention_count`` most recent snapshots; returns deleted paths."""
        snapshots = self._collect()
        if len(snapshots) <= retention_count:
            return []
        deleted: List[Path] = []
        for info in snapshots[max(retention_count, 0):]:
            try:
                info.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Could not delete old backup %s: %s", info.path, exc)
                continue
            deleted.append(info.path)
        if deleted:
            logger.info("Pruned %d old backup(s)", len(deleted))
        return deleted

    def list_snapshots(self) -> List[SnapshotInfo]:
        """Return snapshots newest first."""
        return self._collect()

    def _collect(self) -> List[SnapshotInfo]:
        if not self.directory.is_dir():
            return []
        entries: List[tuple[int, str, SnapshotInfo]] = []
        for path in self.directory.iterdir():
            if not (path.name.startswith(BACKUP_PREFIX) and path.suffix == ".json"):
                continue
            try:
                stat_result = path.stat()
            except OSError:
                continue
            info = SnapshotInfo(
                name=path.name,
                path=path,
                size=stat_result.st_size,
                modified=datetime.fromtimestamp(stat_result.st_mtime, UTC),
            )
            entries.append((stat_result.st_mtime_ns, path.name, info))
        entries.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [info for _, _, info in entries]

    def _unique_path(self, now: datetime) -> Path:
        stamp = now.strftime("%Y%m%dT%H%M%S%fZ")
        counter = 0
        candidate = self.directory / f"{BACKUP_PREFIX}{stamp}-{counter:02d}.json"
        while candidate.exists():
            counter += 1
            candidate = self.directory / f"{BACKUP_PREFIX}{stamp}-{counter:02d}.json"
        return candidate


__all__ = ["BackupManager", "SnapshotInfo"]
