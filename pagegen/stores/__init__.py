"""Durable stores: the fingerprint ledger and manifest backups."""

from .backups import BackupManager, SnapshotInfo
from .hash_ledger import ChangeDetector, HashLedger, fingerprint

__all__ = ["BackupManager", "ChangeDetector", "HashLedger", "SnapshotInfo", "fingerprint"]
