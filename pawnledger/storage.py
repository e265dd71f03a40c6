"""Record store for PawnLedger.

The local database is the authoritative copy and is written synchronously.
In remote mode every write is then mirrored to the repository on a best
effort basis: a mirror failure is logged, the collection is flagged as
unsynced, and the local write stands.
"""
import json
from dataclasses import dataclass, field
from typing import Dict, List

from pawnledger.config import COLLECTIONS, REMOTE_FILES, LocalMode, RemoteMode
from pawnledger.exceptions import ConfigurationError, StorageError
from pawnledger.logging import get_logger
from pawnledger.result import ErrorType, Result, SyncStatus

logger = get_logger(__name__)

UNSYNCED_KEY_PREFIX = "unsynced:"


@dataclass
class SyncReport:
    """Per-collection outcome of an explicit sync action."""
    synced: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class RecordStore:
    """Named collections of records with get / replace-all semantics."""

    def __init__(self, db_manager, mode=None, mirror=None):
        """Initialize RecordStore.

        Args:
            db_manager: DatabaseManager holding the local copy.
            mode: LocalMode or RemoteMode (default: LocalMode()).
            mirror: GitHubMirror used in remote mode. Built from the mode's
                config when omitted.
        """
        self.db = db_manager
        self.mode = mode or LocalMode()
        self._mirror = mirror

    @property
    def is_remote(self) -> bool:
        return isinstance(self.mode, RemoteMode)

    @property
    def mirror(self):
        """Lazy-load the mirror so local-only stores never touch the network stack."""
        if self._mirror is None and self.is_remote:
            from pawnledger.remote import GitHubMirror
            self._mirror = GitHubMirror(self.mode.github)
        return self._mirror

    @staticmethod
    def _check_name(name):
        if name not in COLLECTIONS:
            raise StorageError(f"Unknown collection '{name}'", {'collection': name})

    def read_collection(self, name):
        """Return the ordered records of a collection (empty list if absent)."""
        self._check_name(name)
        return self.db.read_collection(name)

    def write_collection(self, name, records) -> Result:
        """Replace a collection.

        Returns:
            Result whose value is the SyncStatus. A failed mirror yields a
            failed Result with SyncStatus.UNSYNCED; the local write has
            still happened.

        Raises:
            StorageError: If the local write fails.
        """
        return self.write_collections({name: records})

    def write_collections(self, collections: Dict[str, list]) -> Result:
        """Replace several collections in one local transaction, then mirror them."""
        for name in collections:
            self._check_name(name)

        with self.db.transaction():
            for name, records in collections.items():
                self.db.write_collection(name, records)

        if not self.is_remote:
            return Result.ok(SyncStatus.LOCAL)

        errors = {}
        for name, records in collections.items():
            try:
                self._push(name, records)
            except StorageError as e:
                logger.warning("Saved %s locally only; mirror failed: %s", name, e)
                self.db.set_setting(UNSYNCED_KEY_PREFIX + name, "1")
                errors[name] = str(e)

        if errors:
            return Result.fail(
                f"Saved locally only; sync failed for {', '.join(sorted(errors))}",
                ErrorType.SYNC,
                value=SyncStatus.UNSYNCED,
            )
        return Result.ok(SyncStatus.SYNCED)

    def _push(self, name, records):
        content = json.dumps(records, indent=2, ensure_ascii=False)
        self.mirror.write_remote_file(REMOTE_FILES[name], content)
        self.db.delete_setting(UNSYNCED_KEY_PREFIX + name)

    def unsynced_collections(self):
        """Collections whose latest local write has not reached the mirror."""
        return [name for name in COLLECTIONS
                if self.db.get_setting(UNSYNCED_KEY_PREFIX + name) is not None]

    def _require_remote(self):
        if not self.is_remote:
            details = {}
            if self.mode.reason:
                details['reason'] = self.mode.reason
            raise ConfigurationError("Remote sync is not configured; running local-only", details)

    def sync_to_remote(self) -> SyncReport:
        """Push every local collection to the mirror.

        Raises:
            ConfigurationError: If the store is not in remote mode.
        """
        self._require_remote()
        report = SyncReport()
        for name in COLLECTIONS:
            try:
                self._push(name, self.db.read_collection(name))
                report.synced.append(name)
            except StorageError as e:
                logger.warning("Push of %s failed: %s", name, e)
                self.db.set_setting(UNSYNCED_KEY_PREFIX + name, "1")
                report.failed[name] = str(e)
        logger.info("Sync to remote: %d synced, %d failed", len(report.synced), len(report.failed))
        return report

    def sync_from_remote(self) -> SyncReport:
        """Replace local collections with the mirror's copies.

        A collection with no remote file keeps its local records.

        Raises:
            ConfigurationError: If the store is not in remote mode.
        """
        self._require_remote()
        report = SyncReport()
        for name in COLLECTIONS:
            try:
                remote_file = self.mirror.read_remote_file(REMOTE_FILES[name])
                if remote_file is None:
                    report.missing.append(name)
                    continue
                records = json.loads(remote_file.content)
                if not isinstance(records, list):
                    raise StorageError(f"Remote {name} is not a JSON array", {'collection': name})
            except json.JSONDecodeError as e:
                logger.warning("Remote %s is not valid JSON, keeping local data: %s", name, e)
                report.failed[name] = f"Remote {name} is not valid JSON: {e}"
                continue
            except StorageError as e:
                logger.warning("Pull of %s failed, keeping local data: %s", name, e)
                report.failed[name] = str(e)
                continue

            self.db.write_collection(name, records)
            self.db.delete_setting(UNSYNCED_KEY_PREFIX + name)
            report.synced.append(name)
        logger.info("Sync from remote: %d synced, %d missing, %d failed",
                    len(report.synced), len(report.missing), len(report.failed))
        return report
