"""
Shipment orchestrator - runs one shipment as a single linear pass.

Workflow:
1. Scan the backups folder for the newest archive
2. List the remote catalog
3. Stop if the archive's key is already present
4. Evaluate the retention budget
5. Evict the oldest remote archive if over budget (failure is not fatal)
6. Upload the archive
7. Report

No step is retried or revisited. Only steps 5 and 6 touch remote state.
"""

import logging
from datetime import datetime
from typing import Optional, List

from .catalog import RemoteCatalog, RemoteEntry
from .errors import EvictionFailed, UploadFailed
from .idempotency import derive_target_key, is_already_uploaded
from .retention import RetentionPolicy, evaluate_retention, total_size
from .scanner import LocalArchive, find_latest_archive, ARCHIVE_SUFFIX
from .storage import StorageError

logger = logging.getLogger(__name__)


class RunDecision:
    """Everything the orchestrator needs to act on, computed before any side effect."""

    def __init__(
        self,
        candidate: LocalArchive,
        target_key: str,
        already_uploaded: bool,
        cumulative_remote_bytes: int,
        eviction_candidate: Optional[RemoteEntry]
    ):
        self.candidate = candidate
        self.target_key = target_key
        self.already_uploaded = already_uploaded
        self.cumulative_remote_bytes = cumulative_remote_bytes
        self.eviction_candidate = eviction_candidate

    def __repr__(self):
        eviction = self.eviction_candidate.key if self.eviction_candidate else None
        return (
            f'<RunDecision key={self.target_key} already_uploaded={self.already_uploaded} '
            f'total={self.cumulative_remote_bytes} evict={eviction}>'
        )


def plan_run(
    candidate: LocalArchive,
    entries: List[RemoteEntry],
    policy: RetentionPolicy,
    prefix: str,
    key_tag: str
) -> RunDecision:
    """
    Decide what a run should do, without doing it.

    The idempotency check comes first: an archive that is already uploaded
    never leads to an eviction.

    Args:
        candidate: Archive selected by the scan
        entries: Remote catalog as listed at the start of the run
        policy: Retention budget
        prefix: Remote namespace prefix
        key_tag: Tag placed in front of the archive name in the remote key

    Returns:
        RunDecision
    """
    target_key = derive_target_key(candidate.name, prefix, key_tag)

    if is_already_uploaded(target_key, entries):
        return RunDecision(
            candidate=candidate,
            target_key=target_key,
            already_uploaded=True,
            cumulative_remote_bytes=total_size(entries),
            eviction_candidate=None
        )

    retention = evaluate_retention(entries, policy)
    return RunDecision(
        candidate=candidate,
        target_key=target_key,
        already_uploaded=False,
        cumulative_remote_bytes=retention.cumulative_bytes,
        eviction_candidate=retention.eviction_candidate if retention.should_evict else None
    )


class RunReport:
    """What a completed run did."""

    UPLOADED = 'uploaded'
    SKIPPED = 'skipped'

    def __init__(self, outcome: str, decision: RunDecision):
        self.outcome = outcome
        self.decision = decision
        self.evicted_key = None
        self.eviction_error = None

    @property
    def target_key(self) -> str:
        return self.decision.target_key

    @property
    def archive(self) -> LocalArchive:
        return self.decision.candidate

    def __repr__(self):
        return f'<RunReport outcome={self.outcome} key={self.target_key} evicted={self.evicted_key}>'


class UploadOrchestrator:
    """
    Sequences scan, catalog, idempotency check, retention, eviction and upload.
    """

    def __init__(
        self,
        storage,
        backups_folder: str,
        policy: RetentionPolicy,
        prefix: str,
        key_tag: str,
        suffix: str = ARCHIVE_SUFFIX
    ):
        """
        Initialize the orchestrator.

        Args:
            storage: Object store exposing list_objects, upload and delete (see S3Storage)
            backups_folder: Local directory holding the archives
            policy: Retention budget for the remote prefix
            prefix: Remote namespace prefix
            key_tag: Tag placed in front of archive names in remote keys
            suffix: Archive file suffix
        """
        self.storage = storage
        self.backups_folder = backups_folder
        self.policy = policy
        self.prefix = prefix
        self.key_tag = key_tag
        self.suffix = suffix
        self.catalog = RemoteCatalog(storage)
        self.report = None
        self.logs = []

    @classmethod
    def from_settings(cls, settings, storage) -> 'UploadOrchestrator':
        return cls(
            storage=storage,
            backups_folder=settings.backups_folder,
            policy=RetentionPolicy(settings.max_backup_size),
            prefix=settings.prefix,
            key_tag=settings.key_tag
        )

    def run(self) -> RunReport:
        """
        Execute one shipment.

        Returns:
            RunReport with outcome 'uploaded' or 'skipped'

        Raises:
            NoArchivesFound: Nothing to ship; no remote call was made
            CatalogUnavailable: Listing failed; nothing was deleted or uploaded
            UploadFailed: The archive could not be uploaded
        """
        # Step 1: Scan
        candidate = find_latest_archive(self.backups_folder, self.suffix)
        self._log(f"Latest archive: {candidate.name} ({candidate.size_bytes} bytes)")

        # Step 2: Catalog
        entries = self.catalog.list(self.prefix)
        self._log(f"Remote catalog: {len(entries)} entries under '{self.prefix}'")

        # Steps 3-4: Idempotency check, then retention
        decision = plan_run(candidate, entries, self.policy, self.prefix, self.key_tag)

        if decision.already_uploaded:
            self._log(f"Latest backup already exists in the bucket: {decision.target_key}")
            self.report = RunReport(RunReport.SKIPPED, decision)
            return self.report

        self._log(
            f"Remote total {decision.cumulative_remote_bytes} bytes "
            f"(budget {self.policy.max_total_bytes} bytes)"
        )

        report = RunReport(RunReport.UPLOADED, decision)
        self.report = report

        # Step 5: Evict if needed
        if decision.eviction_candidate is not None:
            self._evict(decision.eviction_candidate, report)

        # Step 6: Upload
        self._log(f"Uploading {candidate.name} to {decision.target_key}")
        try:
            self.storage.upload(candidate.path, decision.target_key)
        except StorageError as e:
            raise UploadFailed(f"Failed to upload {candidate.name} to {decision.target_key}: {e}")

        # Step 7: Done
        self._log(f"Uploaded {candidate.name} as {decision.target_key}")
        return report

    def _evict(self, entry: RemoteEntry, report: RunReport):
        self._log(
            f"Cumulative size exceeds the maximum allowed size, "
            f"deleting oldest backup: {entry.key} ({entry.size_bytes} bytes)"
        )
        try:
            self.storage.delete(entry.key)
        except StorageError as e:
            # A failed eviction never blocks the upload
            error = EvictionFailed(f"Failed to delete {entry.key}: {e}")
            report.eviction_error = str(error)
            self._log(f"Warning: {error}; continuing with upload", level=logging.WARNING)
            return

        report.evicted_key = entry.key
        self._log(f"Deleted oldest backup: {entry.key}")

    def _log(self, message: str, level: int = logging.INFO):
        """
        Add a log message with timestamp.

        Args:
            message: Log message
            level: Level for the module logger
        """
        timestamp = datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S UTC')
        self.logs.append(f"[{timestamp}] {message}")
        logger.log(level, message)
