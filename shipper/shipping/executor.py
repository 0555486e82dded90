"""
Shipment executor - runs the orchestrator and records the run.

Workflow:
1. Create ShipmentHistory record (status: running)
2. Load and validate settings
3. Run the UploadOrchestrator
4. Update ShipmentHistory (status: uploaded/skipped/failed)
"""

import logging
from datetime import datetime

from shipper import db
from shipper.config import load_settings
from shipper.models import ShipmentHistory
from .orchestrator import UploadOrchestrator, RunReport
from .storage import S3Storage

logger = logging.getLogger(__name__)


class ShipmentExecutor:
    """
    Runs one shipment and keeps its history record up to date.
    """

    def __init__(self, settings_path: str, storage=None):
        """
        Initialize shipment executor.

        Args:
            settings_path: Path to the TOML settings file
            storage: Optional object store to use instead of building an S3Storage
        """
        self.settings_path = settings_path
        self.storage = storage
        self.history_record = None
        self.logs = []

    def execute(self) -> ShipmentHistory:
        """
        Execute the shipment.

        Failures are recorded on the returned record rather than raised.

        Returns:
            ShipmentHistory record with execution results
        """
        self.history_record = ShipmentHistory(
            status='running',
            started_at=datetime.utcnow()
        )
        db.session.add(self.history_record)
        db.session.commit()

        self._log(f"Starting shipment (settings: {self.settings_path})")
        orchestrator = None

        try:
            settings = load_settings(self.settings_path)
            storage = self.storage or S3Storage.from_settings(settings)
            orchestrator = UploadOrchestrator.from_settings(settings, storage)

            report = orchestrator.run()
            self._record_report(report)

        except Exception as e:
            # Keep what was decided before the failure
            if orchestrator is not None and orchestrator.report is not None:
                self._record_report(orchestrator.report)
            step = getattr(e, 'step', 'shipment')
            self.history_record.status = 'failed'
            self.history_record.failed_step = step
            self.history_record.error_message = str(e)
            if not hasattr(e, 'step'):
                logger.exception("Unexpected error during shipment")

        finally:
            if orchestrator is not None:
                self.logs.extend(orchestrator.logs)
            if self.history_record.status == 'failed':
                self._log(
                    f"Shipment failed at step '{self.history_record.failed_step}': "
                    f"{self.history_record.error_message}",
                    level=logging.ERROR
                )
            else:
                self._log(f"Shipment finished: {self.history_record.status}")

            self.history_record.completed_at = datetime.utcnow()
            self.history_record.logs = '\n'.join(self.logs)
            db.session.commit()

        return self.history_record

    def _record_report(self, report: RunReport):
        decision = report.decision
        record = self.history_record

        record.status = report.outcome
        record.archive_name = decision.candidate.name
        record.archive_size_bytes = decision.candidate.size_bytes
        record.target_key = decision.target_key
        record.cumulative_remote_bytes = decision.cumulative_remote_bytes
        record.evicted_key = report.evicted_key
        record.eviction_error = report.eviction_error

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


def execute_shipment(settings_path: str, storage=None) -> ShipmentHistory:
    """
    Run one shipment with the given settings file.

    Args:
        settings_path: Path to the TOML settings file
        storage: Optional object store override

    Returns:
        ShipmentHistory record with execution results
    """
    executor = ShipmentExecutor(settings_path, storage=storage)
    return executor.execute()
