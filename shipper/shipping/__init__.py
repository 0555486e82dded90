"""
Shipping module for backup-shipper.

This module handles the shipment of local backup archives:
- Local archive discovery
- Remote catalog listing
- Duplicate-upload guard
- Size-budget retention
- Orchestration and run recording
"""

from .scanner import LocalArchive, find_latest_archive
from .catalog import RemoteCatalog, RemoteEntry
from .retention import RetentionPolicy, evaluate_retention
from .idempotency import derive_target_key, is_already_uploaded
from .orchestrator import UploadOrchestrator, RunDecision, RunReport, plan_run
from .storage import S3Storage, StorageError
from .errors import ShipmentError, NoArchivesFound, CatalogUnavailable, EvictionFailed, UploadFailed

__all__ = [
    'LocalArchive',
    'find_latest_archive',
    'RemoteCatalog',
    'RemoteEntry',
    'RetentionPolicy',
    'evaluate_retention',
    'derive_target_key',
    'is_already_uploaded',
    'UploadOrchestrator',
    'RunDecision',
    'RunReport',
    'plan_run',
    'S3Storage',
    'StorageError',
    'ShipmentError',
    'NoArchivesFound',
    'CatalogUnavailable',
    'EvictionFailed',
    'UploadFailed'
]
