"""
Failure taxonomy for a shipment run.

Each error names the step of the run it belongs to, so callers can report
which step failed without inspecting the exception type.
"""


class ShipmentError(Exception):
    """Base class for shipment failures."""
    step = 'shipment'


class NoArchivesFound(ShipmentError):
    """Raised when the backups folder holds no eligible archive or cannot be read."""
    step = 'scan'


class CatalogUnavailable(ShipmentError):
    """Raised when the remote listing fails; nothing destructive has happened yet."""
    step = 'catalog'


class EvictionFailed(ShipmentError):
    """Raised when deleting the oldest remote archive fails. Not fatal to the run."""
    step = 'evict'


class UploadFailed(ShipmentError):
    """Raised when the candidate archive could not be uploaded."""
    step = 'upload'
