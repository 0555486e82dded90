"""
Remote catalog: what is currently stored under the backup namespace.
"""

from datetime import datetime
from typing import List

from .errors import CatalogUnavailable
from .storage import StorageError


class RemoteEntry:
    """One object stored under the backup prefix."""

    def __init__(self, key: str, size_bytes: int, modified_at: datetime):
        self.key = key
        self.size_bytes = size_bytes
        self.modified_at = modified_at

    def __eq__(self, other):
        if not isinstance(other, RemoteEntry):
            return NotImplemented
        return (self.key, self.size_bytes, self.modified_at) == (other.key, other.size_bytes, other.modified_at)

    def __repr__(self):
        return f'<RemoteEntry {self.key} size={self.size_bytes} modified={self.modified_at.isoformat()}>'


def namespace_prefix(prefix: str) -> str:
    """Listing prefix for a namespace: 'backups' -> 'backups/' so siblings like 'backups2/' stay out."""
    prefix = prefix.strip('/')
    return f'{prefix}/' if prefix else ''


class RemoteCatalog:
    """
    Fresh listing of the remote namespace.

    Nothing is cached; every call to list() queries the store.
    """

    def __init__(self, storage):
        self.storage = storage

    def list(self, prefix: str) -> List[RemoteEntry]:
        """
        List every archive stored under the namespace prefix.

        Folder marker objects (keys ending in '/') are left out.

        Args:
            prefix: Namespace prefix (without trailing slash)

        Returns:
            List of RemoteEntry

        Raises:
            CatalogUnavailable: If the listing call fails
        """
        try:
            objects = self.storage.list_objects(prefix=namespace_prefix(prefix))
        except StorageError as e:
            raise CatalogUnavailable(f"Cannot list remote archives under '{prefix}': {e}")

        # Keys ending in '/' are folder markers, not archives
        return [
            RemoteEntry(
                key=obj['Key'],
                size_bytes=int(obj['Size']),
                modified_at=obj['LastModified']
            )
            for obj in objects
            if not obj['Key'].endswith('/')
        ]
