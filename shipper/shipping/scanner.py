"""
Local archive discovery.

Picks the most recently modified archive in the backups folder.
"""

import os
import logging
from datetime import datetime, timezone

from .errors import NoArchivesFound

logger = logging.getLogger(__name__)


ARCHIVE_SUFFIX = '.zip'


class LocalArchive:
    """A backup archive on local storage."""

    def __init__(self, name: str, path: str, modified_at: datetime, size_bytes: int = 0):
        self.name = name
        self.path = path
        self.modified_at = modified_at
        self.size_bytes = size_bytes

    def __eq__(self, other):
        if not isinstance(other, LocalArchive):
            return NotImplemented
        return self.path == other.path and self.modified_at == other.modified_at

    def __repr__(self):
        return f'<LocalArchive {self.name} modified={self.modified_at.isoformat()}>'


def find_latest_archive(directory: str, suffix: str = ARCHIVE_SUFFIX) -> LocalArchive:
    """
    Find the newest archive in a directory.

    Only regular files whose name ends with the suffix are considered. When two
    archives share a modification time the lexicographically greatest name wins.

    Args:
        directory: Backups folder to scan
        suffix: Archive file suffix (default: .zip)

    Returns:
        LocalArchive with the greatest modification time

    Raises:
        NoArchivesFound: If the directory is missing, unreadable, or holds no
            eligible archive
    """
    latest = None
    latest_sort_key = None

    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise NoArchivesFound(f"Cannot read backups folder {directory}: {e}")

    for entry in entries:
        if not entry.name.endswith(suffix):
            continue

        try:
            if not entry.is_file():
                continue
            stat = entry.stat()
        except OSError as e:
            # Removed or unreadable since the directory was listed
            logger.warning(f"Skipping {entry.path}: {e}")
            continue

        sort_key = (stat.st_mtime, entry.name)
        if latest_sort_key is None or sort_key > latest_sort_key:
            latest_sort_key = sort_key
            latest = LocalArchive(
                name=entry.name,
                path=entry.path,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                size_bytes=stat.st_size
            )

    if latest is None:
        raise NoArchivesFound(f"No {suffix} archives found in {directory}")

    return latest
