"""
Duplicate-upload guard.

An archive maps to exactly one remote key; if that key already exists the
archive counts as shipped. Only key presence is checked, not content.
"""

from typing import Iterable

from .catalog import RemoteEntry


def derive_target_key(archive_name: str, prefix: str, key_tag: str) -> str:
    """
    Build the remote key for an archive: '<prefix>/<key_tag>-<archive_name>'.

    >>> derive_target_key('b.zip', 'backups', 'wolfpackmc')
    'backups/wolfpackmc-b.zip'
    """
    name = f'{key_tag}-{archive_name}' if key_tag else archive_name
    prefix = prefix.strip('/')
    return f'{prefix}/{name}' if prefix else name


def is_already_uploaded(target_key: str, entries: Iterable[RemoteEntry]) -> bool:
    return any(entry.key == target_key for entry in entries)
