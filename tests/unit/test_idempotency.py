"""
Unit tests for the duplicate-upload guard (shipper/shipping/idempotency.py).
"""

from datetime import datetime, timezone

from shipper.shipping.catalog import RemoteEntry
from shipper.shipping.idempotency import derive_target_key, is_already_uploaded


MODIFIED = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestDeriveTargetKey:

    def test_prefix_tag_and_name(self):
        assert derive_target_key('b.zip', 'backups', 'wolfpackmc') == 'backups/wolfpackmc-b.zip'

    def test_is_deterministic(self):
        assert derive_target_key('b.zip', 'backups', 'tag') == derive_target_key('b.zip', 'backups', 'tag')

    def test_strips_prefix_slashes(self):
        assert derive_target_key('b.zip', '/backups/', 'tag') == 'backups/tag-b.zip'

    def test_empty_prefix(self):
        assert derive_target_key('b.zip', '', 'tag') == 'tag-b.zip'

    def test_empty_tag(self):
        assert derive_target_key('b.zip', 'backups', '') == 'backups/b.zip'


class TestIsAlreadyUploaded:

    def test_exact_key_present(self):
        entries = [RemoteEntry('backups/wolfpackmc-b.zip', 10, MODIFIED)]

        assert is_already_uploaded('backups/wolfpackmc-b.zip', entries) is True

    def test_empty_catalog(self):
        assert is_already_uploaded('backups/wolfpackmc-b.zip', []) is False

    def test_similar_keys_do_not_match(self):
        entries = [
            RemoteEntry('backups/wolfpackmc-b.zip.old', 10, MODIFIED),
            RemoteEntry('backups/other-b.zip', 10, MODIFIED),
            RemoteEntry('archive/wolfpackmc-b.zip', 10, MODIFIED),
        ]

        assert is_already_uploaded('backups/wolfpackmc-b.zip', entries) is False

    def test_size_is_not_considered(self):
        entries = [RemoteEntry('backups/wolfpackmc-b.zip', 0, MODIFIED)]

        assert is_already_uploaded('backups/wolfpackmc-b.zip', entries) is True
