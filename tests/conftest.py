"""
Shared pytest fixtures for backup-shipper tests.

This module provides fixtures for:
- Flask app, database and CLI runner
- A backups folder populated with archives
- A settings file pointing at that folder
- Mock fixtures for S3 (moto) and for the storage handler
"""

import os
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import boto3
from moto import mock_aws

from shipper import create_app, db as _db
from shipper.shipping.storage import S3Storage


# Fixed modification times for local archives
OLDER_MTIME = datetime(2024, 1, 14, 2, 0, tzinfo=timezone.utc).timestamp()
NEWER_MTIME = datetime(2024, 1, 15, 2, 0, tzinfo=timezone.utc).timestamp()


@pytest.fixture(scope='function')
def app(tmp_path):
    """
    Create Flask app with test configuration.

    Uses in-memory SQLite database for fast, isolated tests.
    """
    app = create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'LOG_DIR': str(tmp_path / 'logs'),
        'SHIPPER_CONFIG_FILE': str(tmp_path / 'config' / 'config.toml'),
    })

    yield app


@pytest.fixture(scope='function')
def db(app):
    """
    Create database with all tables.

    Each test gets a fresh database.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Flask test client for making HTTP requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Flask CLI test runner."""
    return app.test_cli_runner()


@pytest.fixture
def make_archive():
    """
    Factory writing a file with a fixed modification time.

    Usage: make_archive(directory, 'b.zip', mtime, size=16)
    """
    def _make(directory, name, mtime, size=16):
        path = directory / name
        path.write_bytes(b'x' * size)
        os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def backups_dir(tmp_path, make_archive):
    """
    Backups folder with:
    - a.zip (older)
    - b.zip (newer, the one to ship)
    - notes.txt (newest, not an archive)
    """
    folder = tmp_path / 'backups'
    folder.mkdir()
    make_archive(folder, 'a.zip', OLDER_MTIME, size=32)
    make_archive(folder, 'b.zip', NEWER_MTIME, size=64)
    make_archive(folder, 'notes.txt', NEWER_MTIME + 3600)
    return folder


@pytest.fixture
def write_settings(tmp_path):
    """
    Factory writing a settings file.

    Keyword arguments override values in the [aws] / [backups] sections.
    """
    def _write(backups_folder, max_backup_size=1000, **aws_overrides):
        aws = {
            'AWS_ACCESS_KEY_ID': 'test_access_key',
            'AWS_SECRET_ACCESS_KEY': 'test_secret_key',
            'region': 'us-east-1',
            'bucket': 'test-bucket',
            'prefix': 'backups',
            'key_tag': 'wolfpackmc',
        }
        aws.update(aws_overrides)

        lines = ['[aws]']
        lines += [f'{key} = "{value}"' for key, value in aws.items()]
        lines += [
            '',
            '[backups]',
            f"backups_folder = '{backups_folder}'",
            f'max_backup_size = {max_backup_size!r}' if not isinstance(max_backup_size, str)
            else f'max_backup_size = "{max_backup_size}"',
        ]

        path = tmp_path / 'settings.toml'
        path.write_text('\n'.join(lines) + '\n')
        return str(path)

    return _write


@pytest.fixture
def settings_file(backups_dir, write_settings):
    """Valid settings file for the populated backups folder."""
    return write_settings(backups_dir)


@pytest.fixture
def mock_s3():
    """
    Mock AWS S3 service using moto.

    Creates a test bucket 'test-bucket' in us-east-1 region.
    """
    with mock_aws():
        s3 = boto3.resource('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3


@pytest.fixture
def storage():
    """
    MagicMock standing in for S3Storage.

    list_objects returns an empty catalog unless a test sets return_value.
    """
    mock_storage = MagicMock(spec=S3Storage)
    mock_storage.list_objects.return_value = []
    return mock_storage


def s3_object(key, size, modified):
    """Object dict shaped like S3Storage.list_objects output."""
    return {'Key': key, 'Size': size, 'LastModified': modified}


@pytest.fixture
def remote_object():
    return s3_object
