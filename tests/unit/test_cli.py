"""
Unit tests for the command line interface (shipper/cli.py).
"""

from unittest.mock import patch

from shipper.cli import format_bytes
from shipper.config import EXAMPLE_CONFIG
from shipper.models import ShipmentHistory
from shipper.shipping.storage import StorageError


class TestShipCommand:

    def test_ship_uploads(self, db, runner, settings_file, mock_s3):
        result = runner.invoke(args=['ship', '--config', settings_file])

        assert result.exit_code == 0, result.output
        assert 'Uploaded b.zip as backups/wolfpackmc-b.zip' in result.output
        assert ShipmentHistory.query.one().status == 'uploaded'

    def test_ship_twice_reports_existing(self, db, runner, settings_file, mock_s3):
        runner.invoke(args=['ship', '--config', settings_file])
        result = runner.invoke(args=['ship', '--config', settings_file])

        assert result.exit_code == 0
        assert 'already exists' in result.output

    def test_ship_reports_eviction(self, db, runner, settings_file, mock_s3):
        mock_s3.Bucket('test-bucket').put_object(Key='backups/wolfpackmc-old.zip', Body=b'o' * 2000)

        result = runner.invoke(args=['ship', '--config', settings_file])

        assert result.exit_code == 0
        assert 'Deleted oldest backup: backups/wolfpackmc-old.zip' in result.output

    def test_ship_uses_app_settings_path(self, app, db, runner, settings_file, mock_s3):
        app.config['SHIPPER_CONFIG_FILE'] = settings_file

        result = runner.invoke(args=['ship'])

        assert result.exit_code == 0, result.output

    def test_ship_invalid_config_exits_nonzero(self, db, runner, tmp_path):
        result = runner.invoke(args=['ship', '--config', str(tmp_path / 'missing.toml')])

        assert result.exit_code == 1
        assert 'config failed' in result.output

    def test_ship_catalog_failure_names_step(self, db, runner, settings_file):
        with patch('shipper.shipping.executor.S3Storage') as mock_storage_class:
            mock_storage_class.from_settings.return_value.list_objects.side_effect = StorageError('timeout')
            result = runner.invoke(args=['ship', '--config', settings_file])

        assert result.exit_code == 1
        assert 'catalog failed' in result.output
        mock_storage_class.from_settings.return_value.upload.assert_not_called()


class TestCatalogCommand:

    def test_lists_entries_and_budget(self, runner, settings_file, mock_s3):
        bucket = mock_s3.Bucket('test-bucket')
        bucket.put_object(Key='backups/wolfpackmc-a.zip', Body=b'a' * 600)
        bucket.put_object(Key='backups/wolfpackmc-c.zip', Body=b'c' * 600)

        result = runner.invoke(args=['catalog', '--config', settings_file])

        assert result.exit_code == 0, result.output
        assert 'backups/wolfpackmc-a.zip' in result.output
        assert 'backups/wolfpackmc-c.zip' in result.output
        assert 'Total: 1.2 KB' in result.output
        assert 'next upload evicts' in result.output

    def test_empty_catalog(self, runner, settings_file, mock_s3):
        result = runner.invoke(args=['catalog', '--config', settings_file])

        assert result.exit_code == 0
        assert 'No archives under s3://test-bucket/backups' in result.output
        assert 'next upload evicts' not in result.output

    def test_missing_bucket(self, runner, backups_dir, write_settings, mock_s3):
        result = runner.invoke(args=['catalog', '--config', write_settings(backups_dir, bucket='nope')])

        assert result.exit_code == 1
        assert 'catalog failed' in result.output


class TestCheckCommand:

    def test_check_ok(self, runner, settings_file, mock_s3):
        result = runner.invoke(args=['check', '--config', settings_file])

        assert result.exit_code == 0
        assert 'Settings OK' in result.output
        assert 'Bucket reachable: test-bucket' in result.output

    def test_check_missing_bucket(self, runner, backups_dir, write_settings, mock_s3):
        result = runner.invoke(args=['check', '--config', write_settings(backups_dir, bucket='nope')])

        assert result.exit_code == 1
        assert 'Bucket does not exist' in result.output

    def test_check_placeholder_credentials(self, runner, backups_dir, write_settings):
        path = write_settings(backups_dir, AWS_SECRET_ACCESS_KEY='<secret here>')

        result = runner.invoke(args=['check', '--config', path])

        assert result.exit_code == 1
        assert 'AWS_SECRET_ACCESS_KEY' in result.output


class TestInitConfigCommand:

    def test_writes_example(self, runner, tmp_path):
        path = tmp_path / 'conf' / 'config.toml'

        result = runner.invoke(args=['init-config', '--config', str(path)])

        assert result.exit_code == 0
        assert path.read_text() == EXAMPLE_CONFIG

    def test_refuses_overwrite_without_force(self, runner, tmp_path):
        path = tmp_path / 'config.toml'
        path.write_text('# mine')

        result = runner.invoke(args=['init-config', '--config', str(path)])

        assert result.exit_code == 1
        assert '--force' in result.output
        assert path.read_text() == '# mine'

    def test_force(self, runner, tmp_path):
        path = tmp_path / 'config.toml'
        path.write_text('# mine')

        result = runner.invoke(args=['init-config', '--config', str(path), '--force'])

        assert result.exit_code == 0
        assert path.read_text() == EXAMPLE_CONFIG


class TestFormatBytes:

    def test_bytes(self):
        assert format_bytes(0) == '0 B'
        assert format_bytes(512) == '512 B'

    def test_larger_units(self):
        assert format_bytes(1536) == '1.5 KB'
        assert format_bytes(5_000_000_000) == '4.7 GB'
