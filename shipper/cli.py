"""Command line interface for backup-shipper."""

import logging

import click
from flask import current_app
from flask.cli import FlaskGroup, with_appcontext

from shipper.config import load_settings, write_example_config, ConfigInvalid
from shipper.shipping.catalog import RemoteCatalog
from shipper.shipping.errors import CatalogUnavailable
from shipper.shipping.executor import execute_shipment
from shipper.shipping.retention import RetentionPolicy, evaluate_retention
from shipper.shipping.storage import S3Storage, StorageError

logger = logging.getLogger(__name__)

config_option = click.option(
    '--config', 'config_path', default=None, type=click.Path(dir_okay=False),
    help='Settings file (default: SHIPPER_CONFIG_FILE)'
)


def format_bytes(size: int) -> str:
    """Human-readable byte count."""
    value = float(size)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(value) < 1024 or unit == 'TB':
            return f"{value:.1f} {unit}" if unit != 'B' else f"{int(value)} B"
        value /= 1024


def _settings_path(config_path):
    return config_path or current_app.config['SHIPPER_CONFIG_FILE']


def _load_settings_or_exit(config_path):
    try:
        return load_settings(_settings_path(config_path))
    except ConfigInvalid as e:
        raise click.ClickException(f"config failed: {e}")


@click.command('ship')
@config_option
@with_appcontext
def ship_command(config_path):
    """Upload the newest local archive, evicting the oldest remote one if over budget."""
    record = execute_shipment(_settings_path(config_path))

    if record.eviction_error:
        click.echo(f"Warning: eviction failed: {record.eviction_error}", err=True)

    if record.status == 'failed':
        raise click.ClickException(f"{record.failed_step} failed: {record.error_message}")

    if record.status == 'skipped':
        click.echo(f"Latest backup already exists in the bucket: {record.target_key}")
        return

    if record.evicted_key:
        click.echo(f"Deleted oldest backup: {record.evicted_key}")
    click.echo(f"Uploaded {record.archive_name} as {record.target_key}")


@click.command('catalog')
@config_option
@with_appcontext
def catalog_command(config_path):
    """List remote archives and show the retention budget."""
    settings = _load_settings_or_exit(config_path)

    try:
        storage = S3Storage.from_settings(settings)
        entries = RemoteCatalog(storage).list(settings.prefix)
    except (StorageError, CatalogUnavailable) as e:
        raise click.ClickException(f"catalog failed: {e}")

    retention = evaluate_retention(entries, RetentionPolicy(settings.max_backup_size))

    if not entries:
        click.echo(f"No archives under s3://{settings.bucket}/{settings.prefix}")
    for entry in sorted(entries, key=lambda e: (e.modified_at, e.key)):
        click.echo(f"  {entry.modified_at.isoformat()}  {format_bytes(entry.size_bytes):>10}  {entry.key}")

    click.echo(
        f"\nTotal: {format_bytes(retention.cumulative_bytes)} "
        f"of {format_bytes(settings.max_backup_size)} budget"
    )
    if retention.should_evict:
        click.echo(f"Over budget; next upload evicts: {retention.eviction_candidate.key}")


@click.command('check')
@config_option
@with_appcontext
def check_command(config_path):
    """Validate the settings file and test bucket access."""
    settings = _load_settings_or_exit(config_path)
    click.echo(f"Settings OK: {settings.backups_folder} -> s3://{settings.bucket}/{settings.prefix}")

    try:
        S3Storage.from_settings(settings).test_connection()
    except StorageError as e:
        raise click.ClickException(f"connection failed: {e}")
    click.echo(f"Bucket reachable: {settings.bucket}")


@click.command('init-config')
@config_option
@click.option('--force', is_flag=True, help='Overwrite an existing settings file')
@with_appcontext
def init_config_command(config_path, force):
    """Write an example settings file to fill in."""
    path = _settings_path(config_path)
    try:
        write_example_config(path, force=force)
    except FileExistsError as e:
        raise click.ClickException(f"{e} (use --force to overwrite)")
    click.echo(f"Wrote example settings to {path}")


def register_commands(app):
    """Attach the shipper commands to the app's CLI group."""
    for command in (ship_command, catalog_command, check_command, init_config_command):
        app.cli.add_command(command)


def main():
    """Console script entry point."""
    from shipper import create_app
    cli = FlaskGroup(create_app=create_app, help='Ship backup archives to S3 with a size budget.')
    cli.main()
