"""
Configuration for backup-shipper.

Two layers:
- Flask config classes (database, log directory, location of the settings file)
- ShipperSettings, loaded from the TOML settings file and validated before
  any storage client is created
"""

import os
import tomllib


DEFAULT_MAX_BACKUP_SIZE = 5_000_000_000
DEFAULT_REGION = 'us-east-1'
DEFAULT_BUCKET = 'wolfpackmc'
DEFAULT_PREFIX = 'backups'
DEFAULT_KEY_TAG = 'wolfpackmc'

ACCESS_KEY_PLACEHOLDER = '<key here>'
SECRET_KEY_PLACEHOLDER = '<secret here>'

EXAMPLE_CONFIG = f'''# backup-shipper settings

[aws]
AWS_ACCESS_KEY_ID = "{ACCESS_KEY_PLACEHOLDER}"
AWS_SECRET_ACCESS_KEY = "{SECRET_KEY_PLACEHOLDER}"
region = "{DEFAULT_REGION}"
bucket = "{DEFAULT_BUCKET}"
prefix = "{DEFAULT_PREFIX}"
key_tag = "{DEFAULT_KEY_TAG}"

[backups]
# Directory holding the .zip archives to ship
backups_folder = ""
# Total bytes allowed under the remote prefix before the oldest archive is evicted
max_backup_size = {DEFAULT_MAX_BACKUP_SIZE}
'''


def default_data_dir() -> str:
    """Return the per-user data directory (history database, logs)."""
    data_home = os.environ.get('XDG_DATA_HOME') or os.path.join(os.path.expanduser('~'), '.local', 'share')
    return os.path.join(data_home, 'backup-shipper')


def default_settings_path() -> str:
    """Return the per-user settings file location."""
    config_home = os.environ.get('XDG_CONFIG_HOME') or os.path.join(os.path.expanduser('~'), '.config')
    return os.path.join(config_home, 'backup-shipper', 'config.toml')


class Config:
    """Base configuration"""

    # Database
    DATA_DIR = os.environ.get('SHIPPER_DATA_DIR') or default_data_dir()
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f'sqlite:///{os.path.join(DATA_DIR, "backup-shipper.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Settings file and logs
    SHIPPER_CONFIG_FILE = os.environ.get('SHIPPER_CONFIG') or default_settings_path()
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(DATA_DIR, 'logs')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

    # Use local data directory for development
    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    DATA_DIR = os.path.join(BASE_DIR, 'data')
    SQLALCHEMY_DATABASE_URI = f'sqlite:///{os.path.join(DATA_DIR, "backup-shipper.db")}'
    LOG_DIR = os.path.join(DATA_DIR, 'logs')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(DevelopmentConfig):
    """Testing configuration"""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}


class ConfigInvalid(Exception):
    """Raised when the settings file is missing, malformed or incomplete."""
    step = 'config'


class ShipperSettings:
    """Validated settings for one shipment run."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        backups_folder: str,
        max_backup_size: int = DEFAULT_MAX_BACKUP_SIZE,
        bucket: str = DEFAULT_BUCKET,
        prefix: str = DEFAULT_PREFIX,
        key_tag: str = DEFAULT_KEY_TAG,
        region: str = DEFAULT_REGION
    ):
        self.access_key = access_key
        self.secret_key = secret_key
        self.backups_folder = backups_folder
        self.max_backup_size = max_backup_size
        self.bucket = bucket
        self.prefix = prefix
        self.key_tag = key_tag
        self.region = region

    def __repr__(self):
        return (
            f'<ShipperSettings bucket={self.bucket} prefix={self.prefix} '
            f'folder={self.backups_folder} max={self.max_backup_size}>'
        )


def load_settings(path: str) -> ShipperSettings:
    """
    Load and validate the TOML settings file.

    Args:
        path: Path to the settings file

    Returns:
        ShipperSettings instance

    Raises:
        ConfigInvalid: If the file is missing, unparsable, or any required value
            is unset or still a placeholder
    """
    try:
        with open(path, 'rb') as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigInvalid(f"Settings file not found: {path} (run 'init-config' to create one)")
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalid(f"Settings file is not valid TOML: {e}")
    except OSError as e:
        raise ConfigInvalid(f"Cannot read settings file {path}: {e}")

    aws = _section(data, 'aws')
    backups = _section(data, 'backups')

    access_key = _credential(aws, 'AWS_ACCESS_KEY_ID', ACCESS_KEY_PLACEHOLDER)
    secret_key = _credential(aws, 'AWS_SECRET_ACCESS_KEY', SECRET_KEY_PLACEHOLDER)

    backups_folder = backups.get('backups_folder', '')
    if not isinstance(backups_folder, str) or not backups_folder.strip():
        raise ConfigInvalid("backups_folder is not set in the settings file")
    backups_folder = os.path.expanduser(backups_folder)
    if not os.path.isdir(backups_folder):
        raise ConfigInvalid(f"backups_folder does not exist: {backups_folder}")

    max_backup_size = _max_backup_size(backups.get('max_backup_size', ''))

    bucket = _string(aws, 'bucket', DEFAULT_BUCKET)
    if not bucket:
        raise ConfigInvalid("bucket must not be empty")

    return ShipperSettings(
        access_key=access_key,
        secret_key=secret_key,
        backups_folder=backups_folder,
        max_backup_size=max_backup_size,
        bucket=bucket,
        prefix=_string(aws, 'prefix', DEFAULT_PREFIX).strip('/'),
        key_tag=_string(aws, 'key_tag', DEFAULT_KEY_TAG),
        region=_string(aws, 'region', DEFAULT_REGION) or DEFAULT_REGION
    )


def write_example_config(path: str, force: bool = False) -> str:
    """
    Write the placeholder settings template.

    Args:
        path: Destination path
        force: Overwrite an existing file

    Returns:
        The path written

    Raises:
        FileExistsError: If the file exists and force is False
    """
    if os.path.exists(path) and not force:
        raise FileExistsError(f"Settings file already exists: {path}")

    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(EXAMPLE_CONFIG)
    return path


def _section(data: dict, name: str) -> dict:
    section = data.get(name)
    if not isinstance(section, dict):
        raise ConfigInvalid(f"Missing [{name}] section in the settings file")
    return section


def _credential(aws: dict, name: str, placeholder: str) -> str:
    value = aws.get(name)
    if value is None:
        value = os.environ.get(name)
    if not isinstance(value, str) or not value.strip() or value == placeholder:
        raise ConfigInvalid(f"{name} is not set in the settings file")
    return value


def _string(section: dict, name: str, default: str) -> str:
    value = section.get(name, default)
    if not isinstance(value, str):
        raise ConfigInvalid(f"{name} must be a string, got {type(value).__name__}")
    return value


def _max_backup_size(value) -> int:
    # An empty string keeps the default, as in the shipped template
    if value == '' or value is None:
        return DEFAULT_MAX_BACKUP_SIZE
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigInvalid(f"max_backup_size must be an integer number of bytes, got {value!r}")
    if value <= 0:
        raise ConfigInvalid(f"max_backup_size must be positive, got {value}")
    return value
