"""
Unit tests for the application factory (shipper/__init__.py).
"""

import logging

from shipper import create_app


def make_app(tmp_path):
    return create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'LOG_DIR': str(tmp_path / 'logs'),
        'SHIPPER_CONFIG_FILE': str(tmp_path / 'config' / 'config.toml'),
    })


class TestConfigureLogging:

    def test_repeated_create_app_does_not_stack_handlers(self, tmp_path):
        make_app(tmp_path)
        app = make_app(tmp_path)

        shipper_logger = logging.getLogger('shipper')
        assert shipper_logger is app.logger
        assert len(shipper_logger.handlers) == 2
        assert shipper_logger.propagate is False

    def test_message_written_once_to_log_file(self, tmp_path):
        make_app(tmp_path)
        app = make_app(tmp_path)

        app.logger.info('archive shipped')
        for handler in app.logger.handlers:
            handler.flush()

        log_file = tmp_path / 'logs' / 'backup-shipper.log'
        assert log_file.read_text().count('archive shipped') == 1

    def test_module_loggers_reach_app_handlers(self, tmp_path):
        app = make_app(tmp_path)

        logging.getLogger('shipper.shipping.orchestrator').info('evicted old archive')
        for handler in app.logger.handlers:
            handler.flush()

        log_file = tmp_path / 'logs' / 'backup-shipper.log'
        assert log_file.read_text().count('evicted old archive') == 1
