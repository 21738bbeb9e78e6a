"""
Tests for logging setup.

Run: python3 -m pytest tests/test_logging_config.py -v
"""

import io
import logging
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from utils import logging_config
from utils.logging_config import ColoredFormatter, parse_level, setup_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it"""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    initialized = logging_config._initialized
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging_config._initialized = initialized


class TestParseLevel:
    def test_names_and_numbers(self):
        assert parse_level('debug') == logging.DEBUG
        assert parse_level(' WARNING ') == logging.WARNING
        assert parse_level(logging.ERROR) == logging.ERROR

    def test_unknown_name_defaults_to_info(self):
        assert parse_level('LOUD') == logging.INFO


class TestColoredFormatter:
    def test_no_colors_off_terminal(self):
        formatter = ColoredFormatter('%(levelname)s %(message)s', stream=io.StringIO())
        record = logging.LogRecord('t', logging.WARNING, __file__, 1, 'hello', None, None)
        assert formatter.format(record) == 'WARNING hello'

    def test_colors_restore_levelname(self):
        class Tty(io.StringIO):
            def isatty(self):
                return True

        formatter = ColoredFormatter('%(levelname)s %(message)s', stream=Tty())
        record = logging.LogRecord('t', logging.ERROR, __file__, 1, 'boom', None, None)
        assert '\033[31m' in formatter.format(record)
        assert record.levelname == 'ERROR'


class TestSetupLogging:
    def test_level_and_file(self, restore_root_logger):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / 'logs' / 'netctl.log'
            setup_logging(level='DEBUG', log_file=str(log_file), force=True)

            root = restore_root_logger
            assert root.level == logging.DEBUG
            assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
            assert logging.getLogger('werkzeug').level == logging.WARNING

            logging.getLogger('netctl.test').info('written to file')
            for handler in root.handlers:
                handler.flush()
            assert 'written to file' in log_file.read_text()

    def test_second_call_is_noop(self, restore_root_logger):
        setup_logging(level='INFO', force=True)
        setup_logging(level='DEBUG')
        assert restore_root_logger.level == logging.INFO


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
