"""Tests for logging module."""
import logging

import pytest

from nodebox import setup_logging
from nodebox.core.logging import get_logger


@pytest.fixture(autouse=True)
def restore_levels():
    """Put nodebox logger levels back after each test."""
    names = [n for n in logging.root.manager.loggerDict if n == 'nodebox' or n.startswith('nodebox.')]
    levels = {n: logging.getLogger(n).level for n in names}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_get_logger_with_name(self):
        logger = get_logger('nodebox.test_module')

        assert logger.name == 'nodebox.test_module'
        assert isinstance(logger, logging.Logger)

    def test_propagates_to_root(self):
        assert get_logger('nodebox.propagating').propagate

    def test_same_instance_per_name(self):
        assert get_logger('nodebox.same') is get_logger('nodebox.same')


class TestSetupLogging:
    """Test suite for setup_logging function."""

    def test_sets_package_level(self):
        setup_logging(logging.DEBUG)

        assert logging.getLogger('nodebox').level == logging.DEBUG

    def test_applies_to_existing_module_loggers(self):
        logger = get_logger('nodebox.core.some_module')
        logger.setLevel(logging.WARNING)

        setup_logging(logging.INFO)

        assert logger.level == logging.INFO

    def test_leaves_other_loggers_alone(self):
        other = logging.getLogger('somebody.else')
        other.setLevel(logging.ERROR)

        setup_logging(logging.DEBUG)

        assert other.level == logging.ERROR
