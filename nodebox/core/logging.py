"""Logging utilities for nodebox modules."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    The logger propagates to the root logger, so a plain basicConfig()
    is enough to see nodebox output. When the root logger has no handlers
    yet, the level defaults to WARNING.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


def setup_logging(level=logging.INFO):
    """
    Configure logging for nodebox modules.

    Module loggers created before the root logger had handlers default to
    WARNING, so the level is applied to every nodebox logger already
    registered as well as to the package logger.

    Args:
        level: Logging level (default: logging.INFO)
    """
    names = ['nodebox'] + [
        name for name in logging.root.manager.loggerDict
        if name.startswith('nodebox.')
    ]

    for logger_name in names:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True
