"""
Logging for llm-doc-commenter.

Every module logs through a child of the 'llm_doc_commenter' logger. As a
library the package stays silent; the CLI calls setup_logging() once to
write a log file under the project's settings directory and, with
--verbose, to echo records to stderr.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = 'llm_doc_commenter'
DEFAULT_LOG_FILE = Path('.llm-doc-commenter') / 'llm_doc_commenter.log'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _package_logger() -> logging.Logger:
    return logging.getLogger(ROOT_LOGGER_NAME)


class LoggerManager:
    """Owns the handlers of the package logger."""

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def setup_logging(cls, log_file: Optional[str] = None, level: str = "INFO",
                      console: bool = False, file_logging: bool = True):
        """
        Attach handlers to the package logger. Later calls are ignored
        until reset().

        Args:
            log_file: Log path, default .llm-doc-commenter/llm_doc_commenter.log
            level: Level name; unknown names mean INFO
            console: Also log to stderr
            file_logging: Write the log file
        """
        if cls._initialized:
            return

        threshold = getattr(logging, level.upper(), logging.INFO)
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

        handlers = []
        if console:
            handlers.append(logging.StreamHandler(sys.stderr))
        if file_logging:
            cls._log_file = Path(log_file) if log_file else Path.cwd() / DEFAULT_LOG_FILE
            cls._log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(cls._log_file, encoding='utf-8'))

        package_logger = _package_logger()
        package_logger.setLevel(threshold)
        package_logger.handlers.clear()
        for handler in handlers:
            handler.setLevel(threshold)
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)
        if not handlers:
            package_logger.addHandler(logging.NullHandler())

        cls._initialized = True

    @classmethod
    def reset(cls):
        """Close every handler (releasing the log file) and go back to silent."""
        package_logger = _package_logger()
        for handler in list(package_logger.handlers):
            handler.close()
            package_logger.removeHandler(handler)
        package_logger.addHandler(logging.NullHandler())
        cls._initialized = False
        cls._log_file = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Logger for a module; names outside the package are nested under it."""
        if name.startswith(ROOT_LOGGER_NAME):
            return logging.getLogger(name)
        return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_logger(name: str) -> logging.Logger:
    return LoggerManager.get_logger(name)


_package_logger().addHandler(logging.NullHandler())
