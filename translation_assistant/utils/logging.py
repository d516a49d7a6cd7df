"""
Logging Utilities
=================
Named loggers for the translation assistant, each writing to its own
rotating file under ``LOG_DIR`` and echoing to the console.

    app          -> app.log           startup, configuration warnings, unhandled errors
    api          -> api.log           request lines and rate limit rejections
    auth         -> auth.log          registrations, logins, token failures
    translation  -> translations.log  upstream attempts and stored translations
    database     -> database.log      schema setup, writes and rollbacks
"""
import os
import re
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional
from translation_assistant.config import config


FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ANSIStripFormatter(logging.Formatter):
    """Drops terminal colour codes so log files stay plain text."""

    ANSI_PATTERN = re.compile(r'\033\[[0-9;]*m')

    def format(self, record):
        return self.ANSI_PATTERN.sub('', super().format(record))


class AppLogger:
    """Holds one logger per area of the service (see module docstring)."""

    def __init__(self, log_dir: str = None):
        self.log_dir = log_dir or config.paths.log_folder
        os.makedirs(self.log_dir, exist_ok=True)
        self.level = logging.DEBUG if config.logging.verbose_debug else logging.INFO

        self.app_logger = self._setup_logger('translation_assistant.app', 'app.log')
        self.api_logger = self._setup_logger('translation_assistant.api', 'api.log')
        self.auth_logger = self._setup_logger('translation_assistant.auth', 'auth.log')
        self.translation_logger = self._setup_logger('translation_assistant.translation', 'translations.log')
        self.db_logger = self._setup_logger('translation_assistant.database', 'database.log')

    def _setup_logger(self, name: str, filename: str) -> logging.Logger:
        logger = logging.getLogger(name)
        logger.setLevel(self.level)

        # Already configured by an earlier AppLogger in this process
        if logger.handlers:
            return logger

        file_handler = RotatingFileHandler(
            os.path.join(self.log_dir, filename),
            maxBytes=config.logging.log_file_max_bytes,
            backupCount=config.logging.log_file_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(ANSIStripFormatter(FILE_FORMAT))
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        logger.addHandler(console_handler)

        return logger


_logger_instance: Optional[AppLogger] = None


def get_logger() -> AppLogger:
    """Return the process-wide AppLogger, creating it on first use."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AppLogger()
    return _logger_instance
