"""
Logging handler for the Retrofit CLI.

One log file per command invocation: the previous run's log is rolled over
to retrofit-cli.log.1 (up to BACKUP_COUNT old runs are kept) before the new
run writes anything.
"""

import os
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

CLI_LOG_FILE = "retrofit-cli.log"
BACKUP_COUNT = 5
MAX_LOG_BYTES = 1024 * 1024

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


class LoggingHandler:
    """
    Attaches the Retrofit file and console handlers to a named logger.

    Usage:
        logger = LoggingHandler().setup_logger('retrofit')
    """

    def __init__(self, log_dir: Optional[Path] = None):
        if log_dir is None:
            from retrofit.shared.paths import get_retrofit_logs_dir
            log_dir = get_retrofit_logs_dir()
        self.log_dir = Path(log_dir)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Failed to create log directory: {e}")

    def _file_handler(self, file_path: Path) -> logging.handlers.RotatingFileHandler:
        handler = logging.handlers.RotatingFileHandler(
            file_path, encoding='utf-8', maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, delay=True
        )
        # Start this run in a fresh file
        if file_path.exists() and file_path.stat().st_size > 0:
            handler.doRollover()
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    def setup_logger(self, name: str, log_file: str = CLI_LOG_FILE) -> logging.Logger:
        """
        Configure logger name with an ERROR console handler and a per-run log file.

        Calling it again for a logger that already writes to log_file leaves the
        handlers (and the current file) alone.
        """
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.ERROR)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            logger.addHandler(console_handler)

        file_path = self.log_dir / log_file
        if not any(getattr(h, 'baseFilename', None) == os.path.abspath(file_path) for h in logger.handlers):
            logger.addHandler(self._file_handler(file_path))

        return logger
