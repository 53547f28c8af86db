"""
Centralized logging configuration for the wiki-stats command line
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ApplicationLogger:
    """Configures the package logger once per run; modules log through ``logging.getLogger(__name__)``."""

    def __init__(
        self,
        log_dir: Optional[Path],
        logger_name: str = "wikipedia_stats",
        debug: bool = False,
        verbose: bool = True,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ):
        self.log_dir = Path(log_dir).expanduser() if log_dir else None
        self.logger_name = logger_name
        self.debug = debug
        self.verbose = verbose
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.logger = self._configure_logger()

    def _configure_logger(self) -> logging.Logger:
        logger = logging.getLogger(self.logger_name)
        logger.handlers.clear()
        logger.setLevel(logging.DEBUG if self.debug else logging.INFO)

        formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=self.log_dir / f"{self.logger_name}.log",
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_level = logging.DEBUG if self.debug else (logging.INFO if self.verbose else logging.WARNING)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        logging.captureWarnings(True)

        return logger

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        if name:
            return self.logger.getChild(name)
        return self.logger

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
