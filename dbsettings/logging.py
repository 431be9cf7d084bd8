import logging
from concurrent_log_handler import ConcurrentRotatingFileHandler
from pathlib import Path
from typing import Optional

from dbsettings.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogConfig:
    """Logging for the ``dbsettings`` package logger, driven by config"""

    def __init__(self, log_dir: Optional[Path] = None, log_file: str = "dbsettings.log"):
        self.log_dir = Path(log_dir) if log_dir is not None else settings.log_dir
        self.log_file = log_file
        self.logger = None

    def setup_logging(self, log_level: Optional[str] = None):
        """
        Send package logs to a size-rotated file and the console.
        The level defaults to DBSETTINGS_LOG_LEVEL.
        """
        level_name = (log_level or settings.log_level).upper()
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger("dbsettings")
        self.logger.setLevel(getattr(logging, level_name))

        # Repeated setup (e.g. one app per test) must not stack handlers
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        # File locking lets several worker processes share one log file
        file_handler = ConcurrentRotatingFileHandler(
            filename=self.log_dir / self.log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10,
            encoding="utf-8",
            use_gzip=True
        )
        console_handler = logging.StreamHandler()

        formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        for handler in (file_handler, console_handler):
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

        self.logger.debug(f"Logging to {self.log_dir / self.log_file} at {level_name}")
        return self.logger


log_config = LogConfig()
