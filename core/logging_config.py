"""
Logging Configuration for the warehouse backend

Handlers installed on the root logger:
- console (colored when attached to a TTY)
- <app>_YYYYMMDD.log, rotating, everything from DEBUG up
- errors.log, rotating, ERROR and above only

Level and directory come from LOG_LEVEL / LOG_DIR (see core.config).
SQLAlchemy's engine logger follows DB_ECHO.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from datetime import datetime, timedelta
from typing import Dict, Optional

from version import APP_NAME

DETAILED_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Colored levelname for console output"""

    COLORS = {
        'DEBUG': '\033[36m',  # Cyan
        'INFO': '\033[32m',  # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',  # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # the same record also reaches the file handlers
            record.levelname = levelname


class LoggingConfig:
    """Centralized logging configuration"""

    DEFAULT_LOG_LEVEL = "INFO"
    DEFAULT_LOG_DIR = "logs"
    DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
    DEFAULT_BACKUP_COUNT = 5

    @staticmethod
    def _default_log_dir() -> Path:
        from core.config import config
        return Path(config.get("LOG_DIR", default=LoggingConfig.DEFAULT_LOG_DIR))

    @staticmethod
    def library_levels() -> Dict[str, int]:
        """Per-library overrides applied after the root level."""
        from core.config import is_db_echo
        return {
            "sqlalchemy.engine": logging.INFO if is_db_echo() else logging.WARNING,
            "alembic": logging.INFO,
        }

    @staticmethod
    def _rotating(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=LoggingConfig.DEFAULT_MAX_BYTES,
            backupCount=LoggingConfig.DEFAULT_BACKUP_COUNT,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @staticmethod
    def setup_logging(
            log_level: Optional[str] = None,
            log_dir: Optional[str] = None,
            enable_console: bool = True,
            enable_colors: bool = True,
            enable_file: bool = True,
    ) -> None:
        """Replace the root logger's handlers with the warehouse set."""
        if log_level is None:
            from core.config import get_log_level
            log_level = get_log_level()
        level = getattr(logging, str(log_level).upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        detailed = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        if enable_console and sys.stdout is not None:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            is_tty = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
            if enable_colors and is_tty:
                console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
            else:
                console_handler.setFormatter(detailed)
            root_logger.addHandler(console_handler)

        if enable_file:
            log_path = Path(log_dir) if log_dir else LoggingConfig._default_log_dir()
            log_path.mkdir(exist_ok=True, parents=True)
            daily = log_path / f"{APP_NAME}_{datetime.now().strftime('%Y%m%d')}.log"
            root_logger.addHandler(LoggingConfig._rotating(daily, logging.DEBUG, detailed))
            root_logger.addHandler(LoggingConfig._rotating(log_path / "errors.log", logging.ERROR, detailed))

        for name, library_level in LoggingConfig.library_levels().items():
            logging.getLogger(name).setLevel(library_level)

        root_logger.info(f"Logging initialized at {logging.getLevelName(level)}")

    @staticmethod
    def cleanup_old_logs(log_dir: Optional[str] = None, days_to_keep: int = 30) -> int:
        """Delete *.log files (rotations included) older than ``days_to_keep``."""
        log_path = Path(log_dir) if log_dir else LoggingConfig._default_log_dir()
        if not log_path.exists():
            return 0

        cutoff = datetime.now() - timedelta(days=days_to_keep)
        deleted_count = 0
        for log_file in log_path.glob("*.log*"):
            try:
                if datetime.fromtimestamp(log_file.stat().st_mtime) < cutoff:
                    log_file.unlink()
                    deleted_count += 1
            except OSError as e:
                logging.getLogger(__name__).warning(f"Could not remove {log_file}: {e}")

        if deleted_count:
            logging.getLogger(__name__).info(f"Removed {deleted_count} old log file(s) from {log_path}")
        return deleted_count
