"""
Logging setup for the jobfit service: dictConfig handlers, per-environment
profiles, an API call decorator and a timing context manager
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(funcName)-20s:%(lineno)-4d | %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# ENVIRONMENT -> (level, console, files, format)
ENVIRONMENT_PROFILES = {
    "production": (None, True, True, "detailed"),
    "development": ("DEBUG", True, True, "detailed"),
    "testing": ("WARNING", True, False, "simple"),
}


def _rotating_file(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf8",
    }


def setup_logging(
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed",
    log_dir: str = "logs",
) -> None:
    """
    Configure the ``jobfit`` and ``uvicorn`` loggers.

    Args:
        level: Logging level for jobfit loggers
        enable_console: Log to stdout
        enable_file: Log to ``<log_dir>/jobfit_<date>.log`` plus a separate error log
        format_style: 'simple' or 'detailed'
        log_dir: Directory for the rotating log files (created only when file logging is on)
    """
    handlers: Dict[str, Any] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "simple" if format_style == "simple" else "detailed",
            "stream": "ext://sys.stdout",
        }
    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(log_path / f"jobfit_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(log_path / f"jobfit_errors_{stamp}.log", "ERROR")

    names = list(handlers)
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {"format": DETAILED_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "simple": {"format": SIMPLE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "jobfit": {"level": level, "handlers": names, "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": [h for h in names if h != "error_file"], "propagate": False},
        },
    })

    get_logger("logging").info(
        f"Logging configured - Level: {level}, Console: {enable_console}, File: {enable_file}"
    )


def configure_for_environment():
    """Pick a logging profile from ENVIRONMENT; LOG_LEVEL applies where the profile has no fixed level"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    level, console, files, style = ENVIRONMENT_PROFILES.get(environment, (None, True, True, "detailed"))
    setup_logging(level=level or log_level, enable_console=console, enable_file=files, format_style=style)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``jobfit`` hierarchy (``__name__`` of jobfit modules is used as is)"""
    if name == "jobfit" or name.startswith("jobfit."):
        return logging.getLogger(name)
    return logging.getLogger(f"jobfit.{name}")


def log_api_call(operation: str):
    """
    Decorator to log start, duration and failure of an async route handler
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(f"api.{func.__module__}")
            start_time = time.time()
            logger.info(f"API {operation} started - {func.__name__}")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = time.time() - start_time
                logger.error(f"API {operation} failed after {elapsed:.3f}s: {e}", extra={"execution_time": elapsed})
                raise
            elapsed = time.time() - start_time
            logger.info(f"API {operation} completed in {elapsed:.3f}s", extra={"execution_time": elapsed})
            return result

        return wrapper
    return decorator


class PerformanceMonitor:
    """Times a block and logs it, at WARNING when it runs past threshold_ms"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
        return False
