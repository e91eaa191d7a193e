"""
Logging configuration for the bcLeiden library.

This module provides centralized logging configuration with support for:
- Console and file output handlers
- Environment variable configuration
- Structured (JSON) formatting
- A separate performance channel fed by ``LoggingTimer``
"""

import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any, List
from datetime import datetime
import json


ROOT_LOGGER_NAME = "bcLeiden"

# Default configuration constants
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE_NAME = "bcleiden.log"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

# Marks handlers installed by setup_logging; handlers added by the host
# application or a test harness are left alone
_OWNED_HANDLER_ATTR = "_bcleiden_owned"

# Environment variable names
ENV_LOG_LEVEL = "BCL_LOG_LEVEL"
ENV_LOG_FILE = "BCL_LOG_FILE"
ENV_LOG_DIR = "BCL_LOG_DIR"
ENV_LOG_FORMAT = "BCL_LOG_FORMAT"
ENV_LOG_CONSOLE = "BCL_LOG_CONSOLE"
ENV_LOG_JSON = "BCL_LOG_JSON"
ENV_LOG_PERFORMANCE = "BCL_LOG_PERFORMANCE"

_STANDARD_RECORD_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info", "exc_text",
    "stack_info", "message", "taskName"
}


def _owned_handlers(logger: logging.Logger) -> List[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, _OWNED_HANDLER_ATTR, False)]


def _install_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _OWNED_HANDLER_ATTR, True)
    logger.addHandler(handler)


class PerformanceFilter(logging.Filter):
    """
    Filter for performance-related log messages.

    Keeps only records that look like timing output, so the performance
    log file does not fill up with algorithm chatter.
    """

    performance_keywords = (
        "performance", "timing", "duration", "elapsed", "benchmark",
        "memory", "cpu", "profiling", "metrics"
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage().lower()
        return any(keyword in message for keyword in self.performance_keywords)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Each record becomes one JSON object per line. Values passed through
    ``extra=`` are copied into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_KEYS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Parameters
    ----------
    name : str
        The name for the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Logger instance. Module loggers live under the ``bcLeiden`` root
        configured by ``setup_logging()``.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.debug("Processing source %s", source)
    """
    return logging.getLogger(name)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console: Optional[bool] = None,
    json_format: Optional[bool] = None,
    performance_logging: Optional[bool] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    max_file_size: Optional[int] = None,
    backup_count: Optional[int] = None,
    force_setup: bool = False
) -> logging.Logger:
    """
    Set up logging configuration for the bcLeiden library.

    Parameters
    ----------
    level : str, optional
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        If None, uses environment variable BCL_LOG_LEVEL or defaults to INFO.
    log_file : str, optional
        Path to log file. If None, uses environment variable BCL_LOG_FILE.
    log_dir : str, optional
        Directory for log files. If no log file is given but a directory is
        (here or through BCL_LOG_DIR), logs go to 'bcleiden.log' inside it.
    console : bool, optional
        Whether to enable console logging. If None, uses BCL_LOG_CONSOLE or
        defaults to True.
    json_format : bool, optional
        Whether to use JSON formatting. If None, uses BCL_LOG_JSON or
        defaults to False.
    performance_logging : bool, optional
        Whether to attach the performance filter to the performance logger.
        If None, uses BCL_LOG_PERFORMANCE or defaults to False.
    format_string : str, optional
        Custom format string for log messages.
    date_format : str, optional
        Date format for timestamps.
    max_file_size : int, optional
        Maximum size for log files before rotation (bytes). Defaults to 10MB.
    backup_count : int, optional
        Number of backup files to keep. Defaults to 5.
    force_setup : bool, default False
        Whether to force reconfiguration if logging is already set up.

    Returns
    -------
    logging.Logger
        The configured ``bcLeiden`` root logger

    Raises
    ------
    ValueError
        If an invalid logging level is specified

    Examples
    --------
    >>> logger = setup_logging()
    >>> logger = setup_logging(level="DEBUG", log_file="analysis.log", force_setup=True)
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    owned = _owned_handlers(root_logger)
    if not force_setup and owned:
        return root_logger

    for handler in owned:
        root_logger.removeHandler(handler)
        handler.close()

    config = _resolve_logging_config(
        level=level,
        log_file=log_file,
        log_dir=log_dir,
        console=console,
        json_format=json_format,
        performance_logging=performance_logging,
        format_string=format_string,
        date_format=date_format,
        max_file_size=max_file_size,
        backup_count=backup_count
    )

    log_level = logging.getLevelName(config["level"].upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid logging level: {config['level']}")
    root_logger.setLevel(log_level)

    if config["json_format"]:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=config["format_string"],
            datefmt=config["date_format"]
        )

    if config["console"]:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        _install_handler(root_logger, console_handler)

    if config["log_file"]:
        log_path = Path(config["log_file"])
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=config["log_file"],
            maxBytes=config["max_file_size"],
            backupCount=config["backup_count"],
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        _install_handler(root_logger, file_handler)

    if config["performance_logging"]:
        perf_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.performance")
        perf_logger.filters.clear()
        perf_logger.addFilter(PerformanceFilter())

    # Keep library output out of the application's root logger
    root_logger.propagate = False

    root_logger.info(
        "Logging configured: level=%s, console=%s, file=%s, json=%s",
        config["level"], config["console"],
        config["log_file"] or "None", config["json_format"]
    )

    return root_logger


def _resolve_logging_config(**kwargs) -> Dict[str, Any]:
    """
    Resolve logging configuration from parameters and environment variables.

    Parameters take precedence over environment variables, which take
    precedence over defaults.
    """
    def _get_bool_env(env_var: str, default: bool) -> bool:
        value = os.getenv(env_var, "").lower()
        if value in ("true", "yes", "1", "on"):
            return True
        elif value in ("false", "no", "0", "off"):
            return False
        else:
            return default

    level = kwargs.get("level") or os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    log_dir = kwargs.get("log_dir") or os.getenv(ENV_LOG_DIR)
    log_file = kwargs.get("log_file") or os.getenv(ENV_LOG_FILE)

    if not log_file and log_dir:
        log_file = os.path.join(log_dir, DEFAULT_LOG_FILE_NAME)

    console = kwargs.get("console")
    if console is None:
        console = _get_bool_env(ENV_LOG_CONSOLE, True)

    json_format = kwargs.get("json_format")
    if json_format is None:
        json_format = _get_bool_env(ENV_LOG_JSON, False)

    performance_logging = kwargs.get("performance_logging")
    if performance_logging is None:
        performance_logging = _get_bool_env(ENV_LOG_PERFORMANCE, False)

    format_string = (
        kwargs.get("format_string") or
        os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
    )

    return {
        "level": level,
        "log_file": log_file,
        "console": console,
        "json_format": json_format,
        "performance_logging": performance_logging,
        "format_string": format_string,
        "date_format": kwargs.get("date_format") or DEFAULT_DATE_FORMAT,
        "max_file_size": kwargs.get("max_file_size") or DEFAULT_MAX_FILE_SIZE,
        "backup_count": kwargs.get("backup_count") or DEFAULT_BACKUP_COUNT,
    }


def configure_external_library_logging(
    libraries: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure logging for external libraries used by bcLeiden.

    Parameters
    ----------
    libraries : Dict[str, str], optional
        Dictionary mapping library names to desired log levels.
        If None, uses defaults for the libraries bcLeiden pulls in.

    Examples
    --------
    >>> configure_external_library_logging({"networkit": "ERROR"})
    """
    default_config = {
        "networkit": "WARNING",
        "numba": "WARNING",
        "matplotlib": "WARNING",
        "PIL": "WARNING",
        "concurrent.futures": "WARNING",
    }

    config = libraries or default_config

    for library_name, level in config.items():
        library_level = logging.getLevelName(level.upper())
        if not isinstance(library_level, int):
            # Unknown level name, leave the library alone
            continue
        logging.getLogger(library_name).setLevel(library_level)


def log_function_entry(func_name: str, **kwargs) -> None:
    """
    Log function entry with parameters (for debugging).

    Parameters
    ----------
    func_name : str
        Name of the function being entered
    **kwargs
        Function parameters to log
    """
    logger = get_logger(f"{ROOT_LOGGER_NAME}.debug")
    if logger.isEnabledFor(logging.DEBUG):
        param_str = ", ".join([f"{k}={v}" for k, v in kwargs.items()])
        logger.debug("Entering %s(%s)", func_name, param_str)


def log_performance_metric(
    operation: str,
    duration: float,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log performance metrics for operations.

    Parameters
    ----------
    operation : str
        Name of the operation that was timed
    duration : float
        Duration in seconds
    details : Dict[str, Any], optional
        Additional details about the operation (vertex count, etc.)
    """
    logger = get_logger(f"{ROOT_LOGGER_NAME}.performance")

    message = f"Performance: {operation} completed in {duration:.3f}s"

    if details:
        detail_str = ", ".join([f"{k}={v}" for k, v in details.items()])
        message += f" ({detail_str})"

    extra = {"operation": operation, "duration": duration}
    for key, value in (details or {}).items():
        extra.setdefault(key, value)
    logger.info(message, extra=extra)


class LoggingTimer:
    """
    Context manager for timing operations with automatic logging.

    Examples
    --------
    >>> with LoggingTimer("edge_betweenness", {"vertices": 1000}):
    ...     pass
    """

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.details = details or {}
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.duration = time.perf_counter() - self.start_time
            log_performance_metric(self.operation, self.duration, self.details)
