"""
Logging for the API, providers and scripts.

Everything logs under the ``relocation_insights`` namespace: a detailed
file log at DEBUG and a short console log at the configured level.
HTTP and AWS client libraries are held at WARNING.
"""

import logging
import sys
from pathlib import Path

NAMESPACE = "relocation_insights"

NOISY_LOGGERS = ["urllib3", "botocore", "boto3", "s3transfer", "httpx", "httpcore", "openai"]

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def setup_logging(level: str = "INFO", log_file: str = "logs/relocation_insights.log") -> None:
    """
    Attach file and console handlers to the package logger.

    Calling it again replaces the handlers instead of stacking them, so
    a reloaded server does not print every line twice.

    Args:
        level: Console level name; unknown names fall back to INFO
        log_file: Path to the log file, parent directories are created
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))

    package_logger = logging.getLogger(NAMESPACE)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    package_logger.info("Logging configured (level=%s, file=%s)", level, log_file)


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, placed under the package namespace.

    Module ``__name__`` values inside the package are used as they are;
    script names such as ``__main__`` or ``seed_locations`` get the
    namespace prefix so the package handlers still see them.
    """
    if name == NAMESPACE or name.startswith(NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{NAMESPACE}.{name}")
