import logging
import os
import re
import sys
from pathlib import Path
from typing import Optional, Union

MASK = '***MASKED***'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Credentials that can reach a log line: account keys in headers or config
# dumps, and the signature part of time-bounded links
SENSITIVE_PATTERNS = [
    re.compile(r'(account[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE),
    re.compile(r'(link[_-]?secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE),
    re.compile(r'(bearer\s+)([^\s,}\'"]+)', re.IGNORECASE),
    re.compile(r'([?&]sig=)([^&\s\'"]+)', re.IGNORECASE),
]


def mask_sensitive(text: str) -> str:
    """Replace account keys, bearer tokens and link signatures in ``text``."""
    for pattern in SENSITIVE_PATTERNS:
        text = pattern.sub(rf'\1{MASK}', text)
    return text


class SensitiveDataFilter(logging.Filter):
    """Filter to mask account keys and link signatures in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self._mask_value(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    @staticmethod
    def _mask_value(value):
        return mask_sensitive(value) if isinstance(value, str) else value


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (e.g., 'explorer', 'gateway', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        log_file: Write to this file instead of stdout (the interactive CLI
            keeps its terminal for the prompt and progress lines)

    Returns:
        Configured logger instance
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding='utf-8')
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)
