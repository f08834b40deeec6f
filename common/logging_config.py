import logging
import os
import re
import sys
from typing import List, Optional, Tuple

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# key=value pairs (config dumps, error strings) and presigned-URL query parameters
_MASKED_KEYS = ("secret_key", "access_key", "authorization")
_MASKED_QUERY_PARAMS = ("X-Amz-Signature", "X-Amz-Credential", "X-Amz-Security-Token")


def _build_patterns() -> List[Tuple[re.Pattern, str]]:
    patterns = []
    for key in _MASKED_KEYS:
        key_regex = key.replace("_", "[_-]?")
        patterns.append((
            re.compile(rf'({key_regex}["\']?\s*[:=]\s*["\']?)([^"\'}}\s,]+)', re.IGNORECASE),
            r'\1***MASKED***',
        ))
    for param in _MASKED_QUERY_PARAMS:
        patterns.append((re.compile(rf'({param}=)([^&\s]+)', re.IGNORECASE), r'\1***MASKED***'))
    return patterns


class SensitiveDataFilter(logging.Filter):
    """Mask object-store credentials and presigned-URL signatures."""

    PATTERNS = _build_patterns()

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.mask(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self.mask(arg) for arg in record.args)

        return True

    @classmethod
    def mask(cls, value):
        if isinstance(value, str):
            for pattern, replacement in cls.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stdout handler to a component's root logger.

    Module loggers named under the component (vault.services.*, for example)
    propagate into this handler. Later calls return the configured logger
    unchanged.

    Args:
        component_name: Top-level logger name ('vault')
        log_level: DEBUG, INFO, WARNING or ERROR; defaults to the LOG_LEVEL env var, then INFO

    Returns:
        Configured logger instance
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(component_name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
