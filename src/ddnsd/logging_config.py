"""
Logging configuration for ddnsd.

This module provides logging setup with support for console and file output.
Sensitive information is automatically masked in log messages.
"""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any, Final

    from ddnsd.config import LoggingConfig
    from ddnsd.models import AddressFamily


# Pattern to match sensitive tokens/keys in log messages
# Each tuple is (pattern, replacement)
# For partial masking, capture the prefix to keep and mask the rest
SENSITIVE_PATTERNS: Final[list[tuple[re.Pattern[str], str]]] = [
    # Alibaba Cloud signed query strings (AccessKeyId=..., Signature=...)
    # Keep first 6 characters, mask the rest
    (
        re.compile(r"((?:AccessKeyId|Signature)=)([^\s&\"']{0,6})([^\s&\"']*)"),
        r"\1\2******",
    ),
    # CloudFlare auth headers, as logged from a header dict or a raw request
    (
        re.compile(
            r"""(['"]?X-Auth-(?:Key|Email)['"]?\s*[:=]\s*['"]?)([^\s,'"}]{0,6})([^\s,'"}]*)""",
            re.IGNORECASE,
        ),
        r"\1\2******",
    ),
    # Tencent Cloud credentials (SecretId / SecretKey)
    (
        re.compile(
            r"""(['"]?Secret(?:Id|Key)['"]?\s*[:=]\s*['"]?)([^\s,&'"}]{0,6})([^\s,&'"}]*)""",
            re.IGNORECASE,
        ),
        r"\1\2******",
    ),
]


# Constants
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER: Final[str] = "ddnsd"


class SensitiveFilter(logging.Filter):
    """
    A logging filter that masks sensitive information.

    This filter replaces sensitive tokens and keys with asterisks
    to prevent credential leakage in log files.
    """

    @staticmethod
    def _mask_sensitive(value: str) -> str:
        """
        Apply all sensitive patterns to mask a string.

        Parameters
        ----------
        value : str
            The string to process.

        Returns
        -------
        str
            The string with sensitive data masked.
        """
        result = value
        for pattern, replacement in SENSITIVE_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter and modify log record to mask sensitive data.

        This handles:
        - record.msg (for standard log messages)
        - record.args (for formatted messages)

        Parameters
        ----------
        record : logging.LogRecord
            The log record to process.

        Returns
        -------
        bool
            Always returns True (record is always logged).
        """
        if record.msg:
            record.msg = self._mask_sensitive(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                # Dict-style formatting: %(key)s
                record.args = {
                    k: self._mask_sensitive(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                # Tuple-style formatting: %s, %d, etc.
                record.args = tuple(
                    self._mask_sensitive(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True


class FamilyLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter that tags records with an address family.

    Messages are prefixed with "[IPv4] " / "[IPv6] " and the family is
    attached to every record as the `family` extra field.
    """

    def __init__(self, logger: logging.Logger, family: AddressFamily) -> None:
        super().__init__(logger, {"family": str(family)})

    def process(
        self,
        msg: Any,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Prefix the message and merge the family into `extra`."""
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **self.extra}
        return f"[{self.extra['family']}] {msg}", kwargs


def _configure_handler(handler: logging.Handler) -> None:
    """
    Configure a logging handler with formatter and sensitive filter.

    Parameters
    ----------
    handler : logging.Handler
        The handler to configure.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    sensitive_filter = SensitiveFilter()

    handler.setFormatter(formatter)
    handler.addFilter(sensitive_filter)


def setup_logging(config: LoggingConfig) -> None:
    """
    Set up logging based on configuration.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.
    """
    # Get the root logger for the package
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    # Clear any existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    _configure_handler(console_handler)
    logger.addHandler(console_handler)

    # File handler (if enabled)
    if config.file_enabled:
        log_path = config.file_path_as_path
        try:
            # Ensure log directory exists
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.WatchedFileHandler(
                str(log_path),
                encoding="utf-8",
                delay=False,
            )
            _configure_handler(file_handler)
            logger.addHandler(file_handler)
            logger.info('File logging enabled: "%s".', log_path)
        except OSError as e:
            logger.critical("Failed to enable file logging: %s", e)
            sys.exit(1)

    # Prevent propagation to root logger
    logger.propagate = False
