"""
Configuration management for ddnsd.

This module handles loading and validating configuration from TOML files,
environment variables and command-line arguments. Configuration priority
(high to low):
1. Command-line arguments
2. Environment variables (including a `.env` file)
3. Configuration file
4. Default values
"""

from __future__ import annotations

import argparse
import copy
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from ddnsd.ipcheck import DEFAULT_IPV4_CHECK_URL, DEFAULT_IPV6_CHECK_URL
from ddnsd.logging_config import DATE_FORMAT, LOG_FORMAT
from ddnsd.models import AddressFamily, ProviderCredentials
from ddnsd.providers import SUPPORTED_PROVIDERS

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any, Final, Self

# Configure basic logging for early startup messages.
# This ensures log messages during config loading (before "setup_logging()" is called)
# are visible with proper formatting. The main logging setup in "setup_logging()"
# will reconfigure the "ddnsd" logger with full settings later.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
handler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
handler.setFormatter(formatter)
logger_basic.addHandler(handler)
logger_basic.propagate = False


# Environment variable -> (section, key)
ENV_VARS: Final[dict[str, tuple[str, str]]] = {
    "DNS_PROVIDER": ("provider", "name"),
    "SECRET_ID": ("provider", "secret_id"),
    "SECRET_KEY": ("provider", "secret_key"),
    "CF_ZONE_ID": ("provider", "zone_id"),
    "INTERVAL": ("schedule", "interval"),
    "IPV4_ENABLED": ("ipv4", "enabled"),
    "IPV4_DOMAIN": ("ipv4", "domain"),
    "IPV4_SUBDOMAINS": ("ipv4", "subdomains"),
    "IPV4_CHECK_URL": ("ipv4", "check_url"),
    "IPV6_ENABLED": ("ipv6", "enabled"),
    "IPV6_DOMAIN": ("ipv6", "domain"),
    "IPV6_SUBDOMAINS": ("ipv6", "subdomains"),
    "IPV6_CHECK_URL": ("ipv6", "check_url"),
    "LOG_LEVEL": ("logging", "level"),
}

# Minimum update interval in seconds
MIN_INTERVAL: Final[int] = 30

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "1", "yes", "on"})


class ConfigValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    This exception is raised when the merged configuration contains
    invalid types or values, or misses required settings.

    Attributes
    ----------
    message : str
        Human-readable error message describing the validation failures.
    config_path : Path | None
        Path to the configuration file that failed validation.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        """
        Initialize ConfigValidationError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        config_path : Path | None, optional
            Path to the configuration file.
        """
        self.config_path = config_path
        super().__init__(message)


def parse_bool(value: str) -> bool:
    """
    Parse a boolean environment value.

    Parameters
    ----------
    value : str
        Raw value.

    Returns
    -------
    bool
        True for "true", "1", "yes" or "on" (case-insensitive), else False.
    """
    return value.strip().lower() in _TRUE_VALUES


def parse_subdomains(value: str) -> list[str]:
    """
    Split a comma-separated subdomain list.

    Parameters
    ----------
    value : str
        e.g. "home, www,@".

    Returns
    -------
    list[str]
        Trimmed, non-empty entries in their original order.
    """
    return [s.strip() for s in value.split(",") if s.strip()]


# Configuration models (Pydantic with type validation and coercion)


class ProviderConfig(BaseModel):
    """
    DNS provider configuration.

    Attributes
    ----------
    name : str
        Provider identifier ("dnspod", "cloudflare", "aliyun", "alibabacloud").
    secret_id : str
        Key ID (CloudFlare: Global API Key).
    secret_key : str
        Key secret (CloudFlare: account email).
    zone_id : str | None
        CloudFlare zone ID; looked up by domain name when unset.
    """

    name: str = "dnspod"
    secret_id: str = ""
    secret_key: str = Field(default="", repr=False)
    zone_id: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        """Lower-case and strip the provider identifier."""
        return value.strip().lower()

    def credentials(self) -> ProviderCredentials:
        """
        Build the credentials bundle for the provider factory.

        Returns
        -------
        ProviderCredentials
            Immutable credentials.
        """
        return ProviderCredentials(
            secret_id=self.secret_id,
            secret_key=self.secret_key,
            zone_id=self.zone_id or None,
        )


class FamilyConfig(BaseModel):
    """
    Per address family configuration.

    Attributes
    ----------
    enabled : bool
        Whether records of this family are maintained.
    domain : str
        The DNS zone.
    subdomains : list[str]
        Host records to maintain, in processing order.
    check_url : str
        Endpoint used to discover the public address.
    """

    enabled: bool = False
    domain: str = ""
    subdomains: list[str] = []
    check_url: str = ""

    @field_validator("subdomains", mode="before")
    @classmethod
    def split_subdomains(cls, value: Any) -> Any:
        """Accept a comma-separated string and drop blank entries."""
        if isinstance(value, str):
            return parse_subdomains(value)
        if isinstance(value, list):
            return [s.strip() if isinstance(s, str) else s for s in value if s != ""]
        return value


class ScheduleConfig(BaseModel):
    """
    Scheduling configuration.

    Attributes
    ----------
    interval : int
        Seconds between update cycles (at least 30).
    """

    interval: int = Field(default=300, ge=MIN_INTERVAL)


class LoggingConfig(BaseModel):
    """
    Logging configuration.

    Attributes
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    file_enabled : bool
        Whether to log to file.
    file_path : str
        Path to the log file.
    """

    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "/var/log/ddnsd.log"

    @property
    def file_path_as_path(self) -> Path:
        """
        Get the log file path as a Path object.

        Returns
        -------
        Path
            The resolved log file path.
        """
        return Path(self.file_path)


class Config(BaseModel):
    """
    Application configuration.

    Attributes
    ----------
    provider : ProviderConfig
        DNS provider and credentials.
    schedule : ScheduleConfig
        Update interval.
    ipv4 : FamilyConfig
        IPv4 (A record) settings, enabled by default.
    ipv6 : FamilyConfig
        IPv6 (AAAA record) settings, disabled by default.
    logging : LoggingConfig
        Logging configuration.
    """

    provider: ProviderConfig = ProviderConfig()
    schedule: ScheduleConfig = ScheduleConfig()
    ipv4: FamilyConfig = FamilyConfig(enabled=True, check_url=DEFAULT_IPV4_CHECK_URL)
    ipv6: FamilyConfig = FamilyConfig(enabled=False, check_url=DEFAULT_IPV6_CHECK_URL)
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="before")
    @classmethod
    def apply_family_defaults(cls, data: Any) -> Any:
        """Fill `enabled` and `check_url` of partially given family sections."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for key, enabled, check_url in (
            ("ipv4", True, DEFAULT_IPV4_CHECK_URL),
            ("ipv6", False, DEFAULT_IPV6_CHECK_URL),
        ):
            section = data.get(key)
            if isinstance(section, dict):
                data[key] = {"enabled": enabled, "check_url": check_url, **section}
        return data

    @model_validator(mode="after")
    def check_required_settings(self) -> Self:
        """
        Validate settings that depend on each other.

        Returns
        -------
        Self
            The validated model.

        Raises
        ------
        PydanticCustomError
            If credentials are missing, no family is enabled, or an enabled
            family has no domain or no subdomains.
        """
        err_type = "config_requirement_error"

        if not self.provider.secret_id or not self.provider.secret_key:
            raise PydanticCustomError(
                err_type,
                "SECRET_ID and SECRET_KEY must be set",
            )

        if not self.ipv4.enabled and not self.ipv6.enabled:
            raise PydanticCustomError(
                err_type,
                "At least one of IPv4 or IPv6 must be enabled",
            )

        for family in AddressFamily:
            family_config = self.family(family)
            prefix = family.name
            if not family_config.enabled:
                continue
            if not family_config.domain:
                raise PydanticCustomError(
                    err_type,
                    "{prefix}_DOMAIN must be set when {family} is enabled",
                    {"prefix": prefix, "family": str(family)},
                )
            if not family_config.subdomains:
                raise PydanticCustomError(
                    err_type,
                    "{prefix}_SUBDOMAINS must be set when {family} is enabled",
                    {"prefix": prefix, "family": str(family)},
                )

        return self

    def family(self, family: AddressFamily) -> FamilyConfig:
        """
        Get the settings of one address family.

        Parameters
        ----------
        family : AddressFamily
            The address family.

        Returns
        -------
        FamilyConfig
            `ipv4` or `ipv6`.
        """
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6


def _format_validation_errors(
    error: ValidationError,
    config_path: Path | None,
) -> str:
    """
    Format Pydantic validation errors into human-readable messages.

    Parameters
    ----------
    error : ValidationError
        Pydantic validation error.
    config_path : Path | None
        Path to the configuration file.

    Returns
    -------
    str
        Human-readable error message.
    """
    lines: list[str] = []

    if config_path:
        lines.append(f'Configuration error in "{config_path}":')
    else:
        lines.append("Configuration error:")

    for err in error.errors():
        # Build field path (e.g., "schedule.interval")
        field_path = ".".join(str(loc) for loc in err["loc"])

        # Get error details
        error_type = err["type"]
        error_input = err["input"]
        input_type = type(error_input).__name__

        # Format the value for display, never echoing secrets
        if field_path.endswith("secret_key"):
            value_repr = '"******"'
        elif isinstance(error_input, str):
            value_repr = f'"{error_input}"'
        else:
            value_repr = repr(error_input)

        if error_type == "config_requirement_error":
            lines.append(f"  {err['msg']}.")
        elif error_type in _EXPECTED_TYPES:
            lines.append(
                f"  [{field_path}]: Expected {_EXPECTED_TYPES[error_type]}, got {input_type} (value: {value_repr}). {err['msg']}.",
            )
        else:
            lines.append(f"  [{field_path}]: {err['msg']} (value: {value_repr}).")

    return "\n".join(lines)


# Pydantic error type -> human-readable type name
_EXPECTED_TYPES: Final[dict[str, str]] = {
    "int_type": "int",
    "int_parsing": "int",
    "bool_type": "bool",
    "bool_parsing": "bool",
    "string_type": "str",
    "list_type": "list",
}


def validate_config_dict(
    data: dict[str, Any],
    config_path: Path | None = None,
) -> Config:
    """
    Validate configuration dictionary using Pydantic.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary to validate.
    config_path : Path | None, optional
        Path to the configuration file (for error messages).

    Returns
    -------
    Config
        The validated configuration.

    Raises
    ------
    ConfigValidationError
        If validation fails.
    """
    # Handle file_path expansion before Pydantic validation
    if "logging" in data and "file_path" in data["logging"]:
        data = copy.deepcopy(data)
        data["logging"]["file_path"] = str(
            Path(data["logging"]["file_path"]).expanduser(),
        )

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        msg = _format_validation_errors(e, config_path)
        raise ConfigValidationError(msg, config_path) from e


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a TOML file.

    Parameters
    ----------
    config_path : Path
        Path to the configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    tomllib.TOMLDecodeError
        If the configuration file is not valid TOML.
    """
    with config_path.open("rb") as f:
        return tomllib.load(f)


def load_config_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Empty variables are treated as unset.

    Parameters
    ----------
    environ : Mapping[str, str]
        Environment mapping (usually `os.environ`).

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary.
    """
    result: dict[str, Any] = {}

    for var, (section, key) in ENV_VARS.items():
        raw = environ.get(var, "")
        if not raw:
            continue

        value: Any = raw
        if key == "enabled":
            value = parse_bool(raw)
        elif key == "subdomains":
            value = parse_subdomains(raw)

        result.setdefault(section, {})[key] = value

    return result


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration.
    override : dict[str, Any]
        Override configuration (takes precedence).

    Returns
    -------
    dict[str, Any]
        Merged configuration.
    """
    # Use deep copy to avoid modifying the original base configuration
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def parse_provider_str(value: str) -> str:
    """
    Parse a provider identifier from CLI.

    This function is intended to be used as a `type` converter in `argparse`.

    Parameters
    ----------
    value : str
        Provider identifier.

    Returns
    -------
    str
        Normalized identifier.

    Raises
    ------
    argparse.ArgumentTypeError
        If the provider is not supported.
    """
    name = value.strip().lower()
    if name not in SUPPORTED_PROVIDERS:
        msg = f'Invalid provider: "{value}" (choose from {", ".join(SUPPORTED_PROVIDERS)}).'
        raise argparse.ArgumentTypeError(msg)
    return name


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Parameters
    ----------
    args : list[str] | None, optional
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="ddnsd",
        description="ddnsd - keep DNS records pointed at this host's public IP",
    )

    # Config arguments
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        dest="env_file",
        default=Path(".env"),
        help="Path to a .env file with environment overrides (default: .env)",
    )

    # Provider arguments
    parser.add_argument(
        "--provider",
        type=parse_provider_str,
        default=None,
        help=f"DNS provider ({', '.join(SUPPORTED_PROVIDERS)})",
    )

    # Schedule arguments
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help=f"Seconds between update cycles (minimum {MIN_INTERVAL})",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single update cycle and exit",
    )

    # Logging arguments
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level",
    )
    log_file_group = parser.add_mutually_exclusive_group()
    log_file_group.add_argument(
        "--log-file-enabled",
        action="store_true",
        dest="log_file_enabled",
        default=None,
        help="Enable logging to file",
    )
    log_file_group.add_argument(
        "--log-file-disabled",
        action="store_false",
        dest="log_file_enabled",
        default=None,
        help="Disable logging to file",
    )
    parser.add_argument(
        "--log-file-path",
        type=Path,
        dest="log_file_path",
        default=None,
        help="Path to the log file",
    )

    return parser.parse_args(args)


def load_config(
    args: argparse.Namespace | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Load configuration from file, environment and command-line arguments.

    Priority (high to low):
    1. Command-line arguments
    2. Environment variables
    3. Configuration file
    4. Default values

    Parameters
    ----------
    args : argparse.Namespace | None, optional
        Parsed command-line arguments.
    environ : Mapping[str, str] | None, optional
        Environment mapping. If None, the `.env` file named by
        `args.env_file` is loaded into `os.environ` first, which is
        then used.

    Returns
    -------
    Config
        Loaded configuration.

    Raises
    ------
    ConfigValidationError
        If the merged configuration is invalid.
    """
    if args is None:
        args = parse_args()

    # Start with empty config dict
    config_dict: dict[str, Any] = {}

    # Load from config file if specified or if default exists
    config_path = args.config
    if config_path is not None:
        config_path = config_path.expanduser()
    if config_path is None:
        default_config = Path("config.toml")
        if default_config.exists():
            config_path = default_config

    if config_path is not None:
        if config_path.exists():
            logger_basic.info('Loading configuration from "%s".', config_path)
            try:
                config_dict = load_config_from_file(config_path)
            except tomllib.TOMLDecodeError as e:
                logger_basic.critical('Failed to parse configuration file: "%s".', e)
                sys.exit(1)
        else:
            logger_basic.critical("Configuration file not found: %s", config_path)
            sys.exit(1)

    # Apply environment overrides
    if environ is None:
        env_file = args.env_file
        if env_file is not None and env_file.exists():
            logger_basic.info('Loading environment from "%s".', env_file)
            load_dotenv(env_file, override=False)
        environ = os.environ

    env_overrides = load_config_from_env(environ)
    if env_overrides:
        config_dict = merge_config(config_dict, env_overrides)

    # Apply command-line overrides
    cli_overrides: dict[str, Any] = {}

    if args.provider is not None:
        cli_overrides.setdefault("provider", {})["name"] = args.provider
    if args.interval is not None:
        cli_overrides.setdefault("schedule", {})["interval"] = args.interval
    if args.log_level is not None:
        cli_overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file_enabled is not None:
        cli_overrides.setdefault("logging", {})["file_enabled"] = args.log_file_enabled
    if args.log_file_path is not None:
        cli_overrides.setdefault("logging", {})["file_path"] = str(args.log_file_path)

    if cli_overrides:
        config_dict = merge_config(config_dict, cli_overrides)

    # Validate merged configuration
    return validate_config_dict(config_dict, config_path)


def config_summary(config: Config) -> list[str]:
    """
    Describe the effective configuration, without secrets.

    Parameters
    ----------
    config : Config
        The loaded configuration.

    Returns
    -------
    list[str]
        Summary lines, suitable for logging one by one.
    """
    lines = [
        "=== Configuration Summary ===",
        f"DNS Provider: {config.provider.name}",
        f"Update Interval: {config.schedule.interval} seconds",
    ]
    for family in AddressFamily:
        family_config = config.family(family)
        if family_config.enabled:
            lines.append(
                f"{family}: Domain={family_config.domain}, "
                f"Subdomains={family_config.subdomains}",
            )
    return lines
