"""
Exception hierarchy for ddnsd.

Provider adapters raise `ProviderQueryError` / `ProviderWriteError`; the
reconciliation engine wraps those into `ReconcileError` with the stage and
subdomain that failed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ddnsd.models import AddressFamily, ReconcileStage


class DDNSError(Exception):
    """Base class for all ddnsd errors."""


class UnsupportedProviderError(DDNSError):
    """
    Raised when a provider identifier has no adapter.

    Attributes
    ----------
    provider : str
        The offending provider identifier.
    """

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unsupported DNS provider: {provider!r}")


class ProviderError(DDNSError):
    """
    Base class for failures reported by a provider adapter.

    Attributes
    ----------
    message : str
        Human-readable error message.
    provider : str | None
        The provider identifier the error came from.
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.message = message
        self.provider = provider
        super().__init__(f"[{provider}] {message}" if provider else message)


class ProviderQueryError(ProviderError):
    """Record lookup failed (transport, API status or unparseable body)."""


class ProviderWriteError(ProviderError):
    """Record creation or update failed."""


class ReconcileError(DDNSError):
    """
    A provider error annotated with reconciliation context.

    Attributes
    ----------
    stage : ReconcileStage
        The step that failed (query, create or update).
    domain : str
        The DNS zone.
    subdomain : str
        The host record name.
    cause : ProviderError
        The underlying provider error.
    """

    def __init__(
        self,
        stage: ReconcileStage,
        domain: str,
        subdomain: str,
        cause: ProviderError,
    ) -> None:
        self.stage = stage
        self.domain = domain
        self.subdomain = subdomain
        self.cause = cause
        super().__init__(f"{stage} failed for {subdomain} ({domain}): {cause}")


class IPDiscoveryError(DDNSError):
    """
    Raised when the public IP address of a family cannot be determined.

    Attributes
    ----------
    family : AddressFamily
        The address family being resolved.
    """

    def __init__(self, family: AddressFamily, message: str) -> None:
        self.family = family
        super().__init__(f"Error getting {family} address: {message}")
