"""
Base class for DNS providers.

This module defines the abstract base class that all DNS provider
implementations must inherit from. Adapters only expose the three
primitive operations; the create-or-update decision lives in
`ddnsd.reconciler`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ddnsd.models import DNSRecord, RecordType


class BaseDNSProvider(ABC):
    """
    Abstract base class for DNS providers.

    Implementations are constructed once with their credentials and must
    not mutate their state afterwards, so a single instance can be reused
    across update cycles. Construction must not perform network I/O.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Get the provider name.

        Returns
        -------
        str
            Provider name identifier.
        """
        ...

    @abstractmethod
    async def get_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
    ) -> DNSRecord | None:
        """
        Look up the record matching zone + subdomain + type.

        Parameters
        ----------
        domain : str
            The DNS zone (root domain name, e.g., "example.com").
        subdomain : str
            The host record name (e.g., "home", "@").
        record_type : RecordType
            The record type (A, AAAA).

        Returns
        -------
        DNSRecord | None
            The first matching record, or None if there is none.

        Raises
        ------
        ProviderQueryError
            If the lookup fails. "No record" is never an error.
        """
        ...

    @abstractmethod
    async def create_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> str:
        """
        Create a new DNS record.

        Parameters
        ----------
        domain : str
            The DNS zone.
        subdomain : str
            The host record name.
        record_type : RecordType
            The record type.
        value : str
            The record value.

        Returns
        -------
        str
            The provider-assigned record ID.

        Raises
        ------
        ProviderWriteError
            If the record cannot be created.
        """
        ...

    @abstractmethod
    async def update_record(
        self,
        record_id: str,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> None:
        """
        Update the content of an existing DNS record.

        Parameters
        ----------
        record_id : str
            The provider-assigned record ID.
        domain : str
            The DNS zone.
        subdomain : str
            The host record name.
        record_type : RecordType
            The record type.
        value : str
            The new record value.

        Raises
        ------
        ProviderWriteError
            If the record cannot be updated.
        """
        ...

    def build_fqdn(self, domain: str, subdomain: str) -> str:
        """
        Build the fully qualified domain name.

        Parameters
        ----------
        domain : str
            The DNS zone (root domain).
        subdomain : str
            The host record name.

        Returns
        -------
        str
            The FQDN.
        """
        if subdomain in {"@", ""}:
            return domain
        return f"{subdomain}.{domain}"
