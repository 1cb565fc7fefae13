"""
CloudFlare DNS provider implementation.

This module implements the CloudFlare DNS API v4 for managing DNS records.
Authentication uses the Global API Key (`X-Auth-Key` / `X-Auth-Email`).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from ddnsd.errors import ProviderError, ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord
from ddnsd.providers.base import BaseDNSProvider

if TYPE_CHECKING:
    from typing import Any, Final

    from ddnsd.models import ProviderCredentials, RecordType


# CloudFlare API base URL
CF_API_BASE: Final[str] = "https://api.cloudflare.com/client/v4"

# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class CloudflareProvider(BaseDNSProvider):
    """
    CloudFlare DNS provider.

    Uses CloudFlare API v4 with Global API Key authentication. Records are
    always written with proxying disabled.

    If no zone ID is configured, the zone is looked up by name before each
    operation.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        credentials : ProviderCredentials
            Global API Key (secret_id), account email (secret_key) and an
            optional zone ID.
        transport : httpx.AsyncBaseTransport | None, optional
            Custom transport for the HTTP client.
        """
        self._headers = {
            "X-Auth-Key": credentials.secret_id,
            "X-Auth-Email": credentials.secret_key,
            "Content-Type": "application/json",
        }
        self._zone_id = credentials.zone_id
        self._transport = transport

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "cloudflare"

    def _create_client(self) -> httpx.AsyncClient:
        """Create an HTTP client with auth headers and timeout applied."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=HTTP_TIMEOUT,
            transport=self._transport,
        )

    async def get_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
    ) -> DNSRecord | None:
        """Query records filtered by exact name and type, first match wins."""
        fqdn = self.build_fqdn(domain, subdomain)

        async with self._create_client() as client:
            zone_id = await self._get_zone_id(client, domain, ProviderQueryError)
            records = await self._call(
                client,
                "GET",
                f"{CF_API_BASE}/zones/{zone_id}/dns_records",
                ProviderQueryError,
                params={"name": fqdn, "type": record_type.value},
            )

        if not isinstance(records, list):
            msg = f"unexpected result: {records!r}"
            raise ProviderQueryError(msg, self.name)
        if not records:
            return None

        first = records[0]
        if not isinstance(first, dict) or "id" not in first or "content" not in first:
            msg = f"failed to parse record: {first!r}"
            raise ProviderQueryError(msg, self.name)
        return DNSRecord(record_id=str(first["id"]), value=str(first["content"]))

    async def create_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> str:
        """Create a non-proxied record."""
        payload = self._build_payload(domain, subdomain, record_type, value)

        async with self._create_client() as client:
            zone_id = await self._get_zone_id(client, domain, ProviderWriteError)
            result = await self._call(
                client,
                "POST",
                f"{CF_API_BASE}/zones/{zone_id}/dns_records",
                ProviderWriteError,
                json=payload,
            )

        if not isinstance(result, dict) or not result.get("id"):
            msg = "response is missing the record ID"
            raise ProviderWriteError(msg, self.name)
        return str(result["id"])

    async def update_record(
        self,
        record_id: str,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> None:
        """Overwrite a record, keeping proxying disabled."""
        payload = self._build_payload(domain, subdomain, record_type, value)

        async with self._create_client() as client:
            zone_id = await self._get_zone_id(client, domain, ProviderWriteError)
            await self._call(
                client,
                "PUT",
                f"{CF_API_BASE}/zones/{zone_id}/dns_records/{record_id}",
                ProviderWriteError,
                json=payload,
            )

    def _build_payload(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> dict[str, str | bool]:
        """Build the JSON body shared by create and update."""
        return {
            "type": record_type.value,
            "name": self.build_fqdn(domain, subdomain),
            "content": value,
            "proxied": False,
        }

    async def _get_zone_id(
        self,
        client: httpx.AsyncClient,
        domain: str,
        error_cls: type[ProviderError],
    ) -> str:
        """
        Get the Zone ID for a domain.

        Parameters
        ----------
        client : httpx.AsyncClient
            HTTP client.
        domain : str
            The DNS zone name.
        error_cls : type[ProviderError]
            Error type raised on failure.

        Returns
        -------
        str
            The configured zone ID, or the one looked up by name.

        Raises
        ------
        ProviderError
            If the lookup fails or no zone matches.
        """
        if self._zone_id:
            return self._zone_id

        zones = await self._call(
            client,
            "GET",
            f"{CF_API_BASE}/zones",
            error_cls,
            params={"name": domain},
        )
        if (
            not isinstance(zones, list)
            or not zones
            or not isinstance(zones[0], dict)
            or "id" not in zones[0]
        ):
            msg = f"Zone not found for domain: {domain}"
            raise error_cls(msg, self.name)

        zone_id = str(zones[0]["id"])
        logger.debug("[cloudflare] Zone ID for %s: %s", domain, zone_id)
        return zone_id

    async def _call(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        error_cls: type[ProviderError],
        **kwargs: Any,
    ) -> Any:
        """
        Send a request and unwrap the CloudFlare response envelope.

        Parameters
        ----------
        client : httpx.AsyncClient
            HTTP client.
        method : str
            HTTP method.
        url : str
            Request URL.
        error_cls : type[ProviderError]
            Error type raised on failure.
        **kwargs : Any
            Passed through to `client.request` (params, json).

        Returns
        -------
        Any
            The `result` member of the response.

        Raises
        ------
        ProviderError
            On network failure, a non-JSON body, or `success=false`. The
            first entry of `errors` is reported verbatim.
        """
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.debug("[cloudflare] Network request failed: '%s'", e)
            msg = f"API request failed: {e}"
            raise error_cls(msg, self.name) from e

        logger.debug("[cloudflare] %s %s -> %d", method, url, response.status_code)
        logger.debug("[cloudflare] Response: %s", response.text)

        try:
            data = response.json()
        except ValueError as e:
            msg = f"failed to parse response (HTTP {response.status_code})"
            raise error_cls(msg, self.name) from e

        if not isinstance(data, dict) or not data.get("success"):
            errors = data.get("errors") if isinstance(data, dict) else None
            if isinstance(errors, list) and errors:
                msg = f"API request failed: {self._error_message(errors[0])}"
            else:
                msg = "API request failed"
            raise error_cls(msg, self.name)

        return data.get("result")

    @staticmethod
    def _error_message(entry: Any) -> str:
        """Extract the message of one `errors` entry."""
        if isinstance(entry, dict):
            return str(entry.get("message", "Unknown error"))
        return str(entry)
