"""
Alibaba Cloud DNS (alidns) provider implementation.

This module talks to the Alibaba Cloud DNS RPC API directly over HTTPS.
Requests are signed by `ddnsd.providers.aliyun_signer`.

Endpoints:
- China: alidns.cn-hangzhou.aliyuncs.com
- International: alidns.ap-northeast-1.aliyuncs.com
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from ddnsd.errors import ProviderError, ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord
from ddnsd.providers import aliyun_signer
from ddnsd.providers.base import BaseDNSProvider

if TYPE_CHECKING:
    from typing import Any, Final

    from ddnsd.models import ProviderCredentials, RecordType


ALIDNS_ENDPOINT_CN: Final[str] = "alidns.cn-hangzhou.aliyuncs.com"
ALIDNS_ENDPOINT_INTL: Final[str] = "alidns.ap-northeast-1.aliyuncs.com"

# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class AliyunProvider(BaseDNSProvider):
    """
    Alibaba Cloud DNS (alidns) provider.

    The `domestic` flag selects the China or the international endpoint;
    it is the only difference between the "aliyun" and "alibabacloud"
    provider identifiers.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        *,
        domestic: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        credentials : ProviderCredentials
            AccessKey ID (secret_id) and AccessKey secret (secret_key).
        domestic : bool, optional
            Use the China endpoint (default) instead of the international one.
        transport : httpx.AsyncBaseTransport | None, optional
            Custom transport for the HTTP client.
        """
        self._access_key_id = credentials.secret_id
        self._access_key_secret = credentials.secret_key
        self._domestic = domestic
        self._transport = transport

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "aliyun" if self._domestic else "alibabacloud"

    @property
    def endpoint(self) -> str:
        """Get the API endpoint host."""
        return ALIDNS_ENDPOINT_CN if self._domestic else ALIDNS_ENDPOINT_INTL

    async def get_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
    ) -> DNSRecord | None:
        """Query records of the full subdomain via DescribeSubDomainRecords."""
        data = await self._call(
            "DescribeSubDomainRecords",
            {"SubDomain": f"{subdomain}.{domain}", "Type": record_type.value},
            ProviderQueryError,
        )

        try:
            if int(data["TotalCount"]) == 0:
                return None
            first = data["DomainRecords"]["Record"][0]
            return DNSRecord(record_id=str(first["RecordId"]), value=str(first["Value"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            msg = f"failed to parse response: {e!r}"
            raise ProviderQueryError(msg, self.name) from e

    async def create_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> str:
        """Create a record via AddDomainRecord."""
        data = await self._call(
            "AddDomainRecord",
            {
                "DomainName": domain,
                "RR": subdomain,
                "Type": record_type.value,
                "Value": value,
            },
            ProviderWriteError,
        )

        record_id = data.get("RecordId")
        if not record_id:
            msg = "response is missing RecordId"
            raise ProviderWriteError(msg, self.name)
        return str(record_id)

    async def update_record(
        self,
        record_id: str,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> None:
        """Modify a record via UpdateDomainRecord."""
        await self._call(
            "UpdateDomainRecord",
            {
                "RecordId": record_id,
                "RR": subdomain,
                "Type": record_type.value,
                "Value": value,
            },
            ProviderWriteError,
        )

    def build_url(self, action: str, params: dict[str, str]) -> str:
        """
        Build a signed request URL.

        Parameters
        ----------
        action : str
            API action name.
        params : dict[str, str]
            Action-specific parameters.

        Returns
        -------
        str
            The full GET URL with the signed query string.
        """
        request_params = aliyun_signer.common_params(self._access_key_id)
        request_params["Action"] = action
        request_params.update(params)
        query = aliyun_signer.signed_query("GET", request_params, self._access_key_secret)
        return f"https://{self.endpoint}/?{query}"

    async def _call(
        self,
        action: str,
        params: dict[str, str],
        error_cls: type[ProviderError],
    ) -> dict[str, Any]:
        """
        Send a signed API request.

        Parameters
        ----------
        action : str
            API action name.
        params : dict[str, str]
            Action-specific parameters.
        error_cls : type[ProviderError]
            Error type raised on failure.

        Returns
        -------
        dict[str, Any]
            The decoded JSON response.

        Raises
        ------
        ProviderError
            On network failure, a non-2xx status or a non-JSON body.
        """
        url = self.build_url(action, params)

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            logger.debug("[%s: %s] Network request failed: '%s'", self.name, action, e)
            msg = f"API request failed: {e}"
            raise error_cls(msg, self.name) from e

        logger.debug("[%s] %s -> %d", self.name, action, response.status_code)
        logger.debug("[%s] Response: %s", self.name, response.text)

        try:
            data = response.json()
        except ValueError as e:
            msg = f"failed to parse response (HTTP {response.status_code})"
            raise error_cls(msg, self.name) from e

        if not isinstance(data, dict):
            msg = f"unexpected response: {response.text}"
            raise error_cls(msg, self.name)

        if not response.is_success:
            code = data.get("Code", response.status_code)
            message = data.get("Message", "Unknown error")
            msg = f"API request failed: {code}: {message}"
            raise error_cls(msg, self.name)

        logger.debug("[%s] %s -> RequestId: %s", self.name, action, data.get("RequestId"))
        return data
