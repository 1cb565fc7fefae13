"""
Tencent Cloud DNSPod provider implementation.

This module implements the Tencent Cloud DNSPod API using the official SDK.
Only supports China mainland DNSPod (not international version api.dnspod.com).
Endpoint: dnspod.tencentcloudapi.com
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tencentcloud.common import credential
from tencentcloud.common.profile.client_profile import ClientProfile
from tencentcloud.common.profile.http_profile import HttpProfile
from tencentcloud.dnspod.v20210323 import dnspod_client_async, models

from ddnsd.errors import ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord
from ddnsd.providers.base import BaseDNSProvider

if TYPE_CHECKING:
    from typing import Final

    from ddnsd.models import ProviderCredentials, RecordType


# Tencent Cloud DNSPod endpoint
DNSPOD_ENDPOINT: Final[str] = "dnspod.tencentcloudapi.com"

# SDK request timeout in seconds
DNSPOD_TIMEOUT: Final[int] = 5

# DNSPod's default resolution line
DEFAULT_RECORD_LINE: Final[str] = "默认"

# Error text fragments that DescribeRecordList uses to say "no records".
# Matching any of them means the record is absent, not that the query failed.
NO_RECORD_SIGNATURES: Final[tuple[str, ...]] = (
    "ResourceNotFound.NoDataOfRecord",  # API 3.0 error code
    "No records",  # English message
    "记录列表为空",  # Chinese message ("record list is empty")
    "RecordListEmpty",  # legacy code
)


logger = logging.getLogger(__name__)


def is_no_record_error(error: Exception) -> bool:
    """
    Check whether an SDK error means "the record list is empty".

    Parameters
    ----------
    error : Exception
        The error raised by the SDK.

    Returns
    -------
    bool
        True if the error text matches a known "no records" signature.
    """
    text = str(error)
    return any(signature in text for signature in NO_RECORD_SIGNATURES)


class DNSPodProvider(BaseDNSProvider):
    """
    Tencent Cloud DNSPod provider.

    Uses the official tencentcloud-sdk-python-dnspod SDK. Records are always
    written on the default line.

    Note: Only supports China mainland DNSPod, not international version.
    """

    def __init__(self, credentials: ProviderCredentials) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        credentials : ProviderCredentials
            Tencent Cloud SecretId (secret_id) and SecretKey (secret_key).
        """
        self._credential = credential.Credential(
            credentials.secret_id,
            credentials.secret_key,
        )

        http_profile = HttpProfile()
        http_profile.endpoint = DNSPOD_ENDPOINT
        http_profile.reqTimeout = DNSPOD_TIMEOUT

        self._client_profile = ClientProfile()
        self._client_profile.httpProfile = http_profile

    @property
    def name(self) -> str:
        """Get the provider name."""
        return "dnspod"

    def _create_client(self) -> dnspod_client_async.DnspodClient:
        """
        Create a Tencent Cloud DNSPod client.

        Returns
        -------
        DnspodClient
            The DNSPod client instance.
        """
        return dnspod_client_async.DnspodClient(
            self._credential,
            "",
            self._client_profile,
        )

    async def get_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
    ) -> DNSRecord | None:
        """Query the first record for a subdomain via DescribeRecordList."""
        request = models.DescribeRecordListRequest()
        request.Domain = domain
        request.SubDomain = subdomain
        request.RecordType = record_type.value

        try:
            async with self._create_client() as client:
                response = await client.DescribeRecordList(request)
        except Exception as e:
            if is_no_record_error(e):
                logger.debug("[dnspod] No records found (not an error)")
                return None
            logger.debug(
                "[dnspod: DescribeRecordList] Failed to describe record list: '%s'",
                e,
            )
            msg = f"API request failed: {e}"
            raise ProviderQueryError(msg, self.name) from e

        logger.debug("[dnspod] DescribeRecordList -> RequestId: %s", response.RequestId)

        if not response.RecordList:
            return None

        first = response.RecordList[0]
        if first.RecordId is None or first.Value is None:
            msg = "response record is missing RecordId or Value"
            raise ProviderQueryError(msg, self.name)
        return DNSRecord(record_id=str(first.RecordId), value=str(first.Value))

    async def create_record(
        self,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> str:
        """Create a record on the default line via CreateRecord."""
        request = models.CreateRecordRequest()
        request.Domain = domain
        request.SubDomain = subdomain
        request.RecordType = record_type.value
        request.RecordLine = DEFAULT_RECORD_LINE
        request.Value = value

        try:
            async with self._create_client() as client:
                response = await client.CreateRecord(request)
        except Exception as e:
            msg = f"API request failed: {e}"
            raise ProviderWriteError(msg, self.name) from e

        logger.debug(
            "[dnspod] CreateRecord -> RequestId: %s, RecordId: %s",
            response.RequestId,
            response.RecordId,
        )
        if response.RecordId is None:
            msg = "response is missing RecordId"
            raise ProviderWriteError(msg, self.name)
        return str(response.RecordId)

    async def update_record(
        self,
        record_id: str,
        domain: str,
        subdomain: str,
        record_type: RecordType,
        value: str,
    ) -> None:
        """Modify a record's value via ModifyRecord."""
        try:
            numeric_id = int(record_id)
        except ValueError as e:
            msg = f"invalid record ID: {record_id!r}"
            raise ProviderWriteError(msg, self.name) from e

        request = models.ModifyRecordRequest()
        request.Domain = domain
        request.RecordId = numeric_id
        request.SubDomain = subdomain
        request.RecordType = record_type.value
        request.RecordLine = DEFAULT_RECORD_LINE
        request.Value = value

        try:
            async with self._create_client() as client:
                response = await client.ModifyRecord(request)
        except Exception as e:
            msg = f"API request failed: {e}"
            raise ProviderWriteError(msg, self.name) from e

        logger.debug("[dnspod] ModifyRecord -> RequestId: %s", response.RequestId)
