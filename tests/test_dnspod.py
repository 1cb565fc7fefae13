"""Tests for the DNSPod provider."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from tencentcloud.common.exception.tencent_cloud_sdk_exception import TencentCloudSDKException

from ddnsd.errors import ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord, ProviderCredentials, RecordType
from ddnsd.providers.dnspod import (
    DEFAULT_RECORD_LINE,
    DNSPOD_ENDPOINT,
    DNSPOD_TIMEOUT,
    DNSPodProvider,
    is_no_record_error,
)


@pytest.fixture
def provider() -> DNSPodProvider:
    """Create a DNSPod provider with dummy credentials."""
    return DNSPodProvider(ProviderCredentials(secret_id="AKIDtest", secret_key="secret"))


@pytest.fixture
def client(provider: DNSPodProvider) -> MagicMock:
    """Replace the SDK client with a mock and return it."""
    sdk_client = MagicMock()
    context = MagicMock()
    context.__aenter__.return_value = sdk_client
    context.__aexit__.return_value = False
    provider._create_client = MagicMock(return_value=context)
    return sdk_client


class TestNoRecordDetection:
    """Tests for is_no_record_error."""

    @pytest.mark.parametrize(
        "message",
        [
            "ResourceNotFound.NoDataOfRecord",
            "No records on the list",
            "记录列表为空",
            "RecordListEmpty",
        ],
    )
    def test_known_signatures(self, message: str) -> None:
        assert is_no_record_error(Exception(message))

    def test_sdk_exception(self):
        error = TencentCloudSDKException(
            "ResourceNotFound.NoDataOfRecord", "记录列表为空。", "req-1",
        )
        assert is_no_record_error(error)

    def test_other_errors(self):
        error = TencentCloudSDKException("AuthFailure.SignatureFailure", "bad signature", "req-1")
        assert not is_no_record_error(error)


class TestDNSPodProvider:
    """Tests for DNSPodProvider."""

    def test_client_profile(self, provider):
        assert provider.name == "dnspod"
        http_profile = provider._client_profile.httpProfile
        assert http_profile.endpoint == DNSPOD_ENDPOINT
        assert http_profile.reqTimeout == DNSPOD_TIMEOUT

    @pytest.mark.asyncio
    async def test_get_record_found(self, provider, client):
        client.DescribeRecordList = AsyncMock(return_value=SimpleNamespace(
            RequestId="req-1",
            RecordList=[
                SimpleNamespace(RecordId=1234567, Value="198.51.100.9"),
                SimpleNamespace(RecordId=1234568, Value="198.51.100.10"),
            ],
        ))

        record = await provider.get_record("example.com", "home", RecordType.A)

        assert record == DNSRecord(record_id="1234567", value="198.51.100.9")
        request = client.DescribeRecordList.call_args.args[0]
        assert request.Domain == "example.com"
        assert request.SubDomain == "home"
        assert request.RecordType == "A"

    @pytest.mark.asyncio
    async def test_get_record_empty_list(self, provider, client):
        client.DescribeRecordList = AsyncMock(
            return_value=SimpleNamespace(RequestId="req-1", RecordList=[]),
        )

        assert await provider.get_record("example.com", "home", RecordType.A) is None

    @pytest.mark.asyncio
    async def test_get_record_not_found_error(self, provider, client):
        client.DescribeRecordList = AsyncMock(side_effect=TencentCloudSDKException(
            "ResourceNotFound.NoDataOfRecord", "No records on the list", "req-1",
        ))

        assert await provider.get_record("example.com", "home", RecordType.A) is None

    @pytest.mark.asyncio
    async def test_get_record_other_error(self, provider, client):
        client.DescribeRecordList = AsyncMock(side_effect=TencentCloudSDKException(
            "AuthFailure.SecretIdNotFound", "The SecretId is not found.", "req-1",
        ))

        with pytest.raises(ProviderQueryError) as exc_info:
            await provider.get_record("example.com", "home", RecordType.A)
        assert "AuthFailure.SecretIdNotFound" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, TencentCloudSDKException)

    @pytest.mark.asyncio
    async def test_create_record(self, provider, client):
        client.CreateRecord = AsyncMock(
            return_value=SimpleNamespace(RequestId="req-2", RecordId=7654321),
        )

        record_id = await provider.create_record(
            "example.com", "home", RecordType.AAAA, "2001:db8::1",
        )

        assert record_id == "7654321"
        request = client.CreateRecord.call_args.args[0]
        assert request.Domain == "example.com"
        assert request.SubDomain == "home"
        assert request.RecordType == "AAAA"
        assert request.RecordLine == DEFAULT_RECORD_LINE
        assert request.Value == "2001:db8::1"

    @pytest.mark.asyncio
    async def test_get_record_incomplete_item(self, provider, client):
        client.DescribeRecordList = AsyncMock(return_value=SimpleNamespace(
            RequestId="req-1",
            RecordList=[SimpleNamespace(RecordId=1234567, Value=None)],
        ))

        with pytest.raises(ProviderQueryError, match="missing RecordId or Value"):
            await provider.get_record("example.com", "home", RecordType.A)

    @pytest.mark.asyncio
    async def test_create_record_missing_id(self, provider, client):
        client.CreateRecord = AsyncMock(
            return_value=SimpleNamespace(RequestId="req-2", RecordId=None),
        )

        with pytest.raises(ProviderWriteError, match="missing RecordId"):
            await provider.create_record("example.com", "home", RecordType.A, "1.2.3.4")

    @pytest.mark.asyncio
    async def test_create_record_error(self, provider, client):
        client.CreateRecord = AsyncMock(side_effect=TencentCloudSDKException(
            "InvalidParameter.DomainRecordExist", "记录已经存在", "req-2",
        ))

        with pytest.raises(ProviderWriteError):
            await provider.create_record("example.com", "home", RecordType.A, "1.2.3.4")

    @pytest.mark.asyncio
    async def test_update_record_sends_numeric_id(self, provider, client):
        client.ModifyRecord = AsyncMock(return_value=SimpleNamespace(RequestId="req-3"))

        await provider.update_record("1234567", "example.com", "home", RecordType.A, "1.2.3.4")

        request = client.ModifyRecord.call_args.args[0]
        assert request.RecordId == 1234567
        assert request.Domain == "example.com"
        assert request.SubDomain == "home"
        assert request.RecordLine == DEFAULT_RECORD_LINE
        assert request.Value == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_update_record_invalid_id(self, provider, client):
        client.ModifyRecord = AsyncMock()

        with pytest.raises(ProviderWriteError, match="invalid record ID"):
            await provider.update_record("abc", "example.com", "home", RecordType.A, "1.2.3.4")
        client.ModifyRecord.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_record_error(self, provider, client):
        client.ModifyRecord = AsyncMock(side_effect=TencentCloudSDKException(
            "ResourceNotFound.NoDataOfRecord", "记录不存在", "req-3",
        ))

        with pytest.raises(ProviderWriteError):
            await provider.update_record("1", "example.com", "home", RecordType.A, "1.2.3.4")
