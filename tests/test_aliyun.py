"""Tests for Alibaba Cloud request signing and the Aliyun provider."""

from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import UTC, datetime

import httpx
import pytest

from ddnsd.errors import ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord, ProviderCredentials, RecordType
from ddnsd.providers import aliyun_signer
from ddnsd.providers.aliyun import ALIDNS_ENDPOINT_CN, ALIDNS_ENDPOINT_INTL, AliyunProvider

SECRET = "testsecret"
CREDENTIALS = ProviderCredentials(secret_id="testid", secret_key=SECRET)


class TestPercentEncode:
    """Tests for RFC 3986 percent-encoding."""

    @pytest.mark.parametrize(
        ("original", "expected"),
        [
            ("abcXYZ019-_.~", "abcXYZ019-_.~"),
            ("a b", "a%20b"),
            ("a*b", "a%2Ab"),
            ("a+b", "a%2Bb"),
            ("/", "%2F"),
            ("2024-01-02T03:04:05Z", "2024-01-02T03%3A04%3A05Z"),
            ("默认", "%E9%BB%98%E8%AE%A4"),
        ],
    )
    def test_encoding(self, original: str, expected: str) -> None:
        assert aliyun_signer.percent_encode(original) == expected


class TestCanonicalize:
    """Tests for the canonicalized query string."""

    def test_sorted_by_key(self):
        params = {"Type": "A", "Action": "DescribeSubDomainRecords", "SubDomain": "home.example.com"}
        assert aliyun_signer.canonicalize(params) == (
            "Action=DescribeSubDomainRecords&SubDomain=home.example.com&Type=A"
        )

    def test_insertion_order_does_not_matter(self):
        items = [
            ("Action", "AddDomainRecord"),
            ("DomainName", "example.com"),
            ("RR", "home"),
            ("Type", "A"),
            ("Value", "203.0.113.5"),
            ("Format", "JSON"),
            ("AccessKeyId", "testid"),
        ]
        forward = dict(items)
        backward = dict(reversed(items))

        assert aliyun_signer.canonicalize(forward) == aliyun_signer.canonicalize(backward)
        assert aliyun_signer.sign("GET", forward, SECRET) == aliyun_signer.sign(
            "GET", backward, SECRET,
        )

    def test_byte_order_sort(self):
        # Upper-case letters sort before lower-case ones
        assert aliyun_signer.canonicalize({"a": "1", "B": "2"}) == "B=2&a=1"

    def test_values_are_encoded(self):
        assert aliyun_signer.canonicalize({"Key": "a b&c"}) == "Key=a%20b%26c"


class TestSign:
    """Tests for signature computation."""

    def test_string_to_sign(self):
        result = aliyun_signer.string_to_sign("get", "A=1&B=2")
        assert result == "GET&%2F&A%3D1%26B%3D2"

    def test_signature_matches_manual_hmac(self):
        params = {"Type": "A", "Action": "DescribeSubDomainRecords", "SubDomain": "home.example.com"}
        expected_string = (
            "GET&%2F&Action%3DDescribeSubDomainRecords"
            "%26SubDomain%3Dhome.example.com%26Type%3DA"
        )
        expected = base64.b64encode(
            hmac.new(b"testsecret&", expected_string.encode(), hashlib.sha1).digest(),
        ).decode()

        assert aliyun_signer.sign("GET", params, SECRET) == expected

    def test_signed_query_contains_sorted_signature(self):
        params = {"Action": "UpdateDomainRecord", "Value": "1.2.3.4"}
        signature = aliyun_signer.sign("GET", params, SECRET)

        query = aliyun_signer.signed_query("GET", params, SECRET)

        assert query == (
            "Action=UpdateDomainRecord"
            f"&Signature={aliyun_signer.percent_encode(signature)}"
            "&Value=1.2.3.4"
        )
        # Input is not modified
        assert "Signature" not in params

    def test_different_secret_changes_signature(self):
        params = {"Action": "AddDomainRecord"}
        assert aliyun_signer.sign("GET", params, "a") != aliyun_signer.sign(
            "GET", params, "b",
        )


class TestCommonParams:
    """Tests for common request parameters."""

    def test_fixed_values(self):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        params = aliyun_signer.common_params("testid", now)

        assert params["Format"] == "JSON"
        assert params["Version"] == "2015-01-09"
        assert params["AccessKeyId"] == "testid"
        assert params["SignatureMethod"] == "HMAC-SHA1"
        assert params["SignatureVersion"] == "1.0"
        assert params["Timestamp"] == "2024-01-02T03:04:05Z"
        assert params["SignatureNonce"].isdigit()

    def test_nonce_differs_between_requests(self):
        first = aliyun_signer.common_params("testid")
        second = aliyun_signer.common_params("testid")
        assert first["SignatureNonce"] != second["SignatureNonce"]


def make_provider(handler, *, domestic: bool = True) -> tuple[AliyunProvider, list[httpx.Request]]:
    """Create a provider whose requests are answered by `handler`."""
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    provider = AliyunProvider(
        CREDENTIALS,
        domestic=domestic,
        transport=httpx.MockTransport(record),
    )
    return provider, requests


class TestAliyunProvider:
    """Tests for AliyunProvider."""

    def test_endpoints(self):
        assert AliyunProvider(CREDENTIALS).endpoint == ALIDNS_ENDPOINT_CN
        assert AliyunProvider(CREDENTIALS).name == "aliyun"
        intl = AliyunProvider(CREDENTIALS, domestic=False)
        assert intl.endpoint == ALIDNS_ENDPOINT_INTL
        assert intl.name == "alibabacloud"

    @pytest.mark.asyncio
    async def test_get_record_found(self):
        body = {
            "RequestId": "req-1",
            "TotalCount": 2,
            "DomainRecords": {
                "Record": [
                    {"RecordId": "42", "RR": "home", "Type": "A", "Value": "198.51.100.9"},
                    {"RecordId": "43", "RR": "home", "Type": "A", "Value": "198.51.100.10"},
                ],
            },
        }
        provider, requests = make_provider(lambda r: httpx.Response(200, json=body))

        record = await provider.get_record("example.com", "home", RecordType.A)

        assert record == DNSRecord(record_id="42", value="198.51.100.9")
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "GET"
        assert request.url.host == ALIDNS_ENDPOINT_CN
        assert request.url.params["Action"] == "DescribeSubDomainRecords"
        assert request.url.params["SubDomain"] == "home.example.com"
        assert request.url.params["Type"] == "A"
        assert request.url.params["AccessKeyId"] == "testid"

    @pytest.mark.asyncio
    async def test_request_signature_verifies(self):
        body = {"RequestId": "req-1", "TotalCount": 0}
        provider, requests = make_provider(lambda r: httpx.Response(200, json=body))

        await provider.get_record("example.com", "home", RecordType.A)

        params = dict(requests[0].url.params)
        signature = params.pop("Signature")
        assert signature == aliyun_signer.sign("GET", params, SECRET)

    @pytest.mark.asyncio
    async def test_get_record_zero_count_is_none(self):
        body = {"RequestId": "req-1", "TotalCount": 0, "DomainRecords": {"Record": []}}
        provider, _ = make_provider(lambda r: httpx.Response(200, json=body))

        assert await provider.get_record("example.com", "home", RecordType.A) is None

    @pytest.mark.asyncio
    async def test_get_record_api_error(self):
        body = {
            "RequestId": "req-1",
            "Code": "InvalidAccessKeyId.NotFound",
            "Message": "Specified access key is not found.",
        }
        provider, _ = make_provider(lambda r: httpx.Response(404, json=body))

        with pytest.raises(ProviderQueryError) as exc_info:
            await provider.get_record("example.com", "home", RecordType.A)
        assert "InvalidAccessKeyId.NotFound" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_get_record_unparseable(self):
        provider, _ = make_provider(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderQueryError):
            await provider.get_record("example.com", "home", RecordType.A)

    @pytest.mark.asyncio
    async def test_get_record_missing_total_count(self):
        body = {"RequestId": "req-1", "DomainRecords": {"Record": []}}
        provider, _ = make_provider(lambda r: httpx.Response(200, json=body))

        with pytest.raises(ProviderQueryError, match="TotalCount"):
            await provider.get_record("example.com", "home", RecordType.A)

    @pytest.mark.asyncio
    async def test_get_record_malformed_records(self):
        body = {"TotalCount": 1, "DomainRecords": {"Record": []}}
        provider, _ = make_provider(lambda r: httpx.Response(200, json=body))

        with pytest.raises(ProviderQueryError):
            await provider.get_record("example.com", "home", RecordType.A)

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider, _ = make_provider(handler)

        with pytest.raises(ProviderQueryError) as exc_info:
            await provider.get_record("example.com", "home", RecordType.A)
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_create_record(self):
        body = {"RequestId": "req-2", "RecordId": "9999"}
        provider, requests = make_provider(lambda r: httpx.Response(200, json=body))

        record_id = await provider.create_record(
            "example.com", "home", RecordType.A, "203.0.113.5",
        )

        assert record_id == "9999"
        params = requests[0].url.params
        assert params["Action"] == "AddDomainRecord"
        assert params["DomainName"] == "example.com"
        assert params["RR"] == "home"
        assert params["Type"] == "A"
        assert params["Value"] == "203.0.113.5"

    @pytest.mark.asyncio
    async def test_create_record_error(self):
        body = {"Code": "DomainRecordDuplicate", "Message": "The DNS record already exists."}
        provider, _ = make_provider(lambda r: httpx.Response(400, json=body))

        with pytest.raises(ProviderWriteError) as exc_info:
            await provider.create_record("example.com", "home", RecordType.A, "203.0.113.5")
        assert "DomainRecordDuplicate" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_update_record(self):
        body = {"RequestId": "req-3", "RecordId": "42"}
        provider, requests = make_provider(lambda r: httpx.Response(200, json=body))

        await provider.update_record(
            "42", "example.com", "home", RecordType.AAAA, "2001:db8::1",
        )

        params = requests[0].url.params
        assert params["Action"] == "UpdateDomainRecord"
        assert params["RecordId"] == "42"
        assert params["RR"] == "home"
        assert params["Type"] == "AAAA"
        assert params["Value"] == "2001:db8::1"

    @pytest.mark.asyncio
    async def test_update_record_error(self):
        provider, _ = make_provider(
            lambda r: httpx.Response(400, json={"Code": "Forbidden", "Message": "no"}),
        )

        with pytest.raises(ProviderWriteError):
            await provider.update_record("42", "example.com", "home", RecordType.A, "1.2.3.4")
