"""
DNS provider adapters and the factory that selects them.

Supported identifiers:
- "dnspod": Tencent Cloud DNSPod
- "cloudflare": CloudFlare
- "aliyun": Alibaba Cloud DNS, China endpoint
- "alibabacloud": Alibaba Cloud DNS, international endpoint
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ddnsd.errors import UnsupportedProviderError
from ddnsd.providers.aliyun import AliyunProvider
from ddnsd.providers.base import BaseDNSProvider
from ddnsd.providers.cloudflare import CloudflareProvider
from ddnsd.providers.dnspod import DNSPodProvider

if TYPE_CHECKING:
    from typing import Final

    from ddnsd.models import ProviderCredentials


SUPPORTED_PROVIDERS: Final[tuple[str, ...]] = (
    "dnspod",
    "cloudflare",
    "aliyun",
    "alibabacloud",
)


def create_provider(name: str, credentials: ProviderCredentials) -> BaseDNSProvider:
    """
    Construct the adapter for a provider identifier.

    No network I/O happens here; the first request is sent on first use.

    Parameters
    ----------
    name : str
        Provider identifier (case-insensitive).
    credentials : ProviderCredentials
        Credentials owned by the new adapter.

    Returns
    -------
    BaseDNSProvider
        The constructed adapter.

    Raises
    ------
    UnsupportedProviderError
        If the identifier is not one of `SUPPORTED_PROVIDERS`.
    """
    key = name.strip().lower()

    if key == "dnspod":
        return DNSPodProvider(credentials)
    if key == "cloudflare":
        return CloudflareProvider(credentials)
    if key == "aliyun":
        return AliyunProvider(credentials, domestic=True)
    if key == "alibabacloud":
        return AliyunProvider(credentials, domestic=False)
    raise UnsupportedProviderError(name)


__all__ = [
    "SUPPORTED_PROVIDERS",
    "AliyunProvider",
    "BaseDNSProvider",
    "CloudflareProvider",
    "DNSPodProvider",
    "create_provider",
]
