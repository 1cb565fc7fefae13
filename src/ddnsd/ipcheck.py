"""
Public IP discovery.

The current address of each family is fetched from a plain-text "what is
my IP" endpoint with a short timeout.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import TYPE_CHECKING

import httpx

from ddnsd.errors import IPDiscoveryError
from ddnsd.models import AddressFamily

if TYPE_CHECKING:
    from typing import Final


# Default check endpoints (plain text response body)
DEFAULT_IPV4_CHECK_URL: Final[str] = "https://iplark.com/ipapi/public/ip"
DEFAULT_IPV6_CHECK_URL: Final[str] = "https://6.iplark.com/ip"

# HTTP timeout in seconds
IP_CHECK_TIMEOUT: Final[float] = 5.0


logger = logging.getLogger(__name__)


async def fetch_public_ip(
    url: str,
    family: AddressFamily,
    *,
    timeout: float = IP_CHECK_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Fetch the public IP address of one family.

    Parameters
    ----------
    url : str
        Check endpoint returning the caller's address as plain text.
    family : AddressFamily
        The expected address family.
    timeout : float, optional
        Request timeout in seconds.
    transport : httpx.AsyncBaseTransport | None, optional
        Custom transport for the HTTP client.

    Returns
    -------
    str
        The address, stripped of surrounding whitespace.

    Raises
    ------
    IPDiscoveryError
        On network failure, a non-200 status, an empty body or a body that
        is not an address of the requested family.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        msg = f"HTTP request failed: {e}"
        raise IPDiscoveryError(family, msg) from e

    logger.debug("[ipcheck] GET %s -> %d", url, response.status_code)

    if response.status_code != httpx.codes.OK:
        msg = f"HTTP response error: status code={response.status_code}"
        raise IPDiscoveryError(family, msg)

    ip = response.text.strip()
    if not ip:
        msg = f"empty response, no {family} address obtained"
        raise IPDiscoveryError(family, msg)

    try:
        address = ipaddress.ip_address(ip)
    except ValueError as e:
        msg = f"invalid address in response: {ip!r}"
        raise IPDiscoveryError(family, msg) from e

    expected_version = 4 if family is AddressFamily.IPV4 else 6
    if address.version != expected_version:
        msg = f"expected an {family} address, got {ip!r}"
        raise IPDiscoveryError(family, msg)

    return ip
