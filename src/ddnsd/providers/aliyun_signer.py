"""
Alibaba Cloud RPC request signing (signature version 1.0, HMAC-SHA1).

All functions here are pure apart from `common_params`, which stamps the
current time and a nonce. The provider recomputes the signature on its
side, so encoding and ordering must match its rules byte for byte.

Reference: https://www.alibabacloud.com/help/en/sdk/product-overview/rpc-mechanism
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Final


API_VERSION: Final[str] = "2015-01-09"
SIGNATURE_METHOD: Final[str] = "HMAC-SHA1"
SIGNATURE_VERSION: Final[str] = "1.0"
TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%SZ"


def percent_encode(value: str) -> str:
    """
    Percent-encode a string per RFC 3986.

    Only unreserved characters (A-Z a-z 0-9 - _ . ~) are left as-is, so a
    space becomes "%20" and "*" becomes "%2A".

    Parameters
    ----------
    value : str
        The string to encode.

    Returns
    -------
    str
        The encoded string.
    """
    return quote(value, safe="~")


def canonicalize(params: Mapping[str, str]) -> str:
    """
    Build the canonicalized query string.

    Parameters
    ----------
    params : Mapping[str, str]
        Request parameters (without "Signature").

    Returns
    -------
    str
        "key=value" pairs sorted by key and joined with "&". The result
        depends only on the content of `params`, not its insertion order.
    """
    return "&".join(
        f"{percent_encode(key)}={percent_encode(params[key])}"
        for key in sorted(params)
    )


def string_to_sign(method: str, canonicalized_query: str) -> str:
    """
    Build the string to sign.

    Parameters
    ----------
    method : str
        HTTP method (e.g., "GET").
    canonicalized_query : str
        Output of `canonicalize`.

    Returns
    -------
    str
        "METHOD&%2F&<encoded canonicalized query>".
    """
    return "&".join(
        (method.upper(), percent_encode("/"), percent_encode(canonicalized_query)),
    )


def sign(method: str, params: Mapping[str, str], secret: str) -> str:
    """
    Compute the request signature.

    Parameters
    ----------
    method : str
        HTTP method.
    params : Mapping[str, str]
        Request parameters (without "Signature").
    secret : str
        The AccessKey secret.

    Returns
    -------
    str
        Base64 encoded HMAC-SHA1 digest, keyed with `secret + "&"`.
    """
    message = string_to_sign(method, canonicalize(params))
    digest = hmac.new(
        f"{secret}&".encode(),
        message.encode(),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode()


def signed_query(method: str, params: Mapping[str, str], secret: str) -> str:
    """
    Sign the parameters and build the final query string.

    Parameters
    ----------
    method : str
        HTTP method.
    params : Mapping[str, str]
        Request parameters (without "Signature").
    secret : str
        The AccessKey secret.

    Returns
    -------
    str
        The sorted, encoded query string including "Signature".
    """
    signed = dict(params)
    signed["Signature"] = sign(method, params, secret)
    return canonicalize(signed)


def common_params(access_key_id: str, now: datetime | None = None) -> dict[str, str]:
    """
    Build the parameters every RPC request carries.

    Parameters
    ----------
    access_key_id : str
        The AccessKey ID.
    now : datetime | None, optional
        Request time; defaults to the current UTC time.

    Returns
    -------
    dict[str, str]
        Format, Version, AccessKeyId, signature settings, Timestamp and a
        per-request SignatureNonce.
    """
    now = now or datetime.now(UTC)
    return {
        "Format": "JSON",
        "Version": API_VERSION,
        "AccessKeyId": access_key_id,
        "SignatureMethod": SIGNATURE_METHOD,
        "SignatureVersion": SIGNATURE_VERSION,
        "Timestamp": now.astimezone(UTC).strftime(TIMESTAMP_FORMAT),
        "SignatureNonce": str(time.time_ns()),
    }
