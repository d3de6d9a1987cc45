"""
Request signing for private Kraken endpoints.

API-Sign = base64(HMAC-SHA512(base64_decode(secret), path + SHA256(nonce + postdata)))

The post data is encoded once, with keys sorted, and the same string is used
for the signature and as the request body: the server re-derives the digest
from the body bytes it receives.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

from krakenapi.integrations.kraken.kraken_constants import API_KEY_HEADER, API_SIGN_HEADER, NONCE_PARAMETER
from krakenapi.integrations.kraken.kraken_errors import InvalidSecret
from krakenapi.logging.logger import get_logger

log = get_logger(__name__)


def encode_params(params: Mapping[str, str]) -> str:
    """Percent-encode parameters as a query string with keys in ascending order."""
    return urlencode(sorted(params.items()))


def decode_secret(secret: str | bytes) -> bytes:
    """
    Decode a base64 API secret.

    Raises:
        InvalidSecret: if the secret is empty or not valid base64.
    """
    if not secret:
        raise InvalidSecret("API secret is empty.")
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as error:
        raise InvalidSecret(f"API secret is not valid base64: {error}") from error


def _sign_encoded(path: str, nonce: str, encoded_params: str, secret: bytes) -> str:
    digest = hashlib.sha256((nonce + encoded_params).encode("utf-8")).digest()
    mac = hmac.new(secret, path.encode("utf-8") + digest, hashlib.sha512)
    return base64.b64encode(mac.digest()).decode("ascii")


def sign(path: str, params: Mapping[str, str], secret: str | bytes) -> str:
    """
    Compute the API-Sign header value for a request.

    Args:
        path: URI path of the endpoint, e.g. '/0/private/Balance'.
        params: Request parameters, already holding the 'nonce' to sign.
        secret: The base64-encoded API secret.

    Returns:
        The base64 signature.
    """
    nonce = str(params.get(NONCE_PARAMETER, ""))
    return _sign_encoded(path, nonce, encode_params(params), decode_secret(secret))


class NonceSource:
    """
    Nanosecond wall-clock nonces, strictly increasing for every caller sharing
    the instance. When the clock returns a value that is not greater than the
    previous nonce, the previous nonce plus one is issued instead.
    """

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> str:
        with self._lock:
            candidate = int(self._clock())
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str = field(repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)

    def decoded_secret(self) -> bytes:
        return decode_secret(self.api_secret)


@dataclass(frozen=True)
class SignedRequest:
    """Everything the transport needs to POST a signed call."""
    headers: Dict[str, str]
    body: str
    params: Dict[str, str]


class Signer:
    """Stamp a fresh nonce into request parameters and sign them."""

    def __init__(self, credentials: Credentials, nonce_source: Optional[NonceSource] = None) -> None:
        self.credentials = credentials
        self.nonce_source = nonce_source or NonceSource()

    def sign_request(self, path: str, params: Mapping[str, str]) -> SignedRequest:
        secret = self.credentials.decoded_secret()

        stamped: Dict[str, str] = {str(key): str(value) for key, value in params.items()}
        stamped[NONCE_PARAMETER] = self.nonce_source.next()

        body = encode_params(stamped)
        signature = _sign_encoded(path, stamped[NONCE_PARAMETER], body, secret)
        log.debug("[KRAKEN][SIGN] Signed %s with %d parameter(s).", path, len(stamped))

        headers = {
            API_KEY_HEADER: self.credentials.api_key,
            API_SIGN_HEADER: signature,
        }
        return SignedRequest(headers=headers, body=body, params=stamped)
