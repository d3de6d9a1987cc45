from __future__ import annotations

from typing import List, Sequence


class KrakenError(Exception):
    """Base class for every error raised by the Kraken integration."""


class InvalidSecret(KrakenError):
    """The API secret is not valid base64 (or is empty)."""


class MissingCredentials(KrakenError):
    """A private endpoint was called on a client without API key/secret."""


class ApiError(KrakenError):
    """
    Errors reported by the exchange in the response envelope.

    The messages are kept verbatim, in the order the exchange sent them.
    """

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__(", ".join(self.messages))


class DecodeError(KrakenError):
    """A response could not be decoded into the expected shape."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        self.reason = message
        super().__init__(f"{message} (at '{path}')" if path else message)


class MalformedEnvelope(DecodeError):
    """The body is not a JSON object with an 'error' array of strings."""


class UnexpectedType(DecodeError):
    """A JSON value of the wrong kind was found at a position."""


class ArityMismatch(DecodeError):
    """A positional array does not have the exact number of entries expected."""


class NumericFormatError(DecodeError):
    """A string-encoded number does not hold a base-10 decimal literal."""
