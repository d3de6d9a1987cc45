from __future__ import annotations

from typing import Callable, Iterator, List

import httpx
import pytest

from krakenapi.integrations.kraken.kraken_client import KrakenClient
from krakenapi.integrations.kraken.kraken_signature import NonceSource
from tests._kraken_helpers import API_KEY, API_SECRET, FIXED_NONCE, RecordingTransport


@pytest.fixture()
def fixed_nonce_source() -> NonceSource:
    return NonceSource(clock=lambda: FIXED_NONCE)


@pytest.fixture()
def make_client(fixed_nonce_source: NonceSource) -> Iterator[Callable[..., KrakenClient]]:
    http_clients: List[httpx.Client] = []

    def _factory(transport: RecordingTransport, api_key: str = API_KEY, api_secret: str = API_SECRET) -> KrakenClient:
        http_client = httpx.Client(transport=httpx.MockTransport(transport))
        http_clients.append(http_client)
        return KrakenClient(
            api_key,
            api_secret,
            base_url="https://api.kraken.test",
            http_client=http_client,
            nonce_source=fixed_nonce_source,
        )

    yield _factory

    for http_client in http_clients:
        http_client.close()
