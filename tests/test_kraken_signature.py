from __future__ import annotations

import base64
import hashlib
import hmac
import threading
from typing import List

import pytest

from krakenapi.integrations.kraken.kraken_errors import InvalidSecret
from krakenapi.integrations.kraken.kraken_signature import (
    Credentials,
    NonceSource,
    Signer,
    encode_params,
    sign,
)
from tests._kraken_helpers import API_KEY, API_SECRET

# Reference vector published in the Kraken REST authentication guide.
REFERENCE_SECRET = "kQH5HW/8p1uGOVjbgWA7FunAmGO8lsSUXNsu3eow76sz84Q18fWxnyRzBHCd3pd5nE9qa99HAZtuZuj6F1huXg=="
REFERENCE_PATH = "/0/private/AddOrder"
REFERENCE_PARAMS = {
    "nonce": "1616492376594",
    "ordertype": "limit",
    "pair": "XBTUSD",
    "price": "37500",
    "type": "buy",
    "volume": "1.25",
}
REFERENCE_SIGNATURE = "4/dpxb3iT4tp/ZCVEwSnEsLxx0bqyhLpdfOpc6fn7OR8+UClSV5n9E6aSS8MPtnRfp32bAb0nmbRn6H8ndwLUQ=="


def _expected_signature(path: str, nonce: str, postdata: str, secret: str) -> str:
    sha_digest = hashlib.sha256((nonce + postdata).encode("utf-8")).digest()
    mac = hmac.new(base64.b64decode(secret), path.encode("utf-8") + sha_digest, hashlib.sha512)
    return base64.b64encode(mac.digest()).decode("utf-8")


def test_encode_params_sorts_keys_and_percent_encodes() -> None:
    encoded = encode_params({"pair": "XBT/EUR", "close[ordertype]": "limit", "asset": "XBT,ETH"})
    assert encoded == "asset=XBT%2CETH&close%5Bordertype%5D=limit&pair=XBT%2FEUR"


def test_sign_matches_published_reference_vector() -> None:
    assert encode_params(REFERENCE_PARAMS) == (
        "nonce=1616492376594&ordertype=limit&pair=XBTUSD&price=37500&type=buy&volume=1.25"
    )
    assert sign(REFERENCE_PATH, REFERENCE_PARAMS, REFERENCE_SECRET) == REFERENCE_SIGNATURE


def test_sign_matches_hand_computed_signature() -> None:
    params = {"asset": "XBT", "nonce": "42"}
    expected = _expected_signature("/0/private/Balance", "42", "asset=XBT&nonce=42", API_SECRET)
    assert sign("/0/private/Balance", params, API_SECRET) == expected


def test_sign_is_deterministic() -> None:
    params = {"nonce": "1000", "pair": "XXBTZEUR"}
    first = sign("/0/private/OpenPositions", params, API_SECRET)
    second = sign("/0/private/OpenPositions", dict(params), API_SECRET)
    assert first == second


def test_sign_changes_with_nonce() -> None:
    first = sign("/0/private/Balance", {"nonce": "1000"}, API_SECRET)
    second = sign("/0/private/Balance", {"nonce": "1001"}, API_SECRET)
    assert first != second


def test_sign_uses_the_nonce_string_verbatim() -> None:
    # Same numeric value, different text: the digest covers the exact string.
    padded = sign("/0/private/Balance", {"nonce": "01000"}, API_SECRET)
    plain = sign("/0/private/Balance", {"nonce": "1000"}, API_SECRET)
    assert padded != plain


def test_sign_without_nonce_does_not_fail() -> None:
    expected = _expected_signature("/0/private/Balance", "", "asset=XBT", API_SECRET)
    assert sign("/0/private/Balance", {"asset": "XBT"}, API_SECRET) == expected


@pytest.mark.parametrize("secret", ["", "not base64!", "abc"])
def test_sign_rejects_invalid_secret(secret: str) -> None:
    with pytest.raises(InvalidSecret):
        sign("/0/private/Balance", {"nonce": "1"}, secret)


def test_nonce_source_is_strictly_increasing_with_a_stuck_clock() -> None:
    source = NonceSource(clock=lambda: 1_000)
    assert [source.next() for _ in range(3)] == ["1000", "1001", "1002"]


def test_nonce_source_never_goes_backwards_with_a_clock_that_jumps_back() -> None:
    readings = iter([5_000, 4_000, 6_000])
    source = NonceSource(clock=lambda: next(readings))
    assert [source.next() for _ in range(3)] == ["5000", "5001", "6000"]


def test_nonce_source_is_strictly_increasing_across_threads() -> None:
    source = NonceSource(clock=lambda: 7)
    collected: List[int] = []
    lock = threading.Lock()

    def _draw() -> None:
        values = [int(source.next()) for _ in range(200)]
        with lock:
            collected.extend(values)

    threads = [threading.Thread(target=_draw) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(collected) == 1600
    assert len(set(collected)) == 1600
    assert sorted(collected) == list(range(7, 7 + 1600))


def test_signer_stamps_nonce_and_signs_the_body() -> None:
    signer = Signer(Credentials(API_KEY, API_SECRET), NonceSource(clock=lambda: 123))
    params = {"asset": "XBT"}

    signed = signer.sign_request("/0/private/Balance", params)

    assert params == {"asset": "XBT"}
    assert signed.params == {"asset": "XBT", "nonce": "123"}
    assert signed.body == "asset=XBT&nonce=123"
    assert signed.headers["API-Key"] == API_KEY
    assert signed.headers["API-Sign"] == _expected_signature("/0/private/Balance", "123", signed.body, API_SECRET)


def test_signer_overrides_a_caller_supplied_nonce() -> None:
    signer = Signer(Credentials(API_KEY, API_SECRET), NonceSource(clock=lambda: 500))
    signed = signer.sign_request("/0/private/Balance", {"nonce": "1"})
    assert signed.params["nonce"] == "500"


def test_signer_rejects_invalid_secret() -> None:
    signer = Signer(Credentials(API_KEY, "%%%"))
    with pytest.raises(InvalidSecret):
        signer.sign_request("/0/private/Balance", {})


def test_credentials_repr_hides_the_secret() -> None:
    assert API_SECRET not in repr(Credentials(API_KEY, API_SECRET))
