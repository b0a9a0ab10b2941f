import json

import pytest

from debug_gate.keys import Ed25519Scheme, SignatureScheme
from debug_gate.util import sha256_hex
from debug_gate.verifier import (
    SignedRequestClaim,
    SignedRequestVerifier,
    canonical_message,
    request_hash,
    sign_request,
)

ROUTE = "/debug/replay"


def flip_bit(sig_hex: str, bit: int = 0) -> str:
    raw = bytearray(bytes.fromhex(sig_hex))
    raw[bit // 8] ^= 1 << (bit % 8)
    return raw.hex()


def test_canonical_message_layout():
    assert canonical_message(ROUTE, 1001) == b'{"count":"1001","route":"/debug/replay"}'


def test_canonical_message_keeps_large_counters_exact():
    big = 2 ** 70 + 1
    assert json.loads(canonical_message(ROUTE, big))["count"] == str(big)


def test_request_hash_is_sha256_of_canonical_message():
    assert request_hash(ROUTE, 5) == sha256_hex(canonical_message(ROUTE, 5))


def test_valid_signature_verifies(key_high):
    sig = sign_request(ROUTE, 1001, key_high.signing_key)
    claim = SignedRequestClaim(ROUTE, 1001, sig, key_high.public_key)
    result = SignedRequestVerifier().check(claim)
    assert result.verified
    assert result.fault is None


def test_signature_is_bound_to_route_and_counter(key_high):
    sig = sign_request(ROUTE, 1001, key_high.signing_key)
    verifier = SignedRequestVerifier()
    assert not verifier.verify(SignedRequestClaim("/debug/counters", 1001, sig, key_high.public_key))
    assert not verifier.verify(SignedRequestClaim(ROUTE, 1002, sig, key_high.public_key))


def test_wrong_key_does_not_verify(key_high, key_medium):
    sig = sign_request(ROUTE, 1001, key_medium.signing_key)
    claim = SignedRequestClaim(ROUTE, 1001, sig, key_high.public_key)
    result = SignedRequestVerifier().check(claim)
    assert not result.verified
    assert result.fault is None


def test_single_bit_flip_fails(key_high):
    sig = sign_request(ROUTE, 1001, key_high.signing_key)
    verifier = SignedRequestVerifier()
    for bit in (0, 255, 511):
        claim = SignedRequestClaim(ROUTE, 1001, flip_bit(sig, bit), key_high.public_key)
        assert not verifier.verify(claim)


def test_expected_owner_mismatch_rejected_before_crypto(key_high, key_medium):
    class ExplodingScheme(Ed25519Scheme):
        def verify(self, payload, signature, public_key):
            raise AssertionError("primitive must not be called")

    sig = sign_request(ROUTE, 1001, key_high.signing_key)
    claim = SignedRequestClaim(ROUTE, 1001, sig, key_high.public_key)
    result = SignedRequestVerifier(ExplodingScheme()).check(claim, expected_owner_key=key_medium.public_key)
    assert not result.verified
    assert result.fault is None


@pytest.mark.parametrize("signature", ["", "zz" * 64, "ab" * 10, "abc"])
def test_malformed_signature_is_a_fault(key_high, signature):
    claim = SignedRequestClaim(ROUTE, 1001, signature, key_high.public_key)
    result = SignedRequestVerifier().check(claim)
    assert not result.verified
    assert result.fault


def test_malformed_owner_key_is_a_fault(key_high):
    sig = sign_request(ROUTE, 1001, key_high.signing_key)
    result = SignedRequestVerifier().check(SignedRequestClaim(ROUTE, 1001, sig, "not-a-key"))
    assert not result.verified
    assert result.fault


def test_primitive_errors_fail_closed():
    class BrokenScheme(SignatureScheme):
        def hash(self, data):
            return sha256_hex(data)

        def sign(self, payload, signing_key):
            raise NotImplementedError

        def verify(self, payload, signature, public_key):
            raise RuntimeError("backend unavailable")

    claim = SignedRequestClaim(ROUTE, 1, "00", "11")
    result = SignedRequestVerifier(BrokenScheme()).check(claim)
    assert not result
    assert "backend unavailable" in result.fault


def test_truthy_non_bool_from_primitive_is_not_success():
    class SloppyScheme(Ed25519Scheme):
        def verify(self, payload, signature, public_key):
            return "yes"

    claim = SignedRequestClaim(ROUTE, 1, "00", "11")
    assert not SignedRequestVerifier(SloppyScheme()).verify(claim)
