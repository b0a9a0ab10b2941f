"""
Signed-request verification.

An operator signs the request hash of a route and a replay counter:

    message      = {"count": "<counter as decimal string>", "route": "<route path>"}
    canonical    = canonical JSON of message (sorted keys, no whitespace, UTF-8)
    request_hash = sha256_hex(canonical)
    sig          = Ed25519(signing_key, request_hash as ASCII bytes), hex encoded

The counter is always serialized as a string so that large values survive
JSON round trips in any signer.
"""

from dataclasses import dataclass
from typing import Optional

from .keys import Ed25519Scheme, SignatureScheme
from .logging_config import audit_log
from .util import canonicalize, constant_time_compare


@dataclass(frozen=True)
class SignedRequestClaim:
    """What one request asserts: this route and counter were signed by owner_key."""
    route: str
    counter: int
    signature: str
    owner_key: str


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    fault: Optional[str] = None

    def __bool__(self) -> bool:
        return self.verified


def canonical_message(route: str, counter: int) -> bytes:
    """Serialize (route, counter) exactly as the signer does."""
    return canonicalize({"route": route, "count": str(counter)})


def request_hash(route: str, counter: int, scheme: Optional[SignatureScheme] = None) -> str:
    scheme = scheme or Ed25519Scheme()
    return scheme.hash(canonical_message(route, counter))


def sign_request(
    route: str,
    counter: int,
    signing_key: str,
    scheme: Optional[SignatureScheme] = None
) -> str:
    """
    Produce the `sig` query value for a debug request.

    Args:
        route: Route path as mounted on the server (e.g. "/debug/counters")
        counter: Replay counter, conventionally the current unix time in ms
        signing_key: Operator's hex-encoded signing key seed

    Returns:
        Hex-encoded signature
    """
    scheme = scheme or Ed25519Scheme()
    digest = request_hash(route, counter, scheme)
    return scheme.sign(digest.encode('ascii'), signing_key)


class SignedRequestVerifier:
    """
    Checks a claim's signature with the configured scheme.

    Fails closed: any error raised by the scheme is reported as a fault
    and never as a successful verification.
    """

    def __init__(self, scheme: Optional[SignatureScheme] = None):
        self._scheme = scheme or Ed25519Scheme()

    def check(
        self,
        claim: SignedRequestClaim,
        expected_owner_key: Optional[str] = None
    ) -> VerificationResult:
        if expected_owner_key is not None:
            if not constant_time_compare(claim.owner_key, expected_owner_key):
                return VerificationResult(False)

        try:
            digest = request_hash(claim.route, claim.counter, self._scheme)
            ok = self._scheme.verify(digest.encode('ascii'), claim.signature, claim.owner_key)
        except Exception as e:
            fault = f"{type(e).__name__}: {e}"
            audit_log.verification_fault(claim.owner_key, fault)
            return VerificationResult(False, fault=fault)

        return VerificationResult(ok is True)

    def verify(
        self,
        claim: SignedRequestClaim,
        expected_owner_key: Optional[str] = None
    ) -> bool:
        return self.check(claim, expected_owner_key).verified
