"""
Debug Gate

Signed-request authorization for privileged debug endpoints.

A request to a protected route carries two query parameters:

    sig          hex Ed25519 signature over the route and counter
    sig_counter  decimal replay counter, conventionally unix time in ms

The request is allowed when the signature verifies against a configured
operator key, the counter is above every counter accepted so far (and no
more than the skew window ahead of the server clock), and the key's
clearance rank meets the route's required tier.

Usage:
    from fastapi import FastAPI
    from debug_gate import (
        AuthorizationGate,
        ClearanceRegistry,
        debug_auth_high,
        install_debug_auth_handlers,
        rate_limited_debug_auth,
        RateLimiter,
    )

    app = FastAPI()
    app.state.debug_gate = AuthorizationGate(ClearanceRegistry({pubkey_hex: 3}))
    app.state.debug_rate_limiter = RateLimiter(100, window_ms=60000)
    install_debug_auth_handlers(app)

    @app.get("/debug/dump", dependencies=rate_limited_debug_auth(debug_auth_high))
    def dump():
        ...
"""

__version__ = "1.0.0"

from .clearance import ClearanceRegistry, ClearanceTier, satisfies
from .events import EventSink, NestedCounters
from .gate import AuthorizationDecision, AuthorizationGate, DenyReason
from .keys import Ed25519Scheme, OperatorKeyPair, SignatureScheme, generate_operator_key
from .middleware import (
    DebugAuth,
    DebugAuthDenied,
    DebugRateLimit,
    debug_auth_high,
    debug_auth_low,
    debug_auth_medium,
    install_debug_auth_handlers,
    rate_limited_debug_auth,
)
from .rate_limit import RateLimiter, RateLimitResult
from .replay import Freshness, ReplayGuard
from .verifier import (
    SignedRequestClaim,
    SignedRequestVerifier,
    VerificationResult,
    canonical_message,
    request_hash,
    sign_request,
)

__all__ = [
    "AuthorizationDecision",
    "AuthorizationGate",
    "ClearanceRegistry",
    "ClearanceTier",
    "DebugAuth",
    "DebugAuthDenied",
    "DebugRateLimit",
    "DenyReason",
    "Ed25519Scheme",
    "EventSink",
    "Freshness",
    "NestedCounters",
    "OperatorKeyPair",
    "RateLimitResult",
    "RateLimiter",
    "ReplayGuard",
    "SignatureScheme",
    "SignedRequestClaim",
    "SignedRequestVerifier",
    "VerificationResult",
    "canonical_message",
    "debug_auth_high",
    "debug_auth_low",
    "debug_auth_medium",
    "generate_operator_key",
    "install_debug_auth_handlers",
    "rate_limited_debug_auth",
    "request_hash",
    "satisfies",
    "sign_request",
]
