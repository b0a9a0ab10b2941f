"""
Authorization gate for privileged debug endpoints.

One pass per request:

    extract sig / sig_counter  -> malformed-request if either is missing
    for each configured key, in configuration order:
        counter fresh?          -> otherwise try the next key
        signature verifies?     -> otherwise try the next key
        rank >= required tier?  -> otherwise 403, counter NOT consumed
        advance the high-water mark and allow
    nothing verified            -> 401

Any unexpected error denies with 401. The replay counter only moves on
an allowed request; a 403 leaves it untouched.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .clearance import ClearanceRegistry, satisfies, tier_name
from .events import EventSink, NestedCounters
from .logging_config import audit_log
from .replay import Freshness, ReplayGuard
from .security import ValidationError, parse_counter
from .util import mask_sensitive
from .verifier import SignedRequestClaim, SignedRequestVerifier


SECURITY_CATEGORY = "security"
EXCEPTION_LABEL = "debug unauthorized failure - exception caught"
CLEARANCE_LABEL = "Authorization failed for security level: "

UNAUTHORIZED_MESSAGE = "Unauthorized!"
FORBIDDEN_MESSAGE = "FORBIDDEN!"


class DenyReason(str, Enum):
    NO_MATCHING_SIGNATURE = "no-matching-signature"
    COUNTER_NOT_FRESH = "counter-not-fresh"
    COUNTER_TOO_FAR_IN_FUTURE = "counter-too-far-in-future"
    INSUFFICIENT_CLEARANCE = "insufficient-clearance"
    MALFORMED_REQUEST = "malformed-request"


_FRESHNESS_REASON = {
    Freshness.STALE: DenyReason.COUNTER_NOT_FRESH,
    Freshness.TOO_FAR_IN_FUTURE: DenyReason.COUNTER_TOO_FAR_IN_FUTURE,
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: Optional[DenyReason] = None
    operator_key: Optional[str] = None
    counter: Optional[int] = None

    @property
    def status_code(self) -> int:
        if self.allowed:
            return 200
        if self.reason is DenyReason.INSUFFICIENT_CLEARANCE:
            return 403
        return 401

    @property
    def message(self) -> str:
        if self.status_code == 403:
            return FORBIDDEN_MESSAGE
        return UNAUTHORIZED_MESSAGE

    def body(self) -> Dict[str, Any]:
        """JSON body sent to the client for a denial."""
        return {"status": self.status_code, "message": self.message}

    @classmethod
    def allow(cls, operator_key: str, counter: int) -> "AuthorizationDecision":
        return cls(True, operator_key=operator_key, counter=counter)

    @classmethod
    def deny(
        cls,
        reason: DenyReason,
        operator_key: Optional[str] = None,
        counter: Optional[int] = None
    ) -> "AuthorizationDecision":
        return cls(False, reason=reason, operator_key=operator_key, counter=counter)


class AuthorizationGate:
    """
    Decides whether a signed request may reach a debug endpoint.

    Owns its replay guard; every route protected by the same gate shares
    one high-water mark regardless of which operator key signed.
    """

    def __init__(
        self,
        registry: ClearanceRegistry,
        verifier: Optional[SignedRequestVerifier] = None,
        replay_guard: Optional[ReplayGuard] = None,
        events: Optional[EventSink] = None
    ):
        self.registry = registry
        self.verifier = verifier or SignedRequestVerifier()
        self.replay_guard = replay_guard or ReplayGuard()
        self.events = events if events is not None else NestedCounters()

    def authorize(
        self,
        route: str,
        signature: Optional[str],
        counter: Optional[str],
        required: int
    ) -> AuthorizationDecision:
        """
        Run the full check for one request.

        Args:
            route: Route path the signature must cover
            signature: Raw `sig` query value
            counter: Raw `sig_counter` query value
            required: Minimum clearance rank for the endpoint

        Returns:
            The decision; never raises
        """
        try:
            decision = self._authorize(route, signature, counter, required)
        except Exception:
            audit_log.security_event(
                EXCEPTION_LABEL, severity="high", exc_info=sys.exc_info(), route=route
            )
            self._record_event(EXCEPTION_LABEL, route)
            decision = AuthorizationDecision.deny(DenyReason.MALFORMED_REQUEST)

        audit_log.authorization_decision(
            route=route,
            decision="ALLOW" if decision.allowed else "DENY",
            reason=decision.reason.value if decision.reason else None,
            required_tier=tier_name(required),
            operator_key=mask_sensitive(decision.operator_key) if decision.operator_key else None,
            counter=decision.counter
        )
        return decision

    def _record_event(self, label: str, route: str) -> None:
        # A broken sink must not turn a denial into an unhandled fault
        try:
            self.events.record_event(SECURITY_CATEGORY, label)
        except Exception:
            audit_log.security_event(
                "event sink failure", severity="high", exc_info=sys.exc_info(),
                route=route, label=label
            )

    def _authorize(
        self,
        route: str,
        signature: Optional[str],
        raw_counter: Optional[str],
        required: int
    ) -> AuthorizationDecision:
        if signature is None or raw_counter is None:
            return AuthorizationDecision.deny(DenyReason.MALFORMED_REQUEST)

        try:
            counter = parse_counter(raw_counter)
        except ValidationError:
            return AuthorizationDecision.deny(DenyReason.MALFORMED_REQUEST)

        reason = DenyReason.NO_MATCHING_SIGNATURE

        for owner_key, rank in self.registry.entries():
            freshness = self.replay_guard.check(counter)
            if freshness is not Freshness.FRESH:
                reason = _FRESHNESS_REASON[freshness]
                continue

            claim = SignedRequestClaim(route, counter, signature, owner_key)
            if not self.verifier.check(claim, expected_owner_key=owner_key).verified:
                continue

            if not satisfies(rank, required):
                self._record_event(f"{CLEARANCE_LABEL}{tier_name(required)}", route)
                return AuthorizationDecision.deny(
                    DenyReason.INSUFFICIENT_CLEARANCE, owner_key, counter
                )

            if not self.replay_guard.accept(counter):
                # Lost a race to a concurrent request with a counter >= ours
                return AuthorizationDecision.deny(
                    DenyReason.COUNTER_NOT_FRESH, owner_key, counter
                )
            return AuthorizationDecision.allow(owner_key, counter)

        return AuthorizationDecision.deny(reason, counter=counter)
