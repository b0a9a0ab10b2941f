"""
FastAPI bindings for the debug gate.

Protect a route by listing the dependencies on it:

    @app.get("/debug/state", dependencies=rate_limited_debug_auth(debug_auth_high))
    def state(): ...

The gate and limiter are read from `app.state.debug_gate` and
`app.state.debug_rate_limiter`, so every app owns its own replay state.
"""

import math
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .clearance import ClearanceTier
from .gate import UNAUTHORIZED_MESSAGE, AuthorizationDecision
from .logging_config import audit_log
from .rate_limit import RateLimiter

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class DebugAuthDenied(Exception):
    """Raised by the debug dependencies; rendered as {status, message} JSON."""

    def __init__(self, status_code: int, message: str, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.message = message
        self.headers = headers
        super().__init__(f"{status_code}: {message}")


def route_path(request: Request) -> str:
    """Path template of the matched route, e.g. "/debug/items/{item_id}"."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class DebugAuth:
    """Dependency requiring a signed request from a key cleared for `required`."""

    def __init__(self, required: ClearanceTier):
        self.required = required

    def __call__(self, request: Request) -> AuthorizationDecision:
        path = route_path(request)
        gate = getattr(request.app.state, "debug_gate", None)
        if gate is None:
            audit_log.security_event("debug gate not configured", severity="high", route=path)
            raise DebugAuthDenied(401, UNAUTHORIZED_MESSAGE)

        decision = gate.authorize(
            path,
            request.query_params.get("sig"),
            request.query_params.get("sig_counter"),
            self.required
        )
        if not decision.allowed:
            raise DebugAuthDenied(decision.status_code, decision.message)
        return decision


class DebugRateLimit:
    """Dependency rejecting clients over the debug endpoint request budget."""

    def __init__(self, limiter: Optional[RateLimiter] = None):
        self._limiter = limiter

    def __call__(self, request: Request) -> None:
        limiter = self._limiter or getattr(request.app.state, "debug_rate_limiter", None)
        if limiter is None:
            raise RuntimeError("no debug rate limiter configured")

        client = client_id(request)
        result = limiter.check(client)
        if not result.allowed:
            audit_log.rate_limit_exceeded(client, route_path(request))
            raise DebugAuthDenied(
                429,
                RATE_LIMIT_MESSAGE,
                headers={"Retry-After": str(math.ceil(result.retry_after or 0))}
            )


debug_auth_low = DebugAuth(ClearanceTier.LOW)
debug_auth_medium = DebugAuth(ClearanceTier.MEDIUM)
debug_auth_high = DebugAuth(ClearanceTier.HIGH)


def rate_limited_debug_auth(
    dependency: DebugAuth,
    limiter: Optional[RateLimiter] = None
) -> List:
    """
    Route dependencies running the rate limiter strictly before the gate.

    FastAPI resolves route dependencies in list order; a rejected request
    never reaches the gate or its replay state.
    """
    return [Depends(DebugRateLimit(limiter)), Depends(dependency)]


async def _debug_auth_denied_handler(request: Request, exc: DebugAuthDenied) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status_code, "message": exc.message},
        headers=exc.headers
    )


def install_debug_auth_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DebugAuthDenied, _debug_auth_denied_handler)
