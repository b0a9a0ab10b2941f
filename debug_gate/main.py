
from typing import Optional
from fastapi import FastAPI, Request
from .clearance import ClearanceRegistry, tier_name
from .config import (
    DEBUG_RATE_LIMIT_COUNT, DEBUG_RATE_LIMIT_WINDOW_MS, ENV, LOG_JSON, LOG_LEVEL,
    MAX_COUNTER_BUFFER_MS, is_production, load_dev_public_keys, validate_config,
)
from .events import NestedCounters
from .gate import AuthorizationGate
from .logging_config import configure_logging, set_request_id
from .middleware import (
    debug_auth_high, debug_auth_low, debug_auth_medium,
    install_debug_auth_handlers, rate_limited_debug_auth,
)
from .models import ClearanceEntry, ClearanceListing, DenialBody, EventCounters, HealthStatus, ReplayState
from .rate_limit import RateLimiter
from .replay import ReplayGuard
from .util import mask_sensitive

DENIALS = {
    401: {"model": DenialBody},
    403: {"model": DenialBody},
    429: {"model": DenialBody},
}

def build_gate(counters: Optional[NestedCounters] = None) -> AuthorizationGate:
    registry = ClearanceRegistry(load_dev_public_keys())
    counters = counters if counters is not None else NestedCounters()
    return AuthorizationGate(
        registry,
        replay_guard=ReplayGuard(max_skew_ms=MAX_COUNTER_BUFFER_MS),
        events=counters,
    )

def build_rate_limiter() -> RateLimiter:
    return RateLimiter(DEBUG_RATE_LIMIT_COUNT, window_ms=DEBUG_RATE_LIMIT_WINDOW_MS)

def create_app(
    gate: Optional[AuthorizationGate] = None,
    limiter: Optional[RateLimiter] = None,
    counters: Optional[NestedCounters] = None,
) -> FastAPI:
    """
    Build the debug service.

    With no arguments the gate and limiter come from the environment; tests
    pass their own so each app starts with a fresh high-water mark.
    """
    app = FastAPI(
        title="Debug Gate",
        docs_url=None if is_production() else "/docs",
        redoc_url=None,
        openapi_url=None if is_production() else "/openapi.json",
    )
    if counters is None:
        events = getattr(gate, "events", None)
        counters = events if isinstance(events, NestedCounters) else NestedCounters()
    app.state.debug_counters = counters
    app.state.debug_gate = gate or build_gate(app.state.debug_counters)
    app.state.debug_rate_limiter = limiter or build_rate_limiter()
    install_debug_auth_handlers(app)

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        rid = set_request_id(request.headers.get("x-request-id"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    @app.get("/health", response_model=HealthStatus)
    def health():
        return HealthStatus(
            status="ok",
            env=ENV,
            operator_keys=len(app.state.debug_gate.registry),
            config_files=validate_config(),
        )

    @app.get("/debug/counters", response_model=EventCounters, responses=DENIALS,
             dependencies=rate_limited_debug_auth(debug_auth_low))
    def debug_counters():
        return EventCounters(counters=app.state.debug_counters.snapshot())

    @app.get("/debug/clearance", response_model=ClearanceListing, responses=DENIALS,
             dependencies=rate_limited_debug_auth(debug_auth_medium))
    def debug_clearance():
        return ClearanceListing(keys=[
            ClearanceEntry(public_key=mask_sensitive(key), rank=rank, tier=tier_name(rank))
            for key, rank in app.state.debug_gate.registry.entries()
        ])

    @app.get("/debug/replay", response_model=ReplayState, responses=DENIALS,
             dependencies=rate_limited_debug_auth(debug_auth_high))
    def debug_replay():
        guard = app.state.debug_gate.replay_guard
        return ReplayState(last_accepted_counter=guard.last_accepted, max_skew_ms=guard.max_skew_ms)

    return app

configure_logging(LOG_LEVEL, json_format=LOG_JSON)
app = create_app()
