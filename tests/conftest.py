import pytest
from fastapi.testclient import TestClient

from debug_gate.clearance import ClearanceRegistry, ClearanceTier
from debug_gate.events import NestedCounters
from debug_gate.gate import AuthorizationGate
from debug_gate.keys import generate_operator_key
from debug_gate.main import create_app
from debug_gate.rate_limit import RateLimiter
from debug_gate.replay import ReplayGuard
from debug_gate.verifier import sign_request

NOW_MS = 1_700_000_000_000


class Clock:
    """Settable millisecond clock."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture(scope="session")
def key_low():
    return generate_operator_key()


@pytest.fixture(scope="session")
def key_medium():
    return generate_operator_key()


@pytest.fixture(scope="session")
def key_high():
    return generate_operator_key()


@pytest.fixture(scope="session")
def outsider():
    return generate_operator_key()


@pytest.fixture
def clock():
    return Clock(NOW_MS)


@pytest.fixture
def registry(key_low, key_medium, key_high):
    return ClearanceRegistry({
        key_low.public_key: ClearanceTier.LOW,
        key_medium.public_key: ClearanceTier.MEDIUM,
        key_high.public_key: ClearanceTier.HIGH,
    })


@pytest.fixture
def counters():
    return NestedCounters()


@pytest.fixture
def gate(registry, clock, counters):
    return AuthorizationGate(registry, replay_guard=ReplayGuard(clock=clock), events=counters)


@pytest.fixture
def client(gate, counters):
    app = create_app(gate=gate, limiter=RateLimiter(1000), counters=counters)
    return TestClient(app)


@pytest.fixture
def signed():
    """Query params for a request to route signed by key with counter."""
    def _signed(key, route, counter):
        return {"sig": sign_request(route, counter, key.signing_key), "sig_counter": str(counter)}
    return _signed
