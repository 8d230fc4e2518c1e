"""Prometheus metrics for handshake sessions."""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

REGISTRY = CollectorRegistry()

SESSIONS_OPENED = Counter(
    "handshaker_sessions_opened_total", "Handshake streams opened", registry=REGISTRY
)
SESSIONS_ACTIVE = Gauge(
    "handshaker_sessions_active", "Handshake streams currently open", registry=REGISTRY
)
SESSIONS_COMPLETED = Counter(
    "handshaker_sessions_completed_total", "Handshakes that reached the completed state", ["role"], registry=REGISTRY
)
RESPONSES = Counter(
    "handshaker_responses_total", "Session responses sent, by status code", ["code"], registry=REGISTRY
)
UNKNOWN_REQUESTS = Counter(
    "handshaker_unknown_requests_total", "Session requests with no recognized kind", registry=REGISTRY
)


def render_latest() -> bytes:
    """Render the handshaker registry in the Prometheus text format."""
    return generate_latest(REGISTRY)
