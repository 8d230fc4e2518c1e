"""In-process handshake between an initiator and a responder negotiator.

Frames emitted by one side are fed to the other exactly as a transport
would relay them, so both sessions reach COMPLETED without any network.
"""

from __future__ import annotations

from collections.abc import Sequence

from .constants import GRPC_APP_PROTOCOL, REQUIRED_TLS_VERSION, Ciphersuite
from .errors import HandshakeFailedError, StatusCode
from .models import (
    ClientSessionStartReq,
    Identity,
    ServerSessionStartReq,
    SessionNextReq,
    SessionReq,
    SessionResp,
    SessionResult,
)
from .negotiator import SessionNegotiator


def client_start_request(
    local_identity: Identity | None = None, target_identities: Sequence[Identity] = ()
) -> SessionReq:
    return SessionReq(
        client_start=ClientSessionStartReq(
            application_protocols=[GRPC_APP_PROTOCOL],
            min_tls_version=REQUIRED_TLS_VERSION,
            max_tls_version=REQUIRED_TLS_VERSION,
            tls_ciphersuites=[Ciphersuite.CHACHA20_POLY1305_SHA256],
            local_identity=local_identity,
            target_identities=list(target_identities),
        )
    )


def server_start_request(local_identities: Sequence[Identity] = (), in_bytes: bytes = b"") -> SessionReq:
    return SessionReq(
        server_start=ServerSessionStartReq(
            application_protocols=[GRPC_APP_PROTOCOL],
            min_tls_version=REQUIRED_TLS_VERSION,
            max_tls_version=REQUIRED_TLS_VERSION,
            tls_ciphersuites=[Ciphersuite.CHACHA20_POLY1305_SHA256],
            local_identities=list(local_identities),
            in_bytes=in_bytes,
        )
    )


def next_request(in_bytes: bytes) -> SessionReq:
    return SessionReq(next=SessionNextReq(in_bytes=in_bytes))


def require_ok(resp: SessionResp | None, step: str) -> SessionResp:
    """Return resp, raising HandshakeFailedError unless it carries an OK status."""
    if resp is None:
        raise HandshakeFailedError(f"{step}: no response")
    if resp.status.code != StatusCode.OK:
        raise HandshakeFailedError(f"{step}: {resp.status.details}", resp.status, {"code": resp.status.code})
    return resp


def simulate_handshake(
    client_identity: Identity | None = None,
    server_identity: Identity | None = None,
) -> tuple[SessionResult, SessionResult]:
    """Run both roles to completion and return (initiator result, responder result)."""
    initiator = SessionNegotiator()
    responder = SessionNegotiator()
    targets = [server_identity] if server_identity else []
    server_locals = [client_identity] if client_identity else []

    hello = require_ok(initiator.process(client_start_request(client_identity, targets)), "client start")
    require_ok(responder.process(server_start_request(server_locals)), "server start")
    server_flight = require_ok(responder.process(next_request(hello.out_frames)), "server hello")
    client_done = require_ok(initiator.process(next_request(server_flight.out_frames)), "client finished")
    server_done = require_ok(responder.process(next_request(client_done.out_frames)), "server finished")
    return client_done.result, server_done.result
