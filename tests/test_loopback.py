"""Tests for the in-process two-party handshake."""

import pytest

from handshaker_service.constants import SERVER_FRAME
from handshaker_service.errors import HandshakeFailedError, StatusCode, failure
from handshaker_service.loopback import (
    client_start_request,
    next_request,
    require_ok,
    server_start_request,
    simulate_handshake,
)
from handshaker_service.models import Identity, SessionResp
from handshaker_service.negotiator import HandshakeState, SessionNegotiator


def test_both_parties_converge():
    client_id = Identity(spiffe_id="spiffe://test/client")
    server_id = Identity(hostname="server.test")

    client_result, server_result = simulate_handshake(client_id, server_id)

    assert client_result.state == server_result.state
    assert client_result.application_protocol == server_result.application_protocol == "grpc"
    assert client_result.local_identity == client_id
    assert client_result.peer_identity == server_id
    assert server_result.peer_identity == client_id


def test_without_identities():
    client_result, server_result = simulate_handshake()
    assert client_result.local_identity is None
    assert client_result.peer_identity is None
    assert server_result.peer_identity is None


def test_each_side_completes_in_two_continuations():
    initiator, responder = SessionNegotiator(), SessionNegotiator()

    hello = initiator.process(client_start_request())
    responder.process(server_start_request())
    flight = responder.process(next_request(hello.out_frames))
    finished = initiator.process(next_request(flight.out_frames))
    done = responder.process(next_request(finished.out_frames))

    assert flight.out_frames == SERVER_FRAME
    assert initiator.state == responder.state == HandshakeState.COMPLETED
    assert finished.result.state.tls_ciphersuite == done.result.state.tls_ciphersuite
    assert finished.result.state.tls_version == done.result.state.tls_version


def test_require_ok():
    ok = SessionResp()
    assert require_ok(ok, "step") is ok

    with pytest.raises(HandshakeFailedError, match="step: no response") as excinfo:
        require_ok(None, "step")
    assert excinfo.value.code is None

    with pytest.raises(HandshakeFailedError, match="step: bad frame") as excinfo:
        require_ok(failure(StatusCode.INTERNAL, "bad frame"), "step")
    assert excinfo.value.code == StatusCode.INTERNAL
