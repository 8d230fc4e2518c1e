"""End-to-end tests for the gRPC service and its HTTP health surface."""

import asyncio
import logging

import grpc
import pytest
from fastapi.testclient import TestClient

from handshaker_service.client import HandshakerClient, probe
from handshaker_service.config import Settings
from handshaker_service.constants import (
    CLIENT_HELLO_FRAME,
    SERVER_FRAME,
    SET_UP_SESSION_PATH,
    Ciphersuite,
    TLSVersion,
)
from handshaker_service.errors import HandshakerError, StatusCode
from handshaker_service.loopback import client_start_request, next_request, server_start_request
from handshaker_service.models import Identity, RequestKind, SessionReq, SessionResp
from handshaker_service.negotiator import HandshakeSession
from handshaker_service.registry import SessionRegistry
from handshaker_service.service import create_health_app, decode_request, start_server


def _settings() -> Settings:
    return Settings(host="127.0.0.1", port=0, enable_health=False)


@pytest.mark.asyncio
async def test_probe_both_roles():
    server, port = await start_server(_settings())
    try:
        target = f"127.0.0.1:{port}"
        client_id = Identity(spiffe_id="spiffe://test/client")
        server_id = Identity(spiffe_id="spiffe://test/server")

        client_result = await probe(target, "client", identity=client_id, peer=server_id)
        server_result = await probe(target, "server", identity=client_id)
    finally:
        await server.stop(None)

    assert client_result.local_identity == client_id
    assert client_result.peer_identity == server_id
    assert server_result.peer_identity == client_id
    for result in (client_result, server_result):
        assert result.state.tls_version == TLSVersion.TLS1_3
        assert result.state.tls_ciphersuite == Ciphersuite.CHACHA20_POLY1305_SHA256


@pytest.mark.asyncio
async def test_failed_request_keeps_stream_open():
    server, port = await start_server(_settings())
    try:
        async with HandshakerClient(f"127.0.0.1:{port}") as client:
            call = client.open_session()
            rejected = await call.exchange(next_request(CLIENT_HELLO_FRAME))
            hello = await call.exchange(client_start_request())
            await call.close()
    finally:
        await server.stop(None)

    assert rejected.status.code == StatusCode.FAILED_PRECONDITION
    assert hello.status.code == StatusCode.OK
    assert hello.out_frames == CLIENT_HELLO_FRAME


@pytest.mark.asyncio
async def test_concurrent_streams_are_isolated():
    registry = SessionRegistry()
    server, port = await start_server(_settings(), registry)
    try:
        async with HandshakerClient(f"127.0.0.1:{port}") as client:
            initiator = client.open_session()
            responder = client.open_session()

            first = await initiator.exchange(client_start_request())
            second = await responder.exchange(server_start_request())
            assert len(registry) == 2

            # The responder's state must not leak into the initiator's stream
            finished = await initiator.exchange(next_request(SERVER_FRAME))
            server_hello = await responder.exchange(next_request(CLIENT_HELLO_FRAME))

            await initiator.close()
            await responder.close()
    finally:
        await server.stop(None)

    assert first.out_frames == CLIENT_HELLO_FRAME
    assert second.status.code == StatusCode.OK
    assert finished.result is not None
    assert server_hello.out_frames == SERVER_FRAME
    assert server_hello.result is None


@pytest.mark.asyncio
async def test_unset_request_gets_no_reply():
    server, port = await start_server(_settings())
    try:
        async with HandshakerClient(f"127.0.0.1:{port}") as client:
            call = client.open_session()
            await call._call.write(SessionReq())
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(call._call.read(), timeout=0.3)
    finally:
        await server.stop(None)


def _raw_call(channel):
    """SetUpSession call that writes request bytes as given."""
    method = channel.stream_stream(SET_UP_SESSION_PATH, response_deserializer=SessionResp.from_wire)
    return method()


@pytest.mark.asyncio
async def test_unknown_tls_version_is_rejected_per_request():
    server, port = await start_server(_settings())
    try:
        async with grpc.aio.insecure_channel(f"127.0.0.1:{port}") as channel:
            call = _raw_call(channel)
            await call.write(
                b'{"client_start":{"application_protocols":["grpc"],"min_tls_version":1,"max_tls_version":2}}'
            )
            rejected = await call.read()
            await call.write(client_start_request().to_wire())
            hello = await call.read()
            await call.done_writing()
    finally:
        await server.stop(None)

    assert rejected.status.code == StatusCode.INVALID_ARGUMENT
    assert rejected.status.details == "max TLS version must be 1.3"
    assert hello.status.code == StatusCode.OK
    assert hello.out_frames == CLIENT_HELLO_FRAME


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b'{"client_start":{"local_identity":{"spiffe_id":"a","hostname":"b"}}}',
        b'{"client_start":{},"next":{}}',
    ],
)
async def test_undecodable_request_is_skipped(payload):
    server, port = await start_server(_settings())
    try:
        async with grpc.aio.insecure_channel(f"127.0.0.1:{port}") as channel:
            call = _raw_call(channel)
            await call.write(payload)
            await call.write(client_start_request().to_wire())
            hello = await call.read()
            await call.done_writing()
    finally:
        await server.stop(None)

    # The first reply answers the valid request, so the bad one got none
    assert hello.status.code == StatusCode.OK
    assert hello.out_frames == CLIENT_HELLO_FRAME


def test_decode_request_logs_malformed(caplog):
    with caplog.at_level(logging.WARNING, logger="fake_handshaker.service"):
        req = decode_request(b"{")
    assert req.kind == RequestKind.UNSET
    assert "session_request_malformed" in caplog.text


@pytest.mark.asyncio
async def test_open_session_requires_connection():
    client = HandshakerClient("127.0.0.1:1")
    with pytest.raises(HandshakerError):
        client.open_session()


class TestHealthApp:
    """Test cases for the HTTP health surface."""

    def setup_method(self):
        self.registry = SessionRegistry()
        self.client = TestClient(create_health_app(self.registry))

    def test_health(self):
        r = self.client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "active_sessions": 0}

    def test_sessions(self):
        self.registry.add_session(HandshakeSession(session_id="s1"))
        r = self.client.get("/sessions")
        assert r.json() == {"s1": {"session_id": "s1", "state": "INITIAL", "role": None}}

    def test_duplicate_session_rejected(self):
        self.registry.add_session(HandshakeSession(session_id="s1"))
        with pytest.raises(ValueError, match="already registered"):
            self.registry.add_session(HandshakeSession(session_id="s1"))

    def test_metrics(self):
        r = self.client.get("/metrics")
        assert r.status_code == 200
        assert "handshaker_sessions_opened_total" in r.text
