# Copyright 2025 Fake Handshaker Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Fake Handshaker Client

Async client for the SetUpSession stream, plus a probe that drives a full
handshake for either role against a running service.
"""

from __future__ import annotations

from typing import Literal

import grpc

from .constants import CLIENT_FINISHED_FRAME, CLIENT_HELLO_FRAME, SERVER_FRAME, SET_UP_SESSION_PATH
from .errors import HandshakeFailedError, HandshakerError
from .loopback import client_start_request, next_request, require_ok, server_start_request
from .models import Identity, SessionReq, SessionResp, SessionResult

ProbeRole = Literal["client", "server"]


class HandshakerStub:
    """Client-side callable for the SetUpSession method."""

    def __init__(self, channel: grpc.aio.Channel):
        self.SetUpSession = channel.stream_stream(  # noqa: N815 gRPC method name
            SET_UP_SESSION_PATH,
            request_serializer=SessionReq.to_wire,
            response_deserializer=SessionResp.from_wire,
        )


class HandshakeCall:
    """One open SetUpSession stream, used in lock-step request/response fashion."""

    def __init__(self, call: grpc.aio.StreamStreamCall):
        self._call = call

    async def exchange(self, req: SessionReq) -> SessionResp:
        """Send one request and wait for its response.

        Only for recognized request kinds; the service sends nothing back for
        an unset request.
        """
        await self._call.write(req)
        resp = await self._call.read()
        if resp is grpc.aio.EOF:
            raise HandshakerError("session stream closed before a response arrived")
        return resp

    async def close(self) -> None:
        await self._call.done_writing()


class HandshakerClient:
    """Async context manager owning the channel to a handshaker service."""

    def __init__(self, target: str, credentials: grpc.ChannelCredentials | None = None):
        self.target = target
        self.credentials = credentials
        self._channel: grpc.aio.Channel | None = None
        self.stub: HandshakerStub | None = None

    async def __aenter__(self) -> HandshakerClient:
        if self.credentials is None:
            self._channel = grpc.aio.insecure_channel(self.target)
        else:
            self._channel = grpc.aio.secure_channel(self.target, self.credentials)
        self.stub = HandshakerStub(self._channel)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._channel is not None:
            await self._channel.close()
            self._channel = None

    def open_session(self) -> HandshakeCall:
        if self.stub is None:
            raise HandshakerError("client is not connected")
        return HandshakeCall(self.stub.SetUpSession())


async def _probe_as_client(call: HandshakeCall, identity: Identity | None, peer: Identity | None) -> SessionResult:
    resp = require_ok(await call.exchange(client_start_request(identity, [peer] if peer else [])), "client start")
    if resp.out_frames != CLIENT_HELLO_FRAME:
        raise HandshakeFailedError("client start: unexpected frame", resp.status)
    resp = require_ok(await call.exchange(next_request(SERVER_FRAME)), "client finished")
    return resp.result


async def _probe_as_server(call: HandshakeCall, identity: Identity | None) -> SessionResult:
    require_ok(await call.exchange(server_start_request([identity] if identity else [])), "server start")
    resp = require_ok(await call.exchange(next_request(CLIENT_HELLO_FRAME)), "server hello")
    if resp.out_frames != SERVER_FRAME:
        raise HandshakeFailedError("server hello: unexpected frame", resp.status)
    resp = require_ok(await call.exchange(next_request(CLIENT_FINISHED_FRAME)), "server finished")
    return resp.result


async def probe(
    target: str,
    role: ProbeRole = "client",
    identity: Identity | None = None,
    peer: Identity | None = None,
    credentials: grpc.ChannelCredentials | None = None,
) -> SessionResult:
    """Drive one complete handshake against the service at target, feeding it canned peer frames."""
    async with HandshakerClient(target, credentials) as client:
        call = client.open_session()
        try:
            if role == "client":
                result = await _probe_as_client(call, identity, peer)
            else:
                result = await _probe_as_server(call, identity)
        finally:
            await call.close()
    if result is None:
        raise HandshakeFailedError(f"{role} handshake finished without a result")
    return result
