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
Handshake Session Negotiator

Implements the fake handshaker state machine for a single session:
INITIAL -> STARTED -> SENT -> COMPLETED for the responder, and
INITIAL -> SENT -> COMPLETED for the initiator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .constants import (
    CLIENT_FINISHED_FRAME,
    CLIENT_HELLO_FRAME,
    GRPC_APP_PROTOCOL,
    IN_KEY,
    OUT_KEY,
    REQUIRED_TLS_VERSION,
    RESULT_CIPHERSUITE,
    SERVER_FRAME,
    SERVER_START_HELLO_BYTES,
    TLSVersion,
)
from .errors import StatusCode, failure, status
from .logging_utils import StructuredLogger, get_logger
from .models import Identity, RequestKind, SessionReq, SessionResp, SessionResult, SessionState


class HandshakeState(Enum):
    """Handshake states, in the only order they may be visited."""

    INITIAL = 0
    STARTED = 1
    SENT = 2
    COMPLETED = 3


class HandshakeRole(Enum):
    INITIATOR = "initiator"
    RESPONDER = "responder"


@dataclass
class HandshakeSession:
    """Mutable state of one handshake, owned by a single negotiator."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    state: HandshakeState = HandshakeState.INITIAL
    role: HandshakeRole | None = None
    local_identity: Identity | None = None
    peer_identity: Identity | None = None

    def advance(self, new_state: HandshakeState) -> None:
        if new_state.value <= self.state.value:
            raise RuntimeError(f"handshake state cannot move from {self.state.name} to {new_state.name}")
        self.state = new_state

    def assign_role(self, role: HandshakeRole) -> None:
        if self.role is not None and self.role is not role:
            raise RuntimeError(f"handshake role already fixed to {self.role.value}")
        self.role = role

    @property
    def completed(self) -> bool:
        return self.state is HandshakeState.COMPLETED

    def get_session_info(self) -> dict[str, str | None]:
        return {
            "session_id": self.session_id,
            "state": self.state.name,
            "role": self.role.value if self.role else None,
        }


def _ok(out_frames: bytes = b"", bytes_consumed: int = 0, result: SessionResult | None = None) -> SessionResp:
    return SessionResp(
        status=status(StatusCode.OK),
        out_frames=out_frames,
        bytes_consumed=bytes_consumed,
        result=result,
    )


def _check_parameters(
    application_protocols: list[str], min_tls_version: TLSVersion | int, max_tls_version: TLSVersion | int
) -> SessionResp | None:
    """Return an INVALID_ARGUMENT response for the first violated parameter, if any."""
    if len(application_protocols) != 1 or application_protocols[0] != GRPC_APP_PROTOCOL:
        return failure(StatusCode.INVALID_ARGUMENT, "application protocol was not grpc")
    if max_tls_version != REQUIRED_TLS_VERSION:
        return failure(StatusCode.INVALID_ARGUMENT, "max TLS version must be 1.3")
    if min_tls_version != REQUIRED_TLS_VERSION:
        return failure(StatusCode.INVALID_ARGUMENT, "min TLS version must be 1.3")
    return None


class SessionNegotiator:
    """Processes the handshake requests of one session, one at a time.

    Not safe for concurrent use: the caller must deliver requests
    sequentially, in arrival order.
    """

    def __init__(self, session: HandshakeSession | None = None, logger: StructuredLogger | None = None):
        self.session = session or HandshakeSession()
        self.logger = logger or get_logger("negotiator")
        self._handlers: dict[RequestKind, Callable[[SessionReq], SessionResp]] = {
            RequestKind.CLIENT_START: self._process_client_start,
            RequestKind.SERVER_START: self._process_server_start,
            RequestKind.NEXT: self._process_next,
            RequestKind.RESUMPTION_TICKET: self._process_resumption_ticket,
        }

    @property
    def state(self) -> HandshakeState:
        return self.session.state

    @property
    def role(self) -> HandshakeRole | None:
        return self.session.role

    def process(self, req: SessionReq) -> SessionResp | None:
        """Produce the response to one request, or None for an unrecognized request kind."""
        handler = self._handlers.get(req.kind)
        if handler is None:
            self.logger.warning(
                "session_request_unexpected_type", session_id=self.session.session_id, kind=req.kind.value
            )
            return None

        previous = self.session.state
        resp = handler(req)
        self.logger.debug(
            "session_request_processed",
            session_id=self.session.session_id,
            kind=req.kind.value,
            code=resp.status.code,
            state_from=previous.name,
            state_to=self.session.state.name,
        )
        return resp

    def _process_client_start(self, req: SessionReq) -> SessionResp:
        start = req.client_start
        if self.session.state is not HandshakeState.INITIAL:
            return failure(StatusCode.FAILED_PRECONDITION, "client start handshaker not in initial state")
        rejected = _check_parameters(start.application_protocols, start.min_tls_version, start.max_tls_version)
        if rejected is not None:
            return rejected

        self.session.local_identity = start.local_identity
        if start.target_identities:
            self.session.peer_identity = start.target_identities[0]
        self.session.assign_role(HandshakeRole.INITIATOR)
        self.session.advance(HandshakeState.SENT)
        return _ok(out_frames=CLIENT_HELLO_FRAME, bytes_consumed=0)

    def _process_server_start(self, req: SessionReq) -> SessionResp:
        start = req.server_start
        if self.session.state is not HandshakeState.INITIAL:
            return failure(StatusCode.FAILED_PRECONDITION, "server start handshaker not in initial state")
        rejected = _check_parameters(start.application_protocols, start.min_tls_version, start.max_tls_version)
        if rejected is not None:
            return rejected

        if not start.in_bytes:
            next_state, resp = HandshakeState.STARTED, _ok(bytes_consumed=0)
        elif start.in_bytes == SERVER_START_HELLO_BYTES:
            next_state, resp = HandshakeState.SENT, _ok(out_frames=SERVER_FRAME, bytes_consumed=len(CLIENT_HELLO_FRAME))
        else:
            return failure(StatusCode.INTERNAL, "server start request did not have the correct input bytes")

        if start.local_identities:
            self.session.peer_identity = start.local_identities[0]
        self.session.assign_role(HandshakeRole.RESPONDER)
        self.session.advance(next_state)
        return resp

    def _process_next(self, req: SessionReq) -> SessionResp:
        in_bytes = req.next.in_bytes
        role, state = self.session.role, self.session.state

        if role is HandshakeRole.INITIATOR:
            if state is not HandshakeState.SENT:
                return failure(StatusCode.FAILED_PRECONDITION, "client handshaker was not in sent state")
            if in_bytes != SERVER_FRAME:
                return failure(StatusCode.INTERNAL, "client request did not match server frame")
            self.session.advance(HandshakeState.COMPLETED)
            return _ok(out_frames=CLIENT_FINISHED_FRAME, bytes_consumed=len(SERVER_FRAME), result=self.session_result())

        if role is HandshakeRole.RESPONDER:
            if state is HandshakeState.STARTED:
                if in_bytes != CLIENT_HELLO_FRAME:
                    return failure(StatusCode.INTERNAL, "server request did not match client hello frame")
                self.session.advance(HandshakeState.SENT)
                return _ok(out_frames=SERVER_FRAME, bytes_consumed=len(CLIENT_HELLO_FRAME))
            if state is HandshakeState.SENT:
                if in_bytes != CLIENT_FINISHED_FRAME:
                    return failure(StatusCode.INTERNAL, "server request did not match client finished frame")
                self.session.advance(HandshakeState.COMPLETED)
                return _ok(bytes_consumed=len(CLIENT_FINISHED_FRAME), result=self.session_result())
            return failure(StatusCode.FAILED_PRECONDITION, "server request was not in expected state")

        return failure(StatusCode.FAILED_PRECONDITION, "next request received before a start request")

    def _process_resumption_ticket(self, req: SessionReq) -> SessionResp:
        return _ok()

    def session_result(self) -> SessionResult:
        """Build the negotiated result from the session identities and the fixed key fixtures."""
        return SessionResult(
            application_protocol=GRPC_APP_PROTOCOL,
            state=SessionState(
                tls_version=REQUIRED_TLS_VERSION,
                tls_ciphersuite=RESULT_CIPHERSUITE,
                in_key=IN_KEY,
                out_key=OUT_KEY,
            ),
            local_identity=self.session.local_identity,
            peer_identity=self.session.peer_identity,
        )
