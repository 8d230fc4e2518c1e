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
Handshaker Session Messages

Pydantic models for the SetUpSession request and response stream. Messages
travel over gRPC as JSON, with byte fields base64 encoded.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import Ciphersuite, TLSVersion


class WireModel(BaseModel):
    """Immutable message with a JSON wire encoding."""

    model_config = ConfigDict(frozen=True, extra="ignore", ser_json_bytes="base64", val_json_bytes="base64")

    def to_wire(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode()

    @classmethod
    def from_wire(cls, data: bytes):
        return cls.model_validate_json(data)


class Identity(WireModel):
    """Opaque identity handle of one party."""

    spiffe_id: str | None = Field(None, description="SPIFFE ID of the party")
    hostname: str | None = Field(None, description="Hostname of the party")

    @model_validator(mode="after")
    def _one_identity(self) -> Identity:
        if self.spiffe_id is not None and self.hostname is not None:
            raise ValueError("identity sets both spiffe_id and hostname")
        return self


class ClientSessionStartReq(WireModel):
    # Unknown version and ciphersuite numbers still decode, as plain ints
    application_protocols: list[str] = Field(default_factory=list)
    min_tls_version: TLSVersion | int = TLSVersion.TLS1_2
    max_tls_version: TLSVersion | int = TLSVersion.TLS1_2
    tls_ciphersuites: list[Ciphersuite | int] = Field(default_factory=list)
    local_identity: Identity | None = None
    target_identities: list[Identity] = Field(default_factory=list)
    target_name: str = ""


class ServerSessionStartReq(WireModel):
    application_protocols: list[str] = Field(default_factory=list)
    min_tls_version: TLSVersion | int = TLSVersion.TLS1_2
    max_tls_version: TLSVersion | int = TLSVersion.TLS1_2
    tls_ciphersuites: list[Ciphersuite | int] = Field(default_factory=list)
    local_identities: list[Identity] = Field(default_factory=list)
    in_bytes: bytes = b""


class SessionNextReq(WireModel):
    in_bytes: bytes = b""


class ResumptionTicketReq(WireModel):
    in_bytes: list[bytes] = Field(default_factory=list)
    connection_id: int = Field(0, ge=0)
    local_identity: Identity | None = None


class RequestKind(str, Enum):
    CLIENT_START = "client_start"
    SERVER_START = "server_start"
    NEXT = "next"
    RESUMPTION_TICKET = "resumption_ticket"
    UNSET = "unset"


_PAYLOAD_FIELDS = (
    RequestKind.CLIENT_START,
    RequestKind.SERVER_START,
    RequestKind.NEXT,
    RequestKind.RESUMPTION_TICKET,
)


class SessionReq(WireModel):
    """One handshake request. At most one payload field is set."""

    client_start: ClientSessionStartReq | None = None
    server_start: ServerSessionStartReq | None = None
    next: SessionNextReq | None = None
    resumption_ticket: ResumptionTicketReq | None = None

    @model_validator(mode="after")
    def _single_kind(self) -> SessionReq:
        present = [kind.value for kind in _PAYLOAD_FIELDS if getattr(self, kind.value) is not None]
        if len(present) > 1:
            raise ValueError(f"request sets more than one kind: {', '.join(present)}")
        return self

    @property
    def kind(self) -> RequestKind:
        for kind in _PAYLOAD_FIELDS:
            if getattr(self, kind.value) is not None:
                return kind
        return RequestKind.UNSET


class SessionStatus(WireModel):
    code: int = 0
    details: str = ""


class SessionState(WireModel):
    tls_version: TLSVersion
    tls_ciphersuite: Ciphersuite
    in_sequence: int = 0
    out_sequence: int = 0
    in_key: bytes = b""
    out_key: bytes = b""
    is_handshake_resumed: bool = False


class SessionResult(WireModel):
    """Negotiated outcome of a completed handshake."""

    application_protocol: str
    state: SessionState
    local_identity: Identity | None = None
    peer_identity: Identity | None = None


class SessionResp(WireModel):
    status: SessionStatus = Field(default_factory=SessionStatus)
    out_frames: bytes = b""
    bytes_consumed: int = Field(0, ge=0)
    result: SessionResult | None = None
