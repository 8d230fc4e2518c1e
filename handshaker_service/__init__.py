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
Fake Handshaker

A test double for an S2A-style handshaker service: it walks TLS-like
handshakes over a gRPC stream with canned frames and keys, so secure channel
code can be exercised end-to-end without a real TLS stack.
"""

from .errors import ConfigurationError, HandshakeFailedError, HandshakerError, StatusCode
from .models import (
    ClientSessionStartReq,
    Identity,
    RequestKind,
    ResumptionTicketReq,
    ServerSessionStartReq,
    SessionNextReq,
    SessionReq,
    SessionResp,
    SessionResult,
    SessionState,
    SessionStatus,
)
from .negotiator import HandshakeRole, HandshakeSession, HandshakeState, SessionNegotiator
from .transport import SessionTransport

__version__ = "0.1.0"

__all__ = [
    # Core
    "SessionNegotiator",
    "SessionTransport",
    "HandshakeSession",
    "HandshakeState",
    "HandshakeRole",
    # Messages
    "Identity",
    "SessionReq",
    "RequestKind",
    "ClientSessionStartReq",
    "ServerSessionStartReq",
    "SessionNextReq",
    "ResumptionTicketReq",
    "SessionResp",
    "SessionStatus",
    "SessionResult",
    "SessionState",
    # Errors
    "StatusCode",
    "HandshakerError",
    "ConfigurationError",
    "HandshakeFailedError",
]
