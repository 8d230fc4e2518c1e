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

"""Status codes and exceptions for the fake handshaker."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

import grpc

from .models import SessionResp, SessionStatus


class StatusCode(IntEnum):
    """Session status codes, numerically identical to the gRPC status codes."""

    OK = grpc.StatusCode.OK.value[0]
    INVALID_ARGUMENT = grpc.StatusCode.INVALID_ARGUMENT.value[0]
    FAILED_PRECONDITION = grpc.StatusCode.FAILED_PRECONDITION.value[0]
    INTERNAL = grpc.StatusCode.INTERNAL.value[0]


def status(code: StatusCode, details: str = "") -> SessionStatus:
    return SessionStatus(code=int(code), details=details)


def failure(code: StatusCode, details: str) -> SessionResp:
    """Build a failed response carrying only a status."""
    return SessionResp(status=status(code, details))


def status_name(code: int) -> str:
    try:
        return StatusCode(code).name
    except ValueError:
        return f"CODE_{code}"


class HandshakerError(Exception):
    """Base exception for fake handshaker errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(HandshakerError):
    """Raised when settings or credential files are invalid."""

    pass


class HandshakeFailedError(HandshakerError):
    """Raised when a driven handshake receives a non-OK status."""

    def __init__(self, message: str, status: SessionStatus | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.status = status

    @property
    def code(self) -> int | None:
        return self.status.code if self.status else None
