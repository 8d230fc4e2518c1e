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

"""Service configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigurationError(f"{name} must be an integer", {"value": raw}) from err


@dataclass(frozen=True)
class Settings:
    host: str = "[::]"
    port: int = 50051
    health_host: str = "0.0.0.0"  # noqa: S104
    health_port: int = 8080
    enable_health: bool = True
    log_level: str = "INFO"
    tls_cert: str | None = None
    tls_key: str | None = None
    tls_ca: str | None = None

    def __post_init__(self):
        for name in ("port", "health_port"):
            value = getattr(self, name)
            if not 0 <= value <= 65535:
                raise ConfigurationError(f"{name} out of range", {"value": value})
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError("unknown log level", {"value": self.log_level})
        if bool(self.tls_cert) != bool(self.tls_key):
            raise ConfigurationError("TLS certificate and key must be configured together")
        if self.tls_ca and not self.tls_cert:
            raise ConfigurationError("client CA requires a server certificate")

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert)

    @classmethod
    def from_env(cls, **overrides) -> Settings:
        """Load settings from HANDSHAKER_* variables; non-None overrides win."""
        values = {
            "host": os.getenv("HANDSHAKER_HOST", "[::]"),
            "port": _int_env("HANDSHAKER_PORT", "50051"),
            "health_host": os.getenv("HANDSHAKER_HEALTH_HOST", "0.0.0.0"),  # noqa: S104
            "health_port": _int_env("HANDSHAKER_HEALTH_PORT", "8080"),
            "enable_health": os.getenv("HANDSHAKER_ENABLE_HEALTH", "1") != "0",
            "log_level": os.getenv("HANDSHAKER_LOG_LEVEL", "INFO"),
            "tls_cert": os.getenv("HANDSHAKER_TLS_CERT") or None,
            "tls_key": os.getenv("HANDSHAKER_TLS_KEY") or None,
            "tls_ca": os.getenv("HANDSHAKER_TLS_CA") or None,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
