"""gRPC TLS credentials from PEM files."""

from __future__ import annotations

from pathlib import Path

import grpc

from .config import Settings
from .errors import ConfigurationError


def _read_pem(path: str | None) -> bytes | None:
    if not path:
        return None
    try:
        return Path(path).read_bytes()
    except OSError as err:
        raise ConfigurationError("cannot read PEM file", {"path": path, "error": str(err)}) from err


def load_server_credentials(settings: Settings) -> grpc.ServerCredentials | None:
    """Server credentials for the configured certificate, or None when TLS is off.

    A configured CA bundle turns on client certificate verification.
    """
    if not settings.tls_enabled:
        return None
    cert = _read_pem(settings.tls_cert)
    key = _read_pem(settings.tls_key)
    ca = _read_pem(settings.tls_ca)
    return grpc.ssl_server_credentials([(key, cert)], root_certificates=ca, require_client_auth=ca is not None)


def load_channel_credentials(
    ca: str | None = None, cert: str | None = None, key: str | None = None
) -> grpc.ChannelCredentials:
    if bool(cert) != bool(key):
        raise ConfigurationError("client certificate and key must be given together")
    return grpc.ssl_channel_credentials(
        root_certificates=_read_pem(ca), private_key=_read_pem(key), certificate_chain=_read_pem(cert)
    )
