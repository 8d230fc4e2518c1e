"""Tests for settings and credential loading."""

import grpc
import pytest

from handshaker_service.config import Settings
from handshaker_service.credentials import load_channel_credentials, load_server_credentials
from handshaker_service.errors import ConfigurationError


_ENV_VARS = (
    "HANDSHAKER_HOST",
    "HANDSHAKER_PORT",
    "HANDSHAKER_ENABLE_HEALTH",
    "HANDSHAKER_LOG_LEVEL",
    "HANDSHAKER_TLS_CERT",
    "HANDSHAKER_TLS_KEY",
    "HANDSHAKER_TLS_CA",
)


def test_defaults(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    settings = Settings.from_env()
    assert settings.port == 50051
    assert settings.address == "[::]:50051"
    assert settings.enable_health is True
    assert settings.tls_enabled is False


def test_environment_and_overrides(monkeypatch):
    monkeypatch.setenv("HANDSHAKER_PORT", "6000")
    monkeypatch.setenv("HANDSHAKER_ENABLE_HEALTH", "0")
    monkeypatch.setenv("HANDSHAKER_LOG_LEVEL", "debug")

    settings = Settings.from_env(health_port=9000, log_level=None)

    assert settings.port == 6000
    assert settings.health_port == 9000
    assert settings.enable_health is False
    assert settings.log_level == "debug"


def test_non_integer_port(monkeypatch):
    monkeypatch.setenv("HANDSHAKER_PORT", "http")
    with pytest.raises(ConfigurationError, match="HANDSHAKER_PORT must be an integer"):
        Settings.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"port": 70000},
        {"health_port": -1},
        {"log_level": "chatty"},
        {"tls_cert": "cert.pem"},
        {"tls_key": "key.pem"},
        {"tls_ca": "ca.pem"},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ConfigurationError):
        Settings(**kwargs)


def test_server_credentials_off_without_cert():
    assert load_server_credentials(Settings()) is None


def test_missing_pem_file(tmp_path):
    settings = Settings(tls_cert=str(tmp_path / "missing.pem"), tls_key=str(tmp_path / "missing.key"))
    with pytest.raises(ConfigurationError, match="cannot read PEM file") as excinfo:
        load_server_credentials(settings)
    assert excinfo.value.details["path"].endswith("missing.pem")


def test_channel_credentials_need_cert_and_key_together():
    with pytest.raises(ConfigurationError):
        load_channel_credentials(cert="client.pem")


def test_channel_credentials_with_defaults():
    assert isinstance(load_channel_credentials(), grpc.ChannelCredentials)
