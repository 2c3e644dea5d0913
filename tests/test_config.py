"""Tests for configuration adapter."""

from datetime import tzinfo

import pytest

from visitor_analytics.adapters.config import AppConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: object) -> None:
    """Run without a developer's .env file."""
    monkeypatch.chdir(tmp_path)  # type: ignore[arg-type]


def test_config_loads_defaults() -> None:
    """Given no environment variables, when loading config, then defaults are used."""
    config = AppConfig()

    assert config.host == "0.0.0.0"
    assert config.port == 3001
    assert config.store_backend == "mongo"
    assert config.trust_proxy == ["loopback", "linklocal", "uniquelocal"]
    assert config.enable_debug_endpoint is True
    assert config.recent_visitors_default_limit == 50
    assert config.get_timezone() is None


def test_config_loads_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given environment variables, when loading config, then they are used."""
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("STORE_BACKEND", "Memory")
    monkeypatch.setenv("TRUST_PROXY", '["loopback", "203.0.113.0/24"]')
    monkeypatch.setenv("ENABLE_DEBUG_ENDPOINT", "false")
    monkeypatch.setenv("TIMEZONE", "Europe/Berlin")

    config = AppConfig()

    assert config.port == 9000
    assert config.store_backend == "memory"
    assert config.trust_proxy == ["loopback", "203.0.113.0/24"]
    assert config.enable_debug_endpoint is False
    assert isinstance(config.get_timezone(), tzinfo)


def test_config_validates_store_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given an unknown store backend, when loading config, then validation fails."""
    monkeypatch.setenv("STORE_BACKEND", "postgres")

    with pytest.raises(ValueError, match="store_backend must be either"):
        AppConfig()


def test_config_validates_trust_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given a bogus trust proxy entry, when loading config, then validation fails."""
    monkeypatch.setenv("TRUST_PROXY", '["everyone"]')

    with pytest.raises(ValueError, match="trust_proxy entry"):
        AppConfig()


def test_config_validates_timezone(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given an unknown timezone, when loading config, then validation fails."""
    monkeypatch.setenv("TIMEZONE", "Mars/Olympus")

    with pytest.raises(ValueError, match="IANA timezone"):
        AppConfig()


def test_config_validates_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given a lower-case log level, when loading config, then it is normalized."""
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert AppConfig().log_level == "DEBUG"


def test_config_accepts_comma_separated_lists(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given plain comma-separated list values, when loading config, then they are split."""
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example")
    monkeypatch.setenv("TRUST_PROXY", "loopback, 203.0.113.0/24,")
    monkeypatch.setenv("IP_ECHO_SERVICES", "https://echo-a.example,https://echo-b.example")

    config = AppConfig()

    assert config.cors_allow_origins == ["https://a.example"]
    assert config.trust_proxy == ["loopback", "203.0.113.0/24"]
    assert config.ip_echo_services == ["https://echo-a.example", "https://echo-b.example"]


def test_config_validates_comma_separated_trust_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given a bogus entry in a comma-separated trust proxy list, when loading, then it fails."""
    monkeypatch.setenv("TRUST_PROXY", "loopback,everyone")

    with pytest.raises(ValueError, match="trust_proxy entry"):
        AppConfig()
