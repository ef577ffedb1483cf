from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from storefront_pos.config import ConfigError, load_config, load_terminal_settings

_POS_VARS = (
    "POS_ENV",
    "POS_API_BASE_URL",
    "POS_API_BASE_URL_DEV",
    "POS_API_BASE_URL_STAGING",
    "POS_TIMEOUT_SECONDS",
    "POS_CONNECT_TIMEOUT_SECONDS",
    "POS_READ_TIMEOUT_SECONDS",
    "POS_RETRIES",
    "POS_RETRY_BACKOFF_SECONDS",
    "POS_MAX_CONNECTIONS",
    "POS_VERIFY_SSL",
    "POS_TERMINAL_ID",
    "POS_API_TOKEN",
    "POS_TAX_RATE",
    "POS_ORDER_CACHE_LIMIT",
    "POS_ACTIVITY_LIMIT",
    "POS_SCAN_COOLDOWN_SECONDS",
    "POS_DATA_DIR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _POS_VARS:
        monkeypatch.delenv(key, raising=False)


def test_load_config_requires_base_url() -> None:
    with pytest.raises(ConfigError, match="POS_API_BASE_URL"):
        load_config()


def test_load_config_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POS_ENV", "staging")
    monkeypatch.setenv("POS_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config()
    assert cfg.api_base_url == "https://staging.example.com"
    assert cfg.env_name == "staging"
    assert cfg.normalized_env == "staging"


def test_load_config_reads_terminal_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POS_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("POS_TERMINAL_ID", " lane-3 ")
    monkeypatch.setenv("POS_VERIFY_SSL", "false")
    cfg = load_config()
    assert cfg.terminal_id == "lane-3"
    assert cfg.api_token is None
    assert cfg.verify_ssl is False


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("POS_TIMEOUT_SECONDS", "0"),
        ("POS_CONNECT_TIMEOUT_SECONDS", "0"),
        ("POS_READ_TIMEOUT_SECONDS", "0"),
        ("POS_RETRIES", "-1"),
        ("POS_RETRY_BACKOFF_SECONDS", "-0.1"),
        ("POS_MAX_CONNECTIONS", "0"),
        ("POS_RETRIES", "two"),
    ],
)
def test_load_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv("POS_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError, match=key):
        load_config()


def test_terminal_settings_defaults() -> None:
    settings = load_terminal_settings()
    assert settings.tax_rate == Decimal("18")
    assert settings.order_cache_limit == 200
    assert settings.activity_limit == 50
    assert settings.scan_cooldown_seconds == 1.5


def test_terminal_settings_data_dir_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("POS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("POS_TAX_RATE", "5")
    settings = load_terminal_settings()
    assert settings.tax_rate == Decimal("5")
    assert settings.orders_path == tmp_path / "pos_orders.json"
    assert settings.customers_path == tmp_path / "customers.json"
    assert settings.activity_path == tmp_path / "recent_activity.json"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("POS_TAX_RATE", "-1"),
        ("POS_TAX_RATE", "abc"),
        ("POS_ORDER_CACHE_LIMIT", "0"),
        ("POS_ACTIVITY_LIMIT", "0"),
        ("POS_SCAN_COOLDOWN_SECONDS", "-1"),
    ],
)
def test_terminal_settings_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError, match=key):
        load_terminal_settings()
