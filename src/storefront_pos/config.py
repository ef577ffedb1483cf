from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable

from dotenv import load_dotenv
from platformdirs import user_data_dir


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    terminal_id: str | None = None
    api_token: str | None = None

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


@dataclass(frozen=True)
class TerminalSettings:
    tax_rate: Decimal = Decimal("18")
    order_cache_limit: int = 200
    activity_limit: int = 50
    scan_cooldown_seconds: float = 1.5
    data_dir: Path = Path(user_data_dir("storefront_pos", "Storefront"))

    @property
    def orders_path(self) -> Path:
        return self.data_dir / "pos_orders.json"

    @property
    def customers_path(self) -> Path:
        return self.data_dir / "customers.json"

    @property
    def activity_path(self) -> Path:
        return self.data_dir / "recent_activity.json"


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _read_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:
        raise ConfigError(f"Invalid {name}: expected a decimal, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load remote store settings from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("POS_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"POS_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("POS_API_BASE_URL") or "").strip()
    )

    timeout_seconds = _read_float("POS_TIMEOUT_SECONDS", "10")
    _validate(timeout_seconds > 0, f"Invalid POS_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")

    connect_timeout_seconds = _read_float("POS_CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0)))
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid POS_CONNECT_TIMEOUT_SECONDS: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float(
        "POS_READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid POS_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("POS_RETRIES", "2")
    _validate(retries >= 0, f"Invalid POS_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("POS_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid POS_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    max_connections = _read_int("POS_MAX_CONNECTIONS", "10")
    _validate(max_connections >= 1, f"Invalid POS_MAX_CONNECTIONS: expected >= 1, got {max_connections}")

    verify_ssl = _coerce_bool(os.getenv("POS_VERIFY_SSL"), True)

    values = {"POS_API_BASE_URL": api_base_url}
    _require(values, ["POS_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        terminal_id=(os.getenv("POS_TERMINAL_ID") or "").strip() or None,
        api_token=(os.getenv("POS_API_TOKEN") or "").strip() or None,
    )


def load_terminal_settings(env_file: str | None = None) -> TerminalSettings:
    """Load checkout and local storage settings; every value has a default."""
    load_dotenv(env_file)

    tax_rate = _read_decimal("POS_TAX_RATE", "18")
    _validate(tax_rate >= 0, f"Invalid POS_TAX_RATE: expected >= 0, got {tax_rate}")

    order_cache_limit = _read_int("POS_ORDER_CACHE_LIMIT", "200")
    _validate(order_cache_limit >= 1, f"Invalid POS_ORDER_CACHE_LIMIT: expected >= 1, got {order_cache_limit}")

    activity_limit = _read_int("POS_ACTIVITY_LIMIT", "50")
    _validate(activity_limit >= 1, f"Invalid POS_ACTIVITY_LIMIT: expected >= 1, got {activity_limit}")

    scan_cooldown_seconds = _read_float("POS_SCAN_COOLDOWN_SECONDS", "1.5")
    _validate(
        scan_cooldown_seconds >= 0,
        f"Invalid POS_SCAN_COOLDOWN_SECONDS: expected >= 0, got {scan_cooldown_seconds}",
    )

    configured_dir = (os.getenv("POS_DATA_DIR") or "").strip()
    data_dir = Path(configured_dir) if configured_dir else Path(user_data_dir("storefront_pos", "Storefront"))

    return TerminalSettings(
        tax_rate=tax_rate,
        order_cache_limit=order_cache_limit,
        activity_limit=activity_limit,
        scan_cooldown_seconds=scan_cooldown_seconds,
        data_dir=data_dir,
    )
