"""Tests for configuration management."""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from sniper.config.settings import AppSettings, load_settings
from sniper.core.types import ExecutionBackendKind


def write_yaml(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(content)
        return f.name


def test_app_settings_defaults() -> None:
    settings = AppSettings(rpc_url="https://rpc.test")

    assert settings.quote_mint == "WSOL"
    assert settings.transaction_executor is ExecutionBackendKind.DIRECT
    assert settings.custom_fee == Decimal("0.006")
    assert settings.max_tokens_at_the_time == 1
    assert settings.consecutive_filter_matches == 3
    assert settings.telegram_admin_ids == []


def test_bot_config_resolves_quote_token() -> None:
    settings = AppSettings(
        rpc_url="https://rpc.test",
        quote_mint="USDC",
        quote_amount="5",
        take_profit="50",
    )

    config = settings.bot_config()

    assert config.quote_token.symbol == "USDC"
    assert config.quote_token.decimals == 6
    assert config.quote_amount == Decimal(5)
    assert config.take_profit == Decimal(50)


def test_bot_config_is_frozen() -> None:
    config = AppSettings(rpc_url="https://rpc.test").bot_config()

    with pytest.raises(ValidationError):
        config.quote_amount = Decimal(1)


def test_bot_config_rejects_zero_quote_amount() -> None:
    settings = AppSettings(rpc_url="https://rpc.test", quote_amount="0")

    with pytest.raises(ValidationError):
        settings.bot_config()


def test_invalid_executor_rejected() -> None:
    with pytest.raises(ValidationError):
        AppSettings(rpc_url="https://rpc.test", transaction_executor="carrier-pigeon")


def test_load_settings() -> None:
    path = write_yaml(
        """
rpc_url: "https://rpc.test"
transaction_executor: jito
custom_fee: "0.001"
filter_check_interval: 500
"""
    )
    try:
        settings = load_settings(path)
    finally:
        Path(path).unlink()

    assert settings.transaction_executor is ExecutionBackendKind.BUNDLED_RELAY
    assert settings.custom_fee == Decimal("0.001")
    assert settings.filter_check_interval == 500


def test_load_settings_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_settings("/nonexistent/sniper.yaml")


def test_load_settings_invalid_yaml() -> None:
    path = write_yaml("rpc_url: [unclosed\n")
    try:
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_settings(path)
    finally:
        Path(path).unlink()


def test_load_settings_non_mapping() -> None:
    path = write_yaml("- just\n- a list\n")
    try:
        with pytest.raises(ValueError, match="mapping"):
            load_settings(path)
    finally:
        Path(path).unlink()


def test_shipped_config_loads() -> None:
    config_path = Path(__file__).resolve().parent.parent / "configs" / "sniper.yaml"

    settings = load_settings(str(config_path))

    assert settings.bot_config().quote_token.symbol == "WSOL"


def test_environment_secrets_reach_shipped_config(monkeypatch) -> None:
    monkeypatch.setenv("WALLET_PRIVATE_KEYS", '["4444444444"]')
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    config_path = Path(__file__).resolve().parent.parent / "configs" / "sniper.yaml"

    settings = load_settings(str(config_path))

    assert settings.wallet_private_keys == ["4444444444"]
    assert settings.telegram_bot_token == "123:abc"


def test_environment_overrides_yaml(monkeypatch) -> None:
    monkeypatch.setenv("MAX_BUY_RETRIES", "3")
    path = write_yaml('rpc_url: "https://rpc.test"\nmax_buy_retries: 10\n')
    try:
        settings = load_settings(path)
    finally:
        Path(path).unlink()

    assert settings.max_buy_retries == 3
    assert settings.rpc_url == "https://rpc.test"
