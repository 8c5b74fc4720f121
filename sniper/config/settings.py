"""Application settings and configuration management."""

from decimal import Decimal
from pathlib import Path
from typing import Literal

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from ..chain.addresses import QUOTE_TOKENS, QuoteToken
from ..core.types import ExecutionBackendKind

logger = structlog.get_logger(__name__)


class BotConfig(BaseModel):
    """Immutable per-run trading configuration.

    Durations are milliseconds, percentages are percent (``25`` means 25%),
    amounts are quote-token UI units.
    """

    model_config = ConfigDict(frozen=True)

    quote_token: QuoteToken
    quote_amount: Decimal = Field(gt=0)
    buy_rate: Decimal = Field(default=Decimal(0), ge=0, le=100)
    min_pool_size: Decimal = Field(default=Decimal(0), ge=0)
    max_pool_size: Decimal = Field(default=Decimal(0), ge=0)
    max_tokens_at_the_time: int = Field(default=1, ge=1)
    use_snipe_list: bool = False
    auto_sell: bool = True
    auto_buy_delay: int = Field(default=0, ge=0)
    auto_sell_delay: int = Field(default=0, ge=0)
    max_buy_retries: int = Field(default=10, ge=1)
    max_sell_retries: int = Field(default=10, ge=1)
    no_wallet_backoff: int = Field(default=1000, ge=0)
    compute_unit_limit: int = Field(default=101337, ge=0)
    compute_unit_price: int = Field(default=421197, ge=0)
    take_profit: Decimal = Field(default=Decimal(40), ge=0)
    stop_loss: Decimal = Field(default=Decimal(20), ge=0, le=100)
    trailing_stop_loss: bool = False
    skip_selling_if_lost_more_than: Decimal = Field(default=Decimal(0), ge=0, le=100)
    buy_slippage: Decimal = Field(default=Decimal(20), ge=0, le=100)
    sell_slippage: Decimal = Field(default=Decimal(20), ge=0, le=100)
    price_check_interval: int = Field(default=2000, ge=0)
    price_check_duration: int = Field(default=600000, ge=0)
    filter_check_interval: int = Field(default=2000, ge=0)
    filter_check_duration: int = Field(default=60000, ge=0)
    consecutive_filter_matches: int = Field(default=3, ge=1)
    check_if_mint_is_renounced: bool = True
    check_if_freezable: bool = False
    check_if_burned: bool = True
    check_if_mutable: bool = False
    check_if_socials: bool = False
    burn_amount: Decimal = Field(default=Decimal(0), ge=0)
    network: str = "mainnet-beta"


class AppSettings(BaseSettings):
    """Application settings with environment variable support."""

    # RPC
    rpc_url: str = Field(description="Solana RPC URL")
    commitment: Literal["processed", "confirmed", "finalized"] = Field(
        default="confirmed", description="Commitment level for reads"
    )
    network: str = Field(default="mainnet-beta", description="Explorer cluster name")

    # Wallets
    wallet_private_keys: list[str] = Field(
        default_factory=list, description="Base58 wallet secret keys"
    )
    wallet_keypair_paths: list[str] = Field(
        default_factory=list, description="solana-keygen JSON keypair files"
    )

    # Bot
    quote_mint: Literal["WSOL", "USDC"] = Field(
        default="WSOL", description="Quote token symbol"
    )
    max_tokens_at_the_time: int = Field(
        default=1, description="Maximum pools processed at the same time"
    )
    transaction_executor: ExecutionBackendKind = Field(
        default=ExecutionBackendKind.DIRECT,
        description="Transaction executor: default, warp or jito",
    )
    custom_fee: Decimal = Field(
        default=Decimal("0.006"), description="Relay fee in SOL (warp/jito)"
    )
    compute_unit_limit: int = Field(default=101337, description="Compute unit limit")
    compute_unit_price: int = Field(
        default=421197, description="Compute unit price in micro lamports"
    )

    # Buy
    quote_amount: Decimal = Field(
        default=Decimal("0.001"), description="Buy amount in quote token"
    )
    buy_rate: Decimal = Field(
        default=Decimal(0),
        description="Buy this percent of the pool quote reserve instead of quote_amount",
    )
    auto_buy_delay: int = Field(default=0, description="Delay before buy (ms)")
    max_buy_retries: int = Field(default=10, description="Buy attempts per pool")
    no_wallet_backoff: int = Field(
        default=1000, description="Wait when no wallet is funded (ms)"
    )
    buy_slippage: Decimal = Field(default=Decimal(20), description="Buy slippage (%)")

    # Sell
    auto_sell: bool = Field(default=True, description="Sell automatically")
    auto_sell_delay: int = Field(default=0, description="Delay before sell (ms)")
    max_sell_retries: int = Field(default=10, description="Sell attempts per position")
    sell_slippage: Decimal = Field(default=Decimal(20), description="Sell slippage (%)")
    price_check_interval: int = Field(default=2000, description="Price poll interval (ms)")
    price_check_duration: int = Field(
        default=600000, description="Price monitoring duration (ms)"
    )
    take_profit: Decimal = Field(default=Decimal(40), description="Take profit (%)")
    stop_loss: Decimal = Field(default=Decimal(20), description="Stop loss (%)")
    trailing_stop_loss: bool = Field(default=False, description="Trail the stop loss")
    skip_selling_if_lost_more_than: Decimal = Field(
        default=Decimal(0), description="Stop trying to sell beyond this loss (%)"
    )

    # Filters
    use_snipe_list: bool = Field(default=False, description="Buy only listed mints")
    snipe_list_path: str = Field(
        default="snipe-list.txt", description="File with one mint per line"
    )
    snipe_list_refresh_interval: int = Field(
        default=30000, description="Snipe list reload interval (ms)"
    )
    filter_check_interval: int = Field(
        default=2000, description="Filter poll interval (ms)"
    )
    filter_check_duration: int = Field(
        default=60000, description="Filter confirmation window (ms)"
    )
    consecutive_filter_matches: int = Field(
        default=3, description="Consecutive passing polls required"
    )
    check_if_mint_is_renounced: bool = Field(default=True)
    check_if_freezable: bool = Field(default=False)
    check_if_burned: bool = Field(default=True)
    check_if_mutable: bool = Field(default=False)
    check_if_socials: bool = Field(default=False)
    burn_amount: Decimal = Field(
        default=Decimal(0), description="LP supply drop that counts as a burn"
    )
    min_pool_size: Decimal = Field(default=Decimal(5), description="Min quote reserve")
    max_pool_size: Decimal = Field(default=Decimal(50), description="Max quote reserve")

    # Notifications
    telegram_bot_token: str | None = Field(
        default=None, description="Telegram bot token"
    )
    telegram_admin_ids: list[int] = Field(
        default_factory=list, description="Telegram admin user IDs"
    )

    # Storage and logging
    journal_path: str | None = Field(
        default="./sniper.sqlite", description="Trade journal SQLite path"
    )
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["console", "json"] = Field(
        default="console", description="Log renderer"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment and ``.env`` override values passed in, e.g. from YAML."""
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def bot_config(self) -> BotConfig:
        """Derive the immutable trading configuration."""
        return BotConfig(
            quote_token=QUOTE_TOKENS[self.quote_mint],
            quote_amount=self.quote_amount,
            buy_rate=self.buy_rate,
            min_pool_size=self.min_pool_size,
            max_pool_size=self.max_pool_size,
            max_tokens_at_the_time=self.max_tokens_at_the_time,
            use_snipe_list=self.use_snipe_list,
            auto_sell=self.auto_sell,
            auto_buy_delay=self.auto_buy_delay,
            auto_sell_delay=self.auto_sell_delay,
            max_buy_retries=self.max_buy_retries,
            max_sell_retries=self.max_sell_retries,
            no_wallet_backoff=self.no_wallet_backoff,
            compute_unit_limit=self.compute_unit_limit,
            compute_unit_price=self.compute_unit_price,
            take_profit=self.take_profit,
            stop_loss=self.stop_loss,
            trailing_stop_loss=self.trailing_stop_loss,
            skip_selling_if_lost_more_than=self.skip_selling_if_lost_more_than,
            buy_slippage=self.buy_slippage,
            sell_slippage=self.sell_slippage,
            price_check_interval=self.price_check_interval,
            price_check_duration=self.price_check_duration,
            filter_check_interval=self.filter_check_interval,
            filter_check_duration=self.filter_check_duration,
            consecutive_filter_matches=self.consecutive_filter_matches,
            check_if_mint_is_renounced=self.check_if_mint_is_renounced,
            check_if_freezable=self.check_if_freezable,
            check_if_burned=self.check_if_burned,
            check_if_mutable=self.check_if_mutable,
            check_if_socials=self.check_if_socials,
            burn_amount=self.burn_amount,
            network=self.network,
        )


def load_settings(yaml_path: str) -> AppSettings:
    """Load settings from YAML file and environment variables.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        AppSettings instance with loaded configuration

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValidationError: If configuration is invalid
        ValueError: If the YAML cannot be parsed
    """
    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    try:
        with open(yaml_file, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError("Configuration root must be a mapping")

        logger.info("Loading configuration", yaml_path=yaml_path)

        settings = AppSettings(**yaml_config)

        logger.info(
            "Configuration loaded successfully",
            executor=settings.transaction_executor.value,
            wallets=len(settings.wallet_private_keys)
            + len(settings.wallet_keypair_paths),
            rpc_url=settings.rpc_url[:50] + "..."
            if len(settings.rpc_url) > 50
            else settings.rpc_url,
        )

        return settings

    except yaml.YAMLError as e:
        logger.error("Failed to parse YAML configuration", error=str(e))
        raise ValueError(f"Invalid YAML configuration: {e}") from e
    except ValidationError as e:
        logger.error("Configuration validation failed", error=str(e))
        raise
