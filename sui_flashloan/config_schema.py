"""
Settings schema validation using Pydantic.

Every knob the scripts read from the environment is declared here with its
default and bounds; ``config_loader.load_settings`` maps environment
variable names onto these models.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .tokens import validate_format

MAINNET_RPC_URL = "https://fullnode.mainnet.sui.io:443"
TESTNET_RPC_URL = "https://fullnode.testnet.sui.io:443"
DEVNET_RPC_URL = "https://fullnode.devnet.sui.io:443"

DEFAULT_RPC_URLS = {
    "mainnet": MAINNET_RPC_URL,
    "testnet": TESTNET_RPC_URL,
    "devnet": DEVNET_RPC_URL,
}

# Wormhole USDC as listed by the lending protocols
LENDING_USDC_COIN_TYPE = (
    "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN"
)


class SuiSettings(BaseModel):
    """Network, endpoint and signer configuration"""

    network: Literal["mainnet", "testnet", "devnet"] = "testnet"
    rpc_url: Optional[str] = None
    fallback_rpc_urls: list[str] = Field(default_factory=list)
    mnemonic: Optional[str] = None
    private_key: Optional[str] = None
    gas_budget: int = Field(default=50_000_000, gt=0)

    @model_validator(mode="after")
    def default_rpc_url(self):
        if not self.rpc_url:
            self.rpc_url = DEFAULT_RPC_URLS[self.network]
        return self

    def has_signer(self) -> bool:
        return bool(self.mnemonic or self.private_key)


class NaviSettings(BaseModel):
    """Navi lending pool used by the flash-loan example"""

    package_id: str = "0x81c408448d0d57b3e371ea94de1d40bf852784d3e225de1e74acab3e8395c18f"
    usdc_pool_id: str = "0x14d8b80d3d3d7dab5a658e696ff994489b6b6a6f01f146099e9a435c04794b03"
    usdc_coin_type: str = LENDING_USDC_COIN_TYPE
    storage_id: str = "0xbb4e2f4b6205c2e2a2db47aeb4f830796ec7c005f88537ee775986639bc442fe"
    flashloan_config_id: str = (
        "0x3672b2bf471a60c30a03325f104f92fb195c9d337ba58072dce764fe2aa5e2dc"
    )
    borrow_amount: int = Field(default=1_000_000, gt=0, description="Base units (1 USDC)")

    @field_validator("usdc_coin_type")
    @classmethod
    def validate_coin_type(cls, v):
        if not validate_format(v):
            raise ValueError(f"invalid coin type: {v}")
        return v


class SuilendSettings(BaseModel):
    """SuiLend market plus retry policy for price discovery"""

    lending_market_id: str = (
        "0xf4ff123a3730fa718761b05ec454d3eefc032ef0528627a0552916194c815904"
    )
    lending_market_type: Optional[str] = None
    coin_type: str = LENDING_USDC_COIN_TYPE
    borrow_amount: int = Field(default=1_000_000, gt=0)
    retry_attempts: int = Field(default=3, ge=1, le=20)
    retry_delay_ms: int = Field(default=1000, ge=0, le=60_000)

    @field_validator("coin_type")
    @classmethod
    def validate_coin_type(cls, v):
        if not validate_format(v):
            raise ValueError(f"invalid coin type: {v}")
        return v

    @model_validator(mode="after")
    def default_market_type(self):
        if not self.lending_market_type:
            self.lending_market_type = (
                f"{self.lending_market_id}::lending_market::LendingMarket"
            )
        return self

    @property
    def package_id(self) -> str:
        """Package that defines the market type (used as the call target)."""
        return self.lending_market_type.split("::", 1)[0]


class AggregatorSettings(BaseModel):
    """Swap aggregator endpoint"""

    api_url: str = "https://sui-mainnet.api.7kprotocol.com"
    quote_timeout_sec: float = Field(default=5.0, gt=0, le=120)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")


class BotSettings(BaseModel):
    """Demo scanner and runner configuration"""

    simulation_only: bool = True
    scan_interval_sec: float = Field(default=30.0, gt=0)
    min_profit_usd: float = Field(default=5.0, ge=0)
    opportunity_probability: float = Field(default=0.25, ge=0, le=1)
    profitable_probability: float = Field(default=0.7, ge=0, le=1)
    trade_amount: int = Field(default=1_000_000_000, gt=0)
    trade_slippage_pct: float = Field(default=0.5, ge=0, le=100)
    run_time_minutes: float = Field(default=5.0, ge=0)
    demo_execute_swap: bool = False
    health_check_port: int = Field(default=3000, ge=0, le=65535)
    metrics_port: int = Field(default=0, ge=0, le=65535)
    registry_path: Optional[str] = None
    store_latency_ms: int = Field(default=50, ge=0)

    @property
    def mode(self) -> str:
        return "simulation" if self.simulation_only else "live"


class AppSettings(BaseModel):
    """Complete process configuration"""

    log_level: str = "INFO"
    sui: SuiSettings = Field(default_factory=SuiSettings)
    navi: NaviSettings = Field(default_factory=NaviSettings)
    suilend: SuilendSettings = Field(default_factory=SuilendSettings)
    aggregator: AggregatorSettings = Field(default_factory=AggregatorSettings)
    bot: BotSettings = Field(default_factory=BotSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level
