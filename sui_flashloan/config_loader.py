"""
Configuration loading for the flash-loan toolkit.

Settings come from environment variables (optionally seeded from a ``.env``
file via python-dotenv) and are validated by the Pydantic models in
``config_schema``. Seed data such as the token table and demo pools lives
in YAML files.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from .config_schema import AppSettings
from .exceptions import ConfigurationError
from .utils import parse_bool

# env var -> (section, field)
ENV_FIELDS = {
    "SUI_NETWORK": ("sui", "network"),
    "SUI_RPC_URL": ("sui", "rpc_url"),
    "SUI_FALLBACK_RPC_URLS": ("sui", "fallback_rpc_urls"),
    "SUI_MNEMONIC": ("sui", "mnemonic"),
    "PRIVATE_KEY": ("sui", "private_key"),
    "GAS_BUDGET": ("sui", "gas_budget"),
    "NAVI_PACKAGE_ID": ("navi", "package_id"),
    "NAVI_USDC_POOL_ID": ("navi", "usdc_pool_id"),
    "NAVI_USDC_COIN_TYPE": ("navi", "usdc_coin_type"),
    "NAVI_STORAGE_ID": ("navi", "storage_id"),
    "NAVI_FLASHLOAN_CONFIG_ID": ("navi", "flashloan_config_id"),
    "SUILEND_LENDING_MARKET_ID": ("suilend", "lending_market_id"),
    "SUILEND_LENDING_MARKET_TYPE": ("suilend", "lending_market_type"),
    "SUILEND_COIN_TYPE": ("suilend", "coin_type"),
    "SUILEND_RETRY_ATTEMPTS": ("suilend", "retry_attempts"),
    "SUILEND_RETRY_DELAY": ("suilend", "retry_delay_ms"),
    "SEVENK_API_URL": ("aggregator", "api_url"),
    "QUOTE_TIMEOUT_SEC": ("aggregator", "quote_timeout_sec"),
    "SIMULATION_ONLY": ("bot", "simulation_only"),
    "SCAN_INTERVAL_SEC": ("bot", "scan_interval_sec"),
    "MIN_PROFIT_USD": ("bot", "min_profit_usd"),
    "OPPORTUNITY_PROBABILITY": ("bot", "opportunity_probability"),
    "PROFITABLE_PROBABILITY": ("bot", "profitable_probability"),
    "TRADE_AMOUNT": ("bot", "trade_amount"),
    "TRADE_SLIPPAGE_PCT": ("bot", "trade_slippage_pct"),
    "DEMO_RUN_TIME_MINS": ("bot", "run_time_minutes"),
    "DEMO_EXECUTE_SWAP": ("bot", "demo_execute_swap"),
    "HEALTH_CHECK_PORT": ("bot", "health_check_port"),
    "METRICS_PORT": ("bot", "metrics_port"),
    "REGISTRY_PATH": ("bot", "registry_path"),
}

_BOOL_FIELDS = {"simulation_only", "demo_execute_swap"}
_LIST_FIELDS = {"fallback_rpc_urls"}


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Expected a mapping at top level of {config_path}")

    return config_dict


def _env_to_sections(env: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    sections: Dict[str, Dict[str, Any]] = {}
    for var, (section, field) in ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None or raw.strip() == "":
            continue
        value: Any = raw.strip()
        if field in _BOOL_FIELDS:
            value = parse_bool(value)
        elif field in _LIST_FIELDS:
            value = [u.strip() for u in value.split(",") if u.strip()]
        sections.setdefault(section, {})[field] = value
    return sections


def _resolve_log_level(env: Mapping[str, str]) -> str:
    if parse_bool(env.get("DEBUG")):
        return "DEBUG"
    return env.get("LOG_LEVEL", "INFO") or "INFO"


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[str, Path]] = None,
) -> AppSettings:
    """
    Build validated settings from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ`` (tests pass a dict)
        dotenv_path: ``.env`` file to load into ``os.environ`` first; only
            used when reading the real environment

    Returns:
        AppSettings

    Raises:
        ConfigurationError: If any value fails validation
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    sections = _env_to_sections(env)
    try:
        return AppSettings(log_level=_resolve_log_level(env), **sections)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": [err["msg"] for err in e.errors()]},
        )
