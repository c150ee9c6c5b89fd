"""
Settings - Load config/settings.json, fill defaults, apply env overrides
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from colorama import Fore, Style


PLACEHOLDER_PRIVATE_KEY = "YOUR_PRIVATE_KEY_HERE"

WETH_ADDRESS = "0x4200000000000000000000000000000000000006"
USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

DEFAULT_SETTINGS = {
    "network": {
        "name": "Base",
        "rpc_url": "https://mainnet.base.org",
        "chain_id": 8453,
        "explorer_url": "https://basescan.org",
        "poll_interval_seconds": 2
    },
    "wallet": {
        "private_key": PLACEHOLDER_PRIVATE_KEY
    },
    "contracts": {
        "weth": WETH_ADDRESS,
        "usdc": USDC_ADDRESS,
        "uniswap_v2_factory": "0x8909Dc15e40173Ff4699343b6eB8132c65e18eC6",
        "uniswap_v2_router": "0x4752ba5DBc23f44D87826276BF6Fd6b1C372aD24",
        "aerodrome_factory": "0x420DD381b31aEf6683db6B902084cB0FFECe40Da",
        "aerodrome_router": "0xcF77a3Ba9A5CA399B7c97c74d54e5b1Beb874E43",
        "uniswap_v3_factory": "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
        "universal_router": "0x3fC91A3afd70395Cd496C647d5a6CC9D4B2b7FAD"
    },
    "filters": {
        "min_liquidity_eth": 0.1,
        "max_liquidity_eth": 10.0,
        "max_supply_enabled": False,
        "max_supply_threshold": 1000000000
    },
    "monitoring": {
        "block_confirmation_count": 3,
        "retry_delay_ms": 1000,
        "dedup_before_delay": True,
        "v3_mint_timeout_blocks": 300,
        "v3_max_pending_pools": 50,
        "autostart": True,
        "big_buys_enabled": True,
        "big_buy_threshold_eth": 1.0
    },
    "auto_swap": {
        "enabled": False,
        "buy_amount_eth": 0.1,
        "min_liquidity_eth": 10.0,
        "max_supply_threshold": 1000000000
    },
    "trading": {
        "slippage_percent": 5,
        "gas_limit": 300000,
        "fee_on_transfer_gas_limit": 500000,
        "multi_hop_gas_limit": 400000,
        "deadline_seconds": 600,
        "receipt_timeout_seconds": 120
    },
    "multi_hop": {
        "enabled": True,
        "use_universal_router": True,
        "dust_threshold_wei": 1000000000000000,
        "base_tokens": {
            "WETH": WETH_ADDRESS,
            "USDC": USDC_ADDRESS,
            "USDbC": "0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA",
            "DAI": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
            "cbETH": "0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22"
        }
    },
    "alerts": {
        "telegram_bot_token": "YOUR_TELEGRAM_BOT_TOKEN",
        "telegram_chat_id": "YOUR_CHAT_ID",
        "poll_timeout_seconds": 30
    },
    "verification": {
        "etherscan_api_url": "https://api.etherscan.io/v2/api",
        "etherscan_api_key": ""
    },
    "state": {
        "path": "state.json"
    }
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "SNIPER_RPC_URL": ("network", "rpc_url"),
    "SNIPER_PRIVATE_KEY": ("wallet", "private_key"),
    "TELEGRAM_BOT_TOKEN": ("alerts", "telegram_bot_token"),
    "TELEGRAM_CHAT_ID": ("alerts", "telegram_chat_id"),
    "ETHERSCAN_API_KEY": ("verification", "etherscan_api_key"),
}


class ConfigError(Exception):
    pass


def merge_settings(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively fill missing keys of overrides from defaults"""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            # Ordered maps such as base_tokens replace the default wholesale
            if key == "base_tokens":
                merged[key] = dict(value)
            else:
                merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(settings: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    for env_key, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value:
            settings.setdefault(section, {})[key] = value
    return settings


def validate_settings(settings: Dict[str, Any]) -> None:
    if not settings['network'].get('rpc_url'):
        raise ConfigError("network.rpc_url is required")

    filters = settings['filters']
    min_liq = float(filters['min_liquidity_eth'])
    max_liq = float(filters['max_liquidity_eth'])
    if min_liq < 0 or min_liq >= max_liq:
        raise ConfigError(
            f"filters.min_liquidity_eth ({min_liq}) must be >= 0 and below max_liquidity_eth ({max_liq})"
        )

    slippage = float(settings['trading']['slippage_percent'])
    if not 0 < slippage <= 100:
        raise ConfigError(f"trading.slippage_percent must be in (0, 100], got {slippage}")

    if not settings['multi_hop'].get('base_tokens'):
        raise ConfigError("multi_hop.base_tokens must not be empty")


def load_settings(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load settings from JSON, falling back to defaults for anything missing.
    A missing file is not an error: defaults plus environment are used.
    """
    path = Path(path) if path else Path("config") / "settings.json"

    user_settings = {}
    if path.exists():
        try:
            with open(path, 'r') as f:
                user_settings = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        print(f"{Fore.GREEN}[Config] Loaded settings from {path}{Style.RESET_ALL}")
    else:
        print(f"{Fore.YELLOW}[Config] {path} not found - using defaults{Style.RESET_ALL}")

    settings = merge_settings(DEFAULT_SETTINGS, user_settings)
    apply_env_overrides(settings, environ)
    validate_settings(settings)
    return settings


def private_key_configured(settings: Dict[str, Any]) -> bool:
    key = settings.get('wallet', {}).get('private_key')
    return bool(key) and key != PLACEHOLDER_PRIVATE_KEY
