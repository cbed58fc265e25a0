from dataclasses import dataclass, field, fields, is_dataclass, replace
from loguru import logger
from os import path
import json

from modules.retry import ConfigError


CHAINS_DATA = {
    "0g": {
        "chain_id": 16600,
        "explorer": "https://chainscan-newton.0g.ai/tx/",
        "token": "A0GI",
    },
}

FAUCET_URL = "https://faucet.0g.ai/api/faucet"
CAPTCHA_URL = "https://publisher.scrappey.com/api/v1"
CAPTCHA_SITE_URL = "https://faucet.0g.ai"
CAPTCHA_SITE_KEY = "914e63b4-ac20-4c24-bc92-cdb6950ccfde"

TOKEN_ADDRESSES = {
    "USDT": "0x9A87C2412d500343c073E5Ae5394E3bE3874F76b",
    "BTC": "0x1E0D871472973c562650E991ED8006549F8CBEfc",
    "ETH": "0xce830D0905e0f7A9b300401729761579c5FB6bd6",
}
DEX_ROUTER = "0xD86b764618c6E3C078845BE3c3fCe50CE9535Da7"

STORAGE_CONTRACTS = {
    "standard": "0x0460aA47b41a66694c0a73f667a1b795A5ED3556",
    "turbo": "0xbD2C3F0E65eDF5582141C35969d66e34629cC768",
}
STORAGE_INDEXERS = {
    "standard": "https://indexer-storage-testnet-standard.0g.ai",
    "turbo": "https://indexer-storage-testnet-turbo.0g.ai",
}

NFT_CONTRACTS = [
    {"name": "Miner's Legacy", "address": "0x9059cA87Ddc891b91e731C57D21809F1A4adC8D9", "method_id": "0x1249c58b"},
]
DOMAIN_CONTRACT = {"address": "0xCF7f37B4916AC5c530C863f8c8bB26Ec1e8d2Ccb", "method_id": "0x692b3956"}


@dataclass
class BackoffConfig:
    base_wait_time: float = 10                          # seconds
    max_wait_time: float = 300
    mempool_multiplier: float = 3


@dataclass
class HttpConfig:
    max_retries: int = 5
    timeout: float = 30
    retry_codes: tuple = (408, 429, 500, 502, 503, 504)
    timeouts: dict = field(default_factory=lambda: {FAUCET_URL: 180})
    no_proxy_urls: tuple = (CAPTCHA_URL,)


@dataclass
class GasConfig:
    multiplier: float = 1.1
    retry_increase: float = 1.3
    min_gwei: float | None = None
    max_gwei: float | None = None
    fallback_gwei: float = 1


@dataclass
class TxConfig:
    chain_id: int | None = CHAINS_DATA["0g"]["chain_id"]
    max_retries: int = 3                                # mempool-class resubmissions
    receipt_attempts: int = 50
    receipt_interval: float = 3
    gas_buffer: float = 1.2
    default_gas: int = 100000
    low_gas_probe_gwei: float = 1
    replace_increase: float = 1.2
    confirm_delay: float = 5                            # cooldown after a confirmed tx


@dataclass
class SwapConfig:
    enable_onchain_faucet: bool = True
    enable_token_swap: bool = True
    faucet_tokens: list = field(default_factory=lambda: ["USDT", "BTC", "ETH"])
    swap_pairs: list = field(default_factory=lambda: [
        {"from": "USDT", "to": "BTC", "count": 2},
        {"from": "USDT", "to": "ETH", "count": 2},
        {"from": "BTC", "to": "USDT", "count": 1},
        {"from": "ETH", "to": "USDT", "count": 1},
    ])
    swap_amounts: dict = field(default_factory=lambda: {
        "USDT": {"min": 0.01, "max": 0.1},
        "BTC": {"min": 0.000001, "max": 0.00001},
        "ETH": {"min": 0.00001, "max": 0.0001},
    })
    decimal_precision: dict = field(default_factory=lambda: {"USDT": 4, "BTC": 6, "ETH": 5})
    pool_fee: int = 3000
    default_gas: int = 100000


@dataclass
class MintConfig:
    enable_mint_nft: bool = True
    enable_mint_domain: bool = True
    nft_count: list = field(default_factory=lambda: [1, 3])
    domain_count: list = field(default_factory=lambda: [1, 2])
    domain_length: list = field(default_factory=lambda: [4, 8])
    gas_price_multiplier: float = 1.1
    nft_default_gas: int = 160000
    domain_default_gas: int = 360000


@dataclass
class StorageConfig:
    network: str = "turbo"
    min_files: int = 5
    max_files: int = 10
    fee_ether: str = "0.00001"
    gas_limit: int = 500000
    upload_timeout: float = 120


@dataclass
class BotConfig:
    enable_faucet: bool = True
    enable_contract_deploy: bool = True
    enable_transfer: bool = True
    enable_storage: bool = True
    enable_token_operations: bool = True
    enable_mint: bool = True
    max_retries: int = 5                                # attempts per wallet step
    transfer_amount_percentage: int = 90
    contract_interactions: list = field(default_factory=lambda: [1, 3])
    backoff: BackoffConfig = field(default_factory=BackoffConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    gas: GasConfig = field(default_factory=GasConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)
    mint: MintConfig = field(default_factory=MintConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def merge_config(default, overrides: dict, prefix: str = ""):
    """Return a copy of `default` with `overrides` applied; nested dataclasses merge recursively."""
    if not isinstance(overrides, dict):
        raise ConfigError(f'"{prefix or "config"}" must be an object, got {type(overrides).__name__}')

    known = {f.name: f for f in fields(default)}
    changes = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f'Unknown config key "{prefix}{key}"')

        current = getattr(default, key)
        if is_dataclass(current):
            changes[key] = merge_config(current, value, prefix=f"{prefix}{key}.")
        elif isinstance(current, tuple) and isinstance(value, list):
            changes[key] = tuple(value)
        else:
            changes[key] = value

    return replace(default, **changes)


def load_config(config_path: str) -> BotConfig:
    if not path.isfile(config_path):
        logger.warning(f'[•] Soft | {config_path} not found, using default configuration')
        return BotConfig()

    with open(config_path, encoding="utf-8") as f:
        try:
            overrides = json.load(f)
        except json.JSONDecodeError as err:
            raise ConfigError(f'Bad json in {config_path}: {err}')

    config = merge_config(BotConfig(), overrides)
    logger.info(f'[•] Soft | Loaded configuration from {config_path}')
    return config
