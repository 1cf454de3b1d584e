import os
from dotenv import load_dotenv
from dataclasses import dataclass
from functools import lru_cache

load_dotenv()

# CarbonController on Ethereum mainnet
CARBON_CONTROLLER_MAINNET = "0xC537e898CD774e2dCBa3B14Ea6f34C93d5eA45e1"


def _parse_bool(value: str, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(value: str, default: int) -> int:
    value = (value or "").strip()
    if not value:
        return default
    return int(value)


@dataclass
class Settings:
    # chain
    RPC_URL_DEFAULT: str
    NETWORK: str
    CARBON_CONTROLLER_ADDRESS: str
    RPC_TIMEOUT_SEC: int

    # positions
    BALANCE_MODE: str
    DEFINITIONS_REFRESH_SEC: int

    # MongoDB (definition snapshots)
    MONGO_URI: str
    MONGO_DB: str
    PERSIST_DEFINITIONS: bool

    API_MARKET_DATA_URL: str

    # generic
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        # Core chain
        RPC_URL_DEFAULT=os.getenv("RPC_URL_DEFAULT", ""),
        NETWORK=os.getenv("NETWORK", "ethereum").strip().lower(),
        CARBON_CONTROLLER_ADDRESS=os.getenv("CARBON_CONTROLLER_ADDRESS", CARBON_CONTROLLER_MAINNET),
        RPC_TIMEOUT_SEC=_parse_int(os.getenv("RPC_TIMEOUT_SEC", ""), 30),

        # Positions
        BALANCE_MODE=os.getenv("BALANCE_MODE", "cached").strip().lower(),
        DEFINITIONS_REFRESH_SEC=_parse_int(os.getenv("DEFINITIONS_REFRESH_SEC", ""), 300),

        # Mongo
        MONGO_URI=os.getenv("MONGO_URI", "mongodb://mongo-carbon:27017/carbon_positions"),
        MONGO_DB=os.getenv("MONGO_DB", "carbon_positions"),
        PERSIST_DEFINITIONS=_parse_bool(os.getenv("PERSIST_DEFINITIONS", ""), False),

        API_MARKET_DATA_URL=os.getenv("API_MARKET_DATA_URL", "http://172.17.0.1:8081"),

        ENV=os.getenv("ENV", "dev"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )
