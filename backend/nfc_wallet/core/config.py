# nfc_wallet/core/config.py

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from nfc_wallet.core.validator import ContractLimits


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _database_url_from_env() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    # PostgreSQL by default, same variables as the deployment scripts
    db_user = os.getenv("DB_USER", "nfc_wallet")
    db_pass = os.getenv("DB_PASS", "nfc_wallet")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "nfc_wallet")
    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


@dataclass
class Settings:
    """
    Everything the app needs at startup.

    Built from the environment by Settings.from_env() and passed explicitly to
    create_app(); services receive the parts they use through their
    constructors.
    """
    database_url: str = "sqlite:///./nfc_wallet.db"
    aes_encryption_key: str = ""

    rpc_url: str = "https://k8s.testnet.json-rpc.injective.network/"
    chain_id: int = 1439
    rpc_timeout: float = 30.0
    contract_private_key: Optional[str] = None
    domain_registry_address: Optional[str] = None
    nfc_registry_address: Optional[str] = None
    cat_nft_address: Optional[str] = None
    block_explorer: str = "https://testnet.blockscout.injective.network/"

    initial_funding_enabled: bool = True
    initial_funding_amount: str = "0.1"
    sync_limits_from_chain: bool = False

    rate_limit_enabled: bool = True
    register_rate_limit: str = "10/minute"
    social_rate_limit: str = "30/minute"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    limits: ContractLimits = field(default_factory=ContractLimits)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        load_dotenv(env_file or Path.cwd() / ".env")

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=_database_url_from_env(),
            aes_encryption_key=os.getenv("AES_ENCRYPTION_KEY", ""),
            rpc_url=os.getenv("INJECTIVE_RPC_URL", cls.rpc_url),
            chain_id=int(os.getenv("INJECTIVE_CHAIN_ID", str(cls.chain_id))),
            rpc_timeout=float(os.getenv("RPC_TIMEOUT", str(cls.rpc_timeout))),
            contract_private_key=os.getenv("CONTRACT_PRIVATE_KEY") or None,
            domain_registry_address=os.getenv("DOMAIN_REGISTRY_ADDRESS") or None,
            nfc_registry_address=os.getenv("NFC_REGISTRY_ADDRESS") or None,
            cat_nft_address=os.getenv("CATNFT_CONTRACT_ADDRESS") or None,
            block_explorer=os.getenv("BLOCK_EXPLORER", cls.block_explorer),
            initial_funding_enabled=_env_bool("INITIAL_FUNDING_ENABLED", True),
            initial_funding_amount=os.getenv("INITIAL_FUNDING_AMOUNT", cls.initial_funding_amount),
            sync_limits_from_chain=_env_bool("SYNC_LIMITS_FROM_CHAIN", False),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            register_rate_limit=os.getenv("REGISTER_RATE_LIMIT", cls.register_rate_limit),
            social_rate_limit=os.getenv("SOCIAL_RATE_LIMIT", cls.social_rate_limit),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
