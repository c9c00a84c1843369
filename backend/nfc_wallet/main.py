# nfc_wallet/main.py
#
# Run with:  uvicorn nfc_wallet.main:create_app --factory

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from nfc_wallet.api import contract, nfc, user
from nfc_wallet.clients.abis import CAT_NFT, DOMAIN_REGISTRY, NFC_REGISTRY
from nfc_wallet.clients.chain_client import ChainClient
from nfc_wallet.core.config import Settings, get_settings
from nfc_wallet.core.crypto import KeyVault
from nfc_wallet.core.errors import WalletError
from nfc_wallet.core.rate_limit import build_limiter
from nfc_wallet.infra.database import (
    check_connection,
    create_db_engine,
    create_session_factory,
    init_db,
)
from nfc_wallet.services.contract_service import ContractService
from nfc_wallet.services.nfc_service import NFCService
from nfc_wallet.services.user_service import UserService
from nfc_wallet.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def build_chain_client(settings: Settings) -> ChainClient:
    return ChainClient(
        rpc_url=settings.rpc_url,
        chain_id=settings.chain_id,
        private_key=settings.contract_private_key,
        contract_addresses={
            DOMAIN_REGISTRY: settings.domain_registry_address,
            NFC_REGISTRY: settings.nfc_registry_address,
            CAT_NFT: settings.cat_nft_address,
        },
        timeout=settings.rpc_timeout,
    )


def create_app(settings: Optional[Settings] = None, chain=None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger(settings.log_level)

    app = FastAPI(
        title="NFC Wallet Backend",
        version="1.0.0",
        description="NFC card wallets, .inj domain NFTs and social cat draws on Injective EVM",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Database
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    # Services
    vault = KeyVault(settings.aes_encryption_key)
    contract_service = ContractService(chain or build_chain_client(settings), settings.limits)
    if settings.sync_limits_from_chain:
        contract_service.fetch_domain_limits()

    app.state.settings = settings
    app.state.contract_service = contract_service
    app.state.nfc_service = NFCService(
        contract_service,
        vault,
        funding_enabled=settings.initial_funding_enabled,
        funding_amount=settings.initial_funding_amount,
    )
    app.state.user_service = UserService(vault, contract_service)

    # Rate limiting
    app.state.limiter = build_limiter(settings.rate_limit_enabled)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(WalletError)
    async def wallet_error_handler(request: Request, exc: WalletError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Register routers
    app.include_router(nfc.router, tags=["NFC"])
    app.include_router(user.router, tags=["User"])
    app.include_router(contract.router, tags=["Contract"])

    @app.get("/health")
    def health_check():
        database_ok = check_connection(app.state.engine)
        return {
            "status": "ok" if database_ok else "degraded",
            "database": database_ok,
            "timestamp": datetime.now(timezone.utc),
        }

    logger.info("🚀 NFC wallet backend ready")
    return app
