# nfc_wallet/api/contract.py

from fastapi import APIRouter, Request

from nfc_wallet.core import validator

router = APIRouter(prefix="/api/contract")


@router.get("/status")
def contract_status(request: Request):
    status = request.app.state.contract_service.get_status()
    status["blockExplorer"] = request.app.state.settings.block_explorer
    return status


@router.get("/rarity")
def rarity_table(request: Request):
    limits = request.app.state.contract_service.limits
    return {
        "probabilities": validator.rarity_probabilities(limits),
        "percentages": validator.format_rarity_probabilities(limits),
        "drawFee": limits.draw_fee,
    }
