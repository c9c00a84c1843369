# nfc_wallet/api/nfc.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from nfc_wallet.core.rate_limit import register_rate_limit, social_rate_limit
from nfc_wallet.infra.database import get_db
from nfc_wallet.services.nfc_service import NFCService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/nfc")


def get_nfc_service(request: Request) -> NFCService:
    return request.app.state.nfc_service


class RegisterNFCSchema(BaseModel):
    uid: str
    nickname: Optional[str] = Field(None, max_length=100)


class RegisterDomainSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    domain_prefix: str = Field(..., alias="domainPrefix")


class UnbindSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    reset_to_blank: bool = Field(True, alias="resetToBlank")
    owner_signature: Optional[str] = Field(None, alias="ownerSignature")


class SocialInteractionSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    my_nfc: str = Field(..., alias="myNFC")
    other_nfc: str = Field(..., alias="otherNFC")


class DrawCatSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nfc_uid: str = Field(..., alias="nfcUid")
    cat_name: str = Field(..., alias="catName")


# =========================
# WALLET / CARD
# =========================

@router.post("/register", dependencies=[Depends(register_rate_limit)])
def register_nfc(payload: RegisterNFCSchema,
                 db: Session = Depends(get_db),
                 service: NFCService = Depends(get_nfc_service)):
    logger.info(f"📥 Registration request for NFC {payload.uid}")
    return service.register(db, payload.uid, payload.nickname)


@router.get("/wallet/{uid}")
def get_wallet(uid: str, db: Session = Depends(get_db),
               service: NFCService = Depends(get_nfc_service)):
    return service.get_wallet(db, uid)


@router.get("/status/{uid}")
def get_card_status(uid: str, db: Session = Depends(get_db),
                    service: NFCService = Depends(get_nfc_service)):
    return service.get_card_status(db, uid)


@router.post("/unbind")
def unbind_nfc(payload: UnbindSchema, db: Session = Depends(get_db),
               service: NFCService = Depends(get_nfc_service)):
    return service.unbind(db, payload.uid, payload.reset_to_blank, payload.owner_signature)


@router.get("/balance/{address}")
def get_balance(address: str, service: NFCService = Depends(get_nfc_service)):
    return service.get_balance(address)


@router.get("/stats")
def get_stats(db: Session = Depends(get_db), service: NFCService = Depends(get_nfc_service)):
    return service.get_stats(db)


# =========================
# DOMAIN NFT
# =========================

@router.get("/domain/check")
def check_domain(domain_prefix: str = Query(..., alias="domainPrefix"),
                 db: Session = Depends(get_db),
                 service: NFCService = Depends(get_nfc_service)):
    return service.check_domain(db, domain_prefix)


@router.post("/domain/register")
def register_domain(payload: RegisterDomainSchema, db: Session = Depends(get_db),
                    service: NFCService = Depends(get_nfc_service)):
    logger.info(f"📥 Domain request advx-{payload.domain_prefix}.inj for NFC {payload.uid}")
    return service.register_domain(db, payload.uid, payload.domain_prefix)


# =========================
# SOCIAL / CAT DRAW
# =========================

@router.post("/social-interaction", dependencies=[Depends(social_rate_limit)])
def social_interaction(payload: SocialInteractionSchema,
                       db: Session = Depends(get_db),
                       service: NFCService = Depends(get_nfc_service)):
    return service.social_interaction(db, payload.my_nfc, payload.other_nfc)


@router.post("/draw-cat-with-tickets")
def draw_cat_with_tickets(payload: DrawCatSchema, db: Session = Depends(get_db),
                          service: NFCService = Depends(get_nfc_service)):
    return service.draw_cat(db, payload.nfc_uid, payload.cat_name)


@router.get("/draw-stats/{uid}")
def get_draw_stats(uid: str, service: NFCService = Depends(get_nfc_service)):
    return service.get_draw_stats(uid)


@router.get("/interacted-nfcs/{uid}")
def get_interacted_nfcs(uid: str, service: NFCService = Depends(get_nfc_service)):
    return service.get_interacted_nfcs(uid)


@router.get("/cat/list/{uid}")
def list_cats(uid: str, db: Session = Depends(get_db),
              service: NFCService = Depends(get_nfc_service)):
    return service.list_cats(db, uid)
