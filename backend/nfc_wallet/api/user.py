# nfc_wallet/api/user.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from nfc_wallet.infra.database import get_db
from nfc_wallet.services.user_service import UserService

router = APIRouter(prefix="/api/user")


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


class UpdateDomainSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    domain_prefix: str = Field(..., alias="domainPrefix")


class NicknameSchema(BaseModel):
    nickname: str = Field(..., max_length=100)


class ActiveSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(..., alias="isActive")


class ExportPrivateKeySchema(BaseModel):
    uid: Optional[str] = None
    address: Optional[str] = None
    confirmation: str


@router.get("/profile/{uid}")
def get_profile(uid: str, db: Session = Depends(get_db),
                service: UserService = Depends(get_user_service)):
    return service.get_profile(db, uid)


@router.put("/domain")
def update_domain(payload: UpdateDomainSchema, db: Session = Depends(get_db),
                  service: UserService = Depends(get_user_service)):
    return service.update_domain(db, payload.uid, payload.domain_prefix)


@router.delete("/domain/{uid}")
def remove_domain(uid: str, db: Session = Depends(get_db),
                  service: UserService = Depends(get_user_service)):
    return service.remove_domain(db, uid)


@router.get("/check-domain/{domain_prefix}")
def check_domain(domain_prefix: str, db: Session = Depends(get_db),
                 service: UserService = Depends(get_user_service)):
    return service.check_domain(db, domain_prefix)


@router.get("/list")
def list_users(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
               db: Session = Depends(get_db),
               service: UserService = Depends(get_user_service)):
    return service.list_users(db, page, limit)


@router.get("/search/{domain}")
def get_user_by_domain(domain: str, db: Session = Depends(get_db),
                       service: UserService = Depends(get_user_service)):
    return service.get_by_domain(db, domain)


@router.get("/address/{address}")
def get_user_by_address(address: str, db: Session = Depends(get_db),
                        service: UserService = Depends(get_user_service)):
    return service.get_by_address(db, address)


@router.put("/nfc/{uid}/nickname")
def update_nickname(uid: str, payload: NicknameSchema, db: Session = Depends(get_db),
                    service: UserService = Depends(get_user_service)):
    return service.update_nickname(db, uid, payload.nickname)


@router.put("/nfc/{uid}/active")
def set_card_active(uid: str, payload: ActiveSchema, db: Session = Depends(get_db),
                    service: UserService = Depends(get_user_service)):
    return service.set_active(db, uid, payload.is_active)


@router.post("/export-private-key")
def export_private_key(payload: ExportPrivateKeySchema, db: Session = Depends(get_db),
                       service: UserService = Depends(get_user_service)):
    return service.export_private_key(db, payload.confirmation, payload.uid, payload.address)
