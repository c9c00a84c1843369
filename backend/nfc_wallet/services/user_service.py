# nfc_wallet/services/user_service.py

import logging
import math
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nfc_wallet.clients.abis import DOMAIN_REGISTRY
from nfc_wallet.core import validator
from nfc_wallet.core.crypto import KeyVault, eth_to_inj_address
from nfc_wallet.core.errors import (
    ChainError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from nfc_wallet.core.validator import ContractLimits
from nfc_wallet.models import NFCCard, User
from nfc_wallet.models.base import utcnow
from nfc_wallet.services.contract_service import ContractService
from nfc_wallet.services.nfc_service import bound_user, find_card, serialize_card

logger = logging.getLogger(__name__)

EXPORT_CONFIRMATION = "I_UNDERSTAND_THE_RISKS"
EXPORT_WARNING = (
    "The private key gives full control of this wallet. "
    "Store it safely and never share it."
)


def _profile(user: User, uid: str) -> dict:
    return {
        "address": user.address,
        "uid": uid,
        "domain": user.domain,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def _primary_uid(user: User) -> str:
    return user.nfc_cards[0].uid if user.nfc_cards else ""


class UserService:
    def __init__(self, vault: KeyVault, contracts: ContractService):
        self.vault = vault
        self.contracts = contracts

    @property
    def limits(self) -> ContractLimits:
        return self.contracts.limits

    def _from_registry(self, lookup, *args):
        """Best-effort domain registry read; None when it is missing or failing"""
        if not self.contracts.chain.has_contract(DOMAIN_REGISTRY):
            return None
        try:
            return lookup(*args)
        except ChainError as e:
            logger.warning(f"Domain registry lookup failed: {e.message}")
            return None

    def get_profile(self, db: Session, uid: str) -> dict:
        return _profile(bound_user(db, uid), uid)

    def update_domain(self, db: Session, uid: str, domain_prefix: str) -> dict:
        """Set the local domain record; another owner means 409."""
        result = validator.validate_domain_prefix(domain_prefix, self.limits)
        if not result.valid:
            raise ValidationError(result.error)
        domain = validator.full_domain_name(domain_prefix)

        user = bound_user(db, uid)
        owner = db.query(User).filter(User.domain == domain).first()
        if owner is not None and owner.id != user.id:
            raise ConflictError(f"{domain} is already taken")

        user.domain = domain
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"{domain} is already taken") from e
        return _profile(user, uid)

    def remove_domain(self, db: Session, uid: str) -> dict:
        user = bound_user(db, uid)
        user.domain = None
        user.domain_token_id = None
        db.commit()
        return _profile(user, uid)

    def check_domain(self, db: Session, domain_prefix: str) -> dict:
        result = validator.validate_domain_prefix(domain_prefix, self.limits)
        if not result.valid:
            raise ValidationError(result.error)
        domain = validator.full_domain_name(domain_prefix)
        taken = db.query(User).filter(User.domain == domain).first() is not None
        return {"available": not taken, "domain": domain}

    def list_users(self, db: Session, page: int = 1, limit: int = 20) -> dict:
        total = db.query(User).count()
        users = (
            db.query(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "users": [_profile(u, _primary_uid(u)) for u in users],
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / limit),
        }

    def get_by_domain(self, db: Session, domain: str) -> dict:
        """
        Profile of the wallet owning a domain, with its primary card uid.
        Accepts the full name or just the prefix.
        """
        if not domain.endswith(validator.DOMAIN_SUFFIX):
            domain = validator.full_domain_name(domain)

        user = db.query(User).filter(User.domain == domain).first()
        if user is None:
            raise NotFoundError(f"No wallet owns {domain}")

        profile = _profile(user, _primary_uid(user))
        resolved = self._from_registry(self.contracts.resolve_domain, domain)
        profile["resolvedAddress"] = eth_to_inj_address(resolved) if resolved else None
        return profile

    def get_by_address(self, db: Session, address: str) -> dict:
        user = db.query(User).filter(User.address == address).first()
        if user is None:
            raise NotFoundError(f"User {address} not found")

        cards = sorted(user.nfc_cards, key=lambda c: c.created_at, reverse=True)
        return {
            "address": user.address,
            "ethAddress": user.eth_address,
            "domain": user.domain,
            "chainDomain": self._from_registry(self.contracts.reverse_resolve, user.eth_address),
            "nfcCards": [serialize_card(c) for c in cards],
            "transactionCount": len(user.transactions),
            "createdAt": user.created_at,
            "updatedAt": user.updated_at,
        }

    # ---------- cards ----------

    def _card(self, db: Session, uid: str) -> NFCCard:
        card = find_card(db, uid)
        if card is None:
            raise NotFoundError(f"NFC card {uid} not found")
        return card

    def update_nickname(self, db: Session, uid: str, nickname: str) -> dict:
        card = self._card(db, uid)
        card.nickname = nickname
        db.commit()
        return {"success": True, "message": "NFC card nickname updated"}

    def set_active(self, db: Session, uid: str, is_active: bool) -> dict:
        card = self._card(db, uid)
        card.is_active = is_active
        db.commit()
        state = "activated" if is_active else "deactivated"
        return {"success": True, "message": f"NFC card {state}"}

    # ---------- private key ----------

    def export_private_key(self, db: Session, confirmation: str,
                           uid: Optional[str] = None, address: Optional[str] = None) -> dict:
        if confirmation != EXPORT_CONFIRMATION:
            raise PermissionDeniedError(
                f"Exporting a private key requires confirmation '{EXPORT_CONFIRMATION}'"
            )
        if not uid and not address:
            raise ValidationError("Either uid or address is required")

        if uid:
            user = bound_user(db, uid)
            if address and user.address != address:
                raise PermissionDeniedError("Address does not match the wallet bound to this card")
        else:
            user = db.query(User).filter(User.address == address).first()
            if user is None:
                raise NotFoundError(f"User {address} not found")

        try:
            private_key = self.vault.decrypt(user.private_key_enc)
        except ValueError as e:
            logger.error(f"❌ Private key for {user.address} could not be decrypted: {e}")
            raise ValidationError("Private key could not be decrypted") from e

        if not private_key.startswith("0x"):
            private_key = "0x" + private_key

        logger.warning(f"🔑 Private key exported for {user.address}")
        return {
            "address": user.address,
            "privateKey": private_key,
            "exportedAt": utcnow(),
            "warning": EXPORT_WARNING,
        }
