# nfc_wallet/services/nfc_service.py
"""
Card lifecycle and the wallet-facing flows behind /api/nfc.

A card is blank, bound or frozen:
  - registering an unknown or blank uid creates a fresh wallet and binds it
  - registering a bound uid returns the wallet it is bound to
  - unbinding detaches the wallet and leaves the card blank (or frozen)
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nfc_wallet.clients.abis import DOMAIN_REGISTRY, NFC_REGISTRY
from nfc_wallet.core import validator
from nfc_wallet.core.crypto import KeyVault, generate_wallet, to_eth_address
from nfc_wallet.core.errors import (
    ChainError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from nfc_wallet.core.security import verify_owner_signature
from nfc_wallet.models import CatNFT, NFCCard, User
from nfc_wallet.models import nfc_card as card_states
from nfc_wallet.models import transaction as tx_types
from nfc_wallet.models.base import utcnow
from nfc_wallet.services import transaction_service
from nfc_wallet.services.contract_service import ContractService

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 10


def _ensure(result: validator.ValidationResult):
    if not result.valid:
        raise ValidationError(result.error)


def find_card(db: Session, uid: str) -> Optional[NFCCard]:
    return db.query(NFCCard).filter(NFCCard.uid == uid).first()


def bound_user(db: Session, uid: str) -> User:
    """The wallet owner of a bound card, or NotFoundError."""
    card = find_card(db, uid)
    if card is None:
        raise NotFoundError(f"NFC card {uid} not found")
    if card.user is None:
        raise NotFoundError(f"No wallet is bound to NFC card {uid}")
    return card.user


def serialize_card(card: NFCCard) -> dict:
    return {
        "uid": card.uid,
        "nickname": card.nickname,
        "isActive": card.is_active,
        "createdAt": card.created_at,
    }


class NFCService:
    def __init__(self, contracts: ContractService, vault: KeyVault,
                 funding_enabled: bool = True, funding_amount: str = "0.1"):
        self.contracts = contracts
        self.vault = vault
        self.funding_enabled = funding_enabled
        self.funding_amount = funding_amount

    @property
    def limits(self):
        return self.contracts.limits

    # =========================
    # REGISTRATION
    # =========================

    def register(self, db: Session, uid: str, nickname: Optional[str] = None) -> dict:
        _ensure(validator.validate_nfc_uid(uid, self.limits))

        card = find_card(db, uid)
        if card is not None:
            if card.status == card_states.STATUS_BOUND:
                logger.info(f"NFC {uid} already bound to {card.user.address}")
                return self.wallet_response(db, card.user, is_new=False)
            if card.status == card_states.STATUS_FROZEN:
                raise ConflictError(f"NFC card {uid} is frozen and cannot be registered")

        wallet = generate_wallet()
        user = User(
            address=wallet.address,
            eth_address=wallet.eth_address,
            public_key=wallet.public_key,
            private_key_enc=self.vault.encrypt(wallet.private_key),
        )
        db.add(user)

        if card is None:
            card = NFCCard(uid=uid, binding_count=0)
            db.add(card)

        card.user = user
        card.is_blank = False
        card.is_active = True
        card.binding_count += 1
        card.bound_at = utcnow()
        if nickname:
            card.nickname = nickname

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"NFC card {uid} was registered concurrently") from e

        logger.info(f"🆕 Wallet {user.address} bound to NFC {uid} (binding #{card.binding_count})")

        self._bind_on_chain(db, user, uid)
        if self.funding_enabled:
            self._send_initial_funds(db, user)

        return self.wallet_response(db, user, is_new=True)

    def _bind_on_chain(self, db: Session, user: User, uid: str):
        try:
            tx_hash = self.contracts.bind_nfc_wallet(uid, user.eth_address)
        except (ChainError, ValidationError) as e:
            logger.warning(f"On-chain binding of {uid} skipped: {e.message}")
            return

        transaction_service.record_transaction(
            db, user, tx_hash, tx_types.NFC_BIND,
            status=tx_types.CONFIRMED, token_symbol=None,
            to_address=user.address, memo=f"Bind NFC {uid}",
        )
        db.commit()

    def _send_initial_funds(self, db: Session, user: User):
        try:
            tx_hash = self.contracts.send_initial_funds(user.eth_address, self.funding_amount)
        except ChainError as e:
            logger.error(f"❌ Initial funding of {user.address} failed: {e.message}")
            return

        transaction_service.record_transaction(
            db, user, tx_hash, tx_types.INITIAL_FUND,
            status=tx_types.CONFIRMED, amount=self.funding_amount,
            to_address=user.address, memo="Initial funding for new user",
        )
        user.initial_funded = True
        db.commit()
        logger.info(f"💸 Sent {self.funding_amount} INJ to {user.address}: {tx_hash}")

    # =========================
    # LOOKUPS
    # =========================

    def wallet_response(self, db: Session, user: User, is_new: bool) -> dict:
        transactions = transaction_service.list_user_transactions(db, user.id, RECENT_TRANSACTIONS)
        return {
            "address": user.address,
            "ethAddress": user.eth_address,
            "publicKey": user.public_key,
            "domain": user.domain,
            "nftTokenId": user.domain_token_id,
            "isNewWallet": is_new,
            "initialFunded": user.initial_funded,
            "nfcCards": [serialize_card(c) for c in user.nfc_cards],
            "recentTransactions": [transaction_service.serialize_transaction(t) for t in transactions],
            "createdAt": user.created_at,
            "updatedAt": user.updated_at,
        }

    def get_wallet(self, db: Session, uid: str) -> dict:
        return self.wallet_response(db, bound_user(db, uid), is_new=False)

    def get_card_status(self, db: Session, uid: str) -> dict:
        card = find_card(db, uid)
        if card is None:
            raise NotFoundError(f"NFC card {uid} not found")

        chain_status = None
        if self.contracts.chain.has_contract(NFC_REGISTRY):
            try:
                chain_status = self.contracts.get_nfc_status(uid)
            except ChainError as e:
                logger.warning(f"Registry status for NFC {uid} unavailable: {e.message}")

        return {
            "uid": card.uid,
            "status": card.status,
            "chainStatus": chain_status,
            "isActive": card.is_active,
            "bindingCount": card.binding_count,
            "address": card.user.address if card.user else None,
            "boundAt": card.bound_at,
            "unboundAt": card.unbound_at,
        }

    def get_balance(self, address: str) -> dict:
        try:
            eth_address = to_eth_address(address)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return {"inj": self.contracts.get_balance(eth_address)}

    def get_stats(self, db: Session) -> dict:
        since = utcnow() - timedelta(hours=24)
        return {
            "totalWallets": db.query(func.count(User.id)).scalar(),
            "walletsWithDomain": db.query(func.count(User.id)).filter(User.domain.isnot(None)).scalar(),
            "walletsWithNFT": db.query(func.count(User.id)).filter(User.domain_token_id.isnot(None)).scalar(),
            "fundedWallets": db.query(func.count(User.id)).filter(User.initial_funded.is_(True)).scalar(),
            "recentRegistrations": db.query(func.count(User.id)).filter(User.created_at >= since).scalar(),
            "catsMinted": db.query(func.count(CatNFT.id)).scalar(),
        }

    # =========================
    # DOMAIN NFT
    # =========================

    def check_domain(self, db: Session, domain_prefix: str) -> dict:
        _ensure(validator.validate_domain_prefix(domain_prefix, self.limits))
        domain = validator.full_domain_name(domain_prefix)

        owner = db.query(User).filter(User.domain == domain).first()
        if owner is not None:
            return {"available": False, "domain": domain, "ownerAddress": owner.address}

        available = True
        if self.contracts.chain.has_contract(DOMAIN_REGISTRY):
            available = self.contracts.is_domain_available(domain_prefix)
        return {"available": available, "domain": domain, "ownerAddress": None}

    def register_domain(self, db: Session, uid: str, domain_prefix: str) -> dict:
        _ensure(validator.validate_domain_prefix(domain_prefix, self.limits))
        domain = validator.full_domain_name(domain_prefix)

        user = bound_user(db, uid)
        if user.domain:
            raise ConflictError(f"Wallet already owns {user.domain}")
        if db.query(User).filter(User.domain == domain).first() is not None:
            raise ConflictError(f"{domain} is already taken")
        if not self.contracts.is_domain_available(domain_prefix):
            raise ConflictError(f"{domain} is already registered on chain")

        minted = self.contracts.register_domain(domain_prefix, user.eth_address, uid)

        # Mint record is committed before the domain write
        transaction_service.record_transaction(
            db, user, minted["txHash"], tx_types.DOMAIN_REG,
            status=tx_types.CONFIRMED, token_symbol=None,
            to_address=user.address, memo=domain,
        )
        db.commit()

        user.domain = domain
        user.domain_token_id = minted["tokenId"]
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"{domain} is already taken") from e

        logger.info(f"🏷️  {domain} minted for {user.address} (token {minted['tokenId']})")
        return {
            "domain": domain,
            "tokenId": minted["tokenId"],
            "txHash": minted["txHash"],
            "registeredAt": utcnow(),
        }

    # =========================
    # UNBIND
    # =========================

    def unbind(self, db: Session, uid: str, reset_to_blank: bool = True,
               owner_signature: Optional[str] = None) -> dict:
        _ensure(validator.validate_nfc_uid(uid, self.limits))

        card = find_card(db, uid)
        if card is None:
            raise NotFoundError(f"NFC card {uid} not found")
        if card.user is None:
            raise ValidationError(f"NFC card {uid} is not bound to a wallet")

        user = card.user
        if owner_signature and not verify_owner_signature(uid, owner_signature, user.eth_address):
            raise PermissionDeniedError("Signature does not match the card owner")

        chain_result = self.contracts.complete_unbind(uid, reset_to_blank, owner_signature)

        card.user = None
        card.user_id = None
        card.is_blank = reset_to_blank
        card.is_active = reset_to_blank
        card.unbound_at = utcnow()

        if chain_result["txHash"]:
            transaction_service.record_transaction(
                db, user, chain_result["txHash"], tx_types.NFC_UNBIND,
                status=tx_types.CONFIRMED, token_symbol=None,
                from_address=user.address, memo=f"Unbind NFC {uid}",
            )
        db.commit()

        logger.info(f"🔓 NFC {uid} unbound from {user.address}, now {card.status}")
        return {
            "success": True,
            "uid": uid,
            "status": card.status,
            "bindingCount": card.binding_count,
            "nfcUnbound": chain_result["nfcUnbound"],
            "nftBurned": chain_result["nftBurned"],
            "txHash": chain_result["txHash"],
        }

    # =========================
    # SOCIAL / DRAW
    # =========================

    def social_interaction(self, db: Session, my_nfc: str, other_nfc: str) -> dict:
        _ensure(validator.validate_social_interaction(my_nfc, other_nfc, self.limits))
        user = bound_user(db, my_nfc)
        bound_user(db, other_nfc)

        result = self.contracts.social_interaction(my_nfc, other_nfc)
        transaction_service.record_transaction(
            db, user, result["txHash"], tx_types.SOCIAL_INTERACTION,
            status=tx_types.CONFIRMED, token_symbol=None,
            memo=f"{my_nfc} <-> {other_nfc}",
        )
        db.commit()

        try:
            total = self.contracts.get_draw_stats(my_nfc)["available"]
        except ChainError as e:
            logger.warning(f"Draw stats for {my_nfc} unavailable: {e.message}")
            total = None

        reward = result["rewardTickets"]
        return {
            "txHash": result["txHash"],
            "rewardTickets": reward,
            "totalTickets": total,
            "message": f"Social interaction complete, earned {reward} draw ticket(s)",
        }

    def draw_cat(self, db: Session, uid: str, cat_name: str) -> dict:
        _ensure(validator.validate_cat_name(cat_name, self.limits))
        user = bound_user(db, uid)
        name = cat_name.strip()

        drawn = self.contracts.draw_cat_with_tickets(uid, name)
        transaction_service.record_transaction(
            db, user, drawn["txHash"], tx_types.NFT_MINT,
            status=tx_types.CONFIRMED, memo=f"Cat NFT: {name}",
        )
        db.commit()

        if drawn["tokenId"] is not None:
            db.add(CatNFT(
                token_id=drawn["tokenId"],
                name=name,
                rarity=drawn["rarity"],
                color=drawn["color"],
                tx_hash=drawn["txHash"],
                nfc_uid=uid,
                user=user,
            ))
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Cat token {drawn['tokenId']} is already recorded") from e

        logger.info(f"🐱 {name} ({drawn['rarity']}) drawn for NFC {uid}")
        return {
            "tokenId": drawn["tokenId"],
            "name": name,
            "rarity": drawn["rarity"],
            "color": drawn["color"],
            "txHash": drawn["txHash"],
            "mintedAt": utcnow(),
        }

    def get_draw_stats(self, uid: str) -> dict:
        _ensure(validator.validate_nfc_uid(uid, self.limits))
        stats = self.contracts.get_draw_stats(uid)
        interacted = self.contracts.get_interacted_nfcs(uid)
        return {
            "nfcUID": uid,
            "availableDraws": stats["available"],
            "usedDraws": stats["used"],
            "totalDraws": stats["total"],
            "socialBonus": validator.calculate_social_bonus(len(interacted), self.limits),
        }

    def get_interacted_nfcs(self, uid: str) -> dict:
        _ensure(validator.validate_nfc_uid(uid, self.limits))
        return {"nfcUID": uid, "interactedNFCs": self.contracts.get_interacted_nfcs(uid)}

    def list_cats(self, db: Session, uid: str) -> dict:
        if find_card(db, uid) is None:
            raise NotFoundError(f"NFC card {uid} not found")

        cats = (
            db.query(CatNFT)
            .filter(CatNFT.nfc_uid == uid)
            .order_by(CatNFT.created_at.desc(), CatNFT.id.desc())
            .all()
        )
        return {
            "cats": [
                {
                    "tokenId": c.token_id,
                    "name": c.name,
                    "rarity": c.rarity,
                    "color": c.color,
                    "txHash": c.tx_hash,
                    "mintedAt": c.created_at,
                }
                for c in cats
            ],
            "total": len(cats),
        }
