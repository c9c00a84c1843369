# nfc_wallet/services/transaction_service.py

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from nfc_wallet.core.errors import NotFoundError, ValidationError
from nfc_wallet.models import Transaction, User
from nfc_wallet.models import transaction as tx_types

logger = logging.getLogger(__name__)


def record_transaction(
    db: Session,
    user: User,
    tx_hash: str,
    tx_type: str,
    status: str = tx_types.PENDING,
    amount: Optional[str] = None,
    token_symbol: Optional[str] = "INJ",
    from_address: Optional[str] = None,
    to_address: Optional[str] = None,
    memo: Optional[str] = None,
) -> Transaction:
    """Add a transaction record; the caller commits."""
    tx = Transaction(
        tx_hash=tx_hash,
        type=tx_type,
        status=status,
        amount=amount,
        token_symbol=token_symbol,
        from_address=from_address,
        to_address=to_address,
        memo=memo,
        user=user,
    )
    db.add(tx)
    logger.info(f"📝 {tx_type} {tx_hash} recorded for {user.address}")
    return tx


def get_transaction(db: Session, tx_hash: str) -> Optional[Transaction]:
    return db.query(Transaction).filter(Transaction.tx_hash == tx_hash).first()


def update_status(db: Session, tx_hash: str, status: str) -> Transaction:
    if status not in tx_types.TX_STATUSES:
        raise ValidationError(f"Unknown transaction status: {status}")

    tx = get_transaction(db, tx_hash)
    if tx is None:
        raise NotFoundError(f"Transaction {tx_hash} not found")

    tx.status = status
    db.commit()
    return tx


def list_user_transactions(db: Session, user_id: int, limit: int = 10) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )


def pending_transactions(db: Session, limit: int = 100) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.status == tx_types.PENDING)
        .order_by(Transaction.created_at)
        .limit(limit)
        .all()
    )


def serialize_transaction(tx: Transaction) -> dict:
    return {
        "txHash": tx.tx_hash,
        "type": tx.type,
        "amount": tx.amount,
        "tokenSymbol": tx.token_symbol,
        "status": tx.status,
        "createdAt": tx.created_at,
    }
