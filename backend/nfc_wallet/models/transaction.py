# nfc_wallet/models/transaction.py

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from nfc_wallet.models.base import Base, utcnow

# type
SEND = "SEND"
RECEIVE = "RECEIVE"
INITIAL_FUND = "INITIAL_FUND"
NFT_MINT = "NFT_MINT"
DOMAIN_REG = "DOMAIN_REG"
SOCIAL_INTERACTION = "SOCIAL_INTERACTION"
NFC_BIND = "NFC_BIND"
NFC_UNBIND = "NFC_UNBIND"

# status
PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
FAILED = "FAILED"
CANCELLED = "CANCELLED"

TX_STATUSES = (PENDING, CONFIRMED, FAILED, CANCELLED)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    tx_hash = Column(String(66), unique=True, nullable=False, index=True)
    type = Column(String(32), nullable=False)
    amount = Column(String(64), nullable=True)
    token_symbol = Column(String(16), nullable=True)
    from_address = Column(String(64), nullable=True)
    to_address = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default=PENDING, index=True)
    memo = Column(String(255), nullable=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="transactions")
