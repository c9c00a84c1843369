# nfc_wallet/models/user.py

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from nfc_wallet.models.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Injective bech32 address (inj1...) and its EVM alias (0x...)
    address = Column(String(64), unique=True, nullable=False, index=True)
    eth_address = Column(String(42), unique=True, nullable=False, index=True)
    public_key = Column(String(64), nullable=False)

    # AES-256-GCM, "iv:tag:ciphertext" hex
    private_key_enc = Column(Text, nullable=False)

    # Full name, e.g. "advx-alice.inj"; one domain maps to at most one user
    domain = Column(String(64), unique=True, nullable=True, index=True)
    domain_token_id = Column(String(78), nullable=True)

    initial_funded = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    nfc_cards = relationship("NFCCard", back_populates="user")
    transactions = relationship(
        "Transaction", back_populates="user", order_by="Transaction.created_at.desc()"
    )
    cats = relationship("CatNFT", back_populates="user", order_by="CatNFT.created_at.desc()")
