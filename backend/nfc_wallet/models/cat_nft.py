# nfc_wallet/models/cat_nft.py

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from nfc_wallet.models.base import Base, utcnow


class CatNFT(Base):
    """Local record of a cat drawn through this backend"""
    __tablename__ = "cat_nfts"

    id = Column(Integer, primary_key=True, index=True)
    token_id = Column(String(78), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    rarity = Column(String(8), nullable=False)
    color = Column(String(32), nullable=True)
    tx_hash = Column(String(66), nullable=False)

    nfc_uid = Column(String(255), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="cats")
