# nfc_wallet/models/nfc_card.py

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from nfc_wallet.models.base import Base, utcnow

STATUS_BLANK = "blank"
STATUS_BOUND = "bound"
STATUS_FROZEN = "frozen"


class NFCCard(Base):
    __tablename__ = "nfc_cards"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(255), unique=True, nullable=False, index=True)
    nickname = Column(String(100), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_blank = Column(Boolean, nullable=False, default=False)

    # Null while the card is blank or frozen
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # How many times this uid has been bound to a wallet; never decreases
    binding_count = Column(Integer, nullable=False, default=0)
    bound_at = Column(DateTime(timezone=True), nullable=True)
    unbound_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="nfc_cards")

    @property
    def status(self) -> str:
        if self.is_blank:
            return STATUS_BLANK
        if self.user_id is None:
            return STATUS_FROZEN
        return STATUS_BOUND
