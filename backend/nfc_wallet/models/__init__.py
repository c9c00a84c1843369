# Import every model so Base.metadata knows all tables
from nfc_wallet.models.base import Base
from nfc_wallet.models.user import User
from nfc_wallet.models.nfc_card import NFCCard
from nfc_wallet.models.transaction import Transaction
from nfc_wallet.models.cat_nft import CatNFT

__all__ = ["Base", "User", "NFCCard", "Transaction", "CatNFT"]
