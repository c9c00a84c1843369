# nfc_wallet/core/security.py

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)


def unbind_message(uid: str) -> str:
    """The text a card owner personal-signs to authorise an unbind"""
    return f"unbind:{uid}"


def recover_signer(message: str, signature: str):
    """Return the 0x address that produced an EIP-191 signature, or None."""
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        logger.warning(f"Signature recovery failed: {e}")
        return None


def verify_owner_signature(uid: str, signature: str, owner_eth_address: str) -> bool:
    signer = recover_signer(unbind_message(uid), signature)
    if signer is None:
        return False
    return signer.lower() == owner_eth_address.lower()
