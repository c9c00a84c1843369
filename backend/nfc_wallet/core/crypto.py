import base64
import os
import re
from dataclasses import dataclass

from bech32 import bech32_decode, bech32_encode, convertbits
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from eth_account import Account
from eth_utils import to_checksum_address
from eth_keys import keys

INJ_HRP = "inj"
NONCE_SIZE = 12
TAG_SIZE = 16

PRIVATE_KEY_RE = re.compile(r"^(0x)?[a-fA-F0-9]{64}$")


@dataclass
class GeneratedWallet:
    private_key: str   # 0x-prefixed hex
    address: str       # inj1...
    eth_address: str   # 0x... checksummed
    public_key: str    # base64 compressed secp256k1


# ---------- ADDRESSES ----------

def eth_to_inj_address(eth_address: str) -> str:
    """
    Injective addresses are the 20 EVM address bytes in bech32 with 'inj' hrp
    """
    raw = bytes.fromhex(eth_address[2:] if eth_address.startswith("0x") else eth_address)
    return bech32_encode(INJ_HRP, convertbits(raw, 8, 5))


def inj_to_eth_address(inj_address: str) -> str:
    hrp, data = bech32_decode(inj_address)
    if hrp != INJ_HRP or data is None:
        raise ValueError(f"Not an Injective address: {inj_address}")
    raw = convertbits(data, 5, 8, False)
    if raw is None or len(raw) != 20:
        raise ValueError(f"Not an Injective address: {inj_address}")
    return to_checksum_address("0x" + bytes(raw).hex())


def to_eth_address(address: str) -> str:
    """Accepts either inj1... or 0x... and returns the 0x form"""
    if address.startswith(INJ_HRP):
        return inj_to_eth_address(address)
    if address.startswith("0x") and len(address) == 42:
        return to_checksum_address(address)
    raise ValueError(f"Invalid address format: {address}")


# ---------- WALLETS ----------

def wallet_from_private_key(private_key: str) -> GeneratedWallet:
    key_hex = private_key[2:] if private_key.startswith("0x") else private_key
    key = keys.PrivateKey(bytes.fromhex(key_hex))
    eth_address = key.public_key.to_checksum_address()
    return GeneratedWallet(
        private_key="0x" + key_hex,
        address=eth_to_inj_address(eth_address),
        eth_address=eth_address,
        public_key=base64.b64encode(key.public_key.to_compressed_bytes()).decode(),
    )


def generate_wallet() -> GeneratedWallet:
    account = Account.create()
    return wallet_from_private_key(account.key.hex())


def is_valid_private_key(private_key: str) -> bool:
    return bool(PRIVATE_KEY_RE.match(private_key or ""))


# ---------- ENCRYPTION ----------

class KeyVault:
    """
    AES-256-GCM for private keys at rest.
    Stored format: iv:tag:ciphertext (hex)
    """

    def __init__(self, encryption_key_hex: str):
        if not encryption_key_hex or len(encryption_key_hex) != 64:
            raise ValueError("AES_ENCRYPTION_KEY must be a 64 character hex string (32 bytes)")
        self._aesgcm = AESGCM(bytes.fromhex(encryption_key_hex))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return f"{nonce.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, encrypted: str) -> str:
        parts = encrypted.split(":")
        if len(parts) != 3:
            raise ValueError("Encrypted data has an invalid format")

        nonce, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        try:
            return self._aesgcm.decrypt(nonce, ciphertext + tag, None).decode("utf-8")
        except InvalidTag as e:
            raise ValueError("Private key decryption failed") from e
