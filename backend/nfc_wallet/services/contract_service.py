# nfc_wallet/services/contract_service.py
"""
Validation and call shaping for the three deployed contracts.

Each state-changing method validates its inputs against ContractLimits,
submits one transaction (or a short sequence) through the chain client,
waits for the receipt and returns the chain-assigned identifiers.
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from eth_utils import decode_hex

from nfc_wallet.clients.abis import CAT_NFT, DOMAIN_REGISTRY, NFC_REGISTRY
from nfc_wallet.core import validator
from nfc_wallet.core.errors import ChainError, ValidationError
from nfc_wallet.core.validator import ContractLimits

logger = logging.getLogger(__name__)

NFC_STATUS_NAMES = ("blank", "bound", "frozen")

GAS_LIMITS = {
    "domain_register": 500_000,
    "nfc_bind": 200_000,
    "nfc_unbind": 250_000,
    "nft_burn": 200_000,
    "social": 300_000,
    "draw": 500_000,
}


def _ensure(result: validator.ValidationResult):
    if not result.valid:
        raise ValidationError(result.error)


class ContractService:
    def __init__(self, chain, limits: ContractLimits):
        self.chain = chain
        self.limits = limits

    # =========================
    # STATUS / LIMITS
    # =========================

    def get_status(self) -> Dict[str, Any]:
        return {
            "domainRegistry": self.chain.has_contract(DOMAIN_REGISTRY),
            "nfcRegistry": self.chain.has_contract(NFC_REGISTRY),
            "catNFT": self.chain.has_contract(CAT_NFT),
            "walletConnected": self.chain.signer_address is not None,
            "network": self.chain.network_info(),
        }

    def fetch_domain_limits(self) -> ContractLimits:
        """
        Refresh the domain length bounds from the domain contract.
        The contract's maximum includes the "advx-" prefix.
        Keeps the current limits if the read fails.
        """
        try:
            min_len = int(self.chain.call(DOMAIN_REGISTRY, "MIN_DOMAIN_LENGTH"))
            max_len = int(self.chain.call(DOMAIN_REGISTRY, "MAX_DOMAIN_LENGTH"))
        except ChainError as e:
            logger.warning(f"Using configured domain limits, chain read failed: {e}")
            return self.limits

        self.limits = dataclasses.replace(
            self.limits,
            min_domain_length=min_len,
            max_domain_length=max_len - len(validator.DOMAIN_PREFIX),
        )
        logger.info(
            f"Domain limits from chain: {self.limits.min_domain_length}-{self.limits.max_domain_length}"
        )
        return self.limits

    # =========================
    # DOMAIN NFT
    # =========================

    def is_domain_available(self, domain_prefix: str) -> bool:
        _ensure(validator.validate_domain_prefix(domain_prefix, self.limits))
        return bool(self.chain.call(DOMAIN_REGISTRY, "isDomainAvailable", domain_prefix))

    def resolve_domain(self, domain: str) -> Optional[str]:
        """Owner of a full domain name, None while unregistered"""
        address = self.chain.call(DOMAIN_REGISTRY, "resolveDomain", domain)
        if not address or int(address, 16) == 0:
            return None
        return address

    def reverse_resolve(self, eth_address: str) -> Optional[str]:
        return self.chain.call(DOMAIN_REGISTRY, "reverseResolve", eth_address) or None

    def register_domain(self, domain_prefix: str, owner_eth_address: str, nfc_uid: str) -> Dict[str, Any]:
        _ensure(validator.validate_domain_prefix(domain_prefix, self.limits))
        _ensure(validator.validate_nfc_uid(nfc_uid, self.limits))

        receipt = self.chain.transact(
            DOMAIN_REGISTRY, "mintDomainNFT",
            owner_eth_address, domain_prefix, nfc_uid, "",
            gas=GAS_LIMITS["domain_register"],
        )
        minted = self.chain.events(DOMAIN_REGISTRY, "DomainMinted", receipt)
        token_id = str(minted[0]["tokenId"]) if minted else None

        return {
            "domain": validator.full_domain_name(domain_prefix),
            "tokenId": token_id,
            "txHash": self.chain.tx_hash(receipt),
        }

    # =========================
    # NFC REGISTRY
    # =========================

    def bind_nfc_wallet(self, nfc_uid: str, wallet_eth_address: str) -> str:
        _ensure(validator.validate_nfc_uid(nfc_uid, self.limits))
        receipt = self.chain.transact(
            NFC_REGISTRY, "detectAndBindBlankCard", nfc_uid, wallet_eth_address,
            gas=GAS_LIMITS["nfc_bind"],
        )
        return self.chain.tx_hash(receipt)

    def get_nfc_status(self, nfc_uid: str) -> Dict[str, Any]:
        status = int(self.chain.call(NFC_REGISTRY, "getNFCStatus", nfc_uid))
        description = NFC_STATUS_NAMES[status] if status < len(NFC_STATUS_NAMES) else "unknown"
        return {"status": status, "description": description}

    def complete_unbind(self, nfc_uid: str, reset_to_blank: bool = True,
                        owner_signature: Optional[str] = None) -> Dict[str, Any]:
        """
        Burn the card NFT (if any), then unbind the registry entry.
        Each step is independent; failures are reported, not raised.
        """
        result = {"nftBurned": False, "nfcUnbound": False, "txHash": None}

        try:
            token_id = int(self.chain.call(CAT_NFT, "getTokenIdByNFC", nfc_uid))
            if token_id == 0:
                result["nftBurned"] = True
            else:
                signature = decode_hex(owner_signature) if owner_signature else b""
                self.chain.transact(CAT_NFT, "unbindAndBurnCard", nfc_uid, signature,
                                    gas=GAS_LIMITS["nft_burn"])
                result["nftBurned"] = True
        except (ChainError, ValueError) as e:
            logger.warning(f"NFT burn for {nfc_uid} failed: {e}")

        try:
            receipt = self.chain.transact(NFC_REGISTRY, "unbindNFCWallet", nfc_uid, reset_to_blank,
                                          gas=GAS_LIMITS["nfc_unbind"])
            result["nfcUnbound"] = True
            result["txHash"] = self.chain.tx_hash(receipt)
        except ChainError as e:
            logger.warning(f"Registry unbind for {nfc_uid} failed: {e}")

        return result

    # =========================
    # FUNDS
    # =========================

    def send_initial_funds(self, eth_address: str, amount: str) -> str:
        receipt = self.chain.send_value(eth_address, self.chain.to_wei(amount))
        return self.chain.tx_hash(receipt)

    def get_balance(self, eth_address: str) -> str:
        return f"{self.chain.from_wei(self.chain.get_balance(eth_address)):.6f}"

    # =========================
    # CAT NFT / SOCIAL DRAW
    # =========================

    def has_interacted(self, nfc1: str, nfc2: str) -> bool:
        return bool(self.chain.call(CAT_NFT, "hasInteracted", nfc1, nfc2))

    def social_interaction(self, my_nfc: str, other_nfc: str) -> Dict[str, Any]:
        _ensure(validator.validate_social_interaction(my_nfc, other_nfc, self.limits))

        if self.has_interacted(my_nfc, other_nfc):
            raise ValidationError("These two cards have already interacted")

        receipt = self.chain.transact(CAT_NFT, "socialInteraction", my_nfc, other_nfc,
                                      gas=GAS_LIMITS["social"])
        completed = self.chain.events(CAT_NFT, "SocialInteractionCompleted", receipt)
        reward = int(completed[0]["rewardedDraws"]) if completed else 1

        return {"txHash": self.chain.tx_hash(receipt), "rewardTickets": reward}

    def get_draw_stats(self, nfc_uid: str) -> Dict[str, int]:
        available, used, total = self.chain.call(CAT_NFT, "getDrawStats", nfc_uid)
        return {"available": int(available), "used": int(used), "total": int(total)}

    def get_interacted_nfcs(self, nfc_uid: str) -> List[str]:
        return list(self.chain.call(CAT_NFT, "getInteractedNFCs", nfc_uid))

    def draw_cat_with_tickets(self, nfc_uid: str, cat_name: str) -> Dict[str, Any]:
        _ensure(validator.validate_nfc_uid(nfc_uid, self.limits))
        _ensure(validator.validate_cat_name(cat_name, self.limits))

        if self.get_draw_stats(nfc_uid)["available"] < 1:
            raise ValidationError("No draw tickets available, interact with another card first")

        fee = int(self.chain.call(CAT_NFT, "drawFee"))
        receipt = self.chain.transact(CAT_NFT, "drawCatNFTWithTickets", nfc_uid, cat_name,
                                      value=fee, gas=GAS_LIMITS["draw"])
        drawn = self.chain.events(CAT_NFT, "CatDrawnWithTickets", receipt)

        result = {"txHash": self.chain.tx_hash(receipt), "tokenId": None, "rarity": None, "color": None}
        if drawn:
            event = drawn[0]
            result.update(
                tokenId=str(event["tokenId"]),
                rarity=validator.rarity_to_string(int(event["rarity"])),
                color=event["color"],
            )
        else:
            logger.warning(f"No CatDrawnWithTickets event in {result['txHash']}")
        return result
