# nfc_wallet/clients/chain_client.py

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_account import Account
from web3 import Web3
from web3.logs import DISCARD

from nfc_wallet.clients.abis import ABIS
from nfc_wallet.core.errors import ChainError

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 300_000
TRANSFER_GAS_LIMIT = 21_000
RECEIPT_TIMEOUT = 120


class ChainClient:
    """
    Thin wrapper around a web3 JSON-RPC connection to Injective EVM.

    Every state-changing call is signed by the master account
    (CONTRACT_PRIVATE_KEY), sent, and awaited until it has a receipt.
    Nothing is retried.
    """

    def __init__(
        self,
        rpc_url: str,
        chain_id: int,
        private_key: Optional[str] = None,
        contract_addresses: Optional[Dict[str, Optional[str]]] = None,
        timeout: float = 30.0,
    ):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.account = Account.from_key(private_key) if private_key else None

        self.contracts = {}
        for name, address in (contract_addresses or {}).items():
            if address:
                self.contracts[name] = self.w3.eth.contract(
                    address=Web3.to_checksum_address(address), abi=ABIS[name]
                )
        logger.info(
            f"Chain client for {rpc_url} (chain {chain_id}), contracts: {sorted(self.contracts)}"
        )

    # =========================
    # STATUS
    # =========================

    def has_contract(self, name: str) -> bool:
        return name in self.contracts

    @property
    def signer_address(self) -> Optional[str]:
        return self.account.address if self.account else None

    def network_info(self) -> Dict[str, Any]:
        try:
            return {
                "connected": self.w3.is_connected(),
                "chainId": self.w3.eth.chain_id,
                "blockNumber": self.w3.eth.block_number,
                "rpcUrl": self.rpc_url,
            }
        except Exception as e:
            logger.warning(f"Network info unavailable: {e}")
            return {"connected": False, "chainId": self.chain_id, "blockNumber": None, "rpcUrl": self.rpc_url}

    # =========================
    # CALLS
    # =========================

    def _contract(self, name: str):
        contract = self.contracts.get(name)
        if contract is None:
            raise ChainError(f"Contract '{name}' is not configured")
        return contract

    def call(self, name: str, function: str, *args):
        """Read-only contract call"""
        contract = self._contract(name)
        try:
            return getattr(contract.functions, function)(*args).call()
        except Exception as e:
            raise ChainError(f"{name}.{function} call failed: {e}") from e

    def transact(self, name: str, function: str, *args, value: int = 0,
                 gas: int = DEFAULT_GAS_LIMIT):
        """Sign and send a contract transaction, wait for the receipt."""
        contract = self._contract(name)
        if self.account is None:
            raise ChainError("No signing key configured (CONTRACT_PRIVATE_KEY)")

        try:
            tx = getattr(contract.functions, function)(*args).build_transaction({
                "from": self.account.address,
                "nonce": self.w3.eth.get_transaction_count(self.account.address),
                "gas": gas,
                "gasPrice": self.w3.eth.gas_price,
                "value": value,
                "chainId": self.chain_id,
            })
            return self._send(tx, f"{name}.{function}")
        except ChainError:
            raise
        except Exception as e:
            raise ChainError(f"{name}.{function} failed: {e}") from e

    def send_value(self, to_address: str, amount_wei: int):
        """Native-token transfer from the master account"""
        if self.account is None:
            raise ChainError("No signing key configured (CONTRACT_PRIVATE_KEY)")

        try:
            tx = {
                "to": Web3.to_checksum_address(to_address),
                "value": amount_wei,
                "gas": TRANSFER_GAS_LIMIT,
                "gasPrice": self.w3.eth.gas_price,
                "nonce": self.w3.eth.get_transaction_count(self.account.address),
                "chainId": self.chain_id,
            }
            return self._send(tx, "transfer")
        except ChainError:
            raise
        except Exception as e:
            raise ChainError(f"Transfer to {to_address} failed: {e}") from e

    def _send(self, tx: dict, label: str):
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info(f"📤 {label} submitted: {Web3.to_hex(tx_hash)}")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
        if receipt["status"] != 1:
            raise ChainError(f"{label} reverted in tx {Web3.to_hex(tx_hash)}")

        logger.info(f"✅ {label} confirmed in block {receipt['blockNumber']}")
        return receipt

    def events(self, name: str, event: str, receipt) -> List[Dict[str, Any]]:
        """Decoded args of every `event` log in the receipt"""
        contract = self._contract(name)
        logs = getattr(contract.events, event)().process_receipt(receipt, errors=DISCARD)
        return [dict(log["args"]) for log in logs]

    def get_balance(self, eth_address: str) -> int:
        try:
            return self.w3.eth.get_balance(Web3.to_checksum_address(eth_address))
        except Exception as e:
            raise ChainError(f"Balance query failed: {e}") from e

    # =========================
    # HELPERS
    # =========================

    @staticmethod
    def tx_hash(receipt) -> str:
        return Web3.to_hex(receipt["transactionHash"])

    @staticmethod
    def to_wei(amount: str) -> int:
        return Web3.to_wei(Decimal(amount), "ether")

    @staticmethod
    def from_wei(amount_wei: int) -> Decimal:
        return Web3.from_wei(amount_wei, "ether")
