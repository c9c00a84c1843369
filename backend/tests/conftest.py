# tests/conftest.py

import pytest
from fastapi.testclient import TestClient

from nfc_wallet.clients.abis import CAT_NFT, DOMAIN_REGISTRY, NFC_REGISTRY
from nfc_wallet.clients.chain_client import ChainClient
from nfc_wallet.core.config import Settings
from nfc_wallet.core.errors import ChainError
from nfc_wallet.main import create_app

TEST_AES_KEY = "4f" * 32


class FakeChainClient:
    """
    In-memory stand-in for ChainClient.

    Mimics the three contracts closely enough for the service layer:
    domains are tracked, social interactions hand out one ticket to each
    card, draws spend a ticket. Every call is recorded in `calls`; any
    function named in `fail` raises ChainError.
    """

    signer_address = "0x000000000000000000000000000000000000dEaD"

    def __init__(self):
        self.contracts = {DOMAIN_REGISTRY, NFC_REGISTRY, CAT_NFT}
        self.calls = []
        self.fail = set()

        self.min_domain_length = 1
        self.max_domain_length = 30
        self.taken_domains = set()
        self.domain_owners = {}
        self.interacted = set()
        self.interacted_list = {}
        self.tickets = {}
        self.cat_tokens = {}
        self.balances = {}
        self.draw_fee = 10 ** 17
        self.draw_rarity = 2

        self._tx_count = 0
        self._next_token = 1
        self._events = {}

    # ---------- helpers ----------

    def _check(self, name, function):
        if name is not None and name not in self.contracts:
            raise ChainError(f"Contract '{name}' is not configured")
        if function in self.fail:
            raise ChainError(f"{function} failed")

    def _receipt(self, events=()):
        self._tx_count += 1
        tx_hash = "0x" + f"{self._tx_count:064x}"
        self._events[tx_hash] = list(events)
        return {"transactionHash": tx_hash, "status": 1, "blockNumber": self._tx_count}

    def _token(self):
        token = self._next_token
        self._next_token += 1
        return token

    def _add_ticket(self, uid):
        available, used, total = self.tickets.get(uid, (0, 0, 0))
        self.tickets[uid] = (available + 1, used, total + 1)

    # ---------- ChainClient surface ----------

    def has_contract(self, name):
        return name in self.contracts

    def network_info(self):
        return {"connected": True, "chainId": 1439, "blockNumber": self._tx_count, "rpcUrl": "http://fake-rpc"}

    def call(self, name, function, *args):
        self.calls.append(("call", function, args))
        self._check(name, function)

        if function == "isDomainAvailable":
            return args[0] not in self.taken_domains
        if function == "MIN_DOMAIN_LENGTH":
            return self.min_domain_length
        if function == "MAX_DOMAIN_LENGTH":
            return self.max_domain_length
        if function == "drawFee":
            return self.draw_fee
        if function == "getDrawStats":
            return self.tickets.get(args[0], (0, 0, 0))
        if function == "hasInteracted":
            return frozenset(args) in self.interacted
        if function == "getInteractedNFCs":
            return list(self.interacted_list.get(args[0], []))
        if function == "getTokenIdByNFC":
            return self.cat_tokens.get(args[0], 0)
        if function == "getNFCStatus":
            return 1
        if function == "resolveDomain":
            return self.domain_owners.get(args[0], "0x" + "00" * 20)
        if function == "reverseResolve":
            return next((d for d, owner in self.domain_owners.items() if owner == args[0]), "")
        raise AssertionError(f"unexpected call {function}")

    def transact(self, name, function, *args, value=0, gas=300_000):
        self.calls.append(("transact", function, args))
        self._check(name, function)

        if function == "mintDomainNFT":
            owner, prefix, uid, _ = args
            self.taken_domains.add(prefix)
            self.domain_owners[f"advx-{prefix}.inj"] = owner
            event = {"tokenId": self._token(), "owner": owner,
                     "domainName": f"advx-{prefix}.inj", "nfcUID": uid}
            return self._receipt([("DomainMinted", event)])

        if function == "socialInteraction":
            my_nfc, other_nfc = args
            self.interacted.add(frozenset(args))
            for a, b in ((my_nfc, other_nfc), (other_nfc, my_nfc)):
                self.interacted_list.setdefault(a, []).append(b)
                self._add_ticket(a)
            event = {"myNFC": my_nfc, "otherNFC": other_nfc, "rewardedDraws": 1}
            return self._receipt([("SocialInteractionCompleted", event)])

        if function == "drawCatNFTWithTickets":
            uid, cat_name = args
            assert value == self.draw_fee
            available, used, total = self.tickets[uid]
            self.tickets[uid] = (available - 1, used + 1, total)
            token = self._token()
            self.cat_tokens[uid] = token
            event = {"tokenId": token, "owner": self.signer_address, "nfcUID": uid,
                     "name": cat_name, "rarity": self.draw_rarity, "color": "#ff9900"}
            return self._receipt([("CatDrawnWithTickets", event)])

        return self._receipt()

    def send_value(self, to_address, amount_wei):
        self.calls.append(("send_value", to_address, amount_wei))
        self._check(None, "transfer")
        self.balances[to_address] = self.balances.get(to_address, 0) + amount_wei
        return self._receipt()

    def events(self, name, event, receipt):
        return [args for ev, args in self._events.get(receipt["transactionHash"], []) if ev == event]

    def get_balance(self, eth_address):
        return self.balances.get(eth_address, 0)

    def called(self, function):
        return [c for c in self.calls if c[1] == function]

    tx_hash = staticmethod(lambda receipt: receipt["transactionHash"])
    to_wei = staticmethod(ChainClient.to_wei)
    from_wei = staticmethod(ChainClient.from_wei)


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        aes_encryption_key=TEST_AES_KEY,
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings, chain):
    return create_app(settings, chain=chain)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def register(client):
    def _register(uid, **extra):
        resp = client.post("/api/nfc/register", json={"uid": uid, **extra})
        assert resp.status_code == 200, resp.text
        return resp.json()
    return _register
