# nfc_wallet/clients/onboarding_client.py
#
# Walks the onboarding screens against a running backend:
# NFC scan -> wallet -> domain check -> domain mint -> dashboard,
# plus social interaction and the ticket draw from the dashboard.
# Progress is kept in a JSON state file so a run can be resumed.

import argparse
import json
import os
from dataclasses import asdict, dataclass, field
from typing import List, Optional

import requests

# =========================
# CONFIGURATION
# =========================

SERVER_URL = os.getenv("NFC_WALLET_SERVER", "http://127.0.0.1:8000")
DEFAULT_STATE_FILE = os.path.expanduser("~/.nfc_wallet_state.json")
REQUEST_TIMEOUT = 150  # backend waits for chain receipts

STEP_SCAN = "nfc-scan"
STEP_DOMAIN = "domain"
STEP_DASHBOARD = "dashboard"


class OnboardingError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


# =========================
# LOCAL STATE
# =========================

@dataclass
class OnboardingState:
    uid: str
    step: str = STEP_SCAN
    address: Optional[str] = None
    eth_address: Optional[str] = None
    domain: Optional[str] = None
    domain_token_id: Optional[str] = None
    is_new_wallet: bool = False
    interacted_with: List[str] = field(default_factory=list)
    cats: List[dict] = field(default_factory=list)

    @classmethod
    def load(cls, path: str, uid: str) -> "OnboardingState":
        if path and os.path.exists(path):
            with open(path) as f:
                data = json.load(f)
            if data.get("uid") == uid:
                return cls(**data)
        return cls(uid=uid)

    def save(self, path: str):
        if not path:
            return
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


# =========================
# ONBOARDING CLIENT
# =========================

class OnboardingClient:
    def __init__(self, uid: str, server_url: str = SERVER_URL,
                 state_path: Optional[str] = DEFAULT_STATE_FILE, session=None):
        self.server_url = server_url.rstrip("/")
        self.state_path = state_path
        self.session = session or requests.Session()
        self.state = OnboardingState.load(state_path, uid)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        if isinstance(self.session, requests.Session):
            kwargs.setdefault("timeout", REQUEST_TIMEOUT)
        resp = getattr(self.session, method)(f"{self.server_url}{path}", **kwargs)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise OnboardingError(resp.status_code, str(detail))
        return resp.json()

    def _save(self):
        self.state.save(self.state_path)

    # ---------- screens ----------

    def scan_card(self, nickname: Optional[str] = None) -> dict:
        """NFC scan screen: register the card, get (or create) its wallet"""
        payload = {"uid": self.state.uid}
        if nickname:
            payload["nickname"] = nickname
        wallet = self._request("post", "/api/nfc/register", json=payload)

        self.state.address = wallet["address"]
        self.state.eth_address = wallet["ethAddress"]
        self.state.domain = wallet.get("domain")
        self.state.domain_token_id = wallet.get("nftTokenId")
        self.state.is_new_wallet = wallet["isNewWallet"]
        self.state.step = STEP_DASHBOARD if self.state.domain else STEP_DOMAIN
        self._save()

        label = "🆕 New wallet" if wallet["isNewWallet"] else "👛 Existing wallet"
        print(f"{label}: {wallet['address']}")
        return wallet

    def check_domain(self, domain_prefix: str) -> dict:
        return self._request("get", "/api/nfc/domain/check", params={"domainPrefix": domain_prefix})

    def register_domain(self, domain_prefix: str) -> dict:
        """Minting screen: claim advx-<prefix>.inj for this card's wallet"""
        check = self.check_domain(domain_prefix)
        if not check["available"]:
            raise OnboardingError(409, f"{check['domain']} is not available")

        result = self._request(
            "post", "/api/nfc/domain/register",
            json={"uid": self.state.uid, "domainPrefix": domain_prefix},
        )
        self.state.domain = result["domain"]
        self.state.domain_token_id = result["tokenId"]
        self.state.step = STEP_DASHBOARD
        self._save()

        print(f"🏷️  Registered {result['domain']} (tx {result['txHash']})")
        return result

    def dashboard(self) -> dict:
        wallet = self._request("get", f"/api/nfc/wallet/{self.state.uid}")
        cats = self._request("get", f"/api/nfc/cat/list/{self.state.uid}")
        try:
            draw_stats = self._request("get", f"/api/nfc/draw-stats/{self.state.uid}")
        except OnboardingError as e:
            print(f"⚠️  Draw stats unavailable: {e.detail}")
            draw_stats = None
        return {"wallet": wallet, "cats": cats, "drawStats": draw_stats}

    def interact_with(self, other_uid: str) -> dict:
        result = self._request(
            "post", "/api/nfc/social-interaction",
            json={"myNFC": self.state.uid, "otherNFC": other_uid},
        )
        self.state.interacted_with.append(other_uid)
        self._save()
        print(f"🤝 {result['message']}")
        return result

    def draw_cat(self, cat_name: str) -> dict:
        cat = self._request(
            "post", "/api/nfc/draw-cat-with-tickets",
            json={"nfcUid": self.state.uid, "catName": cat_name},
        )
        self.state.cats.append(
            {"tokenId": cat["tokenId"], "name": cat["name"], "rarity": cat["rarity"]}
        )
        self._save()
        print(f"🐱 Drew {cat['name']} ({cat['rarity']})")
        return cat

    def run(self, domain_prefix: Optional[str] = None, nickname: Optional[str] = None) -> dict:
        """Walk every screen that is still ahead of the saved step"""
        if self.state.step == STEP_SCAN or self.state.address is None:
            self.scan_card(nickname)
        if self.state.step == STEP_DOMAIN and domain_prefix:
            self.register_domain(domain_prefix)
        return self.dashboard()


# =========================
# CLI
# =========================

def main(argv=None):
    parser = argparse.ArgumentParser(description="NFC wallet onboarding")
    parser.add_argument("uid", help="NFC card UID")
    parser.add_argument("--server", default=SERVER_URL)
    parser.add_argument("--state-file", default=DEFAULT_STATE_FILE)
    parser.add_argument("--nickname")
    parser.add_argument("--domain", help="domain prefix to register, e.g. 'alice'")
    parser.add_argument("--interact-with", metavar="UID", help="another bound card")
    parser.add_argument("--draw", metavar="CAT_NAME", help="draw a cat with a ticket")
    args = parser.parse_args(argv)

    client = OnboardingClient(args.uid, server_url=args.server, state_path=args.state_file)
    try:
        dashboard = client.run(domain_prefix=args.domain, nickname=args.nickname)
        if args.interact_with:
            client.interact_with(args.interact_with)
        if args.draw:
            client.draw_cat(args.draw)
    except OnboardingError as e:
        print(f"❌ {e.detail}")
        return 1

    wallet = dashboard["wallet"]
    print("=" * 60)
    print(f"Address: {wallet['address']}")
    print(f"Domain:  {wallet['domain'] or '-'}")
    print(f"Cats:    {dashboard['cats']['total']}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
