# nfc_wallet/clients/abis.py
#
# Minimal ABIs: only the functions and events the backend calls.

DOMAIN_REGISTRY = "domain_registry"
NFC_REGISTRY = "nfc_registry"
CAT_NFT = "cat_nft"


def _params(params):
    return [{"name": name, "type": typ} for typ, name in params]


def _fn(name, inputs=(), outputs=(), mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
    }


def _event(name, inputs):
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": name_, "type": typ, "indexed": indexed}
            for typ, name_, indexed in inputs
        ],
    }


INJ_DOMAIN_NFT_ABI = [
    _fn("mintDomainNFT",
        [("address", "owner"), ("string", "domainPrefix"), ("string", "nfcUID"), ("string", "metadataURI")],
        [("uint256", "tokenId")]),
    _fn("isDomainAvailable", [("string", "domainPrefix")], [("bool", "")], "view"),
    _fn("MIN_DOMAIN_LENGTH", [], [("uint256", "")], "view"),
    _fn("MAX_DOMAIN_LENGTH", [], [("uint256", "")], "view"),
    _fn("resolveDomain", [("string", "domain")], [("address", "")], "view"),
    _fn("reverseResolve", [("address", "addr")], [("string", "")], "view"),
    _event("DomainMinted", [
        ("uint256", "tokenId", True),
        ("address", "owner", True),
        ("string", "domainName", False),
        ("string", "nfcUID", False),
    ]),
]

NFC_WALLET_REGISTRY_ABI = [
    _fn("detectAndBindBlankCard", [("string", "nfcUID"), ("address", "walletAddress")]),
    _fn("unbindNFCWallet", [("string", "nfcUID"), ("bool", "resetToBlank")]),
    _fn("getNFCStatus", [("string", "nfcUID")], [("uint8", "")], "view"),
    _event("NFCWalletBound", [
        ("string", "nfcUID", False),
        ("address", "walletAddress", True),
        ("uint256", "boundAt", False),
    ]),
]

CAT_NFT_ABI = [
    _fn("socialInteraction", [("string", "myNFC"), ("string", "otherNFC")]),
    _fn("drawCatNFTWithTickets", [("string", "nfcUID"), ("string", "catName")],
        [("uint256", "tokenId")], "payable"),
    _fn("drawFee", [], [("uint256", "")], "view"),
    _fn("getDrawStats", [("string", "nfcUID")],
        [("uint256", "available"), ("uint256", "used"), ("uint256", "total")], "view"),
    _fn("hasInteracted", [("string", "nfc1"), ("string", "nfc2")], [("bool", "")], "view"),
    _fn("getInteractedNFCs", [("string", "nfcUID")], [("string[]", "")], "view"),
    _fn("getTokenIdByNFC", [("string", "nfcUID")], [("uint256", "")], "view"),
    _fn("unbindAndBurnCard", [("string", "nfcUID"), ("bytes", "ownerSignature")]),
    _event("SocialInteractionCompleted", [
        ("string", "myNFC", False),
        ("string", "otherNFC", False),
        ("uint256", "rewardedDraws", False),
    ]),
    _event("CatDrawnWithTickets", [
        ("uint256", "tokenId", True),
        ("address", "owner", True),
        ("string", "nfcUID", False),
        ("string", "name", False),
        ("uint8", "rarity", False),
        ("string", "color", False),
    ]),
]

ABIS = {
    DOMAIN_REGISTRY: INJ_DOMAIN_NFT_ABI,
    NFC_REGISTRY: NFC_WALLET_REGISTRY_ABI,
    CAT_NFT: CAT_NFT_ABI,
}
