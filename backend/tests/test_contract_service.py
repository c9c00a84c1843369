import pytest

from nfc_wallet.core.errors import ChainError, ValidationError
from nfc_wallet.core.validator import ContractLimits
from nfc_wallet.services.contract_service import ContractService


@pytest.fixture
def service(chain):
    return ContractService(chain, ContractLimits())


def test_validation_happens_before_any_chain_call(service, chain):
    with pytest.raises(ValidationError):
        service.register_domain("-bad", "0x" + "11" * 20, "card-1")
    with pytest.raises(ValidationError):
        service.social_interaction("card-1", "card-1")
    with pytest.raises(ValidationError):
        service.draw_cat_with_tickets("card-1", "")
    assert chain.calls == []


def test_register_domain_returns_chain_identifiers(service):
    result = service.register_domain("alice", "0x" + "11" * 20, "card-1")
    assert result["domain"] == "advx-alice.inj"
    assert result["tokenId"] == "1"
    assert result["txHash"].startswith("0x")


def test_draw_without_event_has_no_token(service, chain):
    chain.tickets["card-1"] = (1, 0, 1)
    chain.events = lambda name, event, receipt: []

    result = service.draw_cat_with_tickets("card-1", "Tom")
    assert result["tokenId"] is None
    assert result["txHash"].startswith("0x")


def test_complete_unbind_burns_token(service, chain):
    chain.cat_tokens["card-1"] = 3
    result = service.complete_unbind("card-1", reset_to_blank=False, owner_signature="0xabcd")

    assert result == {"nftBurned": True, "nfcUnbound": True, "txHash": result["txHash"]}
    assert chain.called("unbindAndBurnCard")[0][2] == ("card-1", b"\xab\xcd")
    assert chain.called("unbindNFCWallet")[0][2] == ("card-1", False)


def test_complete_unbind_reports_partial_failure(service, chain):
    chain.cat_tokens["card-1"] = 3
    chain.fail.add("unbindAndBurnCard")

    result = service.complete_unbind("card-1")
    assert result["nftBurned"] is False
    assert result["nfcUnbound"] is True


def test_nfc_status_description(service):
    assert service.get_nfc_status("card-1") == {"status": 1, "description": "bound"}


def test_resolve_and_reverse_resolve(service):
    owner = "0x" + "11" * 20
    assert service.resolve_domain("advx-alice.inj") is None

    service.register_domain("alice", owner, "card-1")
    assert service.resolve_domain("advx-alice.inj") == owner
    assert service.reverse_resolve(owner) == "advx-alice.inj"
    assert service.reverse_resolve("0x" + "22" * 20) is None


def test_fetch_domain_limits(service, chain):
    chain.min_domain_length = 2
    chain.max_domain_length = 30

    limits = service.fetch_domain_limits()
    assert (limits.min_domain_length, limits.max_domain_length) == (2, 25)
    assert service.limits is limits


def test_balance_is_formatted(service, chain):
    chain.balances["0x" + "22" * 20] = 1234567 * 10 ** 12
    assert service.get_balance("0x" + "22" * 20) == "1.234567"


def test_chain_errors_propagate(service, chain):
    chain.fail.add("getInteractedNFCs")
    with pytest.raises(ChainError):
        service.get_interacted_nfcs("card-1")
