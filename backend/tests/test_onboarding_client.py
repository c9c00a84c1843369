import json

import pytest

from nfc_wallet.clients.onboarding_client import (
    STEP_DASHBOARD,
    STEP_DOMAIN,
    OnboardingClient,
    OnboardingError,
)


@pytest.fixture
def state_file(tmp_path):
    return str(tmp_path / "state.json")


@pytest.fixture
def make_client(client, state_file):
    def _make(uid):
        return OnboardingClient(uid, server_url="http://testserver", state_path=state_file, session=client)
    return _make


def test_full_onboarding(make_client, state_file):
    onboarding = make_client("card-1")
    dashboard = onboarding.run(domain_prefix="alice", nickname="main")

    assert dashboard["wallet"]["domain"] == "advx-alice.inj"
    assert dashboard["cats"]["total"] == 0
    assert dashboard["drawStats"]["availableDraws"] == 0

    with open(state_file) as f:
        saved = json.load(f)
    assert saved["uid"] == "card-1"
    assert saved["step"] == STEP_DASHBOARD
    assert saved["domain"] == "advx-alice.inj"
    assert saved["is_new_wallet"] is True


def test_resume_skips_finished_screens(make_client, chain):
    make_client("card-1").run(domain_prefix="alice")

    resumed = make_client("card-1")
    assert resumed.state.step == STEP_DASHBOARD
    resumed.run(domain_prefix="alice")

    assert len(chain.called("detectAndBindBlankCard")) == 1
    assert len(chain.called("mintDomainNFT")) == 1


def test_scan_without_domain_stops_at_domain_step(make_client):
    onboarding = make_client("card-1")
    onboarding.run()
    assert onboarding.state.step == STEP_DOMAIN
    assert onboarding.state.domain is None


def test_state_for_another_card_is_not_reused(make_client):
    make_client("card-1").run(domain_prefix="alice")
    other = make_client("card-2")
    assert other.state.address is None


def test_social_interaction_and_draw(make_client):
    make_client("card-b").scan_card()
    onboarding = make_client("card-a")
    onboarding.scan_card()

    result = onboarding.interact_with("card-b")
    assert result["rewardTickets"] == 1

    cat = onboarding.draw_cat("Tom")
    assert cat["rarity"] == "SSR"
    assert onboarding.state.interacted_with == ["card-b"]
    assert onboarding.state.cats == [{"tokenId": cat["tokenId"], "name": "Tom", "rarity": "SSR"}]


def test_taken_domain_raises(make_client):
    make_client("card-1").run(domain_prefix="alice")

    onboarding = make_client("card-2")
    onboarding.scan_card()
    with pytest.raises(OnboardingError) as exc:
        onboarding.register_domain("alice")
    assert exc.value.status_code == 409


def test_server_errors_carry_detail(make_client):
    onboarding = make_client("card-1")
    with pytest.raises(OnboardingError) as exc:
        onboarding.check_domain("a--b")
    assert exc.value.status_code == 400
    assert "consecutive" in exc.value.detail
