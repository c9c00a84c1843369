from fastapi.testclient import TestClient

from nfc_wallet.core.config import Settings
from nfc_wallet.main import create_app


def test_contract_status(client, chain):
    chain.contracts.discard("cat_nft")

    status = client.get("/api/contract/status").json()
    assert status["domainRegistry"] is True
    assert status["nfcRegistry"] is True
    assert status["catNFT"] is False
    assert status["walletConnected"] is True
    assert status["network"]["chainId"] == 1439
    assert status["blockExplorer"] == "https://testnet.blockscout.injective.network/"


def test_rarity_table(client):
    body = client.get("/api/contract/rarity").json()
    assert body["probabilities"]["total"] == 10000
    assert body["percentages"]["R"] == "60.0%"
    assert body["drawFee"] == "0.1"


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["database"] is True
    assert body["timestamp"].endswith("+00:00")


def test_unconfigured_contract_is_bad_gateway(client, register, chain):
    register("card-1")
    chain.contracts.discard("domain_registry")

    resp = client.post("/api/nfc/domain/register", json={"uid": "card-1", "domainPrefix": "alice"})
    assert resp.status_code == 502
    assert "not configured" in resp.json()["detail"]


def test_domain_limits_synced_from_chain(settings, chain):
    chain.max_domain_length = 20
    settings.sync_limits_from_chain = True

    app = create_app(settings, chain=chain)
    assert app.state.contract_service.limits.max_domain_length == 15

    with TestClient(app) as client:
        resp = client.get("/api/nfc/domain/check", params={"domainPrefix": "x" * 16})
        assert resp.status_code == 400
        assert client.get("/api/user/check-domain/" + "x" * 16).status_code == 400


def test_failed_limit_sync_keeps_defaults(settings, chain):
    chain.fail.add("MAX_DOMAIN_LENGTH")
    settings.sync_limits_from_chain = True

    app = create_app(settings, chain=chain)
    assert app.state.contract_service.limits.max_domain_length == 25


def test_registration_is_rate_limited(settings, chain):
    settings.rate_limit_enabled = True

    with TestClient(create_app(settings, chain=chain)) as client:
        codes = [
            client.post("/api/nfc/register", json={"uid": f"card-{i}"}).status_code
            for i in range(11)
        ]

    assert codes[:10] == [200] * 10
    assert codes[10] == 429


def test_rate_limit_comes_from_settings(settings, chain):
    settings.rate_limit_enabled = True
    settings.register_rate_limit = "1/minute"

    with TestClient(create_app(settings, chain=chain)) as client:
        codes = [
            client.post("/api/nfc/register", json={"uid": f"card-{i}"}).status_code
            for i in range(3)
        ]

    assert codes == [200, 429, 429]


def test_rate_limits_read_from_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("REGISTER_RATE_LIMIT", raising=False)
    monkeypatch.delenv("SOCIAL_RATE_LIMIT", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("REGISTER_RATE_LIMIT=1/minute\nSOCIAL_RATE_LIMIT=2/hour\n")

    loaded = Settings.from_env(env_file)

    assert loaded.register_rate_limit == "1/minute"
    assert loaded.social_rate_limit == "2/hour"


def test_each_app_keeps_its_own_limiter(settings, chain):
    relaxed = create_app(settings, chain=chain)
    strict_settings = Settings(
        database_url="sqlite://",
        aes_encryption_key=settings.aes_encryption_key,
        rate_limit_enabled=True,
        register_rate_limit="1/minute",
        log_level="WARNING",
    )
    strict = create_app(strict_settings, chain=chain)

    assert relaxed.state.limiter is not strict.state.limiter
    assert relaxed.state.limiter.enabled is False
    assert strict.state.limiter.enabled is True

    with TestClient(relaxed) as client:
        codes = [
            client.post("/api/nfc/register", json={"uid": f"card-{i}"}).status_code
            for i in range(3)
        ]
    assert codes == [200, 200, 200]


def test_social_interaction_is_rate_limited(settings, chain):
    settings.rate_limit_enabled = True
    settings.social_rate_limit = "1/minute"

    with TestClient(create_app(settings, chain=chain)) as client:
        for uid in ("card-a", "card-b", "card-c"):
            assert client.post("/api/nfc/register", json={"uid": uid}).status_code == 200
        first = client.post("/api/nfc/social-interaction", json={"myNFC": "card-a", "otherNFC": "card-b"})
        second = client.post("/api/nfc/social-interaction", json={"myNFC": "card-a", "otherNFC": "card-c"})

    assert first.status_code == 200
    assert second.status_code == 429
    assert len(chain.called("socialInteraction")) == 1
