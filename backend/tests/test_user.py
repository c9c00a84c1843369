from nfc_wallet.core.crypto import wallet_from_private_key


def _export(client, **body):
    return client.post("/api/user/export-private-key", json=body)


def test_profile(client, register):
    wallet = register("card-1")

    profile = client.get("/api/user/profile/card-1").json()
    assert profile["address"] == wallet["address"]
    assert profile["uid"] == "card-1"
    assert profile["domain"] is None

    assert client.get("/api/user/profile/unknown").status_code == 404


def test_update_and_remove_domain(client, register):
    register("card-1")

    resp = client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "alice"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["domain"] == "advx-alice.inj"

    # setting the same domain again is a no-op
    again = client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "alice"})
    assert again.status_code == 200

    removed = client.delete("/api/user/domain/card-1")
    assert removed.json()["domain"] is None
    assert client.get("/api/user/check-domain/alice").json()["available"] is True


def test_domain_owned_by_another_user_conflicts(client, register):
    register("card-1")
    register("card-2")
    client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "alice"})

    resp = client.put("/api/user/domain", json={"uid": "card-2", "domainPrefix": "alice"})
    assert resp.status_code == 409
    assert client.get("/api/user/profile/card-1").json()["domain"] == "advx-alice.inj"
    assert client.get("/api/user/profile/card-2").json()["domain"] is None


def test_update_domain_validates_prefix(client, register):
    register("card-1")
    resp = client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "-bad"})
    assert resp.status_code == 400


def test_check_domain(client, register):
    assert client.get("/api/user/check-domain/alice").json() == {
        "available": True,
        "domain": "advx-alice.inj",
    }
    register("card-1")
    client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "alice"})
    assert client.get("/api/user/check-domain/alice").json()["available"] is False
    assert client.get("/api/user/check-domain/a--b").status_code == 400


def test_list_users_is_paged(client, register):
    for i in range(3):
        register(f"card-{i}")

    page = client.get("/api/user/list", params={"page": 1, "limit": 2}).json()
    assert page["total"] == 3
    assert page["totalPages"] == 2
    assert len(page["users"]) == 2
    assert page["users"][0]["uid"] == "card-2"

    last = client.get("/api/user/list", params={"page": 2, "limit": 2}).json()
    assert [u["uid"] for u in last["users"]] == ["card-0"]

    assert client.get("/api/user/list", params={"page": 0}).status_code == 422


def test_user_by_address(client, register):
    wallet = register("card-1")

    user = client.get(f"/api/user/address/{wallet['address']}").json()
    assert user["ethAddress"] == wallet["ethAddress"]
    assert [c["uid"] for c in user["nfcCards"]] == ["card-1"]
    assert user["transactionCount"] == 2
    assert user["chainDomain"] is None

    assert client.get("/api/user/address/inj1unknown").status_code == 404


def test_search_user_by_domain(client, register):
    wallet = register("card-1")
    client.post("/api/nfc/domain/register", json={"uid": "card-1", "domainPrefix": "alice"})

    found = client.get("/api/user/search/advx-alice.inj")
    assert found.status_code == 200, found.text
    body = found.json()
    assert body["address"] == wallet["address"]
    assert body["uid"] == "card-1"
    assert body["domain"] == "advx-alice.inj"
    assert body["resolvedAddress"] == wallet["address"]

    assert client.get("/api/user/search/alice").json()["address"] == wallet["address"]
    assert client.get(f"/api/user/address/{wallet['address']}").json()["chainDomain"] == "advx-alice.inj"
    assert client.get("/api/user/search/advx-nobody.inj").status_code == 404


def test_search_by_local_domain_without_registry(client, register, chain):
    register("card-1")
    client.put("/api/user/domain", json={"uid": "card-1", "domainPrefix": "bob"})
    chain.contracts.discard("domain_registry")

    body = client.get("/api/user/search/advx-bob.inj").json()
    assert body["uid"] == "card-1"
    assert body["resolvedAddress"] is None


def test_card_nickname_and_active_flag(client, register):
    register("card-1")

    resp = client.put("/api/user/nfc/card-1/nickname", json={"nickname": "backup"})
    assert resp.json()["success"] is True
    assert client.get("/api/nfc/wallet/card-1").json()["nfcCards"][0]["nickname"] == "backup"

    resp = client.put("/api/user/nfc/card-1/active", json={"isActive": False})
    assert resp.json()["message"] == "NFC card deactivated"
    assert client.get("/api/nfc/wallet/card-1").json()["nfcCards"][0]["isActive"] is False

    assert client.put("/api/user/nfc/unknown/nickname", json={"nickname": "x"}).status_code == 404


def test_export_private_key(client, register):
    wallet = register("card-1")

    resp = _export(client, uid="card-1", confirmation="I_UNDERSTAND_THE_RISKS")
    assert resp.status_code == 200
    body = resp.json()
    assert body["privateKey"].startswith("0x")
    assert body["warning"]
    assert wallet_from_private_key(body["privateKey"]).address == wallet["address"]

    by_address = _export(client, address=wallet["address"], confirmation="I_UNDERSTAND_THE_RISKS")
    assert by_address.json()["privateKey"] == body["privateKey"]


def test_export_private_key_guards(client, register):
    register("card-1")
    other = register("card-2")

    assert _export(client, uid="card-1", confirmation="yes").status_code == 403
    assert _export(client, confirmation="I_UNDERSTAND_THE_RISKS").status_code == 400
    assert _export(client, uid="card-1", address=other["address"],
                   confirmation="I_UNDERSTAND_THE_RISKS").status_code == 403
    assert _export(client, address="inj1nobody", confirmation="I_UNDERSTAND_THE_RISKS").status_code == 404
