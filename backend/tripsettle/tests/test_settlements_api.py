"""
Tests for settlement and expense endpoints.
"""
from decimal import Decimal

from tripsettle.tests.conftest import auth_headers


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_bearer_token(client, make_user, make_travel):
    travel = make_travel([make_user("Alice")])

    response = client.get(f"/api/travels/{travel.id}/settlements")

    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


def test_invalid_token_is_rejected(client, make_user, make_travel):
    travel = make_travel([make_user("Alice")])

    response = client.get(
        f"/api/travels/{travel.id}/settlements",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401


def test_full_settlement_flow(client, make_user, make_travel, add_expense):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])
    add_expense(travel, alice, Decimal("100"), [alice, bob])
    base = f"/api/travels/{travel.id}/settlements"

    summary = client.get(base, headers=auth_headers(bob))
    assert summary.status_code == 200
    body = summary.json()
    assert {(b["memberId"], Decimal(b["balance"])) for b in body["balances"]} == {
        (alice.id, Decimal("50")),
        (bob.id, Decimal("-50")),
    }
    assert body["savedSettlements"] == []
    recommended = body["recommendedSettlements"]
    assert len(recommended) == 1
    assert recommended[0]["fromMember"] == "Bob"
    assert recommended[0]["toMember"] == "Alice"
    assert Decimal(recommended[0]["amount"]) == Decimal("50")
    assert recommended[0]["status"] == "pending"
    assert "updatedAt" in recommended[0]

    saved = client.post(base, headers=auth_headers(alice))
    assert saved.status_code == 200
    saved_rows = saved.json()["savedSettlements"]
    assert len(saved_rows) == 1
    assert saved_rows[0]["status"] == "pending"

    completed = client.patch(f"{base}/{saved_rows[0]['id']}/complete", headers=auth_headers(bob))
    assert completed.status_code == 200
    assert completed.json()["savedSettlements"][0]["status"] == "completed"

    again = client.get(base, headers=auth_headers(alice))
    assert again.json()["savedSettlements"][0]["status"] == "completed"


def test_save_with_nothing_to_settle(client, make_user, make_travel):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])

    response = client.post(f"/api/travels/{travel.id}/settlements", headers=auth_headers(alice))

    assert response.status_code == 400
    assert response.json()["error"] == "nothing_to_settle"


def test_non_member_gets_forbidden_for_every_operation(client, make_user, make_travel, add_expense):
    alice, bob, mallory = make_user("Alice"), make_user("Bob"), make_user("Mallory")
    travel = make_travel([alice, bob])
    add_expense(travel, alice, Decimal("100"), [alice, bob])
    base = f"/api/travels/{travel.id}/settlements"
    headers = auth_headers(mallory)

    responses = [
        client.get(base, headers=headers),
        client.post(base, headers=headers),
        client.patch(f"{base}/some-id/complete", headers=headers),
        client.get(f"{base}/statistics", headers=headers),
    ]

    assert [r.status_code for r in responses] == [403, 403, 403, 403]
    assert all(r.json()["error"] == "forbidden" for r in responses)


def test_unknown_travel_is_not_found(client, make_user):
    response = client.get("/api/travels/4040/settlements", headers=auth_headers(make_user("Alice")))

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_completing_recommended_id_is_not_found(client, make_user, make_travel, add_expense):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])
    add_expense(travel, alice, Decimal("100"), [alice, bob])
    base = f"/api/travels/{travel.id}/settlements"
    recommended_id = client.get(base, headers=auth_headers(alice)).json()["recommendedSettlements"][0]["id"]

    response = client.patch(f"{base}/{recommended_id}/complete", headers=auth_headers(alice))

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_statistics_endpoint(client, make_user, make_travel, add_expense):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])
    add_expense(travel, alice, Decimal("100"), [alice, bob])

    response = client.get(f"/api/travels/{travel.id}/settlements/statistics", headers=auth_headers(bob))

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["totalExpenseAmount"]) == Decimal("100")
    assert Decimal(body["myBalance"]) == Decimal("-50")
    assert body["balanceStatus"] == "pay"
    assert {m["memberName"] for m in body["memberBalances"]} == {"Alice", "Bob"}


def test_new_expense_invalidates_cached_summary(client, make_user, make_travel):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])
    headers = auth_headers(alice)
    base = f"/api/travels/{travel.id}"

    assert client.get(f"{base}/settlements", headers=headers).json()["recommendedSettlements"] == []

    created = client.post(f"{base}/expenses", headers=headers, json={
        "title": "Taxi",
        "amount": "10",
        "currency": "USD",
        "expense_date": "2025-11-14",
    })
    assert created.status_code == 201
    assert Decimal(created.json()["convertedAmount"]) == Decimal("13505.00")

    recommended = client.get(f"{base}/settlements", headers=headers).json()["recommendedSettlements"]
    assert [(r["fromMember"], Decimal(r["amount"])) for r in recommended] == [("Bob", Decimal("6752.50"))]


def test_expense_with_unavailable_rate_is_503(client, make_user, make_travel):
    alice = make_user("Alice")
    travel = make_travel([alice])

    response = client.post(f"/api/travels/{travel.id}/expenses", headers=auth_headers(alice), json={
        "title": "Museum",
        "amount": "25",
        "currency": "EUR",
        "expense_date": "2025-11-14",
    })

    assert response.status_code == 503
    assert response.json()["error"] == "service_unavailable"


def test_expense_validation_error(client, make_user, make_travel):
    alice = make_user("Alice")
    travel = make_travel([alice])

    response = client.post(f"/api/travels/{travel.id}/expenses", headers=auth_headers(alice), json={
        "title": "Museum",
        "amount": "-1",
        "expense_date": "2025-11-14",
    })

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_expense_update_and_delete(client, make_user, make_travel):
    alice, bob = make_user("Alice"), make_user("Bob")
    travel = make_travel([alice, bob])
    base = f"/api/travels/{travel.id}/expenses"
    created = client.post(base, headers=auth_headers(alice), json={
        "title": "Lunch",
        "amount": "20000",
        "expense_date": "2025-11-14",
    }).json()

    update = {
        "title": "Lunch",
        "amount": "30000",
        "expense_date": "2025-11-14",
        "participant_ids": [bob.id],
    }
    not_author = client.put(f"{base}/{created['id']}", headers=auth_headers(bob), json=update)
    assert not_author.status_code == 403
    assert not_author.json()["error"] == "forbidden"

    assert client.patch(f"{base}/{created['id']}", headers=auth_headers(alice), json=update).status_code == 405
    updated = client.put(f"{base}/{created['id']}", headers=auth_headers(alice), json=update)
    assert updated.status_code == 200
    assert [p["memberId"] for p in updated.json()["participants"]] == [bob.id]

    forbidden = client.delete(f"{base}/{created['id']}", headers=auth_headers(bob))
    assert forbidden.status_code == 403

    deleted = client.delete(f"{base}/{created['id']}", headers=auth_headers(alice))
    assert deleted.status_code == 204
    assert client.get(base, headers=auth_headers(alice)).json() == []
