from decimal import Decimal

API = "/api/v1"


def test_add_friend_by_email_is_one_directional(client, login_as, people, db):
    login_as(people["you"])
    response = client.post(f"{API}/friends", json={"email": "john@example.com"})
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == people["john"]["id"]
    assert body["full_name"] == "John Doe"
    assert Decimal(body["balance"]) == 0

    assert [f["id"] for f in client.get(f"{API}/friends").json()] == [people["john"]["id"]]

    login_as(people["john"])
    assert client.get(f"{API}/friends").json() == []


def test_add_friend_email_lookup_is_case_insensitive(client, login_as, people):
    login_as(people["you"])
    response = client.post(f"{API}/friends", json={"email": "Jane@Example.com"})
    assert response.status_code == 201
    assert response.json()["id"] == people["jane"]["id"]


def test_add_unknown_friend(client, login_as, people):
    login_as(people["you"])
    response = client.post(f"{API}/friends", json={"email": "nobody@example.com"})
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


def test_cannot_befriend_yourself_or_twice(client, login_as, people, db):
    login_as(people["you"])
    assert client.post(f"{API}/friends", json={"email": "demo@example.com"}).status_code == 400
    assert client.post(f"{API}/friends", json={"email": "john@example.com"}).status_code == 201
    duplicate = client.post(f"{API}/friends", json={"email": "john@example.com"})
    assert duplicate.status_code == 400
    assert len(db.rows("friends")) == 1


def test_invalid_email_is_rejected(client, login_as, people):
    login_as(people["you"])
    assert client.post(f"{API}/friends", json={"email": "not-an-email"}).status_code == 422


def test_friend_list_carries_balance(client, login_as, people):
    login_as(people["you"])
    client.post(f"{API}/friends", json={"email": "john@example.com"})
    client.post(f"{API}/expenses", json={
        "description": "Lunch",
        "amount": "40.00",
        "participant_ids": [people["you"]["id"], people["john"]["id"]],
    })
    friends = client.get(f"{API}/friends").json()
    assert Decimal(friends[0]["balance"]) == Decimal("20.00")


def test_remove_friend_requires_settled_balance(client, login_as, people):
    login_as(people["you"])
    client.post(f"{API}/friends", json={"email": "john@example.com"})
    client.post(f"{API}/expenses", json={
        "description": "Taxi",
        "amount": "10.00",
        "participant_ids": [people["you"]["id"], people["john"]["id"]],
    })
    john_id = people["john"]["id"]
    assert client.delete(f"{API}/friends/{john_id}").status_code == 400

    login_as(people["john"])
    assert client.post(f"{API}/settlements", json={"payee_id": people["you"]["id"]}).status_code == 201

    login_as(people["you"])
    assert client.delete(f"{API}/friends/{john_id}").status_code == 204
    assert client.get(f"{API}/friends").json() == []
    assert client.delete(f"{API}/friends/{john_id}").status_code == 404
