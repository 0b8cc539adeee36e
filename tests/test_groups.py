from decimal import Decimal

API = "/api/v1"


def _create_group(client, people, *names, name="Trip"):
    response = client.post(f"{API}/groups", json={
        "name": name,
        "description": "Weekend away",
        "member_ids": [people[n]["id"] for n in names],
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_create_group_adds_creator_as_member(client, login_as, people, db):
    login_as(people["you"])
    group = _create_group(client, people, "john", "jane", "john")
    assert group["created_by"] == people["you"]["id"]

    members = {m["user_id"] for m in db.rows("group_members") if m["group_id"] == group["id"]}
    assert members == {people["you"]["id"], people["john"]["id"], people["jane"]["id"]}


def test_create_group_validation(client, login_as, people):
    login_as(people["you"])
    assert client.post(f"{API}/groups", json={"name": "  ", "member_ids": [people["john"]["id"]]}).status_code == 422
    assert client.post(f"{API}/groups", json={"name": "Solo", "member_ids": []}).status_code == 422
    unknown = client.post(f"{API}/groups", json={"name": "Ghosts", "member_ids": ["missing"]})
    assert unknown.status_code == 400


def test_list_groups_only_shows_memberships(client, login_as, people):
    login_as(people["you"])
    first = _create_group(client, people, "john", name="Flat")
    second = _create_group(client, people, "jane", name="Trip")

    listed = client.get(f"{API}/groups").json()
    assert [g["id"] for g in listed] == [second["id"], first["id"]]
    assert listed[0]["member_count"] == 2
    assert Decimal(listed[0]["your_balance"]) == 0

    login_as(people["mike"])
    assert client.get(f"{API}/groups").json() == []


def test_group_detail_is_members_only(client, login_as, people):
    login_as(people["you"])
    group = _create_group(client, people, "john")

    detail = client.get(f"{API}/groups/{group['id']}").json()
    assert {m["full_name"] for m in detail["members"]} == {"Demo User", "John Doe"}

    login_as(people["mike"])
    assert client.get(f"{API}/groups/{group['id']}").status_code == 403
    assert client.get(f"{API}/groups/missing").status_code == 404


def test_only_creator_manages_group(client, login_as, people):
    login_as(people["you"])
    group = _create_group(client, people, "john")
    group_id = group["id"]

    login_as(people["john"])
    assert client.put(f"{API}/groups/{group_id}", json={"name": "Mine"}).status_code == 403
    assert client.post(f"{API}/groups/{group_id}/members", json={"user_id": people["mike"]["id"]}).status_code == 403
    assert client.delete(f"{API}/groups/{group_id}").status_code == 403

    login_as(people["you"])
    renamed = client.put(f"{API}/groups/{group_id}", json={"name": "Ski trip"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Ski trip"


def test_add_and_remove_members(client, login_as, people):
    login_as(people["you"])
    group_id = _create_group(client, people, "john")["id"]

    added = client.post(f"{API}/groups/{group_id}/members", json={"user_id": people["mike"]["id"]})
    assert added.status_code == 201
    duplicate = client.post(f"{API}/groups/{group_id}/members", json={"user_id": people["mike"]["id"]})
    assert duplicate.status_code == 400

    assert client.delete(f"{API}/groups/{group_id}/members/{people['you']['id']}").status_code == 400
    assert client.delete(f"{API}/groups/{group_id}/members/{people['mike']['id']}").status_code == 204
    members = client.get(f"{API}/groups/{group_id}/members").json()
    assert {m["user_id"] for m in members} == {people["you"]["id"], people["john"]["id"]}


def test_member_with_open_balance_cannot_be_removed(client, login_as, people):
    login_as(people["you"])
    group_id = _create_group(client, people, "john")["id"]
    client.post(f"{API}/expenses", json={"description": "Rent", "amount": "100", "group_id": group_id})

    assert client.delete(f"{API}/groups/{group_id}/members/{people['john']['id']}").status_code == 400


def test_group_balances_and_settlement_plan(client, login_as, people):
    login_as(people["you"])
    group_id = _create_group(client, people, "john", "jane")["id"]
    client.post(f"{API}/expenses", json={"description": "Groceries", "amount": "90", "group_id": group_id})
    client.post(f"{API}/expenses", json={
        "description": "Gas", "amount": "30", "group_id": group_id,
        "paid_by": people["john"]["id"],
        "participant_ids": [people["john"]["id"], people["jane"]["id"]],
    })

    body = client.get(f"{API}/groups/{group_id}/balances").json()
    balances = {b["user_id"]: Decimal(b["balance"]) for b in body["balances"]}
    assert balances == {
        people["you"]["id"]: Decimal("60.00"),
        people["john"]["id"]: Decimal("-15.00"),
        people["jane"]["id"]: Decimal("-45.00"),
    }
    plan = [(t["from_user_id"], t["to_user_id"], Decimal(t["amount"])) for t in body["settlement_plan"]]
    assert plan == [
        (people["jane"]["id"], people["you"]["id"], Decimal("45.00")),
        (people["john"]["id"], people["you"]["id"], Decimal("15.00")),
    ]

    summary = client.get(f"{API}/groups").json()[0]
    assert Decimal(summary["total_expenses"]) == Decimal("120.00")
    assert Decimal(summary["your_balance"]) == Decimal("60.00")


def test_delete_group_removes_its_ledger(client, login_as, people, db):
    login_as(people["you"])
    group_id = _create_group(client, people, "john")["id"]
    client.post(f"{API}/expenses", json={"description": "Rent", "amount": "100", "group_id": group_id})
    client.post(f"{API}/settlements", json={"payee_id": people["john"]["id"], "amount": "5", "group_id": group_id})

    assert client.delete(f"{API}/groups/{group_id}").status_code == 204
    assert db.rows("groups") == []
    assert db.rows("group_members") == []
    assert db.rows("expenses") == []
    assert db.rows("expense_splits") == []
    assert db.rows("settlements") == []


def test_failed_member_insert_removes_group(client, login_as, people, db):
    login_as(people["you"])
    db.failing_actions.add(("group_members", "insert"))
    response = client.post(f"{API}/groups", json={"name": "Flat", "member_ids": [people["john"]["id"]]})
    assert response.status_code == 500
    assert db.rows("groups") == []
    assert db.rows("group_members") == []
