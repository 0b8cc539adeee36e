from decimal import Decimal

API = "/api/v1"


def _splits(body):
    return {s["user_id"]: Decimal(s["amount"]) for s in body["splits"]}


def test_equal_split_distributes_cents(client, login_as, people, db):
    login_as(people["you"])
    ids = [people[n]["id"] for n in ("you", "john", "jane")]
    response = client.post(f"{API}/expenses", json={
        "description": "Dinner",
        "amount": "100.00",
        "category": "Food",
        "participant_ids": ids,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["paid_by"] == people["you"]["id"]
    assert body["created_by"] == people["you"]["id"]
    assert body["split_type"] == "equal"
    assert _splits(body) == {ids[0]: Decimal("33.34"), ids[1]: Decimal("33.33"), ids[2]: Decimal("33.33")}
    assert sum(Decimal(s["amount"]) for s in db.rows("expense_splits")) == Decimal("100.00")


def test_exact_split_must_add_up(client, login_as, people, db):
    login_as(people["you"])
    response = client.post(f"{API}/expenses", json={
        "description": "Concert",
        "amount": "50.00",
        "split_type": "exact",
        "splits": [
            {"user_id": people["you"]["id"], "amount": "20.00"},
            {"user_id": people["john"]["id"], "amount": "20.00"},
        ],
    })
    assert response.status_code == 400
    assert "total" in response.json()["detail"]
    assert db.rows("expenses") == []


def test_exact_split_is_stored(client, login_as, people):
    login_as(people["you"])
    response = client.post(f"{API}/expenses", json={
        "description": "Concert",
        "amount": "50.00",
        "split_type": "exact",
        "paid_by": people["john"]["id"],
        "splits": [
            {"user_id": people["you"]["id"], "amount": "30.00"},
            {"user_id": people["john"]["id"], "amount": "20.00"},
        ],
    })
    assert response.status_code == 201
    body = response.json()
    assert body["paid_by"] == people["john"]["id"]
    assert _splits(body)[people["you"]["id"]] == Decimal("30.00")


def test_percentage_split(client, login_as, people):
    login_as(people["you"])
    response = client.post(f"{API}/expenses", json={
        "description": "Hotel",
        "amount": "200.00",
        "split_type": "percentage",
        "splits": [
            {"user_id": people["you"]["id"], "percent": "75"},
            {"user_id": people["jane"]["id"], "percent": "25"},
        ],
    })
    assert response.status_code == 201
    assert _splits(response.json()) == {
        people["you"]["id"]: Decimal("150.00"),
        people["jane"]["id"]: Decimal("50.00"),
    }


def test_input_validation(client, login_as, people):
    login_as(people["you"])
    base = {"description": "X", "participant_ids": [people["you"]["id"]]}
    assert client.post(f"{API}/expenses", json={**base, "amount": "0"}).status_code == 422
    assert client.post(f"{API}/expenses", json={**base, "amount": "1.234"}).status_code == 422
    assert client.post(f"{API}/expenses", json={**base, "amount": "5", "category": "Rockets"}).status_code == 422
    assert client.post(f"{API}/expenses", json={"description": "X", "amount": "5"}).status_code == 422
    assert client.post(f"{API}/expenses", json={
        "description": "X", "amount": "5", "split_type": "exact",
        "splits": [{"user_id": people["you"]["id"]}],
    }).status_code == 422


def test_unrelated_expense_and_unknown_participant_rejected(client, login_as, people):
    login_as(people["you"])
    unrelated = client.post(f"{API}/expenses", json={
        "description": "Not mine", "amount": "10",
        "paid_by": people["john"]["id"], "participant_ids": [people["jane"]["id"]],
    })
    assert unrelated.status_code == 400
    unknown = client.post(f"{API}/expenses", json={
        "description": "Ghost", "amount": "10", "participant_ids": [people["you"]["id"], "ghost"],
    })
    assert unknown.status_code == 400


def test_group_expense_requires_membership(client, login_as, people):
    login_as(people["you"])
    group_id = client.post(f"{API}/groups", json={
        "name": "Flat", "member_ids": [people["john"]["id"]],
    }).json()["id"]

    outsider = client.post(f"{API}/expenses", json={
        "description": "Rent", "amount": "10", "group_id": group_id,
        "participant_ids": [people["you"]["id"], people["mike"]["id"]],
    })
    assert outsider.status_code == 400

    login_as(people["mike"])
    forbidden = client.post(f"{API}/expenses", json={
        "description": "Rent", "amount": "10", "group_id": group_id,
    })
    assert forbidden.status_code == 403


def test_list_and_get_expenses(client, login_as, people):
    login_as(people["you"])
    first = client.post(f"{API}/expenses", json={
        "description": "Coffee", "amount": "6", "participant_ids": [people["you"]["id"], people["john"]["id"]],
    }).json()
    second = client.post(f"{API}/expenses", json={
        "description": "Cake", "amount": "9", "participant_ids": [people["you"]["id"], people["jane"]["id"]],
    }).json()

    listed = client.get(f"{API}/expenses").json()
    assert [e["id"] for e in listed] == [second["id"], first["id"]]

    login_as(people["john"])
    assert [e["id"] for e in client.get(f"{API}/expenses").json()] == [first["id"]]
    assert client.get(f"{API}/expenses/{first['id']}").status_code == 200
    assert client.get(f"{API}/expenses/{second['id']}").status_code == 403
    assert client.get(f"{API}/expenses/missing").status_code == 404


def test_update_expense_resplits(client, login_as, people):
    login_as(people["you"])
    ids = [people["you"]["id"], people["john"]["id"]]
    expense = client.post(f"{API}/expenses", json={
        "description": "Pizza", "amount": "20", "participant_ids": ids,
    }).json()

    updated = client.put(f"{API}/expenses/{expense['id']}", json={"amount": "30", "description": "Pizza night"})
    assert updated.status_code == 200
    body = updated.json()
    assert body["description"] == "Pizza night"
    assert Decimal(body["amount"]) == Decimal("30.00")
    assert _splits(body) == {ids[0]: Decimal("15.00"), ids[1]: Decimal("15.00")}
    assert body["updated_at"] is not None

    switched = client.put(f"{API}/expenses/{expense['id']}", json={
        "split_type": "exact",
        "splits": [{"user_id": ids[0], "amount": "10"}, {"user_id": ids[1], "amount": "20"}],
    }).json()
    assert _splits(switched) == {ids[0]: Decimal("10.00"), ids[1]: Decimal("20.00")}

    needs_splits = client.put(f"{API}/expenses/{expense['id']}", json={"amount": "45"})
    assert needs_splits.status_code == 400


def test_update_without_money_changes_keeps_splits(client, login_as, people, db):
    login_as(people["you"])
    expense = client.post(f"{API}/expenses", json={
        "description": "Pizza", "amount": "20", "participant_ids": [people["you"]["id"], people["john"]["id"]],
    }).json()
    split_ids = {s["id"] for s in db.rows("expense_splits")}

    response = client.put(f"{API}/expenses/{expense['id']}", json={"category": "Food"})
    assert response.status_code == 200
    assert response.json()["category"] == "Food"
    assert {s["id"] for s in db.rows("expense_splits")} == split_ids


def test_only_creator_or_payer_can_modify(client, login_as, people, db):
    login_as(people["you"])
    expense = client.post(f"{API}/expenses", json={
        "description": "Pizza", "amount": "20", "participant_ids": [people["you"]["id"], people["john"]["id"]],
    }).json()

    login_as(people["john"])
    assert client.put(f"{API}/expenses/{expense['id']}", json={"description": "Free pizza"}).status_code == 403
    assert client.delete(f"{API}/expenses/{expense['id']}").status_code == 403

    login_as(people["you"])
    assert client.delete(f"{API}/expenses/{expense['id']}").status_code == 204
    assert db.rows("expenses") == []
    assert db.rows("expense_splits") == []


def test_failed_split_insert_rolls_back_expense(client, login_as, people, db):
    login_as(people["you"])
    db.failing_tables.add("expense_splits")
    response = client.post(f"{API}/expenses", json={
        "description": "Pizza", "amount": "20", "participant_ids": [people["you"]["id"]],
    })
    assert response.status_code == 500
    assert db.rows("expenses") == []


def test_failed_resplit_keeps_previous_amount_and_splits(client, login_as, people, db):
    login_as(people["you"])
    group_id = client.post(f"{API}/groups", json={"name": "Flat", "member_ids": [people["john"]["id"]]}).json()["id"]
    expense = client.post(f"{API}/expenses", json={"description": "Rent", "amount": "20", "group_id": group_id}).json()
    split_ids = {s["id"] for s in db.rows("expense_splits")}

    db.failing_actions.add(("expense_splits", "insert"))
    response = client.put(f"{API}/expenses/{expense['id']}", json={"amount": "30", "description": "Rent + wifi"})
    assert response.status_code == 500

    stored = db.rows("expenses")[0]
    assert stored["amount"] == "20.00"
    assert stored["description"] == "Rent"
    assert {s["id"] for s in db.rows("expense_splits")} == split_ids
    assert sum(Decimal(s["amount"]) for s in db.rows("expense_splits")) == Decimal("20.00")

    db.failing_actions.clear()
    balances = client.get(f"{API}/groups/{group_id}/balances")
    assert balances.status_code == 200
    assert {b["user_id"]: Decimal(b["balance"]) for b in balances.json()["balances"]} == {
        people["you"]["id"]: Decimal("10.00"),
        people["john"]["id"]: Decimal("-10.00"),
    }


def test_exact_expense_rejects_participant_list_without_amounts(client, login_as, people, db):
    login_as(people["you"])
    ids = [people["you"]["id"], people["john"]["id"]]
    expense = client.post(f"{API}/expenses", json={
        "description": "Tickets", "amount": "30", "split_type": "exact",
        "splits": [{"user_id": ids[0], "amount": "10"}, {"user_id": ids[1], "amount": "20"}],
    }).json()

    response = client.put(f"{API}/expenses/{expense['id']}", json={
        "participant_ids": ids + [people["jane"]["id"]],
    })
    assert response.status_code == 400
    assert _splits(client.get(f"{API}/expenses/{expense['id']}").json()) == {
        ids[0]: Decimal("10.00"), ids[1]: Decimal("20.00"),
    }
