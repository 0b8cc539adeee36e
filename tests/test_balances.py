from decimal import Decimal

API = "/api/v1"


def test_summary_breaks_down_by_person(client, login_as, people):
    login_as(people["you"])
    client.post(f"{API}/expenses", json={
        "description": "Dinner", "amount": "90",
        "participant_ids": [people["you"]["id"], people["john"]["id"], people["jane"]["id"]],
    })
    client.post(f"{API}/expenses", json={
        "description": "Cab", "amount": "20", "paid_by": people["mike"]["id"],
        "participant_ids": [people["you"]["id"], people["mike"]["id"]],
    })

    body = client.get(f"{API}/balances").json()
    assert Decimal(body["total_owed_to_you"]) == Decimal("60.00")
    assert Decimal(body["total_you_owe"]) == Decimal("10.00")
    assert Decimal(body["net_balance"]) == Decimal("50.00")
    assert body["currency"] == "USD"
    by_user = {c["user_id"]: Decimal(c["balance"]) for c in body["counterparties"]}
    assert by_user == {
        people["john"]["id"]: Decimal("30.00"),
        people["jane"]["id"]: Decimal("30.00"),
        people["mike"]["id"]: Decimal("-10.00"),
    }
    names = {c["full_name"] for c in body["counterparties"]}
    assert names == {"John Doe", "Jane Smith", "Mike Johnson"}


def test_everyone_settled_when_no_expenses(client, login_as, people):
    login_as(people["you"])
    body = client.get(f"{API}/balances").json()
    assert Decimal(body["net_balance"]) == 0
    assert body["counterparties"] == []


def test_pairwise_balance_is_antisymmetric(client, login_as, people):
    login_as(people["you"])
    client.post(f"{API}/expenses", json={
        "description": "Tickets", "amount": "25", "participant_ids": [people["you"]["id"], people["john"]["id"]],
    })
    mine = client.get(f"{API}/balances/{people['john']['id']}").json()
    assert Decimal(mine["balance"]) == Decimal("12.50")

    login_as(people["john"])
    theirs = client.get(f"{API}/balances/{people['you']['id']}").json()
    assert Decimal(theirs["balance"]) == Decimal("-12.50")


def test_balance_with_yourself_is_rejected(client, login_as, people):
    login_as(people["you"])
    assert client.get(f"{API}/balances/{people['you']['id']}").status_code == 400
