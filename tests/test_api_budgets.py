from tests.helpers import expense, income


def spending(client, url, headers):
    return {b["category"]: (b["spent"], b["remaining"]) for b in client.get(url("/budgets"), headers=headers).json()}


def test_budget_tracks_expenses(client, url, alice):
    budget = client.post(url("/budgets"), json={"category": "Food", "amount": 200, "period": "monthly"},
                         headers=alice).json()
    assert budget["userId"] == "alice"
    assert "spent" not in budget

    first = client.post(url("/transactions"), json=expense(50), headers=alice).json()
    assert spending(client, url, alice) == {"Food": (50, 150)}

    client.post(url("/transactions"), json=expense(80), headers=alice)
    assert spending(client, url, alice) == {"Food": (130, 70)}

    client.delete(url(f"/transactions/{first['id']}"), headers=alice)
    assert spending(client, url, alice) == {"Food": (80, 120)}


def test_income_and_other_categories_ignored(client, url, alice):
    client.post(url("/budgets"), json={"category": "Food", "amount": 100}, headers=alice)
    client.post(url("/transactions"), json=income(40, category="Food"), headers=alice)
    client.post(url("/transactions"), json=expense(40, category="Shopping"), headers=alice)
    assert spending(client, url, alice) == {"Food": (0, 100)}


def test_spending_follows_transaction_edits(client, url, alice):
    client.post(url("/budgets"), json={"category": "Food", "amount": 100}, headers=alice)
    tx = client.post(url("/transactions"), json=expense(40), headers=alice).json()
    client.put(url(f"/transactions/{tx['id']}"), json=expense(40, category="Shopping"), headers=alice)
    assert spending(client, url, alice) == {"Food": (0, 100)}


def test_period_does_not_window_spending(client, url, alice):
    client.post(url("/budgets"), json={"category": "Food", "amount": 100, "period": "weekly"}, headers=alice)
    client.post(url("/transactions"), json=expense(10, date="2019-01-01"), headers=alice)
    client.post(url("/transactions"), json=expense(10, date="2025-06-01"), headers=alice)
    assert spending(client, url, alice) == {"Food": (20, 80)}


def test_spent_is_not_persisted(client, url, alice, store):
    client.post(url("/budgets"), json={"category": "Food", "amount": 100}, headers=alice)
    client.post(url("/transactions"), json=expense(10), headers=alice)
    client.get(url("/budgets"), headers=alice)
    stored = [v for k, v in store.data.items() if k.startswith("budget:")]
    assert "spent" not in stored[0] and "remaining" not in stored[0]


def test_update_and_delete_budget(client, url, alice, bob):
    b = client.post(url("/budgets"), json={"category": "Food", "amount": 100}, headers=alice).json()
    updated = client.put(url(f"/budgets/{b['id']}"), json={"category": "Food", "amount": "150", "period": "weekly"},
                         headers=alice).json()
    assert (updated["amount"], updated["period"], updated["createdAt"]) == (150, "weekly", b["createdAt"])

    resp = client.put(url(f"/budgets/{b['id']}"), json={"category": "Food", "amount": 1}, headers=bob)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Budget not found"}
    assert client.delete(url(f"/budgets/{b['id']}"), headers=bob).status_code == 404

    assert client.delete(url(f"/budgets/{b['id']}"), headers=alice).json() == {"success": True}
    assert client.get(url("/budgets"), headers=alice).json() == []


def test_rejects_unknown_period(client, url, alice):
    resp = client.post(url("/budgets"), json={"category": "Food", "amount": 100, "period": "yearly"}, headers=alice)
    assert resp.status_code == 400


def test_summary(client, url, alice):
    client.post(url("/budgets"), json={"category": "Food", "amount": 100}, headers=alice)
    client.post(url("/transactions"), json=expense(90), headers=alice)
    client.post(url("/transactions"), json=income(300), headers=alice)
    s = client.get(url("/summary"), headers=alice).json()
    assert (s["totalIncome"], s["totalExpenses"], s["balance"]) == (300, 90, 210)
    assert s["budgets"][0]["status"] == "warning"
    assert s["totalRemaining"] == 10


def test_categories_vocabulary(client, url):
    cats = client.get(url("/categories")).json()
    assert "Food" in cats["expense"]
    assert "Salary" in cats["income"]
