"""
Budget spending and dashboard figures

Spending is always derived from the live transaction list; nothing here is
persisted. The aggregation is all-time: a budget's ``period`` is recorded but
does not bound the window.
"""

import logging
from typing import Dict, List

import keyspace
from database import StorageError

logger = logging.getLogger(__name__)

WARNING_PERCENT = 80
EXCEEDED_PERCENT = 100
RECENT_LIMIT = 5


def category_spending(transactions: List[dict], category: str) -> float:
    return sum(
        t.get("amount", 0) for t in transactions
        if t.get("type") == "expense" and t.get("category") == category
    )


def with_spending(budgets: List[dict], transactions: List[dict]) -> List[dict]:
    enriched = []
    for b in budgets:
        spent = category_spending(transactions, b.get("category"))
        enriched.append({**b, "spent": spent, "remaining": b.get("amount", 0) - spent})
    return enriched


def budget_status(budget: dict) -> dict:
    amount = budget.get("amount", 0)
    spent = budget.get("spent", 0)
    if amount > 0:
        percent = spent / amount * 100
    else:
        percent = EXCEEDED_PERCENT if spent > 0 else 0

    if percent >= EXCEEDED_PERCENT:
        status = "exceeded"
    elif percent >= WARNING_PERCENT:
        status = "warning"
    else:
        status = "good"
    return {"percentageSpent": round(percent, 1), "status": status}


def summarize(transactions: List[dict], budgets: List[dict]) -> dict:
    """Dashboard totals over a user's transactions and already-enriched budgets."""
    total_income = sum(t.get("amount", 0) for t in transactions if t.get("type") == "income")
    total_expense = sum(t.get("amount", 0) for t in transactions if t.get("type") == "expense")

    by_category: Dict[str, float] = {}
    monthly: Dict[str, dict] = {}
    for t in transactions:
        amount = t.get("amount", 0)
        if t.get("type") == "expense":
            cat = t.get("category") or "Other"
            by_category[cat] = by_category.get(cat, 0) + amount
        month = str(t.get("date") or "")[:7]
        if not month:
            continue
        entry = monthly.setdefault(month, {"month": month, "income": 0, "expenses": 0})
        if t.get("type") == "income":
            entry["income"] += amount
        elif t.get("type") == "expense":
            entry["expenses"] += amount

    recent = sorted(transactions, key=lambda t: str(t.get("date") or ""), reverse=True)[:RECENT_LIMIT]

    total_budget = sum(b.get("amount", 0) for b in budgets)
    total_spent = sum(b.get("spent", 0) for b in budgets)

    return {
        "totalIncome": total_income,
        "totalExpenses": total_expense,
        "balance": total_income - total_expense,
        "transactionCount": len(transactions),
        "categoryBreakdown": [{"name": k, "value": v} for k, v in by_category.items()],
        "monthly": [monthly[m] for m in sorted(monthly)],
        "recentTransactions": recent,
        "budgets": [{**b, **budget_status(b)} for b in budgets],
        "totalBudget": total_budget,
        "totalSpent": total_spent,
        "totalRemaining": total_budget - total_spent,
    }


def notify_budget_spending(store, user_id: str, category: str) -> None:
    """Hook run after an expense changes. Spending is derived on read, so nothing is written."""
    try:
        budgets = store.get_by_prefix(keyspace.make_prefix(keyspace.BUDGET, user_id))
        budget = next((b for b in budgets if b.get("category") == category), None)
        if budget is None:
            return
        transactions = store.get_by_prefix(keyspace.make_prefix(keyspace.TRANSACTION, user_id))
        spent = category_spending(transactions, category)
        if spent > budget.get("amount", 0):
            logger.info("Budget %s for %s exceeded: spent %.2f of %.2f",
                        budget.get("id"), category, spent, budget.get("amount", 0))
    except StorageError:
        logger.exception("Error updating budget spending")
