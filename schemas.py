"""
Request schemas for the Personal Finance Tracker API

Stored entities are plain dicts built from these models (see main.py); the
models only validate and coerce incoming bodies. Categories are free-form:
CATEGORIES is the vocabulary offered to clients, never enforced.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal

CATEGORIES = {
    "income": ["Salary", "Freelance", "Investment", "Business", "Gift", "Other"],
    "expense": ["Food", "Transportation", "Housing", "Healthcare", "Entertainment", "Shopping", "Utilities", "Other"],
}


class Transaction(BaseModel):
    """
    Ledger entry
    Key: "transaction:<userId>:<id>"
    """
    amount: float = Field(..., description="Amount, stored as given; direction comes from type")
    type: Literal["income", "expense"] = Field(..., description="Transaction direction")
    category: str = Field(..., description="Category (e.g., Food, Salary)")
    description: str = Field("", description="Free text")
    date: str = Field(..., description="ISO date string, e.g., 2025-01-31")


class Budget(BaseModel):
    """
    Category spending limit
    Key: "budget:<userId>:<id>"
    """
    category: str = Field(..., description="Budget category")
    amount: float = Field(..., description="Spending limit")
    period: Literal["monthly", "weekly"] = Field("monthly", description="Budget period (informational)")


class ImportedTransaction(Transaction):
    createdAt: Optional[str] = None


class ImportedBudget(Budget):
    createdAt: Optional[str] = None


class ImportRequest(BaseModel):
    transactions: List[ImportedTransaction] = Field(default_factory=list)
    budgets: List[ImportedBudget] = Field(default_factory=list)


class SignupRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None
