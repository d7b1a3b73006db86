"""Request bodies shared by the API tests."""


def expense(amount, category="Food", date="2025-01-15", description="groceries"):
    return {"amount": amount, "type": "expense", "category": category, "description": description, "date": date}


def income(amount, category="Salary", date="2025-01-01", description="pay"):
    return {"amount": amount, "type": "income", "category": category, "description": description, "date": date}
