"""
Storage key convention

Every entity lives under ``kind:userId:entityId``. Scanning ``kind:userId:``
returns exactly that user's entities of that kind.
"""

import secrets

TRANSACTION = "transaction"
BUDGET = "budget"
KINDS = (TRANSACTION, BUDGET)

SEPARATOR = ":"


def _check(kind: str, user_id: str):
    if kind not in KINDS:
        raise ValueError(f"Unknown entity kind: {kind!r}")
    if not user_id:
        raise ValueError("user_id is required")
    if SEPARATOR in user_id:
        raise ValueError(f"user_id may not contain {SEPARATOR!r}")


def make_prefix(kind: str, user_id: str) -> str:
    _check(kind, user_id)
    # trailing separator keeps user "ab" from matching user "abc"
    return f"{kind}{SEPARATOR}{user_id}{SEPARATOR}"


def make_key(kind: str, user_id: str, entity_id: str) -> str:
    if not entity_id:
        raise ValueError("entity_id is required")
    return make_prefix(kind, user_id) + entity_id


def generate_id() -> str:
    """128-bit random identifier as 32 hex characters."""
    return secrets.token_hex(16)
