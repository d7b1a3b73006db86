import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

import budgets
import config
import keyspace
from database import KeyValueStore, StorageError
from errors import register_error_handlers
from identity import IdentityError, IdentityProvider
from schemas import CATEGORIES, Budget, ImportRequest, SignupRequest, Transaction

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"

router = APIRouter()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Dependencies ---
def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def current_user(authorization: Optional[str] = Header(None),
                 identity: IdentityProvider = Depends(get_identity)) -> str:
    token = None
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            token = value.strip()
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return identity.verify_token(token)
    except IdentityError as e:
        logger.info("Authentication error while getting user ID: %s", e)
        raise HTTPException(status_code=401, detail="Unauthorized")


def _transactions_of(store, user_id):
    return store.get_by_prefix(keyspace.make_prefix(keyspace.TRANSACTION, user_id))


def _budgets_of(store, user_id):
    return store.get_by_prefix(keyspace.make_prefix(keyspace.BUDGET, user_id))


# --- Auth ---
@router.post("/signup")
def signup(body: SignupRequest, identity: IdentityProvider = Depends(get_identity)):
    try:
        user = identity.create_user(body.email, body.password, {"name": body.name})
    except IdentityError as e:
        logger.info("Signup error: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"user": user}


# --- Transactions ---
@router.get("/transactions")
def list_transactions(type_: Optional[str] = Query(None, alias="type"),
                      category: Optional[str] = None,
                      search: Optional[str] = None,
                      user_id: str = Depends(current_user),
                      store: KeyValueStore = Depends(get_store)):
    try:
        items = _transactions_of(store, user_id)
    except StorageError:
        logger.exception("Error fetching transactions")
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")

    if type_ and type_ != "all":
        items = [t for t in items if t.get("type") == type_]
    if category and category != "all":
        items = [t for t in items if t.get("category") == category]
    if search:
        needle = search.lower()
        items = [t for t in items
                 if needle in str(t.get("description", "")).lower() or needle in str(t.get("category", "")).lower()]
    return sorted(items, key=lambda t: str(t.get("date") or ""), reverse=True)


@router.post("/transactions")
def add_transaction(tx: Transaction,
                    user_id: str = Depends(current_user),
                    store: KeyValueStore = Depends(get_store)):
    transaction = {"id": keyspace.generate_id(), **tx.model_dump(), "userId": user_id, "createdAt": now_iso()}
    try:
        store.set(keyspace.make_key(keyspace.TRANSACTION, user_id, transaction["id"]), transaction)
    except StorageError:
        logger.exception("Error creating transaction")
        raise HTTPException(status_code=500, detail="Failed to create transaction")

    if tx.type == "expense":
        budgets.notify_budget_spending(store, user_id, tx.category)
    return transaction


@router.put("/transactions/{transaction_id}")
def update_transaction(transaction_id: str, tx: Transaction,
                       user_id: str = Depends(current_user),
                       store: KeyValueStore = Depends(get_store)):
    key = keyspace.make_key(keyspace.TRANSACTION, user_id, transaction_id)
    try:
        existing = store.get(key)
        if not existing:
            raise HTTPException(status_code=404, detail="Transaction not found")
        updated = {**existing, **tx.model_dump(), "updatedAt": now_iso()}
        store.set(key, updated)
    except StorageError:
        logger.exception("Error updating transaction")
        raise HTTPException(status_code=500, detail="Failed to update transaction")

    touched = {t.get("category") for t in (existing, updated) if t.get("type") == "expense"}
    for cat in touched:
        budgets.notify_budget_spending(store, user_id, cat)
    return updated


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: str,
                       user_id: str = Depends(current_user),
                       store: KeyValueStore = Depends(get_store)):
    key = keyspace.make_key(keyspace.TRANSACTION, user_id, transaction_id)
    try:
        existing = store.get(key)
        if not existing:
            raise HTTPException(status_code=404, detail="Transaction not found")
        store.delete(key)
    except StorageError:
        logger.exception("Error deleting transaction")
        raise HTTPException(status_code=500, detail="Failed to delete transaction")

    if existing.get("type") == "expense":
        budgets.notify_budget_spending(store, user_id, existing.get("category"))
    return {"success": True}


# --- Budgets ---
@router.get("/budgets")
def list_budgets(user_id: str = Depends(current_user),
                 store: KeyValueStore = Depends(get_store)):
    try:
        items = _budgets_of(store, user_id)
        transactions = _transactions_of(store, user_id)
    except StorageError:
        logger.exception("Error fetching budgets")
        raise HTTPException(status_code=500, detail="Failed to fetch budgets")
    return budgets.with_spending(items, transactions)


@router.post("/budgets")
def add_budget(b: Budget,
               user_id: str = Depends(current_user),
               store: KeyValueStore = Depends(get_store)):
    budget = {"id": keyspace.generate_id(), **b.model_dump(), "userId": user_id, "createdAt": now_iso()}
    try:
        store.set(keyspace.make_key(keyspace.BUDGET, user_id, budget["id"]), budget)
    except StorageError:
        logger.exception("Error creating budget")
        raise HTTPException(status_code=500, detail="Failed to create budget")
    return budget


@router.put("/budgets/{budget_id}")
def update_budget(budget_id: str, b: Budget,
                  user_id: str = Depends(current_user),
                  store: KeyValueStore = Depends(get_store)):
    key = keyspace.make_key(keyspace.BUDGET, user_id, budget_id)
    try:
        existing = store.get(key)
        if not existing:
            raise HTTPException(status_code=404, detail="Budget not found")
        updated = {**existing, **b.model_dump(), "updatedAt": now_iso()}
        store.set(key, updated)
    except StorageError:
        logger.exception("Error updating budget")
        raise HTTPException(status_code=500, detail="Failed to update budget")
    return updated


@router.delete("/budgets/{budget_id}")
def delete_budget(budget_id: str,
                  user_id: str = Depends(current_user),
                  store: KeyValueStore = Depends(get_store)):
    key = keyspace.make_key(keyspace.BUDGET, user_id, budget_id)
    try:
        if not store.get(key):
            raise HTTPException(status_code=404, detail="Budget not found")
        store.delete(key)
    except StorageError:
        logger.exception("Error deleting budget")
        raise HTTPException(status_code=500, detail="Failed to delete budget")
    return {"success": True}


# --- Dashboard ---
@router.get("/summary")
def summary(user_id: str = Depends(current_user),
            store: KeyValueStore = Depends(get_store)):
    try:
        transactions = _transactions_of(store, user_id)
        items = _budgets_of(store, user_id)
    except StorageError:
        logger.exception("Error building summary")
        raise HTTPException(status_code=500, detail="Failed to build summary")
    return budgets.summarize(transactions, budgets.with_spending(items, transactions))


@router.get("/categories")
def categories():
    return CATEGORIES


# --- Data management ---
@router.get("/export")
def export_data(user_id: str = Depends(current_user),
                store: KeyValueStore = Depends(get_store)):
    try:
        transactions = _transactions_of(store, user_id)
        items = _budgets_of(store, user_id)
    except StorageError:
        logger.exception("Error exporting data")
        raise HTTPException(status_code=500, detail="Failed to export data")
    return {
        "transactions": transactions,
        "budgets": items,
        "exportDate": now_iso(),
        "version": EXPORT_VERSION,
    }


def _imported(kind, user_id, item, stamp):
    data = item.model_dump()
    created = data.pop("createdAt", None) or stamp
    entity = {**data, "id": keyspace.generate_id(), "userId": user_id, "createdAt": created, "importedAt": stamp}
    return keyspace.make_key(kind, user_id, entity["id"]), entity


@router.post("/import")
def import_data(req: ImportRequest,
                user_id: str = Depends(current_user),
                store: KeyValueStore = Depends(get_store)):
    stamp = now_iso()
    items = [_imported(keyspace.TRANSACTION, user_id, tx, stamp) for tx in req.transactions]
    items += [_imported(keyspace.BUDGET, user_id, b, stamp) for b in req.budgets]
    # one key at a time: a failure midway keeps whatever was already written
    try:
        store.mset(items)
    except StorageError:
        logger.exception("Error importing %d items", len(items))
        raise HTTPException(status_code=500, detail="Failed to import data")
    return {
        "success": True,
        "imported": {"transactions": len(req.transactions), "budgets": len(req.budgets)},
    }


@router.delete("/delete-account")
def delete_account(user_id: str = Depends(current_user),
                   store: KeyValueStore = Depends(get_store)):
    # the identity record itself is left with the provider
    try:
        keys = [keyspace.make_key(keyspace.TRANSACTION, user_id, t["id"]) for t in _transactions_of(store, user_id)]
        keys += [keyspace.make_key(keyspace.BUDGET, user_id, b["id"]) for b in _budgets_of(store, user_id)]
        store.mdel(keys)
    except StorageError:
        logger.exception("Error deleting account data")
        raise HTTPException(status_code=500, detail="Failed to delete account data")
    logger.info("Deleted %d entities for user %s", len(keys), user_id)
    return {"success": True}


@router.get("/health")
def health():
    return {"status": "healthy", "timestamp": now_iso()}


def create_app(store: Optional[KeyValueStore] = None,
               identity: Optional[IdentityProvider] = None) -> FastAPI:
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if store is None:
        store = KeyValueStore.from_url(config.DATABASE_URL, config.DATABASE_NAME, config.KV_COLLECTION)
    if identity is None:
        config.check_identity_settings()
        identity = IdentityProvider(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY, config.IDENTITY_TIMEOUT)

    app = FastAPI(title="Personal Finance Tracker API")
    app.state.store = store
    app.state.identity = identity

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s %s", request.method, request.url.path, response.status_code)
        return response

    register_error_handlers(app)
    app.include_router(router, prefix=config.SERVICE_PREFIX)

    @app.get("/")
    def root():
        return {
            "status": "ok",
            "service": "Personal Finance Tracker API",
            "storage": "connected" if app.state.store.ping() else "unavailable",
        }

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=config.PORT)
