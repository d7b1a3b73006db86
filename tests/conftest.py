import pytest
from fastapi.testclient import TestClient

import config
from database import StorageError
from identity import IdentityError
from main import create_app


class InMemoryStore:
    """Dict-backed stand-in for KeyValueStore; can be told to fail after N writes or deletes."""

    def __init__(self):
        self.data = {}
        self.fail_after = None
        self.fail_deletes_after = None
        self.down = False

    def _check(self):
        if self.down:
            raise StorageError("store unavailable")

    def get(self, key):
        self._check()
        return self.data.get(key)

    def set(self, key, value):
        self._check()
        if self.fail_after is not None:
            if self.fail_after == 0:
                raise StorageError("write failed")
            self.fail_after -= 1
        self.data[key] = dict(value)

    def delete(self, key):
        self._check()
        if self.fail_deletes_after is not None:
            if self.fail_deletes_after == 0:
                raise StorageError("delete failed")
            self.fail_deletes_after -= 1
        self.data.pop(key, None)

    def get_by_prefix(self, prefix):
        self._check()
        return [dict(v) for k, v in self.data.items() if k.startswith(prefix)]

    def mset(self, items):
        n = 0
        for k, v in items:
            self.set(k, v)
            n += 1
        return n

    def mdel(self, keys):
        n = 0
        for k in keys:
            self.delete(k)
            n += 1
        return n

    def ping(self):
        return not self.down


class FakeIdentity:
    def __init__(self, tokens=None):
        self.tokens = dict(tokens or {})
        self.created = []

    def verify_token(self, token):
        if token not in self.tokens:
            raise IdentityError("invalid JWT")
        return self.tokens[token]

    def create_user(self, email, password, metadata=None):
        if any(u["email"] == email for u in self.created):
            raise IdentityError("A user with this email address has already been registered")
        user = {"id": f"user-{len(self.created) + 1}", "email": email, "user_metadata": metadata or {}}
        self.created.append(user)
        return user


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def identity():
    return FakeIdentity({"token-alice": "alice", "token-bob": "bob"})


@pytest.fixture
def client(store, identity):
    return TestClient(create_app(store=store, identity=identity))


@pytest.fixture
def url():
    return lambda path: config.SERVICE_PREFIX + path


@pytest.fixture
def alice():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob():
    return {"Authorization": "Bearer token-bob"}
