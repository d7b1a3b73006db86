import pytest

import keyspace


def test_key_layout():
    assert keyspace.make_key("transaction", "u1", "abc") == "transaction:u1:abc"
    assert keyspace.make_prefix("budget", "u1") == "budget:u1:"


def test_key_starts_with_its_prefix():
    key = keyspace.make_key(keyspace.BUDGET, "u1", keyspace.generate_id())
    assert key.startswith(keyspace.make_prefix(keyspace.BUDGET, "u1"))


def test_prefix_does_not_cover_longer_user_id():
    key = keyspace.make_key(keyspace.TRANSACTION, "abc", "x")
    assert not key.startswith(keyspace.make_prefix(keyspace.TRANSACTION, "ab"))


def test_kinds_do_not_collide():
    assert keyspace.make_key("transaction", "u", "1") != keyspace.make_key("budget", "u", "1")


@pytest.mark.parametrize("kind,user_id", [("account", "u1"), ("transaction", ""), ("budget", "a:b")])
def test_rejects_bad_parts(kind, user_id):
    with pytest.raises(ValueError):
        keyspace.make_prefix(kind, user_id)


def test_rejects_empty_entity_id():
    with pytest.raises(ValueError):
        keyspace.make_key("transaction", "u1", "")


def test_generated_ids_are_128_bit_hex():
    ids = {keyspace.generate_id() for _ in range(1000)}
    assert len(ids) == 1000
    for i in ids:
        assert len(i) == 32
        int(i, 16)
