from models import default_preferences, default_request
from pool import WaitingPool


def request(identity, now=0.0, gender=None):
    return default_request(identity, None, default_preferences(gender=gender), now)


def test_enqueue_replaces_existing_entry_for_identity():
    pool = WaitingPool()
    pool.enqueue(request("a", now=1.0))
    pool.enqueue(request("b"))
    pool.enqueue(request("a", now=2.0))

    assert len(pool) == 2
    assert [r["identity"] for r in pool] == ["b", "a"]
    assert pool.get("a")["enqueued_at"] == 2.0


def test_take_first_matching_scans_in_insertion_order():
    pool = WaitingPool()
    pool.enqueue(request("a", gender="male"))
    pool.enqueue(request("b", gender="female"))
    pool.enqueue(request("c", gender="female"))

    taken = pool.take_first_matching(lambda r: r["preferences"]["gender"] == "female")

    assert taken["identity"] == "b"
    assert "b" not in pool
    assert [r["identity"] for r in pool] == ["a", "c"]


def test_take_first_matching_returns_none_and_keeps_entries():
    pool = WaitingPool()
    pool.enqueue(request("a"))

    assert pool.take_first_matching(lambda r: False) is None
    assert "a" in pool


def test_remove_by_identity():
    pool = WaitingPool()
    pool.enqueue(request("a"))

    assert pool.remove_by_identity("a")["identity"] == "a"
    assert pool.remove_by_identity("a") is None
    assert len(pool) == 0
