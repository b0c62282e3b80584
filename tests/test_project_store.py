import random

from promptsite import store as store_mod
from promptsite.store import MemoryProjectStore, utc_now_iso


def test_save_then_get_round_trips_content():
    s = MemoryProjectStore()
    s.save("p1", {"id": "p1", "content": "<html>é</html>"})
    assert s.get("p1")["content"] == "<html>é</html>"
    assert s.exists("p1")
    assert len(s) == 1


def test_get_unknown_returns_none():
    assert MemoryProjectStore().get("missing") is None


def test_stored_record_is_isolated_from_caller_mutation():
    s = MemoryProjectStore()
    record = {"id": "p1", "content": "a", "stats": {"imageCount": 0}}
    s.save("p1", record)
    record["content"] = "b"
    record["stats"]["imageCount"] = 9
    fetched = s.get("p1")
    fetched["content"] = "c"
    assert s.get("p1") == {"id": "p1", "content": "a", "stats": {"imageCount": 0}}


def test_save_appends_create_then_update():
    s = MemoryProjectStore()
    s.save("p1", {"content": "a"})
    s.save("p1", {"content": "b"})
    assert [e.type for e in s.events()] == ["update", "create"]


def test_delete_present_and_absent():
    s = MemoryProjectStore()
    s.save("p1", {"content": "a"})
    assert s.delete("p1") is True
    assert s.exists("p1") is False
    before = len(s.events())
    assert s.delete("p1") is False
    assert s.delete("never-existed") is False
    assert len(s.events()) == before


def test_id_can_be_reused_after_delete():
    s = MemoryProjectStore()
    s.save("p1", {"content": "a"})
    s.delete("p1")
    s.save("p1", {"content": "b"})
    assert [e.type for e in s.events()] == ["create", "delete", "create"]


def test_events_respect_limit_and_order_for_random_interleavings():
    rng = random.Random(7)
    s = MemoryProjectStore()
    ids = ["a", "b", "c"]
    for _ in range(60):
        pid = rng.choice(ids)
        if rng.random() < 0.3:
            s.delete(pid)
        else:
            s.save(pid, {"content": str(rng.random())})
    for limit in (0, 1, 5, 1000):
        events = s.events(limit)
        assert len(events) <= limit
        keys = [(e.timestamp, e.seq) for e in events]
        assert keys == sorted(keys, reverse=True)


def test_events_with_non_positive_limit_are_empty():
    s = MemoryProjectStore()
    s.save("p1", {})
    assert s.events(0) == []
    assert s.events(-3) == []


def test_event_wire_shape():
    s = MemoryProjectStore()
    s.save("p1", {})
    event = s.events(1)[0].to_dict()
    assert set(event) == {"id", "type", "timestamp"}
    assert event["id"] == "p1" and event["type"] == "create"
    assert event["timestamp"].endswith("Z")


def test_list_returns_insertion_order():
    s = MemoryProjectStore()
    for pid in ("x", "y", "z"):
        s.save(pid, {"id": pid})
    s.save("x", {"id": "x", "content": "new"})
    assert [r["id"] for r in s.list()] == ["x", "y", "z"]


def test_reset_replaces_default_store():
    store_mod.get_store().save("p1", {})
    store_mod._reset()
    assert store_mod.get_store().exists("p1") is False


def test_timestamps_have_millisecond_precision():
    ts = utc_now_iso()
    assert ts.endswith("Z")
    assert len(ts.split(".")[1]) == 4  # "123Z"
