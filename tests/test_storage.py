import json

from finance_tracker.storage import LocalStore, quota_from_env


def test_save_then_load_round_trip(store):
    value = {"a": [1, 2.5, "x", None, True], "b": {"nested": []}}
    assert store.save("k", value) is True
    assert store.load("k", None) == value


def test_load_missing_key_returns_default(store):
    assert store.load("missing", 42) == 42


def test_load_without_file_returns_default(tmp_path):
    store = LocalStore(str(tmp_path / "nope" / "data.json"))
    assert store.load("expenses", []) == []


def test_values_are_kept_as_json_text_per_key(store):
    store.save("totalMoney", 1000)
    store.save("expenses", [])
    with open(store.path, encoding="utf-8") as f:
        document = json.load(f)
    assert document == {"totalMoney": "1000", "expenses": "[]"}


def test_unparsable_value_falls_back_to_default(store):
    with open(store.path, "w", encoding="utf-8") as f:
        json.dump({"expenses": "{not json"}, f)
    assert store.load("expenses", []) == []


def test_corrupt_document_falls_back_to_default(store):
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("garbage")
    assert store.load("totalMoney", 0) == 0
    # a later save replaces the corrupt document
    assert store.save("totalMoney", 5) is True
    assert store.load("totalMoney", 0) == 5


def test_unserializable_value_is_not_saved(store):
    assert store.save("bad", object()) is False
    assert store.save("nan", float("nan")) is False
    assert store.load("bad", "default") == "default"


def test_remove(store):
    store.save("k", 1)
    assert store.remove("k") is True
    assert store.load("k", None) is None
    # removing an absent key is fine
    assert store.remove("k") is True


def test_unavailable_store_is_a_no_op():
    store = LocalStore(None)
    assert store.available is False
    assert store.save("k", 1) is False
    assert store.load("k", "default") == "default"
    assert store.remove("k") is False


def test_quota_exceeded_keeps_previous_value(tmp_path):
    store = LocalStore(str(tmp_path / "data.json"), quota_bytes=60)
    assert store.save("k", "small") is True
    assert store.save("k", "x" * 500) is False
    assert store.load("k", None) == "small"


def test_quota_from_env(monkeypatch):
    monkeypatch.delenv("FINANCE_TRACKER_QUOTA_BYTES", raising=False)
    assert quota_from_env() is None
    monkeypatch.setenv("FINANCE_TRACKER_QUOTA_BYTES", "2048")
    assert quota_from_env() == 2048
    monkeypatch.setenv("FINANCE_TRACKER_QUOTA_BYTES", "lots")
    assert quota_from_env() is None
