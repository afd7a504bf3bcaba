import json

from app.services.fault_cache import FaultCache


def test_add_load_and_replace(tmp_path, make_event):
    cache = FaultCache(tmp_path / "nested" / "cuts.json")
    cache.add(make_event("sjc1-1"))
    cache.add(make_event("sjc1-2"))
    cache.add(make_event("sjc1-1", distance_km=7.5))

    events = {e.id: e for e in cache.load()}

    assert set(events) == {"sjc1-1", "sjc1-2"}
    assert events["sjc1-1"].distance_km == 7.5


def test_remove_and_clear(tmp_path, make_event):
    cache = FaultCache(tmp_path / "cuts.json")
    cache.add(make_event("sjc1-1"))
    cache.add(make_event("sjc1-2"))

    cache.remove("sjc1-1")
    assert [e.id for e in cache.load()] == ["sjc1-2"]

    cache.clear()
    assert cache.load() == []


def test_other_keys_in_the_file_are_preserved(tmp_path, make_event):
    path = tmp_path / "cuts.json"
    path.write_text(json.dumps({"settings": {"theme": "dark"}}))

    cache = FaultCache(path, key="cableCuts")
    cache.add(make_event())
    cache.clear()

    assert json.loads(path.read_text()) == {"settings": {"theme": "dark"}}


def test_unreadable_or_invalid_content_loads_as_empty(tmp_path):
    path = tmp_path / "cuts.json"
    path.write_text("{not json")
    assert FaultCache(path).load() == []

    path.write_text(json.dumps({"cableCuts": [{"id": ""}, {"nope": 1}]}))
    assert FaultCache(path).load() == []
