import json

import pytest

from storage.file_handle import LocalTextFile
from storage.json_store import JsonFileStore, MemoryStore, StoreFormatError


def test_missing_file_reads_as_empty(tmp_path):
    store = JsonFileStore(tmp_path / "absent.json")
    assert store.get("linkTree") is None
    assert store.get("linkTree", default=[]) == []


def test_set_and_get(tmp_path):
    path = tmp_path / "nested" / "store.json"
    store = JsonFileStore(path)
    store.set("linkTree", [{"type": "folder", "title": "Ünïcode 📁"}])
    store.set("other", {"a": 1})
    assert store.get("linkTree") == [{"type": "folder", "title": "Ünïcode 📁"}]
    assert json.loads(path.read_text(encoding="utf-8"))["other"] == {"a": 1}


def test_no_temporary_files_left_behind(tmp_path):
    store = JsonFileStore(tmp_path / "store.json")
    store.set("k", 1)
    store.set("k", 2)
    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


def test_blank_file_reads_as_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("  \n")
    assert JsonFileStore(path).get("k") is None


@pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
def test_unparseable_content_is_refused_and_kept(tmp_path, content):
    path = tmp_path / "store.json"
    path.write_text(content)
    store = JsonFileStore(path)
    with pytest.raises(StoreFormatError):
        store.get("k")
    with pytest.raises(StoreFormatError):
        store.set("k", 1)
    assert path.read_text() == content


def test_memory_store_copies_values():
    value = [{"title": "a"}]
    store = MemoryStore()
    store.set("k", value)
    value[0]["title"] = "changed"
    assert store.get("k") == [{"title": "a"}]
    store.get("k")[0]["title"] = "changed again"
    assert store.get("k") == [{"title": "a"}]


def test_local_text_file(tmp_path):
    handle = LocalTextFile(tmp_path / "dir" / "forest.json")
    assert handle.read_text() == ""
    handle.write_text("📁 hi")
    assert handle.read_text() == "📁 hi"
    assert handle.name == "forest.json"
