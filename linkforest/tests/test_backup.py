import pytest

from linkforest.backup import BACKUP_KEY, STORAGE_KEY, TreeRepository
from linkforest.errors import PersistenceError
from linkforest.models import FolderNode
from storage.file_handle import LocalTextFile
from storage.json_store import JsonFileStore, MemoryStore


def test_persist_rotates_single_backup_generation():
    store = MemoryStore()
    repo = TreeRepository(store)
    repo.persist([FolderNode(id="a", title="A")])
    assert store.get(BACKUP_KEY) == []
    repo.persist([FolderNode(id="b", title="B")])
    repo.persist([FolderNode(id="c", title="C")])
    assert [n.id for n in repo.load_backup()] == ["b"]
    assert [n.id for n in repo.load()] == ["c"]


def test_overwrite_without_backup_keeps_backup_slot():
    store = MemoryStore({STORAGE_KEY: [{"type": "folder", "id": "old"}]})
    repo = TreeRepository(store)
    repo.overwrite_without_backup([FolderNode(id="new")])
    assert store.get(BACKUP_KEY) is None
    assert [n.id for n in repo.load()] == ["new"]


def test_custom_keys():
    store = MemoryStore()
    repo = TreeRepository(store, primary_key="p", backup_key="b")
    repo.persist([FolderNode(id="x")])
    assert store.get("p")[0]["id"] == "x"
    assert store.get("b") == []


def test_json_file_store_round_trip(tmp_path):
    repo = TreeRepository(JsonFileStore(tmp_path / "store.json"))
    repo.persist([FolderNode(id="x", title="X")])
    again = TreeRepository(JsonFileStore(tmp_path / "store.json"))
    assert [n.title for n in again.load()] == ["X"]


def test_corrupt_bound_file_is_refused(tmp_path):
    path = tmp_path / "forest.json"
    path.write_text("{not json")
    repo = TreeRepository(MemoryStore(), file_handle=LocalTextFile(path))
    with pytest.raises(PersistenceError):
        repo.load()
    assert path.read_text() == "{not json"


def test_corrupt_store_file_is_refused_and_untouched(tmp_path):
    path = tmp_path / "store.json"
    truncated = '{"linkTree": [{"type": "folder", "id": "a", "title": "Precious"}], "linkTree_backup": ['
    path.write_text(truncated, encoding="utf-8")
    repo = TreeRepository(JsonFileStore(path))
    with pytest.raises(PersistenceError):
        repo.load()
    with pytest.raises(PersistenceError):
        repo.persist([FolderNode(id="n", title="New")])
    assert path.read_text(encoding="utf-8") == truncated


def test_bind_and_unbind_file(tmp_path):
    store = MemoryStore()
    repo = TreeRepository(store)
    repo.bind_file(LocalTextFile(tmp_path / "forest.json"))
    repo.persist([FolderNode(id="f", title="Filed")])
    assert store.get(STORAGE_KEY) is None
    repo.bind_file(None)
    assert repo.load() == []
    repo.bind_file(LocalTextFile(tmp_path / "forest.json"))
    assert [n.id for n in repo.load()] == ["f"]
