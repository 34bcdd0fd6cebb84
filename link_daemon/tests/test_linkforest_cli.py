import json

import pytest
from typer.testing import CliRunner

from link_daemon.cli import app

runner = CliRunner()


@pytest.fixture
def config(tmp_path):
    """Config file pointing the CLI at a store and log inside tmp_path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        f"store_path: {tmp_path / 'store.json'}\n"
        f"log_file: {tmp_path / 'log.txt'}\n"
    )
    return cfg


def _store(tmp_path):
    return json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))


def _invoke(config, *args, **kwargs):
    result = runner.invoke(app, ["--config", str(config), *args], **kwargs)
    print(result.output)
    return result


def test_help():
    """Test the help command displays usage information."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_add_folder_and_link_are_committed(config, tmp_path):
    result = _invoke(config, "add-folder", "Work")
    assert result.exit_code == 0
    assert "Added folder" in result.output
    work_id = _store(tmp_path)["linkTree"][0]["id"]

    result = _invoke(config, "add-link", work_id, "Mail", "https://mail.example")
    assert result.exit_code == 0
    data = _store(tmp_path)
    assert data["linkTree"][0]["links"][0]["url"] == "https://mail.example"
    # the state before the last save is the backup
    assert data["linkTree_backup"][0]["links"] == []


def test_invalid_url_only_warns(config, tmp_path):
    _invoke(config, "add-folder", "Work")
    work_id = _store(tmp_path)["linkTree"][0]["id"]
    result = _invoke(config, "add-link", work_id, "Odd", "not a url")
    assert result.exit_code == 0
    assert "does not look like a valid URL" in result.output
    assert _store(tmp_path)["linkTree"][0]["links"][0]["url"] == "not a url"


def test_missing_id_is_not_an_error(config):
    result = _invoke(config, "rename", "nope", "Title")
    assert result.exit_code == 0
    assert "Nothing changed" in result.output


def test_show_and_search(config, tmp_path):
    _invoke(config, "add-folder", "Work")
    _invoke(config, "add-folder", "Home")
    work_id = _store(tmp_path)["linkTree"][0]["id"]
    _invoke(config, "add-link", work_id, "Mail", "https://mail.example")
    result = _invoke(config, "show")
    assert result.exit_code == 0
    assert "Work" in result.output and "Home" in result.output
    result = _invoke(config, "show", "--query", "mail")
    assert "Work" in result.output
    assert "Home" not in result.output
    result = _invoke(config, "show", "-q", "zzz")
    assert "No matches." in result.output


def test_delete_sort_prune_and_restore(config, tmp_path):
    for title in ("beta", "Alpha"):
        _invoke(config, "add-folder", title)
    beta_id = _store(tmp_path)["linkTree"][0]["id"]
    _invoke(config, "add-link", beta_id, "Site", "https://site.example")

    assert _invoke(config, "sort").exit_code == 0
    assert [n["title"] for n in _store(tmp_path)["linkTree"]] == ["Alpha", "beta"]

    assert _invoke(config, "prune").exit_code == 0
    assert [n["title"] for n in _store(tmp_path)["linkTree"]] == ["beta"]

    assert _invoke(config, "delete", beta_id, "--yes").exit_code == 0
    assert _store(tmp_path)["linkTree"] == []

    result = _invoke(config, "restore", "--yes")
    assert result.exit_code == 0
    assert [n["title"] for n in _store(tmp_path)["linkTree"]] == ["beta"]


def test_delete_folder_asks_for_confirmation(config, tmp_path):
    _invoke(config, "add-folder", "Work")
    work_id = _store(tmp_path)["linkTree"][0]["id"]
    result = _invoke(config, "delete", work_id, input="n\n")
    assert result.exit_code != 0
    assert len(_store(tmp_path)["linkTree"]) == 1


def test_move_and_relocate(config, tmp_path):
    _invoke(config, "add-folder", "A")
    _invoke(config, "add-folder", "B")
    a_id, b_id = [n["id"] for n in _store(tmp_path)["linkTree"]]
    assert _invoke(config, "move", b_id, "--up").exit_code == 0
    assert [n["id"] for n in _store(tmp_path)["linkTree"]] == [b_id, a_id]
    assert "cannot move further" in _invoke(config, "move", b_id, "--up").output

    assert _invoke(config, "relocate", a_id, b_id).exit_code == 0
    tree = _store(tmp_path)["linkTree"]
    assert tree[0]["children"][0]["id"] == a_id

    result = _invoke(config, "relocate", b_id, a_id)
    assert result.exit_code == 1
    assert _store(tmp_path)["linkTree"][0]["children"][0]["id"] == a_id

    assert _invoke(config, "relocate", a_id, "root").exit_code == 0
    assert [n["id"] for n in _store(tmp_path)["linkTree"]] == [b_id, a_id]


def test_text_export_and_import(config, tmp_path):
    _invoke(config, "add-folder", "Work")
    work_id = _store(tmp_path)["linkTree"][0]["id"]
    _invoke(config, "add-link", work_id, "Mail", "https://mail.example")
    result = _invoke(config, "export-text")
    assert "=== LINK TREE ===" in result.output

    out = tmp_path / "export.txt"
    assert _invoke(config, "export-text", str(out)).exit_code == 0
    assert out.read_text(encoding="utf-8") == "=== LINK TREE ===\n\n📁 Work\n  🔗 Mail\n     https://mail.example\n"

    other = tmp_path / "other.txt"
    other.write_text("📁 Imported\n  🔗 Site\n     https://site.example\n", encoding="utf-8")
    assert _invoke(config, "import-text", str(other)).exit_code == 0
    tree = _store(tmp_path)["linkTree"]
    assert [n["title"] for n in tree] == ["Imported"]
    assert tree[0]["links"][0]["url"] == "https://site.example"


def test_json_export_and_import(config, tmp_path):
    data = tmp_path / "in.json"
    data.write_text(json.dumps([{"type": "folder", "id": "keep", "title": "J"}, 5]), encoding="utf-8")
    assert _invoke(config, "import-json", str(data)).exit_code == 0
    assert _store(tmp_path)["linkTree"][0]["id"] == "keep"

    out = tmp_path / "out.json"
    assert _invoke(config, "export-json", str(out)).exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8"))[0]["title"] == "J"

    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    assert _invoke(config, "import-json", str(bad)).exit_code == 1


def test_status_reports_counts(config, tmp_path):
    _invoke(config, "add-folder", "Work")
    result = _invoke(config, "status")
    assert result.exit_code == 0
    data = json.loads(result.output.strip().splitlines()[-1])
    assert data["roots"] == 1
    assert data["folders"] == 1
    assert data["backup_roots"] == 0


def test_restore_without_backup(config):
    result = _invoke(config, "restore", "--yes")
    assert result.exit_code == 0
    assert "No backup available." in result.output


def test_bad_config_exits(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("log_level: loud\n")
    result = runner.invoke(app, ["--config", str(cfg), "status"])
    assert result.exit_code == 2


def test_corrupt_store_is_not_overwritten(config, tmp_path):
    store = tmp_path / "store.json"
    store.write_text('{"linkTree": [{"type": "folder", "title": "Precious"}', encoding="utf-8")
    result = _invoke(config, "add-folder", "New")
    assert result.exit_code == 1
    assert store.read_text(encoding="utf-8") == '{"linkTree": [{"type": "folder", "title": "Precious"}'
