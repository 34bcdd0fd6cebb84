import itertools

from linkforest.models import FolderNode, LinkEntry, dump_tree, trees_equal
from linkforest.normalize import normalize_tree, normalize_with_report


def _counter_ids():
    counter = itertools.count(1)
    return lambda: f"gen-{next(counter)}"


RAW = [
    {
        "id": "f1",
        "type": "folder",
        "title": "Work",
        "children": [
            {"id": "f2", "type": "folder", "title": "Docs", "links": [{"id": "l2", "title": "Wiki", "url": "https://wiki.example"}]},
            {"title": "no type marker"},
            None,
        ],
        "links": [{"id": "l1", "title": "Mail", "url": "https://mail.example"}],
    },
    "not a folder",
    42,
]


def test_drops_entries_that_are_not_folders():
    tree = normalize_tree(RAW)
    assert [n.title for n in tree] == ["Work"]
    assert [c.title for c in tree[0].children] == ["Docs"]


def test_preserves_existing_ids_and_fields():
    tree = normalize_tree(RAW)
    assert tree[0].id == "f1"
    assert tree[0].links[0] == LinkEntry(id="l1", title="Mail", url="https://mail.example")
    assert tree[0].children[0].links[0].id == "l2"


def test_fills_missing_fields_with_defaults():
    raw = [{"type": "folder", "title": 7, "children": "nope", "links": [None, {"title": ["x"], "url": 3}]}]
    tree = normalize_tree(raw, id_source=_counter_ids())
    node = tree[0]
    assert node.id == "gen-1"
    assert node.title == ""
    assert node.children == []
    assert [link.model_dump() for link in node.links] == [
        {"id": "gen-2", "title": "", "url": ""},
        {"id": "gen-3", "title": "", "url": ""},
    ]


def test_non_list_input_is_an_empty_forest():
    assert normalize_tree(None) == []
    assert normalize_tree({"type": "folder"}) == []
    assert normalize_tree("text") == []


def test_is_idempotent():
    once = normalize_tree(RAW)
    twice = normalize_tree(once)
    assert trees_equal(once, twice)
    assert dump_tree(normalize_tree(dump_tree(once))) == dump_tree(once)


def test_duplicate_ids_are_reissued():
    raw = [
        {"id": "same", "type": "folder", "links": [{"id": "same"}]},
        {"id": "same", "type": "folder"},
    ]
    tree = normalize_tree(raw, id_source=_counter_ids())
    ids = [tree[0].id, tree[0].links[0].id, tree[1].id]
    assert ids[0] == "same"
    assert len(set(ids)) == 3


def test_report_counts_dropped_folders():
    report = normalize_with_report(RAW)
    assert report.dropped_folders == 4
    assert len(report.tree) == 1


def test_accepts_models_as_input():
    tree = [FolderNode(id="a", title="A", links=[LinkEntry(id="b", title="B")])]
    assert trees_equal(normalize_tree(tree), tree)
