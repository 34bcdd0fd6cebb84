"""Link forest engine: folders of links edited as a draft and committed with a backup."""

from .backup import TreeRepository
from .config import Settings, load_settings
from .errors import ConfigError, CycleError, LinkForestError, PersistenceError
from .models import FolderNode, LinkEntry, Tree, clone_tree, dump_tree, is_valid_url, trees_equal
from .normalize import normalize_tree
from .search import filter_tree
from .session import EditSession
from .text_codec import decode_text, encode_text

__all__ = [
    "ConfigError",
    "CycleError",
    "EditSession",
    "FolderNode",
    "LinkEntry",
    "LinkForestError",
    "PersistenceError",
    "Settings",
    "Tree",
    "TreeRepository",
    "clone_tree",
    "decode_text",
    "dump_tree",
    "encode_text",
    "filter_tree",
    "is_valid_url",
    "load_settings",
    "normalize_tree",
    "trees_equal",
]
