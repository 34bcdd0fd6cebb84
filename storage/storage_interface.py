from typing import Any, Protocol


class KeyValueStore(Protocol):
    """
    Protocol for the key-value backend holding the persisted forest.
    Values are plain JSON-compatible data (lists, dicts, strings).
    Implementations raise OSError (or a subclass) when the backend fails.
    Examples:
        store.set("linkTree", [{"type": "folder", "title": "Work"}])
        store.get("linkTree")            # [{"type": "folder", ...}]
        store.get("missing", default=[])  # []
    """

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...


class TextFileHandle(Protocol):
    """
    Protocol for an external text file the forest can be bound to.
    When bound, saves go to this handle instead of the key-value store.
    """

    @property
    def name(self) -> str: ...
    def read_text(self) -> str: ...
    def write_text(self, text: str) -> None: ...
