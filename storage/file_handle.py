from pathlib import Path

from storage.storage_interface import TextFileHandle


class LocalTextFile(TextFileHandle):
    """A UTF-8 text file on the local filesystem."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    @property
    def name(self) -> str:
        return self.path.name

    def read_text(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def write_text(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")
