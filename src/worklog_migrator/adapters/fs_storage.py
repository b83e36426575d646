from pathlib import Path

from ..core.ports import BlobStorage
from ..core.utils import extension
from .idgen import HexId


class FsBlobStorage(BlobStorage):
    """
    Flat store: one directory, files named <random hex>.<original ext>.
    """

    def __init__(self, root: Path, allowed_mime: frozenset[str] | None = None):
        self.root = root
        self.allowed_mime = allowed_mime or None
        self._ids = HexId(nbytes=16)

    def _path(self, stored_name: str) -> Path:
        base = self.root.resolve()
        target = (base / stored_name).resolve()
        if target.parent != base:
            raise ValueError(f"Invalid stored name: {stored_name}")
        return target

    def store(self, original_name: str, mime_type: str, data: bytes) -> str:
        if not data:
            raise ValueError("Refusing to store an empty file")
        if self.allowed_mime is not None and mime_type not in self.allowed_mime:
            raise ValueError(f"MIME type not allowed: {mime_type}")

        ext = extension(original_name or "file")
        stored_name = self._ids.new_id() + (f".{ext}" if ext else "")
        self.root.mkdir(parents=True, exist_ok=True)

        # Write atomically via temp file
        target = self._path(stored_name)
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(target)
        return stored_name

    def load(self, stored_name: str) -> bytes:
        target = self._path(stored_name)
        if not target.is_file():
            raise FileNotFoundError(f"Stored file not found: {stored_name}")
        return target.read_bytes()
