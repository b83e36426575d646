"""Run-scoped lookup tables: folder path -> item id, and asset references -> URL."""

from collections import defaultdict

from ..core.model import ItemId
from ..core.utils import (
    DEFAULT_PLACEHOLDER_TITLE,
    collapse_slashes,
    directory_path,
    file_name,
    normalize_title,
    strip_extension,
    to_posix,
)


class PathIndex:
    """
    Maps the folder a page's children live in to the page's item id.

    The legacy exporter writes a page as `dir/Page <hex id>.md` and its
    children under `dir/Page <hex id>/...`; some tools drop the hex id from
    the folder name, so both spellings are registered.
    """

    def __init__(self) -> None:
        self._paths: dict[str, ItemId] = {}

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def get(self, path: str) -> ItemId | None:
        return self._paths.get(path)

    def keys(self) -> list[str]:
        return list(self._paths)

    def register(self, document_path: str, item_id: ItemId, placeholder: str = DEFAULT_PLACEHOLDER_TITLE) -> list[str]:
        """Register the folder spellings for a document; returns the keys added."""
        normalized = to_posix(document_path)
        folder = directory_path(normalized)
        stem = strip_extension(file_name(normalized))
        title = normalize_title(stem, placeholder)

        keys = [
            collapse_slashes(f"{folder}/{stem}"),
            collapse_slashes(f"{folder}/{title}"),
        ]
        for key in keys:
            self._paths[key] = item_id
        return keys

    def register_folder(self, folder: str, item_id: ItemId) -> None:
        self._paths[collapse_slashes(to_posix(folder))] = item_id

    def find_parent(self, document_path: str) -> ItemId | None:
        """Walk up the document's folders to the nearest registered one."""
        folder = directory_path(to_posix(document_path))
        while folder:
            found = self._paths.get(folder)
            if found is not None:
                return found
            folder = directory_path(folder)
        return None

    def best_match(self, path: str) -> ItemId | None:
        """Item whose folder is the longest strict prefix of `path`."""
        normalized = to_posix(path)
        best: str | None = None
        for key in self._paths:
            if normalized.startswith(key + "/") and (best is None or len(key) > len(best)):
                best = key
        return None if best is None else self._paths[best]


class RewriteMap:
    """
    Per item: every spelling a document may use for an attachment
    (`name`, `./name`, full archive path) -> served URL.
    """

    def __init__(self) -> None:
        self._by_item: dict[ItemId, dict[str, str]] = defaultdict(dict)

    def register(self, item_id: ItemId, entry_path: str, url: str) -> None:
        normalized = to_posix(entry_path)
        name = file_name(normalized)
        refs = self._by_item[item_id]
        refs[name] = url
        refs[f"./{name}"] = url
        refs[normalized] = url

    def items(self) -> list[tuple[ItemId, dict[str, str]]]:
        return [(item_id, refs) for item_id, refs in self._by_item.items() if refs]

    def for_item(self, item_id: ItemId) -> dict[str, str]:
        return dict(self._by_item.get(item_id, {}))

    @staticmethod
    def resolve(reference: str, refs: dict[str, str]) -> str | None:
        """Exact path first, then bare file name, then `./name`."""
        if not reference or not reference.strip():
            return None
        normalized = to_posix(reference)
        if normalized in refs:
            return refs[normalized]
        name = file_name(normalized)
        if name in refs:
            return refs[name]
        return refs.get(f"./{name}")
