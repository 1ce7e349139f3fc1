# services/api/core/folder_index.py
"""
Flat, sorted catalog of bridge spreadsheets under a folder tree, plus
get-or-create of named subfolders.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional, Set, Tuple

import icu

from adapters.base import DocumentInfo, FolderInfo, FolderProvider
from core.config import require_root_folder_id

logger = logging.getLogger(__name__)

LAST_UPDATED_FORMAT = "%Y/%m/%d %H:%M"

_collator: Optional[icu.Collator] = None


def collation_key(name: str) -> bytes:
    """
    ICU Japanese collation key. Kana sort in gojuon order with hiragana and
    katakana interleaved, kanji follow in JIS reading order, and full-width
    Latin sorts next to ASCII. Not code-point order.
    """
    global _collator
    if _collator is None:
        _collator = icu.Collator.createInstance(icu.Locale("ja"))
    return _collator.getSortKey(name)


def format_last_updated(value: Optional[datetime], tz: tzinfo) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime(LAST_UPDATED_FORMAT)


@dataclass(frozen=True)
class BridgeListEntry:
    name: str
    id: str
    url: str
    last_updated: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "id": self.id,
            "url": self.url,
            "lastUpdated": self.last_updated,
        }


class FolderCache:
    """(parent_id, name) -> folder_id. Lives for one invocation only."""

    def __init__(self) -> None:
        self._ids: Dict[Tuple[str, str], str] = {}

    def get(self, parent_id: str, name: str) -> Optional[str]:
        return self._ids.get((parent_id, name))

    def put(self, parent_id: str, name: str, folder_id: str) -> None:
        self._ids[(parent_id, name)] = folder_id

    def __len__(self) -> int:
        return len(self._ids)


class FolderIndex:
    def __init__(self, provider: FolderProvider, display_tz: tzinfo) -> None:
        self.provider = provider
        self.display_tz = display_tz

    def _entry(self, doc: DocumentInfo) -> BridgeListEntry:
        return BridgeListEntry(
            name=doc.name,
            id=doc.id,
            url=doc.url,
            last_updated=format_last_updated(doc.modified_time, self.display_tz),
        )

    def get_folder_name(self, folder_id: str) -> str:
        return self.provider.get_folder(folder_id).name

    def list_root(self, root_folder_id: str) -> Tuple[FolderInfo, List[BridgeListEntry]]:
        """
        The root folder and every spreadsheet reachable from it, sorted by
        Japanese collation of the name. The root is fetched once.

        Depth-first with an explicit stack: documents of a folder first, then
        its child folders. Sibling order is whatever the host yields; the
        result is sorted afterwards so it doesn't matter.

        Raises:
            ConfigurationError: root id unset / placeholder
            NotFoundError: root id is not a folder
        """
        root_id = require_root_folder_id(root_folder_id)
        root = self.provider.get_folder(root_id)

        entries: List[BridgeListEntry] = []
        seen_docs: Set[str] = set()
        visited: Set[str] = {root_id}
        stack: List[str] = [root_id]

        while stack:
            folder_id = stack.pop()
            for doc in self.provider.list_documents(folder_id):
                if doc.id in seen_docs:
                    continue
                seen_docs.add(doc.id)
                entries.append(self._entry(doc))

            # reversed so the first child is visited next
            for child in reversed(self.provider.list_child_folders(folder_id)):
                if child.id not in visited:
                    visited.add(child.id)
                    stack.append(child.id)

        entries.sort(key=lambda e: collation_key(e.name))
        logger.info(
            "Listed %d documents in %d folders under %s",
            len(entries), len(visited), root_id,
        )
        return root, entries

    def list_all_documents(self, root_folder_id: str) -> List[BridgeListEntry]:
        return self.list_root(root_folder_id)[1]

    def resolve_subfolder(
        self,
        parent_folder_id: str,
        name: str,
        cache: Optional[FolderCache] = None,
    ) -> str:
        """
        Id of the child folder called `name` (exact match), created if absent.
        With a cache, repeated lookups in one run never hit the host twice.
        """
        if cache is not None:
            cached = cache.get(parent_folder_id, name)
            if cached:
                return cached

        folder_id = None
        for child in self.provider.list_child_folders(parent_folder_id):
            if child.name == name:
                folder_id = child.id
                break

        if folder_id is None:
            folder_id = self.provider.create_folder(parent_folder_id, name).id
            logger.info("Created subfolder %r under %s", name, parent_folder_id)

        if cache is not None:
            cache.put(parent_folder_id, name, folder_id)
        return folder_id
