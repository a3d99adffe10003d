"""Item catalog of JSON-loaded item definitions used to create owned items."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .models import ItemKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """Immutable item definition. Owned items are created from its raw shape."""

    catalog_id: str  # "wpn_m4a3_pistol"
    item_type: str
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def to_raw(self) -> dict[str, Any]:
        return {
            "type": self.item_type,
            "name": self.name,
            "header": {"active": False},
            "attributes": dict(self.attributes),
        }


class ItemCatalog:
    def __init__(self) -> None:
        self._entries: dict[str, CatalogEntry] = {}

    def load_from_json(self, path: str | Path) -> int:
        """Load a JSON array of definitions. Returns the number loaded.

        Non-object entries and entries missing ``catalog_id``/``type``/``name``
        are logged and skipped.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        count = 0
        for raw in raw_list:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object catalog entry: %r", raw)
                continue
            try:
                entry = CatalogEntry(
                    catalog_id=raw["catalog_id"],
                    item_type=str(raw["type"]),
                    name=str(raw["name"]),
                    attributes=dict(raw.get("attributes", {})),
                    description=raw.get("description", ""),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    "Failed to load catalog entry: %s (%s)", raw.get("catalog_id", "?"), e
                )
                continue
            self._entries[entry.catalog_id] = entry
            count += 1

        logger.info("Loaded %d catalog entries from %s", count, path)
        return count

    def register(self, entry: CatalogEntry) -> None:
        if entry.catalog_id in self._entries:
            logger.warning("Catalog entry overwritten: %s", entry.catalog_id)
        self._entries[entry.catalog_id] = entry

    def get(self, catalog_id: str) -> Optional[CatalogEntry]:
        return self._entries.get(catalog_id)

    def find_by_name(self, name: str) -> Optional[CatalogEntry]:
        for entry in self._entries.values():
            if entry.name == name:
                return entry
        return None

    def get_all(self) -> list[CatalogEntry]:
        return list(self._entries.values())

    def get_by_type(self, item_type: ItemKind | str) -> list[CatalogEntry]:
        tag = item_type.value if isinstance(item_type, ItemKind) else item_type
        return [e for e in self._entries.values() if e.item_type == tag]

    def __len__(self) -> int:
        return len(self._entries)
