"""Materials catalog lookup.

The catalog is the reference table of strategic materials. Chat answers only
name materials; the catalog resolves those names to full records by exact or
partial case-insensitive match.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ellen_core.data import Material

if TYPE_CHECKING:
    from ellen_core.store.base import MaterialStore

logger = logging.getLogger(__name__)

_SCORE_SUFFIX = "_score"


def material_from_record(record: Mapping[str, Any]) -> Material:
    """Build a Material from a catalog row or a stream payload item.

    Raises:
        ValueError: If the record has no material name.
    """
    name = record.get("material") or record.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"Material record has no name: {dict(record)!r}")

    scores: dict[str, float] = {}
    for key, value in record.items():
        if key.endswith(_SCORE_SUFFIX) and isinstance(value, int | float) and not isinstance(
            value, bool
        ):
            scores[key] = float(value)

    raw_id = record.get("id")
    return Material(
        name=name.strip(),
        id=str(raw_id) if raw_id is not None else None,
        symbol=record.get("symbol"),
        short_summary=record.get("short_summary"),
        summary=record.get("summary"),
        color=record.get("material_card_color") or record.get("color"),
        url=record.get("url"),
        scores=scores,
    )


def dedupe_materials(materials: Iterable[Material]) -> list[Material]:
    """Drop repeated materials, keeping the first occurrence of each name."""
    seen: set[str] = set()
    unique: list[Material] = []
    for material in materials:
        key = material.name.casefold()
        if key not in seen:
            seen.add(key)
            unique.append(material)
    return unique


class MaterialCatalog:
    """In-memory view over the materials reference table.

    Args:
        materials: Catalog records, typically from ``MaterialStore.list_materials``.
    """

    def __init__(self, materials: Iterable[Material]) -> None:
        self._materials = dedupe_materials(materials)
        self._by_name = {m.name.casefold(): m for m in self._materials}

    @classmethod
    async def from_store(cls, store: "MaterialStore") -> "MaterialCatalog":
        """Load the full catalog from a material store."""
        materials = await store.list_materials()
        logger.info("Loaded %d catalog materials", len(materials))
        return cls(materials)

    def __len__(self) -> int:
        return len(self._materials)

    def lookup(self, name: str) -> Material | None:
        """Find a material by exact name, then by the first catalog name containing ``name``.

        Matching is case-insensitive.
        """
        key = name.strip().casefold()
        if not key:
            return None
        exact = self._by_name.get(key)
        if exact is not None:
            return exact
        for candidate, material in self._by_name.items():
            if key in candidate:
                return material
        return None

    def resolve(self, names: Iterable[str]) -> list[Material]:
        """Look up several names, skipping misses and duplicates."""
        found: list[Material] = []
        for name in names:
            material = self.lookup(name)
            if material is None:
                logger.debug("Material not in catalog: %s", name)
                continue
            found.append(material)
        return dedupe_materials(found)

    def mentioned_in(self, text: str) -> list[Material]:
        """Return catalog materials whose name appears as a whole word in ``text``."""
        mentioned: list[Material] = []
        for material in self._materials:
            pattern = rf"\b{re.escape(material.name)}\b"
            if re.search(pattern, text, flags=re.IGNORECASE):
                mentioned.append(material)
        return mentioned
