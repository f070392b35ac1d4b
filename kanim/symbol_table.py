"""
Symbol table derived from the atlas entries.

Shared by the build and anim encoders: the cached name hashes, the number of
atlas entries per symbol name, and the link from each entry to the sprite it
was packed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from kanim.errors import UnresolvedReferenceError
from kanim.hashing import NameHashTable
from packing.manifest import AtlasEntry
from spriter.scene_graph import SceneGraph


def build_histogram(entries: List[AtlasEntry]) -> Dict[str, int]:
    """name -> number of atlas entries sharing that name."""
    histogram: Dict[str, int] = {}
    for entry in entries:
        histogram[entry.name] = histogram.get(entry.name, 0) + 1
    return histogram


def hash_entry_names(entries: List[AtlasEntry], hash_table: NameHashTable) -> NameHashTable:
    """Add every distinct entry name to the table, first occurrence first."""
    for entry in entries:
        hash_table.add(entry.name)
    return hash_table


@dataclass
class SymbolTable:
    """Derived views over the ordered atlas entries."""
    entries: List[AtlasEntry]
    hash_table: NameHashTable
    histogram: Dict[str, int]

    @classmethod
    def build(cls, entries: List[AtlasEntry], hash_table: Optional[NameHashTable] = None) -> "SymbolTable":
        table = hash_table if hash_table is not None else NameHashTable()
        return cls(
            entries=list(entries),
            hash_table=hash_entry_names(entries, table),
            histogram=build_histogram(entries),
        )

    def frame_count(self, name: str) -> int:
        return self.histogram.get(name, 0)

    def symbol_hash(self, name: str) -> int:
        """Cached hash of a symbol name that came from the atlas."""
        value = self.hash_table.get(name)
        if value is None:
            raise UnresolvedReferenceError(f"Symbol '{name}' does not appear in the packed atlas")
        return value

    def sprite_pivot(self, scene: SceneGraph, entry: AtlasEntry) -> Tuple[float, float]:
        """
        Normalized pivot of the source sprite an atlas entry was packed from.

        Raises:
            UnresolvedReferenceError: If the folder has no file named
                <name>_<index> or <name>_<index>.png.
        """
        pivot = scene.sprite_pivot(f"{entry.name}_{entry.index}")
        if pivot is None:
            raise UnresolvedReferenceError(
                f'The sprite "{entry.name}_{entry.index}" was not found in the scml file. '
                f"All sprites must be included in the scml file."
            )
        return pivot
