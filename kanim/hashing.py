"""
Name hashing used by the kanim build/anim formats.

The engine looks symbols and banks up by a 32-bit hash of their lower-cased
name, so the fold below must reproduce its fixed-width arithmetic exactly.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

_MASK_32 = 0xFFFFFFFF


def _to_signed_32(value: int) -> int:
    value &= _MASK_32
    return value - 0x100000000 if value & 0x80000000 else value


def _ascii_lower(char: str) -> str:
    return chr(ord(char) + 32) if "A" <= char <= "Z" else char


def kanim_hash(name: Optional[str]) -> int:
    """
    Hash a name the way the target engine does.

    Args:
        name: Symbol or animation name. None and "" hash to 0.

    Returns:
        Signed 32-bit hash value.
    """
    if not name:
        return 0

    value = 0
    for char in name:
        value = (ord(_ascii_lower(char)) + (value << 6) + (value << 16) - value) & _MASK_32
    return _to_signed_32(value)


class NameHashTable:
    """
    Insertion-ordered name -> hash cache shared by the build and anim passes.

    A name is hashed the first time it is added and never again, so both
    output files carry identical values and the same table tail order.
    """

    def __init__(self):
        self._hashes: Dict[str, int] = {}

    def add(self, name: str) -> int:
        """Hash `name` if unseen and return its cached value."""
        if name not in self._hashes:
            self._hashes[name] = kanim_hash(name)
        return self._hashes[name]

    def __getitem__(self, name: str) -> int:
        return self._hashes[name]

    def get(self, name: str) -> Optional[int]:
        return self._hashes.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(list(self._hashes.items()))

    def __repr__(self) -> str:
        return f"NameHashTable({self._hashes!r})"
