"""
kanim build/anim encoding.

Hashing, the shared symbol table, the BILD and ANIM encoders, the binary
writer and a reader for inspecting produced files.
"""

__all__ = [
    "anim",
    "bild",
    "binary_writer",
    "errors",
    "hashing",
    "reader",
    "symbol_table",
]
