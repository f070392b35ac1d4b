"""
Texture atlas packing and the atlas manifest parser.
"""

from .manifest import AtlasEntry, parse_manifest_lines, read_manifest

__all__ = ["AtlasEntry", "parse_manifest_lines", "read_manifest"]
