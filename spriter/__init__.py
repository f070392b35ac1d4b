"""
Spriter (.scml) project access.
"""

from .scene_graph import SceneGraph

__all__ = ["SceneGraph"]
