"""Scene field module: signed distance primitives and scenes.

Components:
    primitives: Surface/Sample structs, sphere and the CSG operators
    scenes: The reference scene, field factories and host-side evaluation

A scene field is a ``ti.func`` taking a point and returning a Sample. None
of these modules declares Taichi fields, so they can be imported before
``ti.init``.
"""

from .primitives import (
    Sample,
    Surface,
    SurfaceSpec,
    displace,
    intersect,
    invert,
    sphere,
    union,
    warp,
)
from .scenes import (
    GOLD_SURFACE,
    PINK_SURFACE,
    SKY_SURFACE,
    evaluate_field,
    make_sphere_field,
    make_subtract_field,
    make_union_field,
    reference_field,
)

__all__ = [
    # Primitives
    "Surface",
    "Sample",
    "SurfaceSpec",
    "sphere",
    "union",
    "intersect",
    "invert",
    "warp",
    "displace",
    # Scenes
    "reference_field",
    "make_sphere_field",
    "make_union_field",
    "make_subtract_field",
    "evaluate_field",
    "GOLD_SURFACE",
    "SKY_SURFACE",
    "PINK_SURFACE",
]
