"""Camera module for primary ray generation.

Components:
    view_plane: Eye-and-view-plane camera

Pixel coordinates are mapped onto a view plane at z = 0, centered on the
image and scaled by the smaller dimension; the primary ray runs from the
eye through that point. Row 0 is the top of the image.

Note:
    view_plane declares Taichi fields; call ``ti.init`` before importing
    this package.
"""

from .view_plane import (
    DEFAULT_EYE,
    DEFAULT_VIEW_SCALE,
    ViewPlaneCamera,
    get_camera_info,
    get_eye,
    get_primary_direction,
    primary_direction,
    setup_camera,
    view_point,
)

__all__ = [
    "ViewPlaneCamera",
    "setup_camera",
    "view_point",
    "get_eye",
    "get_primary_direction",
    "primary_direction",
    "get_camera_info",
    "DEFAULT_EYE",
    "DEFAULT_VIEW_SCALE",
]
