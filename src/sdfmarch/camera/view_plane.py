"""Eye-and-view-plane camera for primary ray generation.

Pixels are mapped onto a virtual view plane at z = 0, centered on the image
and scaled by the smaller image dimension, so the aspect ratio is kept and
the field of view is fixed by ``view_scale``. The primary ray runs from the
eye through that point:

    view_point = ((x, height - y, 0) - (width / 2, height / 2, 0))
                 / min(width, height) * view_scale
    direction  = normalize(view_point - eye)

Pixel rows are counted from the top of the image, so ``y = 0`` looks up.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.camera.view_plane import ViewPlaneCamera, setup_camera
    >>> setup_camera(ViewPlaneCamera(eye=(0.0, 0.0, -100.0), view_scale=250.0))
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.sdfmarch.core.vec import normalize

vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================

DEFAULT_EYE = (0.0, 0.0, -100.0)
DEFAULT_VIEW_SCALE = 250.0


@dataclass
class ViewPlaneCamera:
    """Configuration for the view-plane camera.

    Attributes:
        eye: Eye position in world space. Must not lie on the view plane
            inside the image, or some ray directions are zero-length.
        view_scale: Width in world units covered by the smaller image
            dimension on the view plane.
    """

    eye: tuple[float, float, float] = DEFAULT_EYE
    view_scale: float = DEFAULT_VIEW_SCALE


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_eye = ti.Vector.field(3, dtype=ti.f32, shape=())
_view_scale = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: ViewPlaneCamera) -> None:
    """Store the camera in Taichi fields for use by kernels.

    Raises:
        ValueError: If view_scale is not positive.
    """
    if camera.view_scale <= 0.0:
        raise ValueError(f"view_scale must be positive, got {camera.view_scale}")
    _camera_eye[None] = [float(c) for c in camera.eye]
    _view_scale[None] = float(camera.view_scale)


@ti.func
def view_point(pixel_x: ti.i32, pixel_y: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """World-space point on the view plane for a pixel."""
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    p_img = vec3(ti.cast(pixel_x, ti.f32), h - ti.cast(pixel_y, ti.f32), 0.0)
    center = vec3(w, h, 0.0) * 0.5
    return (p_img - center) / ti.min(w, h) * _view_scale[None]


@ti.func
def get_eye() -> vec3:
    return _camera_eye[None]


@ti.func
def get_primary_direction(pixel_x: ti.i32, pixel_y: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Unit direction of the primary ray through a pixel."""
    return normalize(view_point(pixel_x, pixel_y, width, height) - _camera_eye[None])


# =============================================================================
# Utility Functions
# =============================================================================


def primary_direction(
    camera: ViewPlaneCamera,
    pixel_x: int,
    pixel_y: int,
    width: int,
    height: int,
) -> tuple[float, float, float]:
    """Host-side primary ray direction, matching get_primary_direction."""
    p_img = np.array([pixel_x, height - pixel_y, 0.0], dtype=np.float64)
    center = np.array([width, height, 0.0], dtype=np.float64) * 0.5
    p_scaled = (p_img - center) / min(width, height) * camera.view_scale
    d = p_scaled - np.asarray(camera.eye, dtype=np.float64)
    norm = np.linalg.norm(d)
    if norm == 0.0:
        raise ValueError("Eye lies on the view plane point for this pixel")
    d = d / norm
    return (float(d[0]), float(d[1]), float(d[2]))


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging."""
    eye = _camera_eye[None]
    return {
        "eye": (float(eye[0]), float(eye[1]), float(eye[2])),
        "view_scale": float(_view_scale[None]),
    }
