"""Scene fields built from the primitives.

A scene field is a ``ti.func`` mapping a point to a :class:`Sample`. The
reference scene is a fixed expression of CSG operators; small scenes for
experiments are built by the factories below, which return closures so
that every field is still a fixed call chain compiled into the kernels
that use it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> import numpy as np
    >>> from src.sdfmarch.field.scenes import evaluate_field, reference_field
    >>> distances, colors, reflectivities = evaluate_field(
    ...     reference_field, np.array([[0.0, 0.0, -200.0]])
    ... )
"""


from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.sdfmarch.field.primitives import (
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

vec3 = tm.vec3

# =============================================================================
# Reference Scene Materials
# =============================================================================

GOLD_SURFACE = SurfaceSpec(color=(1.0, 0.8, 0.4), reflectivity=0.4)
SKY_SURFACE = SurfaceSpec(color=(0.4, 0.8, 1.0), reflectivity=0.2)
PINK_SURFACE = SurfaceSpec(color=(1.0, 0.4, 0.8), reflectivity=0.0)


def _make_reference_field() -> Any:
    gr, gg, gb = GOLD_SURFACE.color
    g_refl = GOLD_SURFACE.reflectivity
    sr, sg, sb = SKY_SURFACE.color
    s_refl = SKY_SURFACE.reflectivity
    pr, pg, pb = PINK_SURFACE.color
    p_refl = PINK_SURFACE.reflectivity

    @ti.func
    def reference_field(p: vec3) -> Sample:
        """The reference scene.

        A warped gold sphere merged with a blue sphere, with a rippled cavity
        carved out by an inverted, displaced third sphere.
        """
        gold = Surface(color=vec3(gr, gg, gb), reflectivity=g_refl)
        sky = Surface(color=vec3(sr, sg, sb), reflectivity=s_refl)
        pink = Surface(color=vec3(pr, pg, pb), reflectivity=p_refl)
        return intersect(
            union(
                sphere(warp(p), vec3(-30.0, 0.0, 0.0), 65.0, gold),
                sphere(p, vec3(30.0, 10.0, -10.0), 50.0, sky),
            ),
            invert(
                displace(
                    p,
                    10.0,
                    0.2,
                    sphere(p, vec3(10.0, -20.0, -60.0), 30.0, pink),
                )
            ),
        )

    return reference_field


reference_field = _make_reference_field()


# =============================================================================
# Field Factories
# =============================================================================


def make_sphere_field(
    center: tuple[float, float, float],
    radius: float,
    surface: SurfaceSpec,
) -> Any:
    """Build a field holding a single undisplaced sphere.

    Args:
        center: Sphere center.
        radius: Sphere radius (positive).
        surface: Material of the sphere.

    Returns:
        A ``ti.func`` field ``p -> Sample``.

    Raises:
        ValueError: If the radius is not positive.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    cx, cy, cz = (float(c) for c in center)
    r = float(radius)
    red, green, blue = (float(c) for c in surface.color)
    reflectivity = float(surface.reflectivity)

    @ti.func
    def sphere_field(p: vec3) -> Sample:
        s = Surface(color=vec3(red, green, blue), reflectivity=reflectivity)
        return sphere(p, vec3(cx, cy, cz), r, s)

    return sphere_field


def make_union_field(first: Any, second: Any) -> Any:
    """Build a field that is the union of two fields."""

    @ti.func
    def union_field(p: vec3) -> Sample:
        return union(first(p), second(p))

    return union_field


def make_subtract_field(solid: Any, cutter: Any) -> Any:
    """Build a field carving ``cutter`` out of ``solid``."""

    @ti.func
    def subtract_field(p: vec3) -> Sample:
        return intersect(solid(p), invert(cutter(p)))

    return subtract_field


# =============================================================================
# Host-side Evaluation
# =============================================================================

# Evaluation kernels, compiled lazily once per field
_evaluate_kernels: dict[Any, Any] = {}


def _get_evaluate_kernel(field: Any) -> Any:
    kernel = _evaluate_kernels.get(field)
    if kernel is None:

        @ti.kernel
        def _evaluate(
            points: ti.types.ndarray(dtype=ti.f32, ndim=2),
            out: ti.types.ndarray(dtype=ti.f32, ndim=2),
        ):
            for i in range(points.shape[0]):
                s = field(vec3(points[i, 0], points[i, 1], points[i, 2]))
                out[i, 0] = s.distance
                out[i, 1] = s.surface.color.x
                out[i, 2] = s.surface.color.y
                out[i, 3] = s.surface.color.z
                out[i, 4] = s.surface.reflectivity

        kernel = _evaluate
        _evaluate_kernels[field] = kernel
    return kernel


def evaluate_field(
    field: Any,
    points: npt.ArrayLike,
) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Evaluate a field at many points in one kernel launch.

    Args:
        field: A ``ti.func`` field.
        points: Array-like of shape (N, 3).

    Returns:
        Tuple of (distances (N,), colors (N, 3), reflectivities (N,)).

    Raises:
        ValueError: If points does not have shape (N, 3).
    """
    pts = np.ascontiguousarray(points, dtype=np.float32)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"points must have shape (N, 3), got {pts.shape}")

    out = np.zeros((pts.shape[0], 5), dtype=np.float32)
    if pts.shape[0] > 0:
        _get_evaluate_kernel(field)(pts, out)

    return out[:, 0].copy(), out[:, 1:4].copy(), out[:, 4].copy()
