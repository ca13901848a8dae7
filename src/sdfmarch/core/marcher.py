"""Sphere marching through a scene field, and normal estimation.

The marcher advances a ray by the field's distance estimate at each point,
never by less than the configured minimum step, until the field reports a
crossing (distance <= 0) or the caller's escape predicate says stop.

Escape predicates have the signature ``(p, direction, anchor) -> i32`` and
are bound when a march function is built with :func:`make_march`; the
``anchor`` is a point supplied per call (the ray origin for camera and
reflection rays, the light position for shadow rays). The predicate is the
only thing that bounds a ray which never hits anything, so every march
function is built with one.

:func:`build_tracer` bundles the march functions, ``march_out`` and the
normal estimator for one field. All members are ``ti.func`` closures over
that field, so they compile into whatever kernel calls them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.core.marcher import build_tracer, probe_march
    >>> from src.sdfmarch.field.scenes import reference_field
    >>> tracer = build_tracer(reference_field)
    >>> hit, point, sample = probe_march(tracer, (0, 0, -100), (0, 0, 1))
"""


from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from src.sdfmarch.core.config import MarchConfig
from src.sdfmarch.core.vec import distance_squared, dot, normalize
from src.sdfmarch.field.primitives import Sample, Surface

vec3 = tm.vec3


@ti.dataclass
class MarchHit:
    """Result of marching a ray.

    Attributes:
        hit: 1 if a surface was crossed, 0 if the ray escaped.
        sample: The field sample at the crossing. Only valid if hit == 1.
        point: The first point at which the field was <= 0.
            Only valid if hit == 1.
    """

    hit: ti.i32
    sample: Sample
    point: vec3


@ti.func
def _make_miss(origin: vec3) -> MarchHit:
    none = Surface(color=vec3(0.0, 0.0, 0.0), reflectivity=0.0)
    return MarchHit(hit=0, sample=Sample(distance=0.0, surface=none), point=origin)


# =============================================================================
# Escape Predicates
# =============================================================================


def make_escape_predicate(bound_squared: float) -> Any:
    """Predicate: keep marching while |p - anchor|^2 < bound_squared."""
    bound = float(bound_squared)

    @ti.func
    def within_bound(p: vec3, direction: vec3, anchor: vec3) -> ti.i32:
        return distance_squared(p, anchor) < bound

    return within_bound


@ti.func
def moving_toward_anchor(p: vec3, direction: vec3, anchor: vec3) -> ti.i32:
    """Predicate: keep marching while the anchor is still ahead of p."""
    return dot(anchor - p, direction) > 0.0


# =============================================================================
# March Builders
# =============================================================================


def make_march(field: Any, keep_marching: Any, min_step: float) -> Any:
    """Build a march function for a field and an escape predicate.

    Args:
        field: Scene field ``p -> Sample``.
        keep_marching: Escape predicate ``(p, direction, anchor) -> i32``.
        min_step: Smallest advance per iteration.

    Returns:
        A ``ti.func`` ``(origin, direction, anchor) -> MarchHit``.
    """
    step_floor = float(min_step)

    @ti.func
    def march(origin: vec3, direction: vec3, anchor: vec3) -> MarchHit:
        p = origin
        result = _make_miss(origin)
        marching = 1
        while marching == 1:
            if keep_marching(p, direction, anchor):
                s = field(p)
                if s.distance <= 0.0:
                    result = MarchHit(hit=1, sample=s, point=p)
                    marching = 0
                else:
                    p += direction * ti.max(s.distance, step_floor)
            else:
                marching = 0
        return result

    return march


def make_march_out(field: Any, min_step: float) -> Any:
    """Build a function that walks a point out of any solid it is inside.

    The walk continues while the negated field is non-negative, so a point
    exactly on a surface is also pushed off it.
    """
    step_floor = float(min_step)

    @ti.func
    def march_out(origin: vec3, direction: vec3) -> vec3:
        p = origin
        inside = 1
        while inside == 1:
            f = -field(p).distance
            if f < 0.0:
                inside = 0
            else:
                p += direction * ti.max(f, step_floor)
        return p

    return march_out


def make_normal_estimator(field: Any, delta: float) -> Any:
    """Build a central-difference gradient estimator for a field."""
    h = float(delta)
    inv_two_h = 1.0 / (2.0 * h)

    @ti.func
    def estimate_normal(p: vec3) -> vec3:
        dx = vec3(h, 0.0, 0.0)
        dy = vec3(0.0, h, 0.0)
        dz = vec3(0.0, 0.0, h)
        gradient = vec3(
            (field(p + dx).distance - field(p - dx).distance) * inv_two_h,
            (field(p + dy).distance - field(p - dy).distance) * inv_two_h,
            (field(p + dz).distance - field(p - dz).distance) * inv_two_h,
        )
        return normalize(gradient)

    return estimate_normal


@dataclass(frozen=True)
class Tracer:
    """Marching functions bound to one scene field.

    Attributes:
        field: The scene field.
        config: The configuration the functions were built with.
        march_to_escape: March bounded by the escape distance around the
            anchor (camera and reflection rays).
        march_to_light: March bounded by passing the anchor (shadow rays).
        march_out: Walk a point out of the solid it is in.
        estimate_normal: Unit surface normal at a point.
    """

    field: Any
    config: MarchConfig
    march_to_escape: Any
    march_to_light: Any
    march_out: Any
    estimate_normal: Any


def build_tracer(field: Any, config: MarchConfig | None = None) -> Tracer:
    """Build the marching functions for a scene field.

    Args:
        field: Scene field ``p -> Sample``.
        config: Marching constants. Defaults to MarchConfig().

    Returns:
        A Tracer whose members can be called from any Taichi kernel.
    """
    if config is None:
        config = MarchConfig()

    return Tracer(
        field=field,
        config=config,
        march_to_escape=make_march(
            field, make_escape_predicate(config.escape_distance_squared), config.min_step
        ),
        march_to_light=make_march(field, moving_toward_anchor, config.min_step),
        march_out=make_march_out(field, config.min_step),
        estimate_normal=make_normal_estimator(field, config.normal_delta),
    )


# =============================================================================
# Host-side Probes (testing and debugging)
# =============================================================================

# Probe kernels, compiled lazily once per (tracer, probe) pair
_probe_kernels: dict[tuple[Tracer, str], Any] = {}


def _unit(direction: tuple[float, float, float]) -> np.ndarray:
    d = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(d)
    if norm == 0.0:
        raise ValueError("Ray direction must be non-zero")
    return d / norm


def _get_probe_kernel(tracer: Tracer, name: str) -> Any:
    key = (tracer, name)
    kernel = _probe_kernels.get(key)
    if kernel is not None:
        return kernel

    if name == "march":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            origin = vec3(args[0], args[1], args[2])
            direction = vec3(args[3], args[4], args[5])
            rec = tracer.march_to_escape(origin, direction, origin)
            out[0] = ti.cast(rec.hit, ti.f32)
            out[1] = rec.point.x
            out[2] = rec.point.y
            out[3] = rec.point.z
            out[4] = rec.sample.distance
            out[5] = rec.sample.surface.color.x
            out[6] = rec.sample.surface.color.y
            out[7] = rec.sample.surface.color.z
            out[8] = rec.sample.surface.reflectivity

    elif name == "march_out":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            p = tracer.march_out(
                vec3(args[0], args[1], args[2]), vec3(args[3], args[4], args[5])
            )
            out[0] = p.x
            out[1] = p.y
            out[2] = p.z

    elif name == "normal":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            n = tracer.estimate_normal(vec3(args[0], args[1], args[2]))
            out[0] = n.x
            out[1] = n.y
            out[2] = n.z

    else:
        raise ValueError(f"Unknown probe: {name}")

    _probe_kernels[key] = _probe
    return _probe


def _run_probe(tracer: Tracer, name: str, args: list[float], n_out: int) -> np.ndarray:
    inputs = np.asarray(args, dtype=np.float32)
    out = np.zeros(n_out, dtype=np.float32)
    _get_probe_kernel(tracer, name)(inputs, out)
    return out


def probe_march(
    tracer: Tracer,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[bool, tuple[float, float, float], dict[str, Any]]:
    """March one ray with the escape predicate anchored at its origin.

    Args:
        tracer: Tracer to march with.
        origin: Ray origin.
        direction: Ray direction (normalized here).

    Returns:
        Tuple of (hit, point, sample) where sample is a dict with
        'distance', 'color' and 'reflectivity'.
    """
    d = _unit(direction)
    out = _run_probe(tracer, "march", [*origin, *d], 9)
    sample = {
        "distance": float(out[4]),
        "color": (float(out[5]), float(out[6]), float(out[7])),
        "reflectivity": float(out[8]),
    }
    return bool(out[0] > 0.5), (float(out[1]), float(out[2]), float(out[3])), sample


def probe_march_out(
    tracer: Tracer,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Return the first point outside all solids along a ray."""
    d = _unit(direction)
    out = _run_probe(tracer, "march_out", [*origin, *d], 3)
    return (float(out[0]), float(out[1]), float(out[2]))


def probe_normal(tracer: Tracer, point: tuple[float, float, float]) -> tuple[float, float, float]:
    """Return the estimated unit normal at a point."""
    out = _run_probe(tracer, "normal", list(point), 3)
    return (float(out[0]), float(out[1]), float(out[2]))
