"""Direct lighting, shadows and reflection on top of the marcher.

Shading model:
    - Each light contributes light.color * surface.color * clamp(n . l, 0, 1)
      unless the point is in shadow for that light. Contributions sum
      without clamping.
    - A point is in shadow if a ray from just outside the surface toward
      the light hits anything before passing the light.
    - Reflective surfaces blend the direct color with the color seen along
      the mirrored ray: lerp(direct, reflected, reflectivity). A reflected
      ray that escapes sees the ambient color.

The reflection chain is evaluated as a loop that carries the remaining
bounce count and the blend weight of the current bounce. It produces the
same color as the recursive definition and stops when the count reaches
zero; ``max_bounces = 0`` never issues a secondary ray.

Note:
    Imports ``src.sdfmarch.core.lights``, which declares Taichi fields;
    call ``ti.init`` before importing this module.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.core.lights import Light, setup_lights
    >>> from src.sdfmarch.core.marcher import build_tracer
    >>> from src.sdfmarch.core.shading import build_shader, probe_trace
    >>> from src.sdfmarch.field.scenes import reference_field
    >>> setup_lights([Light((500.0, 1000.0, -300.0), (1.0, 0.5, 0.0))])
    >>> shader = build_shader(build_tracer(reference_field))
    >>> hit, color, secondary = probe_trace(shader, (0, 0, -100), (0, 0, 1), 5)
"""


from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from src.sdfmarch.core.lights import light_color, light_count, light_position
from src.sdfmarch.core.marcher import Tracer
from src.sdfmarch.core.vec import clamp, dot, normalize, reflect
from src.sdfmarch.field.primitives import Surface

vec3 = tm.vec3


@ti.dataclass
class TraceResult:
    """Result of tracing a camera ray.

    Attributes:
        hit: 1 if the primary ray hit a surface, 0 if it escaped.
        color: Linear RGB, unclamped. Zero on a miss.
        secondary_rays: Number of reflection rays issued.
    """

    hit: ti.i32
    color: vec3
    secondary_rays: ti.i32


@ti.func
def diffuse(point: vec3, normal: vec3, light_pos: vec3) -> ti.f32:
    """Lambert factor for a light, clamped to [0, 1]."""
    l = normalize(light_pos - point)
    return clamp(dot(normal, l), 0.0, 1.0)


@dataclass(frozen=True)
class Shader:
    """Shading functions bound to one tracer.

    Attributes:
        tracer: The tracer used for primary, shadow and reflection rays.
        in_shadow: ``(point, light_pos) -> i32``.
        apply_lights: ``(point, surface, normal) -> vec3`` direct light.
        trace: ``(origin, direction, max_bounces) -> TraceResult``.
    """

    tracer: Tracer
    in_shadow: Any
    apply_lights: Any
    trace: Any


def build_shader(tracer: Tracer) -> Shader:
    """Build the shading functions for a tracer.

    Args:
        tracer: Tracer from :func:`src.sdfmarch.core.marcher.build_tracer`.

    Returns:
        A Shader whose members can be called from any Taichi kernel.
    """
    ar, ag, ab = (float(c) for c in tracer.config.ambient_color)

    @ti.func
    def in_shadow(point: vec3, light_pos: vec3) -> ti.i32:
        l = normalize(light_pos - point)
        # Step off the surface before looking for occluders
        start = tracer.march_out(point, l)
        return tracer.march_to_light(start, l, light_pos).hit

    @ti.func
    def apply_lights(point: vec3, surface: Surface, normal: vec3) -> vec3:
        rgb = vec3(0.0, 0.0, 0.0)
        for i in range(light_count()):
            pos = light_position(i)
            if in_shadow(point, pos) == 0:
                rgb += light_color(i) * surface.color * diffuse(point, normal, pos)
        return rgb

    @ti.func
    def trace(origin: vec3, direction: vec3, max_bounces: ti.i32) -> TraceResult:
        ambient = vec3(ar, ag, ab)
        color = vec3(0.0, 0.0, 0.0)
        weight = 1.0
        ray_origin = origin
        ray_direction = direction
        bounces_left = max_bounces
        primary_hit = 0
        secondary_rays = 0
        active = 1
        while active == 1:
            rec = tracer.march_to_escape(ray_origin, ray_direction, ray_origin)
            if rec.hit == 0:
                if secondary_rays > 0:
                    color += weight * ambient
                active = 0
            else:
                if secondary_rays == 0:
                    primary_hit = 1
                p = rec.point
                n = tracer.estimate_normal(p)
                direct = apply_lights(p, rec.sample.surface, n)
                r = rec.sample.surface.reflectivity
                if r > 0.0 and bounces_left > 0:
                    # lerp(direct, reflected, r): keep the direct share, defer the rest
                    color += weight * (1.0 - r) * direct
                    weight *= r
                    ray_direction = reflect(ray_direction, n)
                    ray_origin = tracer.march_out(p, ray_direction)
                    bounces_left -= 1
                    secondary_rays += 1
                else:
                    color += weight * direct
                    active = 0
        return TraceResult(hit=primary_hit, color=color, secondary_rays=secondary_rays)

    return Shader(tracer=tracer, in_shadow=in_shadow, apply_lights=apply_lights, trace=trace)


# =============================================================================
# Host-side Probes (testing and debugging)
# =============================================================================

_probe_kernels: dict[tuple[Shader, str], Any] = {}


def _get_probe_kernel(shader: Shader, name: str) -> Any:
    key = (shader, name)
    kernel = _probe_kernels.get(key)
    if kernel is not None:
        return kernel

    if name == "in_shadow":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            point = vec3(args[0], args[1], args[2])
            light_pos = vec3(args[3], args[4], args[5])
            out[0] = ti.cast(shader.in_shadow(point, light_pos), ti.f32)

    elif name == "shade":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            point = vec3(args[0], args[1], args[2])
            s = shader.tracer.field(point)
            n = shader.tracer.estimate_normal(point)
            rgb = shader.apply_lights(point, s.surface, n)
            out[0] = rgb.x
            out[1] = rgb.y
            out[2] = rgb.z

    elif name == "trace":

        @ti.kernel
        def _probe(
            args: ti.types.ndarray(dtype=ti.f32, ndim=1),
            out: ti.types.ndarray(dtype=ti.f32, ndim=1),
        ):
            origin = vec3(args[0], args[1], args[2])
            direction = vec3(args[3], args[4], args[5])
            result = shader.trace(origin, direction, ti.cast(args[6], ti.i32))
            out[0] = ti.cast(result.hit, ti.f32)
            out[1] = result.color.x
            out[2] = result.color.y
            out[3] = result.color.z
            out[4] = ti.cast(result.secondary_rays, ti.f32)

    else:
        raise ValueError(f"Unknown probe: {name}")

    _probe_kernels[key] = _probe
    return _probe


def _run_probe(shader: Shader, name: str, args: list[float], n_out: int) -> np.ndarray:
    inputs = np.asarray(args, dtype=np.float32)
    out = np.zeros(n_out, dtype=np.float32)
    _get_probe_kernel(shader, name)(inputs, out)
    return out


def probe_in_shadow(
    shader: Shader,
    point: tuple[float, float, float],
    light_position: tuple[float, float, float],
) -> bool:
    """Whether a point is shadowed from a light position."""
    out = _run_probe(shader, "in_shadow", [*point, *light_position], 1)
    return bool(out[0] > 0.5)


def probe_shade(shader: Shader, point: tuple[float, float, float]) -> tuple[float, float, float]:
    """Direct lighting at a surface point from the active lights."""
    out = _run_probe(shader, "shade", list(point), 3)
    return (float(out[0]), float(out[1]), float(out[2]))


def probe_trace(
    shader: Shader,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_bounces: int,
) -> tuple[bool, tuple[float, float, float], int]:
    """Trace one ray.

    Args:
        shader: Shader to trace with.
        origin: Ray origin.
        direction: Ray direction (normalized here).
        max_bounces: Maximum reflection bounces.

    Returns:
        Tuple of (hit, color, secondary_rays).

    Raises:
        ValueError: If max_bounces is negative or direction is zero.
    """
    if max_bounces < 0:
        raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")
    d = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(d)
    if norm == 0.0:
        raise ValueError("Ray direction must be non-zero")
    d = d / norm

    out = _run_probe(shader, "trace", [*origin, *d, float(max_bounces)], 5)
    color = (float(out[1]), float(out[2]), float(out[3]))
    return bool(out[0] > 0.5), color, int(round(out[4]))
