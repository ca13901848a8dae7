"""Signed-distance primitives and CSG operators.

Every scene is a fixed expression built from the functions in this module.
Evaluating a scene at a point yields a :class:`Sample`: the signed estimate
of the distance to the nearest surface (negative inside a solid) together
with the material of that closest feature.

Operators:
    sphere: exact distance to a sphere
    union: nearest of two samples (min distance)
    intersect: farthest of two samples (max distance)
    invert: complement of a solid (negated distance, same surface)
    warp: smooth nonlinear distortion of the query point
    displace: periodic bump added to a sample's distance

``displace`` turns an exact distance into a lower bound only in the
approximate sense: near thin displaced ridges the estimate can overstate
the true distance. The marcher's minimum step keeps it moving; stepping
over a very thin ridge is accepted.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.field.primitives import Surface, sphere, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     red = Surface(color=vec3(1.0, 0.0, 0.0), reflectivity=0.0)
    ...     return sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, 0.0), 1.0, red).distance
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.sdfmarch.core.vec import length

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Surface:
    """Material response at a field sample.

    Attributes:
        color: Diffuse RGB color, components nominally in [0, 1].
        reflectivity: Blend factor in [0, 1] between direct and reflected
            light. 0 means no secondary ray is traced.
    """

    color: vec3
    reflectivity: ti.f32


@ti.dataclass
class Sample:
    """Result of evaluating a scene field at a point.

    Attributes:
        distance: Signed distance estimate to the nearest surface.
        surface: Material of the nearest surface.
    """

    distance: ti.f32
    surface: Surface


@dataclass(frozen=True)
class SurfaceSpec:
    """Python-side description of a surface constant.

    Attributes:
        color: RGB color.
        reflectivity: Reflectivity in [0, 1].
    """

    color: tuple[float, float, float]
    reflectivity: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.reflectivity <= 1.0:
            raise ValueError(f"reflectivity must be in [0, 1], got {self.reflectivity}")


@ti.func
def sphere(p: vec3, center: vec3, radius: ti.f32, surface: Surface) -> Sample:
    """Exact signed distance from p to a sphere."""
    return Sample(distance=length(p - center) - radius, surface=surface)


@ti.func
def union(a: Sample, b: Sample) -> Sample:
    """Keep whichever sample is closer. Ties go to b."""
    result = b
    if a.distance < b.distance:
        result = a
    return result


@ti.func
def intersect(a: Sample, b: Sample) -> Sample:
    """Keep whichever sample is farther. Ties go to a.

    Intersecting with an inverted solid subtracts that solid.
    """
    result = a
    if a.distance < b.distance:
        result = b
    return result


@ti.func
def invert(s: Sample) -> Sample:
    """Turn a solid into its complement."""
    return Sample(distance=-s.distance, surface=s.surface)


@ti.func
def warp(p: vec3) -> vec3:
    """Distort a point by sines of the other two axes.

    Applied to the query point before evaluating a primitive, giving it an
    organic silhouette.
    """
    return p + vec3(ti.sin(0.4 * p.y), ti.sin(0.6 * p.z), ti.sin(0.8 * p.x))


@ti.func
def displace(p: vec3, scale: ti.f32, detail: ti.f32, s: Sample) -> Sample:
    """Add a bounded periodic bump to a sample's distance.

    Args:
        p: Query point.
        scale: Amplitude of the bump.
        detail: Spatial frequency applied to p before taking sines.
        s: Sample to displace.

    Returns:
        The sample with distance offset by scale * sin(x) sin(y) sin(z)
        of the scaled point.
    """
    q = p * detail
    displacement = scale * ti.sin(q.x) * ti.sin(q.y) * ti.sin(q.z)
    return Sample(distance=s.distance + displacement, surface=s.surface)
