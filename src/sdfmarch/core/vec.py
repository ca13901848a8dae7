"""Vector utilities shared by the field, marcher and shading code.

Thin ``ti.func`` wrappers over ``taichi.math`` so that the rest of the
package reads in terms of the operations the renderer needs: lengths,
distances, normalization, reflection and clamping. All of them
are pure and may be called from any Taichi kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.core.vec import reflect, vec3
    >>> @ti.kernel
    ... def bounce() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def distance_squared(a: vec3, b: vec3) -> ti.f32:
    """Squared Euclidean distance between two points."""
    d = a - b
    return tm.dot(d, d)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must not be zero-length; the result is undefined otherwise.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector, incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def clamp(x: ti.f32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Clamp a scalar into [lo, hi]."""
    return ti.min(ti.max(x, lo), hi)
