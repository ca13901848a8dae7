"""Point light storage.

Lights are a small ordered collection shared by every shading computation.
They are written from Python before a render and only read by kernels, so
no synchronization is needed while rendering.

Note:
    This module declares Taichi fields at import time; call ``ti.init``
    before importing it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.core.lights import Light, setup_lights
    >>> setup_lights([Light(position=(500.0, 1000.0, -300.0), color=(1.0, 0.5, 0.0))])
"""


from collections.abc import Iterable
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@dataclass(frozen=True)
class Light:
    """A point light.

    Attributes:
        position: Light position in world space.
        color: RGB intensity. Not limited to [0, 1].
    """

    position: tuple[float, float, float]
    color: tuple[float, float, float]


# Maximum number of lights (preallocated to avoid kernel recompilation)
MAX_LIGHTS = 16

_light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_num_lights = ti.field(dtype=ti.i32, shape=())


def setup_lights(lights: Iterable[Light]) -> None:
    """Replace the light list.

    Args:
        lights: Lights in shading order.

    Raises:
        ValueError: If more than MAX_LIGHTS lights are given.
    """
    lights = list(lights)
    if len(lights) > MAX_LIGHTS:
        raise ValueError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded: {len(lights)}")

    for i, light in enumerate(lights):
        _light_positions[i] = [float(c) for c in light.position]
        _light_colors[i] = [float(c) for c in light.color]
    _num_lights[None] = len(lights)


def clear_lights() -> None:
    """Remove all lights."""
    _num_lights[None] = 0


def get_light_count() -> int:
    """Get the number of active lights."""
    return int(_num_lights[None])


def get_lights() -> list[Light]:
    """Read the active lights back from Taichi storage."""
    lights = []
    for i in range(get_light_count()):
        p = _light_positions[i]
        c = _light_colors[i]
        lights.append(
            Light(
                position=(float(p[0]), float(p[1]), float(p[2])),
                color=(float(c[0]), float(c[1]), float(c[2])),
            )
        )
    return lights


@ti.func
def light_count() -> ti.i32:
    return _num_lights[None]


@ti.func
def light_position(i: ti.i32) -> vec3:
    return _light_positions[i]


@ti.func
def light_color(i: ti.i32) -> vec3:
    return _light_colors[i]
