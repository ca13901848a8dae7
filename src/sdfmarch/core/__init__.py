"""Core rendering module.

Components:
    vec: Vector utilities (Taichi functions)
    config: Marching constants and render settings
    marcher: Sphere marching, escape predicates and normal estimation
    lights: Point light storage
    shading: Lambert shading, shadows and reflection
    renderer: Per-pixel parallel renderer
    progress: Batched, thread-safe progress reporting

All compute-intensive operations use Taichi kernels and run in parallel
over pixels.
"""

from .config import (
    AMBIENT_COLOR,
    DEFAULT_MAX_BOUNCES,
    DEFAULT_ROWS_PER_BATCH,
    ESCAPE_DISTANCE,
    SURFACE_EPSILON,
    MarchConfig,
    RenderSettings,
)
from .progress import ProgressCallback, ProgressCounter, tqdm_callback
from .vec import (
    clamp,
    distance_squared,
    dot,
    length,
    normalize,
    reflect,
    vec3,
)

# Note: lights, renderer and shading declare Taichi fields and are NOT imported
# here, so that importing this package does not require ti.init().
# Import them directly, after ti.init():
#   from src.sdfmarch.core.renderer import SdfRenderer

__all__ = [
    "vec3",
    "length",
    "distance_squared",
    "normalize",
    "dot",
    "reflect",
    "clamp",
    "MarchConfig",
    "RenderSettings",
    "SURFACE_EPSILON",
    "ESCAPE_DISTANCE",
    "AMBIENT_COLOR",
    "DEFAULT_MAX_BOUNCES",
    "DEFAULT_ROWS_PER_BATCH",
    "ProgressCallback",
    "ProgressCounter",
    "tqdm_callback",
]
