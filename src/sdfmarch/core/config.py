"""Marching and render configuration.

The marcher's minimum step and the normal estimator's finite-difference
delta are both derived from a single ``surface_epsilon``. The value is tied
to the scale of the scene (spheres with radii of 30-65 units); change it
together with the scene scale, never one use site at a time.
"""

from __future__ import annotations

from dataclasses import dataclass

# Reference scale epsilon: minimum march step and normal delta
SURFACE_EPSILON = 0.01

# Rays travelling farther than this from their origin have escaped
ESCAPE_DISTANCE = 1000.0

# Color substituted for a reflection ray that escapes the scene
AMBIENT_COLOR = (0.3, 0.3, 0.3)

DEFAULT_MAX_BOUNCES = 5
DEFAULT_ROWS_PER_BATCH = 16


@dataclass(frozen=True)
class MarchConfig:
    """Compile-time constants for the marcher and normal estimator.

    Attributes:
        surface_epsilon: Scene-scale epsilon. Used both as the minimum step
            the marcher takes and as the normal estimation delta.
        escape_distance: Distance from a ray's origin past which the ray
            is declared to have escaped.
        ambient_color: Fallback color for reflection rays that escape.
    """

    surface_epsilon: float = SURFACE_EPSILON
    escape_distance: float = ESCAPE_DISTANCE
    ambient_color: tuple[float, float, float] = AMBIENT_COLOR

    def __post_init__(self) -> None:
        if self.surface_epsilon <= 0.0:
            raise ValueError(f"surface_epsilon must be positive, got {self.surface_epsilon}")
        if self.escape_distance <= 0.0:
            raise ValueError(f"escape_distance must be positive, got {self.escape_distance}")
        if len(self.ambient_color) != 3:
            raise ValueError(f"ambient_color must have 3 components, got {self.ambient_color}")

    @property
    def min_step(self) -> float:
        """Smallest distance the marcher advances per iteration."""
        return self.surface_epsilon

    @property
    def normal_delta(self) -> float:
        """Offset used for central-difference normal estimation."""
        return self.surface_epsilon

    @property
    def escape_distance_squared(self) -> float:
        """Squared escape distance, as compared by the escape predicate."""
        return self.escape_distance * self.escape_distance


@dataclass(frozen=True)
class RenderSettings:
    """Per-render inputs supplied by the caller.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_bounces: Maximum number of reflection bounces per camera ray.
        rows_per_batch: Image rows dispatched per kernel launch. Progress
            is reported once per batch.
    """

    width: int = 640
    height: int = 480
    max_bounces: int = DEFAULT_MAX_BOUNCES
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {self.max_bounces}")
        if self.rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {self.rows_per_batch}")
