"""Per-pixel parallel renderer.

Every pixel is traced independently: the camera ray through the pixel is
marched against the scene field, shaded on a hit (including shadow rays
and the reflection chain), and its color and hit flag are written to the
pixel's own cell of the render target. The outermost loop of the render
kernel is parallelized by Taichi across its worker pool; a pixel's full
trace runs to completion on one worker and no pixel reads another's
result.

Rows are dispatched in batches so that progress can be reported between
kernel launches. The host counts the pixels each batch covered and
forwards the running total to the progress callback; workers share no
counter.

Note:
    Declares Taichi fields at import time; call ``ti.init`` before
    importing this module.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.camera.view_plane import ViewPlaneCamera, setup_camera
    >>> from src.sdfmarch.core.lights import setup_lights
    >>> from src.sdfmarch.core.renderer import SdfRenderer
    >>> from src.sdfmarch.scene.reference import REFERENCE_LIGHTS
    >>>
    >>> setup_camera(ViewPlaneCamera())
    >>> setup_lights(REFERENCE_LIGHTS)
    >>> renderer = SdfRenderer(640, 480)
    >>> renderer.render(max_bounces=5)
    >>> rgba = renderer.get_image_rgba8()
"""


from collections.abc import Generator
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.sdfmarch.camera.view_plane import get_eye, get_primary_direction
from src.sdfmarch.core.config import (
    DEFAULT_MAX_BOUNCES,
    DEFAULT_ROWS_PER_BATCH,
    MarchConfig,
)
from src.sdfmarch.core.marcher import build_tracer
from src.sdfmarch.core.progress import ProgressCallback, ProgressCounter
from src.sdfmarch.core.shading import Shader, build_shader
from src.sdfmarch.field.scenes import reference_field
from src.sdfmarch.preview.export import save_png_from_array, to_rgba8

vec3 = tm.vec3
vec4 = tm.vec4

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear, unclamped shaded color per pixel, indexed [x, y] with y = 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# 1 where the primary ray hit a surface
_hit_buffer = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Pixels traced since the last clear, advanced by the host after each batch
_pixels_traced = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target for an image size and clear it.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear colors, hit flags and the traced-pixel counter."""
    _color_buffer.fill(0.0)
    _hit_buffer.fill(0)
    _pixels_traced[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_pixels_traced() -> int:
    """Number of pixels traced since the render target was last cleared."""
    return int(_pixels_traced[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Kernels
# =============================================================================

# Shaders and kernels are compiled once per (field, config)
_shaders: dict[tuple[Any, MarchConfig], Shader] = {}
_kernels: dict[Shader, tuple[Any, Any]] = {}


def get_shader(field: Any, config: MarchConfig) -> Shader:
    """Get the shader for a field, building it on first use."""
    key = (field, config)
    shader = _shaders.get(key)
    if shader is None:
        shader = build_shader(build_tracer(field, config))
        _shaders[key] = shader
    return shader


def _get_kernels(shader: Shader) -> tuple[Any, Any]:
    kernels = _kernels.get(shader)
    if kernels is not None:
        return kernels

    @ti.kernel
    def _render_rows(
        row_start: ti.i32,
        row_end: ti.i32,
        width: ti.i32,
        height: ti.i32,
        max_bounces: ti.i32,
    ):
        for x, y in ti.ndrange(width, (row_start, row_end)):
            eye = get_eye()
            direction = get_primary_direction(x, y, width, height)
            result = shader.trace(eye, direction, max_bounces)
            _color_buffer[x, y] = result.color
            _hit_buffer[x, y] = result.hit

    @ti.kernel
    def _render_single_pixel(
        x: ti.i32,
        y: ti.i32,
        width: ti.i32,
        height: ti.i32,
        max_bounces: ti.i32,
    ) -> vec4:
        direction = get_primary_direction(x, y, width, height)
        result = shader.trace(get_eye(), direction, max_bounces)
        return vec4(result.color.x, result.color.y, result.color.z, ti.cast(result.hit, ti.f32))

    kernels = (_render_rows, _render_single_pixel)
    _kernels[shader] = kernels
    return kernels


# =============================================================================
# Renderer
# =============================================================================


class SdfRenderer:
    """Renders a scene field into the shared render target.

    The camera and lights are read from their Taichi storage at render time
    (see ``setup_camera`` and ``setup_lights``); the field and marching
    configuration are fixed per renderer. There is one render target per
    process: each render resizes it to this renderer's dimensions, so the
    image getters return the most recent render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        field: The scene field being rendered.
        config: Marching configuration.
    """

    def __init__(
        self,
        width: int,
        height: int,
        field: Any = None,
        config: MarchConfig | None = None,
    ) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            field: Scene field. Defaults to the reference scene.
            config: Marching configuration. Defaults to MarchConfig().

        Raises:
            ValueError: If dimensions are invalid.
        """
        self.field = reference_field if field is None else field
        self.config = MarchConfig() if config is None else config
        self._shader = get_shader(self.field, self.config)
        self._width = width
        self._height = height
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixel_count(self) -> int:
        return self._width * self._height

    @property
    def shader(self) -> Shader:
        """The shading functions compiled into this renderer's kernels."""
        return self._shader

    def reset(self) -> None:
        """Clear the render target without changing its size."""
        clear_render_target()

    def render(
        self,
        max_bounces: int = DEFAULT_MAX_BOUNCES,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render every pixel.

        Args:
            max_bounces: Maximum reflection bounces per camera ray.
            rows_per_batch: Rows per kernel launch. Progress is reported
                once per batch.
            callback: Optional function receiving (pixels_done, total).

        Raises:
            ValueError: If max_bounces is negative or rows_per_batch is
                not positive.
        """
        for _ in self.render_progressive(max_bounces, rows_per_batch, callback):
            pass

    def render_progressive(
        self,
        max_bounces: int = DEFAULT_MAX_BOUNCES,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
        callback: ProgressCallback | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render every pixel, yielding progress after each row batch.

        Yields:
            Tuple of (pixels_done, total_pixels).
        """
        if max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")

        # The render target is shared by all renderers; claim it at our size
        setup_render_target(self._width, self._height)
        width, height = self._width, self._height
        render_rows, _ = _get_kernels(self._shader)
        counter = ProgressCounter(
            width * height,
            report_every=width * rows_per_batch,
            callback=callback,
        )

        for row_start in range(0, height, rows_per_batch):
            row_end = min(row_start + rows_per_batch, height)
            render_rows(row_start, row_end, width, height, max_bounces)
            batch_pixels = (row_end - row_start) * width
            _pixels_traced[None] += batch_pixels
            counter.advance(batch_pixels)
            yield (counter.done, counter.total)

    def render_pixel(
        self,
        x: int,
        y: int,
        max_bounces: int = DEFAULT_MAX_BOUNCES,
    ) -> tuple[float, float, float, bool]:
        """Trace one pixel without touching the render target.

        Args:
            x: Pixel column (0 = left).
            y: Pixel row (0 = top).
            max_bounces: Maximum reflection bounces.

        Returns:
            Tuple of (r, g, b, hit) with linear, unclamped color.

        Raises:
            ValueError: If the pixel is outside the image or max_bounces is
                negative.
        """
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise ValueError(f"Pixel ({x}, {y}) outside {self._width}x{self._height} image")
        if max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")

        _, render_single_pixel = _get_kernels(self._shader)
        c = render_single_pixel(x, y, self._width, self._height, max_bounces)
        return (float(c[0]), float(c[1]), float(c[2]), bool(c[3] > 0.5))

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Linear shaded color, shape (height, width, 3), row 0 at the top."""
        _check_render_target_initialized()
        width, height = get_image_dimensions()
        image = _color_buffer.to_numpy()[:width, :height, :]
        return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.float32)

    def get_hit_mask(self) -> npt.NDArray[np.bool_]:
        """Boolean hit mask, shape (height, width)."""
        _check_render_target_initialized()
        width, height = get_image_dimensions()
        hits = _hit_buffer.to_numpy()[:width, :height]
        return np.ascontiguousarray(hits.T) != 0

    def get_image_rgba8(self) -> npt.NDArray[np.uint8]:
        """RGBA8 image, shape (height, width, 4).

        Color channels are scaled by 255 and truncated into [0, 255]; alpha
        is 255 where the primary ray hit and 0 (with black color) elsewhere.
        """
        return to_rgba8(self.get_image_numpy(), self.get_hit_mask())

    def save_image(self, filepath: str) -> None:
        """Save the RGBA8 image (format chosen by file extension)."""
        save_png_from_array(self.get_image_rgba8(), filepath)

    def __repr__(self) -> str:
        return (
            f"SdfRenderer(width={self.width}, height={self.height}, "
            f"pixels_traced={get_pixels_traced()})"
        )
