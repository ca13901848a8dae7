"""Image export utilities for rendered images.

Shaded colors are linear and unclamped. Export converts them to 8-bit RGBA:
each channel is scaled by 255, clipped to [0, 255] and truncated; pixels
whose primary ray hit nothing are written fully transparent and black.

Supported formats:
    - PNG (8-bit RGBA via Pillow)

Example:
    >>> from src.sdfmarch.preview.export import save_png
    >>> from src.sdfmarch.core.renderer import SdfRenderer
    >>>
    >>> renderer = SdfRenderer(640, 480)
    >>> renderer.render(max_bounces=5)
    >>> save_png(renderer, "test.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.sdfmarch.core.renderer import SdfRenderer


def to_rgba8(
    color: npt.NDArray[np.float32],
    hit_mask: npt.NDArray[np.bool_],
) -> npt.NDArray[np.uint8]:
    """Convert linear color and a hit mask to an RGBA8 image.

    Args:
        color: Linear color array of shape (H, W, 3).
        hit_mask: Boolean array of shape (H, W).

    Returns:
        Array of shape (H, W, 4) with dtype uint8.

    Raises:
        ValueError: If the shapes don't match.
    """
    color = np.asarray(color, dtype=np.float32)
    hit_mask = np.asarray(hit_mask, dtype=bool)
    if color.ndim != 3 or color.shape[2] != 3:
        raise ValueError(f"color must have shape (H, W, 3), got {color.shape}")
    if hit_mask.shape != color.shape[:2]:
        raise ValueError(
            f"hit_mask shape {hit_mask.shape} does not match image {color.shape[:2]}"
        )

    # Truncate, don't round
    rgb = np.clip(color * 255.0, 0.0, 255.0).astype(np.uint8)

    rgba = np.zeros((*color.shape[:2], 4), dtype=np.uint8)
    rgba[hit_mask, :3] = rgb[hit_mask]
    rgba[hit_mask, 3] = 255
    return rgba


def save_png_from_array(
    image: npt.NDArray[np.uint8],
    filepath: str,
) -> None:
    """Save an RGBA8 array as a PNG file.

    Args:
        image: Array of shape (H, W, 4) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array is not (H, W, 4) uint8.
        OSError: If the file cannot be written.
    """
    if image.ndim != 3 or image.shape[2] != 4 or image.dtype != np.uint8:
        raise ValueError(
            f"Expected an (H, W, 4) uint8 image, got {image.shape} {image.dtype}"
        )

    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)


def save_png(renderer: SdfRenderer, filepath: str) -> None:
    """Save the renderer's current image as an RGBA PNG file.

    Args:
        renderer: The SdfRenderer instance to save.
        filepath: Output file path (should end in .png).
    """
    save_png_from_array(renderer.get_image_rgba8(), filepath)
