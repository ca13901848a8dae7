"""Matplotlib-based preview display for rendered images.

Example:
    >>> from src.sdfmarch.preview.display import show_preview
    >>> from src.sdfmarch.core.renderer import SdfRenderer
    >>>
    >>> renderer = SdfRenderer(640, 480)
    >>> renderer.render(max_bounces=5)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.sdfmarch.core.renderer import SdfRenderer


def rgba8_to_display(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.float32]:
    """Convert an RGBA8 image to floats in [0, 1] for ``imshow``.

    Args:
        image: Array of shape (H, W, 4) with dtype uint8.

    Returns:
        Float array of shape (H, W, 4).
    """
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) image, got {image.shape}")
    return (image.astype(np.float32) / 255.0).astype(np.float32)


def show_preview(
    renderer: SdfRenderer,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Missed pixels are transparent and show the figure background.

    Args:
        renderer: The SdfRenderer instance to display.
        title: Custom title (default shows image size and hit coverage).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = rgba8_to_display(renderer.get_image_rgba8())

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        coverage = float(renderer.get_hit_mask().mean()) * 100.0
        title = f"{renderer.width}x{renderer.height} - {coverage:.1f}% hit"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
