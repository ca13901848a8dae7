"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview display
    export: RGBA8 conversion and PNG export

Example:
    >>> from src.sdfmarch.preview import save_png, show_preview
    >>> from src.sdfmarch.core.renderer import SdfRenderer
    >>>
    >>> renderer = SdfRenderer(640, 480)
    >>> renderer.render(max_bounces=5)
    >>> show_preview(renderer)
    >>> save_png(renderer, "test.png")
"""

from src.sdfmarch.preview.display import rgba8_to_display, show_preview
from src.sdfmarch.preview.export import save_png, save_png_from_array, to_rgba8

__all__ = [
    # Display functions
    "show_preview",
    "rgba8_to_display",
    # Export functions
    "to_rgba8",
    "save_png",
    "save_png_from_array",
]
