"""Scene presets pairing a scene field with its lights and camera.

Components:
    reference: The reference scene (three spheres, four colored lights)

Note:
    Presets store lights and camera in Taichi fields; call ``ti.init``
    before importing this package.
"""

from .reference import (
    REFERENCE_EYE,
    REFERENCE_HEIGHT,
    REFERENCE_LIGHTS,
    REFERENCE_WIDTH,
    create_reference_scene,
    setup_reference_scene,
)

__all__ = [
    "create_reference_scene",
    "setup_reference_scene",
    "REFERENCE_LIGHTS",
    "REFERENCE_EYE",
    "REFERENCE_WIDTH",
    "REFERENCE_HEIGHT",
]
