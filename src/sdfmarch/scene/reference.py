"""Reference scene configuration.

The reference scene is two merged spheres (a warped gold one and a blue
one) with a rippled cavity carved out by a third, inverted sphere, lit by
four colored point lights and seen from an eye 100 units in front of the
view plane.

The scene geometry lives in :func:`src.sdfmarch.field.scenes.reference_field`;
this module pairs it with its lights and camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.sdfmarch.core.renderer import SdfRenderer
    >>> from src.sdfmarch.scene.reference import REFERENCE_HEIGHT, REFERENCE_WIDTH, setup_reference_scene
    >>>
    >>> field = setup_reference_scene()
    >>> renderer = SdfRenderer(REFERENCE_WIDTH, REFERENCE_HEIGHT, field=field)
"""

from typing import Any

from src.sdfmarch.camera.view_plane import DEFAULT_VIEW_SCALE, ViewPlaneCamera, setup_camera
from src.sdfmarch.core.lights import Light, setup_lights
from src.sdfmarch.field.scenes import reference_field

# =============================================================================
# Reference Scene Parameters
# =============================================================================

REFERENCE_WIDTH = 640
REFERENCE_HEIGHT = 480

REFERENCE_EYE = (0.0, 0.0, -100.0)

REFERENCE_LIGHTS = (
    Light(position=(500.0, 1000.0, -300.0), color=(1.0, 0.5, 0.0)),
    Light(position=(-700.0, -500.0, -10.0), color=(0.0, 0.5, 1.0)),
    Light(position=(-700.0, 1500.0, 10.0), color=(0.5, 0.0, 1.0)),
    Light(position=(10.0, -20.0, -50.0), color=(0.3, 0.2, 0.2)),
)


def create_reference_scene() -> tuple[Any, list[Light], ViewPlaneCamera]:
    """Create the reference scene.

    Returns:
        A tuple of (field, lights, camera) where:
        - field is the scene ``ti.func``
        - lights is the list of point lights in shading order
        - camera is the ViewPlaneCamera for the standard view
    """
    camera = ViewPlaneCamera(eye=REFERENCE_EYE, view_scale=DEFAULT_VIEW_SCALE)
    return reference_field, list(REFERENCE_LIGHTS), camera


def setup_reference_scene() -> Any:
    """Load the reference lights and camera into Taichi storage.

    Returns:
        The scene field, ready to pass to SdfRenderer.
    """
    field, lights, camera = create_reference_scene()
    setup_lights(lights)
    setup_camera(camera)
    return field
