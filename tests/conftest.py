"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear lights, camera and render target before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are declared
    from src.sdfmarch.camera.view_plane import ViewPlaneCamera, setup_camera
    from src.sdfmarch.core.lights import clear_lights
    from src.sdfmarch.core.renderer import clear_render_target

    def _clear_all():
        clear_lights()
        setup_camera(ViewPlaneCamera())
        clear_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture(scope="session")
def sphere_field():
    """A matte white sphere of radius 50 at the origin."""
    from src.sdfmarch.field.primitives import SurfaceSpec
    from src.sdfmarch.field.scenes import make_sphere_field

    return make_sphere_field((0.0, 0.0, 0.0), 50.0, SurfaceSpec(color=(1.0, 1.0, 1.0)))
