"""Tests for the reference scene preset."""

import pytest


class TestReferenceScene:
    """Tests for create_reference_scene and setup_reference_scene."""

    def test_create_returns_field_lights_camera(self):
        """Test the preset pairs the reference field with its lights and camera."""
        from src.sdfmarch.camera.view_plane import ViewPlaneCamera
        from src.sdfmarch.field.scenes import reference_field
        from src.sdfmarch.scene.reference import REFERENCE_LIGHTS, create_reference_scene

        field, lights, camera = create_reference_scene()

        assert field is reference_field
        assert lights == list(REFERENCE_LIGHTS)
        assert isinstance(camera, ViewPlaneCamera)
        assert camera.eye == (0.0, 0.0, -100.0)
        assert camera.view_scale == 250.0

    def test_four_lights_in_order(self):
        """Test the reference lights and their order."""
        from src.sdfmarch.scene.reference import REFERENCE_LIGHTS

        assert len(REFERENCE_LIGHTS) == 4
        assert REFERENCE_LIGHTS[0].position == (500.0, 1000.0, -300.0)
        assert REFERENCE_LIGHTS[0].color == (1.0, 0.5, 0.0)
        assert REFERENCE_LIGHTS[3].position == (10.0, -20.0, -50.0)
        assert REFERENCE_LIGHTS[3].color == (0.3, 0.2, 0.2)

    def test_setup_loads_lights_and_camera(self):
        """Test setup_reference_scene stores lights and camera for kernels."""
        from src.sdfmarch.camera.view_plane import get_camera_info
        from src.sdfmarch.core.lights import get_light_count, get_lights
        from src.sdfmarch.field.scenes import reference_field
        from src.sdfmarch.scene.reference import REFERENCE_LIGHTS, setup_reference_scene

        field = setup_reference_scene()

        assert field is reference_field
        assert get_light_count() == 4
        assert get_lights()[1].position == pytest.approx(REFERENCE_LIGHTS[1].position)
        assert get_camera_info()["eye"] == pytest.approx((0.0, 0.0, -100.0))
