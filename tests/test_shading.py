"""Tests for shading: diffuse lighting, shadows and reflection.

Tests cover:
- Lambert shading from one or more point lights
- Shadow rays with and without an occluder
- Reflection blending, the ambient fallback and the bounce limit
- Miss handling for camera rays
"""

import numpy as np
import pytest


def _white_sphere(reflectivity=0.0, center=(0.0, 0.0, 0.0), radius=50.0):
    from src.sdfmarch.field.primitives import SurfaceSpec
    from src.sdfmarch.field.scenes import make_sphere_field

    return make_sphere_field(center, radius, SurfaceSpec((1.0, 1.0, 1.0), reflectivity))


def _shader_for(field, config=None):
    from src.sdfmarch.core.marcher import build_tracer
    from src.sdfmarch.core.shading import build_shader

    return build_shader(build_tracer(field, config))


class TestDirectLighting:
    """Tests for apply_lights via probe_shade."""

    def test_head_on_light(self, sphere_field):
        """Test a light straight above the normal gives light * surface color."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_shade

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 0.5, 0.25))])
        shader = _shader_for(sphere_field)

        rgb = probe_shade(shader, (0.0, 0.0, -50.0))
        np.testing.assert_allclose(rgb, (1.0, 0.5, 0.25), atol=1e-3)

    def test_oblique_light_follows_cosine(self, sphere_field):
        """Test the diffuse factor is the cosine between normal and light."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_shade

        light = np.array([0.0, 0.0, -1000.0])
        setup_lights([Light(position=tuple(light), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(sphere_field)

        theta = np.radians(40.0)
        p = np.array([0.0, 50.0 * np.sin(theta), -50.0 * np.cos(theta)])
        n = p / 50.0
        to_light = (light - p) / np.linalg.norm(light - p)
        expected = float(np.dot(n, to_light))

        rgb = probe_shade(shader, tuple(p))
        np.testing.assert_allclose(rgb, (expected, expected, expected), atol=2e-3)

    def test_back_facing_light_contributes_nothing(self, sphere_field):
        """Test the diffuse factor is clamped at zero."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_shade

        setup_lights([Light(position=(0.0, 0.0, 1000.0), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(sphere_field)

        rgb = probe_shade(shader, (0.0, 0.0, -50.0))
        np.testing.assert_allclose(rgb, (0.0, 0.0, 0.0), atol=1e-6)

    def test_lights_sum_without_clamping(self, sphere_field):
        """Test contributions from several lights add up past 1."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_shade

        setup_lights(
            [
                Light(position=(0.0, 0.0, -1000.0), color=(0.8, 0.8, 0.8)),
                Light(position=(0.0, 0.0, -1000.0), color=(0.8, 0.8, 0.8)),
            ]
        )
        shader = _shader_for(sphere_field)

        rgb = probe_shade(shader, (0.0, 0.0, -50.0))
        np.testing.assert_allclose(rgb, (1.6, 1.6, 1.6), atol=2e-3)

    def test_no_lights_is_black(self, sphere_field):
        """Test a scene without lights shades to black."""
        from src.sdfmarch.core.shading import probe_shade

        shader = _shader_for(sphere_field)
        rgb = probe_shade(shader, (0.0, 0.0, -50.0))
        np.testing.assert_allclose(rgb, (0.0, 0.0, 0.0), atol=1e-6)


class TestShadows:
    """Tests for shadow rays."""

    def test_unoccluded_point_is_lit(self, sphere_field):
        """Test a point facing an unobstructed light is not in shadow."""
        from src.sdfmarch.core.shading import probe_in_shadow

        shader = _shader_for(sphere_field)
        assert not probe_in_shadow(shader, (0.0, 0.0, -50.0), (0.0, 0.0, -1000.0))

    def test_occluder_casts_shadow(self, sphere_field):
        """Test a sphere between the point and the light shadows it."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_in_shadow, probe_shade
        from src.sdfmarch.field.scenes import make_union_field

        occluder = _white_sphere(center=(0.0, 0.0, -200.0), radius=20.0)
        shader = _shader_for(make_union_field(sphere_field, occluder))

        assert probe_in_shadow(shader, (0.0, 0.0, -50.0), (0.0, 0.0, -1000.0))

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 1.0, 1.0))])
        rgb = probe_shade(shader, (0.0, 0.0, -50.0))
        np.testing.assert_allclose(rgb, (0.0, 0.0, 0.0), atol=1e-6)

    def test_occluder_behind_light_casts_no_shadow(self, sphere_field):
        """Test geometry past the light does not shadow the point."""
        from src.sdfmarch.core.shading import probe_in_shadow
        from src.sdfmarch.field.scenes import make_union_field

        blocker = _white_sphere(center=(0.0, 0.0, -400.0), radius=20.0)
        shader = _shader_for(make_union_field(sphere_field, blocker))

        assert not probe_in_shadow(shader, (0.0, 0.0, -50.0), (0.0, 0.0, -200.0))


class TestTrace:
    """Tests for full camera ray tracing."""

    def test_miss_is_black_without_secondary_rays(self, sphere_field):
        """Test a primary miss returns no hit, zero color, no secondary rays."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_trace

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(sphere_field)

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, -1.0), 5)
        assert not hit
        assert color == (0.0, 0.0, 0.0)
        assert secondary == 0

    def test_matte_surface_issues_no_secondary_rays(self, sphere_field):
        """Test reflectivity 0 never traces a reflection."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_trace

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(sphere_field)

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, 1.0), 5)
        assert hit
        assert secondary == 0
        np.testing.assert_allclose(color, (1.0, 1.0, 1.0), atol=1e-3)

    def test_zero_bounces_never_reflects(self):
        """Test max_bounces = 0 returns direct light even on a mirror-like surface."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_trace

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(_white_sphere(reflectivity=0.5))

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, 1.0), 0)
        assert hit
        assert secondary == 0
        np.testing.assert_allclose(color, (1.0, 1.0, 1.0), atol=1e-3)

    def test_escaping_reflection_blends_ambient(self):
        """Test a reflection that escapes mixes in the ambient color."""
        from src.sdfmarch.core.config import AMBIENT_COLOR
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_trace

        setup_lights([Light(position=(0.0, 0.0, -1000.0), color=(1.0, 1.0, 1.0))])
        shader = _shader_for(_white_sphere(reflectivity=0.5))

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, 1.0), 5)
        expected = 0.5 * 1.0 + 0.5 * np.asarray(AMBIENT_COLOR)
        assert hit
        assert secondary == 1
        np.testing.assert_allclose(color, expected, atol=1e-3)

    def test_custom_ambient_color(self):
        """Test the ambient color comes from the marching configuration."""
        from src.sdfmarch.core.config import MarchConfig
        from src.sdfmarch.core.shading import probe_trace

        config = MarchConfig(ambient_color=(0.0, 1.0, 0.0))
        shader = _shader_for(_white_sphere(reflectivity=1.0), config)

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, 1.0), 1)
        assert hit
        assert secondary == 1
        np.testing.assert_allclose(color, (0.0, 1.0, 0.0), atol=1e-4)

    @pytest.mark.parametrize("max_bounces", [1, 2, 3])
    def test_facing_mirrors_stop_at_bounce_limit(self, max_bounces):
        """Test a ray trapped between two mirrors issues max_bounces reflections."""
        from src.sdfmarch.core.shading import probe_trace
        from src.sdfmarch.field.scenes import make_union_field

        front = _white_sphere(reflectivity=0.5, center=(0.0, 0.0, 100.0))
        back = _white_sphere(reflectivity=0.5, center=(0.0, 0.0, -100.0))
        shader = _shader_for(make_union_field(front, back))

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), max_bounces)
        assert hit
        assert secondary == max_bounces
        # No lights and no escape: nothing contributes color
        np.testing.assert_allclose(color, (0.0, 0.0, 0.0), atol=1e-6)

    def test_two_bounces_nest_the_blend(self):
        """Test two reflections between lit mirrors match the nested lerp."""
        from src.sdfmarch.core.lights import Light, setup_lights
        from src.sdfmarch.core.shading import probe_trace
        from src.sdfmarch.field.primitives import SurfaceSpec
        from src.sdfmarch.field.scenes import make_sphere_field, make_union_field

        r0, r1 = 0.5, 0.25
        red = make_sphere_field((0.0, 0.0, 100.0), 50.0, SurfaceSpec((1.0, 0.0, 0.0), r0))
        blue = make_sphere_field((0.0, 0.0, -100.0), 50.0, SurfaceSpec((0.0, 0.0, 1.0), r1))
        shader = _shader_for(make_union_field(red, blue))
        # Both facing surfaces see the light head-on
        setup_lights([Light(position=(0.0, 0.0, 0.0), color=(1.0, 1.0, 1.0))])

        hit, color, secondary = probe_trace(shader, (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 2)

        direct_red = np.array([1.0, 0.0, 0.0])
        direct_blue = np.array([0.0, 0.0, 1.0])
        expected = (1 - r0) * direct_red + r0 * ((1 - r1) * direct_blue + r1 * direct_red)
        assert hit
        assert secondary == 2
        np.testing.assert_allclose(color, expected, atol=5e-3)

    def test_rejects_negative_bounces(self, sphere_field):
        """Test negative max_bounces is rejected."""
        from src.sdfmarch.core.shading import probe_trace

        shader = _shader_for(sphere_field)
        with pytest.raises(ValueError, match="max_bounces"):
            probe_trace(shader, (0.0, 0.0, -100.0), (0.0, 0.0, 1.0), -1)
