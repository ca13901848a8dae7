"""Taichi-based sphere-marching renderer for signed-distance-field scenes.

This package renders scenes described by signed distance functions, with support for:
- Sphere marching with a minimum step and pluggable escape predicates
- CSG composition (union, intersection, complement) with warping and displacement
- Point lights with hard shadows and Lambert shading
- Mirror reflection blended by surface reflectivity
- Per-pixel parallel rendering with batched progress reporting

Subpackages:
    core: Vector utilities, configuration, marcher, shading and the renderer
    field: Distance primitives, CSG operators and scene fields
    camera: Eye-and-view-plane camera for primary rays
    scene: Preset scenes with their lights and camera
    preview: RGBA export and preview utilities
"""

__version__ = "0.1.0"
