#!/usr/bin/env python3
"""Render the reference sphere scene.

Sets up the reference lights and camera, sphere-marches every pixel in
parallel and writes an RGBA PNG. Pixels whose camera ray misses the scene
are transparent.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH        Image width in pixels (default: 640)
    --height HEIGHT      Image height in pixels (default: 480)
    --bounces BOUNCES    Maximum reflection bounces (default: 5)
    --output OUTPUT      Output file path (default: test.png)
    --rows-per-batch N   Image rows per progress update (default: 16)
    --threads N          CPU worker threads (default: all cores)
    --arch {cpu,gpu}     Taichi backend (default: cpu)
    --quiet              Suppress progress output

Example:
    python -m examples.render_spheres --width 320 --height 240 --bounces 2
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti
from tqdm import tqdm


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the reference sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=5,
        help="Maximum reflection bounces (default: 5)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="test.png",
        help="Output file path (default: test.png)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Image rows per progress update (default: 16)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="CPU worker threads (default: all cores)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def init_taichi(arch: str, threads: int | None, quiet: bool) -> None:
    """Initialize Taichi, falling back to CPU if no GPU backend is available."""
    options = {}
    if threads is not None:
        if threads <= 0:
            raise ValueError(f"--threads must be positive, got {threads}")
        options["cpu_max_num_threads"] = threads

    if arch == "cpu":
        ti.init(arch=ti.cpu, **options)
        if not quiet:
            print("Using CPU backend")
        return

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu, **options)
        if not quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu, **options)
        if not quiet:
            print("Using CPU backend")


def render_spheres(
    width: int = 640,
    height: int = 480,
    max_bounces: int = 5,
    output_path: str = "test.png",
    rows_per_batch: int = 16,
    quiet: bool = False,
) -> Path:
    """Render the reference scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        max_bounces: Maximum reflection bounces per camera ray.
        output_path: Output file path (PNG).
        rows_per_batch: Image rows rendered between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.sdfmarch.core.config import RenderSettings
    from src.sdfmarch.core.progress import tqdm_callback
    from src.sdfmarch.core.renderer import SdfRenderer
    from src.sdfmarch.preview.export import save_png
    from src.sdfmarch.scene.reference import setup_reference_scene

    settings = RenderSettings(
        width=width,
        height=height,
        max_bounces=max_bounces,
        rows_per_batch=rows_per_batch,
    )

    if not quiet:
        print(f"Creating reference scene ({settings.width}x{settings.height})...")

    field = setup_reference_scene()
    renderer = SdfRenderer(settings.width, settings.height, field=field)

    if not quiet:
        print(f"Rendering with up to {settings.max_bounces} reflection bounces...")

    start_time = time.time()

    with tqdm(total=renderer.pixel_count, unit="px", disable=quiet) as bar:
        renderer.render(
            max_bounces=settings.max_bounces,
            rows_per_batch=settings.rows_per_batch,
            callback=tqdm_callback(bar),
        )

    output_file = Path(output_path)
    save_png(renderer, str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        init_taichi(args.arch, args.threads, args.quiet)
        render_spheres(
            width=args.width,
            height=args.height,
            max_bounces=args.bounces,
            output_path=args.output,
            rows_per_batch=args.rows_per_batch,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
