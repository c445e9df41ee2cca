#!/usr/bin/env python3
"""
Image Mesh Demo Script

This script demonstrates the full image-to-mesh pipeline by:
1. Creating synthetic test images (no external images needed)
2. Running every extrusion method on each image
3. Exporting to all supported formats
4. Printing statistics and timings

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from image_mesh import MeshGenerator, ExtrusionMethod, ImageMeshError
from image_mesh.normals import compute_flat_normals, compute_smooth_normals


def create_test_image_dome(size: int = 64) -> np.ndarray:
    """
    Create a radial brightness dome.

    Returns:
        RGBA array
    """
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64)
    center = (size - 1) / 2.0
    dist = np.sqrt((xs - center) ** 2 + (ys - center) ** 2) / center
    gray = np.clip(1.0 - dist, 0.0, 1.0)

    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :, 0] = (gray * 255).astype(np.uint8)
    rgba[:, :, 1] = (gray * 180).astype(np.uint8)
    rgba[:, :, 2] = 90
    rgba[:, :, 3] = 255
    return rgba


def create_test_image_logo(size: int = 64) -> np.ndarray:
    """
    Create a hard-edged logo: a bright ring and bar on black.

    Returns:
        RGBA array
    """
    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :, 3] = 255

    ys, xs = np.mgrid[0:size, 0:size]
    center = size // 2
    dist = np.sqrt((xs - center) ** 2 + (ys - center) ** 2)

    ring = (dist > size * 0.25) & (dist < size * 0.38)
    bar = (np.abs(xs - center) < size // 16) & (np.abs(ys - center) < size // 4)

    rgba[ring | bar, :3] = [240, 240, 240]
    return rgba


def create_test_image_terrain(size: int = 96, seed: int = 7) -> np.ndarray:
    """
    Create a smooth pseudo-random terrain from summed sine waves.

    Returns:
        RGBA array
    """
    rng = np.random.default_rng(seed)
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64) / size

    height = np.zeros((size, size))
    for _ in range(6):
        fx, fy = rng.uniform(1, 6, size=2)
        phase = rng.uniform(0, 2 * np.pi)
        height += np.sin(2 * np.pi * (fx * xs + fy * ys) + phase)

    height = (height - height.min()) / (height.max() - height.min())

    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :, 0] = (height * 120).astype(np.uint8)
    rgba[:, :, 1] = (80 + height * 175).astype(np.uint8)
    rgba[:, :, 2] = (height * 60).astype(np.uint8)
    rgba[:, :, 3] = 255
    return rgba


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Image Mesh - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    # Test images
    test_images = [
        ("dome", create_test_image_dome(64)),
        ("logo", create_test_image_logo(64)),
        ("terrain", create_test_image_terrain(96)),
    ]

    total_start = time.time()

    for name, rgba in test_images:
        print(f"\n--- Processing: {name} ---")
        print(f"Input size: {rgba.shape[1]}x{rgba.shape[0]} pixels")

        image_start = time.time()

        generator = MeshGenerator(detail="high", depth=1.5)
        generator.load_array(rgba)

        print("\nTesting extrusion methods:")

        for method in ExtrusionMethod:
            generator.configure(method=method.value)

            gen_start = time.time()
            generator.generate()
            gen_time = time.time() - gen_start

            print(f"  {method.value}:")
            print(f"    Generation: {gen_time*1000:.1f}ms")
            print(f"    Vertices: {generator.vertex_count}")
            print(f"    Triangles: {generator.triangle_count}")

        # Export with the depth map relief, mirrored into a closed shell
        print(f"\n  Exporting...")
        base_path = output_dir / name

        export_start = time.time()

        generator.configure(method=ExtrusionMethod.DEPTH_MAP.value)
        generator.set_mirror("z")
        generator.generate()

        for suffix in (".obj", ".ply", ".stl", ".glb", ".gltf"):
            try:
                generator.export(base_path.with_suffix(suffix))
                print(f"    Saved: {base_path.with_suffix(suffix)}")
            except ImageMeshError as e:
                print(f"    {suffix[1:].upper()} export failed: {e}")

        export_time = time.time() - export_start
        image_time = time.time() - image_start

        print(f"    Export time: {export_time*1000:.1f}ms")
        print(f"    Total time: {image_time*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_normals():
    """Benchmark smooth and flat normal kernels."""
    print("\n--- Normal Computation Benchmark ---\n")

    sizes = [128, 256, 512, 1024]

    for size in sizes:
        generator = MeshGenerator(detail="high")
        generator.load_array(create_test_image_terrain(size)).generate()
        mesh = generator.mesh

        start = time.time()
        compute_smooth_normals(mesh.vertices, mesh.indices)
        smooth_time = time.time() - start

        start = time.time()
        compute_flat_normals(mesh.vertices, mesh.indices)
        flat_time = time.time() - start

        print(f"Image size: {size}x{size} ({mesh.vertex_count} verts, {mesh.triangle_count} tris)")
        print(f"  Smooth: {smooth_time*1000:.1f}ms")
        print(f"  Flat:   {flat_time*1000:.1f}ms")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_normals()
