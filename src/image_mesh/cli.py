"""
Command-Line Interface for Image Mesh

Usage:
    imgmesh input.png -o output.obj
    imgmesh input.png --method edge_based --detail high --depth 2 -o relief
    imgmesh input.png --mirror z -o model --format obj glb

"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional
import time

from . import __version__
from .generator import MeshGenerator, BatchProcessor
from .extrusion import DetailLevel, ExtrusionMethod
from .transform import MirrorAxis


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="imgmesh",
        description="Image Mesh - Convert 2D images to textured 3D meshes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  imgmesh photo.png -o model.obj
      Convert photo.png to an OBJ relief with texture

  imgmesh logo.png --method edge_based --depth 0.5 -o logo --format glb stl
      Raise the edges of logo.png, export GLB and STL

  imgmesh face.png --mirror z -o face.glb
      Merge the relief with its mirror image across the Z plane

  imgmesh --batch photos/ --output-dir models/ --format glb
      Batch process all PNGs in the photos directory

Methods:
  depth_map      - Brightness drives height (default)
  edge_based     - Sobel edge strength drives height
  contour_based  - Stacked brightness bands (point cloud, no faces)

Detail levels:
  low (8px step), medium (4px step, default), high (2px step)
        """
    )

    # Input
    parser.add_argument(
        "input",
        nargs="?",
        help="Input image file"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        help="Output file path (extension determines format, or use --format)"
    )

    # Extrusion settings
    parser.add_argument(
        "-m", "--method",
        choices=[m.value for m in ExtrusionMethod],
        default=ExtrusionMethod.DEPTH_MAP.value,
        help="Extrusion method (default: depth_map)"
    )

    parser.add_argument(
        "-d", "--detail",
        choices=[d.value for d in DetailLevel],
        default=DetailLevel.MEDIUM.value,
        help="Detail level (default: medium)"
    )

    parser.add_argument(
        "--depth",
        type=float,
        default=1.0,
        help="Extrusion depth (default: 1.0)"
    )

    parser.add_argument(
        "--flat-normals",
        action="store_true",
        help="Use flat instead of smooth normals"
    )

    parser.add_argument(
        "--mirror",
        choices=[a.value for a in MirrorAxis],
        default=MirrorAxis.NONE.value,
        help="Merge the mesh with its mirror across this axis (default: none)"
    )

    # Output settings
    parser.add_argument(
        "-f", "--format",
        nargs="+",
        choices=["obj", "ply", "stl", "gltf", "glb"],
        help="Output format(s) (default: from --output extension, else obj)"
    )

    parser.add_argument(
        "--no-texture",
        action="store_true",
        help="Don't write the <name>_texture.png file"
    )

    # Batch processing
    parser.add_argument(
        "--batch",
        help="Batch process directory of images"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for batch processing"
    )

    parser.add_argument(
        "--pattern",
        default="*.png",
        help="File pattern for batch processing (default: *.png)"
    )

    # Misc
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with statistics"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print mesh statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def generator_kwargs(args) -> dict:
    """Collect MeshGenerator settings from parsed arguments."""
    return {
        "method": args.method,
        "detail": args.detail,
        "depth": args.depth,
        "smooth_normals": not args.flat_normals,
        "mirror_axis": args.mirror,
    }


def output_paths(args, input_path: Path) -> List[Path]:
    """Resolve the model paths to write for a single input."""
    if args.output:
        output = Path(args.output)
    else:
        output = input_path.with_suffix("")

    if args.format:
        return [output.with_suffix(f".{fmt}") for fmt in args.format]
    if output.suffix:
        return [output]
    return [output.with_suffix(".obj")]


def process_single(args) -> int:
    """Process a single image file."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        generator = MeshGenerator(**generator_kwargs(args))

        if args.verbose:
            print(f"Loading: {input_path}")

        generator.load_image(input_path)

        if args.verbose:
            print(f"Generating mesh with method: {args.method}")

        generator.generate()

        if args.stats or args.verbose:
            stats = generator.get_mesh_stats()
            print("\nMesh Statistics:")
            print(f"  Grid size: {stats['grid_size']} (step {stats['step']})")
            print(f"  Vertices: {stats['vertices']}")
            print(f"  Triangles: {stats['triangles']}")
            print(f"  Orphan vertices: {stats['orphan_vertices']}")
            if stats["mirror_axis"] != MirrorAxis.NONE.value:
                print(f"  Mirrored ({stats['mirror_axis']}) vertices: {stats['output_vertices']}")
                print(f"  Mirrored ({stats['mirror_axis']}) triangles: {stats['output_triangles']}")

        for output_path in output_paths(args, input_path):
            generator.export(output_path, include_texture=not args.no_texture)
            if args.verbose:
                print(f"Exported: {output_path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_batch(args) -> int:
    """Process a batch of images."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else batch_dir / "output"

    start_time = time.time()

    try:
        processor = BatchProcessor(**generator_kwargs(args))

        outputs = processor.process_directory(
            batch_dir,
            output_dir,
            pattern=args.pattern,
            formats=args.format or ["obj"],
            include_texture=not args.no_texture
        )

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    if args.batch:
        return process_batch(args)
    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
