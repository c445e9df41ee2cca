#!/usr/bin/env python3
"""
Image Mesh Web Interface

A simple Gradio-based web UI for converting 2D images to textured 3D meshes.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from image_mesh import MeshGenerator, ImageMeshError


METHODS = {
    "Depth Map": "depth_map",
    "Edge Detection": "edge_based",
    "Contour Based": "contour_based",
}

DETAILS = {
    "Low": "low",
    "Medium": "medium",
    "High": "high",
}

MIRRORS = {
    "No Mirror": "none",
    "Mirror X": "x",
    "Mirror Y": "y",
    "Mirror Z": "z",
}


def process_image(
    image,
    method: str,
    detail: str,
    depth: float,
    smooth_normals: bool,
    mirror: str,
    export_glb: bool,
    export_obj: bool,
    export_stl: bool
):
    """
    Process an uploaded image and generate a mesh.

    Returns preview path, stats text, and file paths for downloads.
    """
    if image is None:
        return None, "Please upload an image first.", None, None, None

    if not isinstance(image, np.ndarray):
        return None, "Invalid image format.", None, None, None

    generator = MeshGenerator(
        method=METHODS.get(method, "depth_map"),
        detail=DETAILS.get(detail, "medium"),
        depth=depth,
        smooth_normals=smooth_normals,
        mirror_axis=MIRRORS.get(mirror, "none")
    )

    try:
        generator.load_array(image)
        generator.generate()
    except ImageMeshError as e:
        return None, f"Error generating 3D model: {e}", None, None, None

    stats = generator.get_mesh_stats()

    if stats["vertices"] == 0:
        return None, "The image is too small for this detail level.", None, None, None

    stats_text = f"""## Mesh Generated

| Metric | Value |
|--------|-------|
| Input Size | {image.shape[1]} x {image.shape[0]} pixels |
| Grid Size | {stats['grid_size'][0]} x {stats['grid_size'][1]} (step {stats['step']}) |
| Vertices | {stats['output_vertices']:,} |
| Triangles | {stats['output_triangles']:,} |

**Settings:** {method}, {detail}, Depth={depth}, {"Smooth" if smooth_normals else "Flat"} normals, {mirror}
"""

    export_dir = Path(tempfile.mkdtemp(prefix="imgmesh_"))

    # Always create GLB for preview
    preview_path = str(generator.export(export_dir / "preview.glb"))

    glb_path = str(generator.export(export_dir / "model.glb")) if export_glb else None
    obj_path = str(generator.export(export_dir / "model.obj")) if export_obj else None
    stl_path = str(generator.export(export_dir / "model.stl")) if export_stl else None

    return preview_path, stats_text, glb_path, obj_path, stl_path


def create_demo_image(style: str):
    """Create a demo image for testing."""
    if not style:
        return None

    size = 128
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64)
    center = (size - 1) / 2.0
    dist = np.sqrt((xs - center) ** 2 + (ys - center) ** 2) / center

    if style == "Dome":
        gray = np.clip(1.0 - dist, 0.0, 1.0)
    elif style == "Rings":
        gray = 0.5 + 0.5 * np.cos(dist * 6 * np.pi)
    elif style == "Gradient":
        gray = xs / (size - 1)
    elif style == "Checker":
        gray = (((xs // 16) + (ys // 16)) % 2).astype(np.float64)
    else:
        return None

    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :, 0] = (gray * 255).astype(np.uint8)
    rgba[:, :, 1] = (gray * 200).astype(np.uint8)
    rgba[:, :, 2] = ((1.0 - gray) * 255).astype(np.uint8)
    rgba[:, :, 3] = 255
    return rgba


# Build the Gradio interface
with gr.Blocks(title="Image Mesh") as app:

    gr.Markdown("""
    # Image Mesh
    ### Convert 2D Images to Textured 3D Meshes

    Upload an image or try a demo, adjust the settings, and download your 3D model!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Image")

            image_input = gr.Image(
                label="Upload Image",
                type="numpy",
                image_mode="RGBA"
            )

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=["Dome", "Rings", "Gradient", "Checker"],
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            gr.Markdown("### Settings")

            method_input = gr.Dropdown(
                choices=list(METHODS),
                value="Depth Map",
                label="Extrusion Method"
            )

            detail_input = gr.Dropdown(
                choices=list(DETAILS),
                value="Medium",
                label="Detail Level"
            )

            depth_input = gr.Slider(
                minimum=0.0,
                maximum=5.0,
                value=1.0,
                step=0.1,
                label="Extrusion Depth"
            )

            smooth_input = gr.Checkbox(value=True, label="Smooth Normals")

            mirror_input = gr.Dropdown(
                choices=list(MIRRORS),
                value="No Mirror",
                label="Mirror"
            )

            gr.Markdown("### Export Formats")
            with gr.Row():
                export_glb = gr.Checkbox(value=True, label="GLB")
                export_obj = gr.Checkbox(value=True, label="OBJ")
                export_stl = gr.Checkbox(value=False, label="STL")

            generate_btn = gr.Button("Generate 3D Model", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### 3D Preview")
            gr.Markdown("*Click and drag to rotate, scroll to zoom*")

            model_preview = gr.Model3D(
                label="3D Model Preview",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Upload an image and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            glb_output = gr.File(label="GLB (Game engines / Web)")
            obj_output = gr.File(label="OBJ (Universal)")
            stl_output = gr.File(label="STL (3D printing)")

            gr.Markdown("""
            ---
            **Tips:**
            - **Depth Map** = bright is high
            - **Edge Detection** = outlines stand out
            - **Contour Based** = layered points, no faces
            - **Flat** normals show every facet
            """)

    # Wire up events
    demo_btn.click(
        fn=create_demo_image,
        inputs=[demo_dropdown],
        outputs=[image_input]
    )

    generate_btn.click(
        fn=process_image,
        inputs=[
            image_input,
            method_input,
            detail_input,
            depth_input,
            smooth_input,
            mirror_input,
            export_glb,
            export_obj,
            export_stl
        ],
        outputs=[model_preview, stats_output, glb_output, obj_output, stl_output]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Image Mesh Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
