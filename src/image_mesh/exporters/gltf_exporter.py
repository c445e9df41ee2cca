"""
glTF 2.0 Exporter (.gltf JSON / .glb binary)

glTF is the preferred format for game engines and web viewers.
This exporter writes:
- Positions (float32 vec3)
- Normals (float32 vec3), when the mesh has them
- Texture coordinates (float32 vec2, TEXCOORD_0)
- Indices (uint16/uint32), omitted for point clouds

Texture coordinates are written unflipped: glTF puts the UV origin at the
top-left corner of the image, the same convention the generator uses.

A .gltf file embeds its buffer as a base64 data URI; a .glb file stores it in
the binary chunk. Textures are referenced by relative URI.
"""

from pathlib import Path
from typing import Union, Optional, Dict, Any, List, Tuple
import base64
import json
import struct
import numpy as np

from ..exceptions import ExportError
from ..extrusion import MeshData


# glTF constants
GLTF_VERSION = "2.0"
GENERATOR = "ImageMesh"

# Component types
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

# Buffer view targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

# Primitive modes
POINTS = 0
TRIANGLES = 4

# Sampler filters / wrapping
LINEAR = 9729
LINEAR_MIPMAP_LINEAR = 9987
CLAMP_TO_EDGE = 33071


class GLTFExporter:
    """
    Export mesh data to glTF 2.0.

    Features:
    - Binary (.glb) or embedded JSON (.gltf) output
    - Optional diffuse texture referenced by URI
    - Compact index type selection
    """

    def __init__(self, binary: bool = True):
        """
        Initialize the exporter.

        Args:
            binary: Write .glb if True, .gltf with an embedded buffer otherwise
        """
        self.binary = binary

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        texture_name: Optional[str] = None,
        material_name: str = "ImageMaterial"
    ):
        """
        Export mesh to a glTF file.

        Args:
            mesh: Finished MeshData
            output_path: Output file path
            texture_name: Relative path of the diffuse texture, if any
            material_name: Name for the material
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ExportError("Cannot export empty mesh")

        vertices = mesh.vertices.astype(np.float32)
        normals = mesh.normals.astype(np.float32)
        uvs = mesh.uvs.astype(np.float32)
        indices = mesh.indices

        # Determine index type
        index_type = None
        if len(indices) > 0:
            if indices.max() < 65536:
                index_type = UNSIGNED_SHORT
                indices = indices.astype(np.uint16)
            else:
                index_type = UNSIGNED_INT
                indices = indices.astype(np.uint32)

        # (array, target) in buffer order
        views: List[Tuple[np.ndarray, int]] = []
        if index_type is not None:
            views.append((indices, ELEMENT_ARRAY_BUFFER))
        views.append((vertices, ARRAY_BUFFER))
        if len(normals) > 0:
            views.append((normals, ARRAY_BUFFER))
        views.append((uvs, ARRAY_BUFFER))

        buffer_data, buffer_views = self._build_buffer(views)

        gltf = self._build_gltf(
            vertices, normals, indices, index_type,
            buffer_views, len(buffer_data),
            texture_name, material_name
        )

        if self.binary:
            self._write_glb(output_path, gltf, buffer_data)
        else:
            self._write_gltf(output_path, gltf, buffer_data)

    def _build_buffer(
        self,
        views: List[Tuple[np.ndarray, int]]
    ) -> Tuple[bytes, List[Dict[str, Any]]]:
        """Pack arrays into one buffer with 4-byte aligned views."""
        parts = []
        buffer_views = []
        offset = 0

        for array, target in views:
            data = np.ascontiguousarray(array).tobytes()
            buffer_views.append({
                "buffer": 0,
                "byteOffset": offset,
                "byteLength": len(data),
                "target": target
            })
            parts.append(data)
            offset += len(data)

            # Pad to 4-byte alignment
            padding = (4 - len(data) % 4) % 4
            parts.append(b'\x00' * padding)
            offset += padding

        return b''.join(parts), buffer_views

    def _build_gltf(
        self,
        vertices: np.ndarray,
        normals: np.ndarray,
        indices: np.ndarray,
        index_type: Optional[int],
        buffer_views: List[Dict[str, Any]],
        buffer_length: int,
        texture_name: Optional[str],
        material_name: str
    ) -> Dict[str, Any]:
        """Build the glTF JSON structure."""
        num_vertices = len(vertices)
        accessors = []
        view_index = 0

        if index_type is not None:
            accessors.append({
                "bufferView": view_index,
                "componentType": index_type,
                "count": len(indices),
                "type": "SCALAR"
            })
            view_index += 1

        attributes = {}

        attributes["POSITION"] = len(accessors)
        accessors.append({
            "bufferView": view_index,
            "componentType": FLOAT,
            "count": num_vertices,
            "type": "VEC3",
            "min": vertices.min(axis=0).tolist(),
            "max": vertices.max(axis=0).tolist()
        })
        view_index += 1

        if len(normals) > 0:
            attributes["NORMAL"] = len(accessors)
            accessors.append({
                "bufferView": view_index,
                "componentType": FLOAT,
                "count": num_vertices,
                "type": "VEC3"
            })
            view_index += 1

        attributes["TEXCOORD_0"] = len(accessors)
        accessors.append({
            "bufferView": view_index,
            "componentType": FLOAT,
            "count": num_vertices,
            "type": "VEC2"
        })

        primitive = {
            "attributes": attributes,
            "material": 0,
            "mode": TRIANGLES if index_type is not None else POINTS
        }
        if index_type is not None:
            primitive["indices"] = 0

        material = {
            "name": material_name,
            "pbrMetallicRoughness": {
                "baseColorFactor": [1.0, 1.0, 1.0, 1.0],
                "metallicFactor": 0.0,
                "roughnessFactor": 0.5
            },
            "doubleSided": False
        }

        gltf = {
            "asset": {
                "version": GLTF_VERSION,
                "generator": GENERATOR
            },
            "scene": 0,
            "scenes": [
                {"nodes": [0]}
            ],
            "nodes": [
                {
                    "mesh": 0,
                    "name": "ImageModel"
                }
            ],
            "meshes": [
                {
                    "primitives": [primitive],
                    "name": "ImageMesh"
                }
            ],
            "materials": [material],
            "accessors": accessors,
            "bufferViews": buffer_views,
            "buffers": [
                {
                    "byteLength": buffer_length
                }
            ]
        }

        if texture_name is not None:
            material["pbrMetallicRoughness"]["baseColorTexture"] = {"index": 0}
            gltf["samplers"] = [{
                "magFilter": LINEAR,
                "minFilter": LINEAR_MIPMAP_LINEAR,
                "wrapS": CLAMP_TO_EDGE,
                "wrapT": CLAMP_TO_EDGE
            }]
            gltf["images"] = [{"uri": texture_name}]
            gltf["textures"] = [{"sampler": 0, "source": 0}]

        return gltf

    def _write_gltf(
        self,
        output_path: Path,
        gltf: Dict[str, Any],
        buffer_data: bytes
    ):
        """Write a .gltf JSON file with the buffer embedded as a data URI."""
        encoded = base64.b64encode(buffer_data).decode('ascii')
        gltf["buffers"][0]["uri"] = f"data:application/octet-stream;base64,{encoded}"

        with open(output_path, 'w') as f:
            json.dump(gltf, f, indent=2)

    def _write_glb(
        self,
        output_path: Path,
        gltf: Dict[str, Any],
        buffer_data: bytes
    ):
        """Write the GLB binary file."""
        # Encode JSON
        json_bytes = json.dumps(gltf, separators=(',', ':')).encode('utf-8')

        # Pad JSON to 4-byte alignment
        json_padding = (4 - len(json_bytes) % 4) % 4
        json_bytes += b' ' * json_padding

        total_length = 12 + 8 + len(json_bytes) + 8 + len(buffer_data)

        with open(output_path, 'wb') as f:
            # Header
            f.write(struct.pack('<I', 0x46546C67))  # glTF magic
            f.write(struct.pack('<I', 2))           # Version 2
            f.write(struct.pack('<I', total_length))

            # JSON chunk
            f.write(struct.pack('<I', len(json_bytes)))
            f.write(struct.pack('<I', 0x4E4F534A))  # JSON magic
            f.write(json_bytes)

            # Binary chunk
            f.write(struct.pack('<I', len(buffer_data)))
            f.write(struct.pack('<I', 0x004E4942))  # BIN magic
            f.write(buffer_data)
