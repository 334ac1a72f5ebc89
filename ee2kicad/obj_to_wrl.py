"""Wavefront OBJ (with inline MTL) to VRML 2.0 converter.

EasyEDA serves 3D models as a single text blob: material definitions in
newmtl..endmtl blocks, then vertices, then faces grouped by usemtl. KiCad
wants VRML, one Shape per material group, with coordinates in 0.1 inch.
"""

import logging
import re

from .cad_model import Material, MeshModel, MeshShape

log = logging.getLogger(__name__)

# OBJ coordinates are mm, VRML for KiCad is in 0.1 inch
OBJ_UNITS_PER_WRL_UNIT = 2.54
VERTEX_DECIMALS = 4

WRL_HEADER = "#VRML V2.0 utf8\n# 3D model generated by ee2kicad\n"

_MATERIAL_BLOCK = re.compile(r"newmtl[\s\S]*?endmtl")
_VERTEX_LINE = re.compile(r"^v\s+(.*)$", re.MULTILINE)

# MTL keyword -> Material attribute
_MATERIAL_KEYS = {
    "Ka": "ambient",
    "Kd": "diffuse",
    "Ks": "specular",
    "d": "transparency",
}


class VertexArena:
    """Assigns shape-local indices to global OBJ vertices on first use."""

    def __init__(self, vertices: list):
        self.vertices = vertices
        self.local_index = {}
        self.points = []

    def resolve(self, index: int):
        """Global vertex index for an OBJ face reference, or None if out of range.

        OBJ indices are 1-based; negative ones count back from the last vertex.
        """
        if index < 0:
            index = len(self.vertices) + index + 1
        if 1 <= index <= len(self.vertices):
            return index
        return None

    def add(self, index: int) -> int:
        local = self.local_index.get(index)
        if local is None:
            local = len(self.points)
            self.local_index[index] = local
            self.points.append(self.vertices[index - 1])
        return local


def _parse_materials(text: str) -> dict:
    materials = {}
    for block in _MATERIAL_BLOCK.findall(text):
        material = Material()
        material_id = ""
        for line in block.splitlines():
            tokens = line.split()
            if not tokens:
                continue
            if tokens[0] == "newmtl":
                material_id = tokens[1] if len(tokens) > 1 else ""
            elif tokens[0] in _MATERIAL_KEYS:
                setattr(material, _MATERIAL_KEYS[tokens[0]], tokens[1:])
        materials[material_id] = material
    return materials


def _parse_vertices(text: str) -> list:
    vertices = []
    for coords in _VERTEX_LINE.findall(text):
        values = []
        for value in coords.split():
            try:
                values.append(f"{float(value) / OBJ_UNITS_PER_WRL_UNIT:.{VERTEX_DECIMALS}f}")
            except ValueError:
                values.append(f"{0:.{VERTEX_DECIMALS}f}")
        vertices.append(" ".join(values))
    return vertices


def _parse_face(line: str):
    """Vertex indices of an "f v/vt/vn ..." line; None if any index is not a number."""
    indices = []
    for part in line[2:].split():
        try:
            indices.append(int(part.split("/")[0]))
        except ValueError:
            return None
    return indices


def parse_obj(text: str) -> MeshModel:
    text = str(text or "")
    materials = _parse_materials(text)
    vertices = _parse_vertices(text)
    shapes = []
    skipped = 0

    for group in text.split("usemtl")[1:]:
        lines = [line for line in group.splitlines() if line]
        if not lines:
            continue

        material = materials.get("".join(lines[0].split()), Material())
        arena = VertexArena(vertices)
        coord_index = []

        for line in lines[1:]:
            if not line.startswith("f "):
                continue
            face = _parse_face(line)
            resolved = [arena.resolve(i) for i in face] if face is not None else [None]
            if None in resolved:
                skipped += 1
                continue
            coord_index.append([arena.add(i) for i in resolved] + [-1])

        points = arena.points
        if points:
            points.append(points[-1])

        shapes.append(MeshShape(material=material, points=points, coord_index=coord_index))

    if skipped:
        log.debug("Skipped %d faces referencing unknown vertices", skipped)
    log.info("Parsed OBJ: %d materials, %d vertices, %d shapes",
             len(materials), len(vertices), len(shapes))

    return MeshModel(materials=materials, vertices=vertices, shapes=shapes)


def _shape_block(shape: MeshShape) -> str:
    coord_index = "".join(" ".join(str(i) for i in face) + "," for face in shape.coord_index)
    return f"""
Shape{{
    appearance Appearance {{
        material  Material {{
            diffuseColor {" ".join(shape.material.diffuse)}
            specularColor {" ".join(shape.material.specular)}
            ambientIntensity 0.2
            transparency 0
            shininess 0.5
        }}
    }}
    geometry IndexedFaceSet {{
        ccw TRUE
        solid FALSE
        coord DEF co Coordinate {{
            point [
                {", ".join(shape.points)}
            ]
        }}
        coordIndex [
            {coord_index}
        ]
    }}
}}"""


def write_wrl(mesh: MeshModel) -> str:
    return WRL_HEADER + "".join(_shape_block(shape) for shape in mesh.shapes)


def convert_obj_to_wrl(text: str) -> str:
    """Convert OBJ text with inline materials to a VRML 2.0 scene."""
    return write_wrl(parse_obj(text))
