"""Data model for EasyEDA to KiCad conversion.

Two sides of the pipeline live here: the vendor-side entities produced by
the parser (EasyEDA canvas units, document coordinates) and the KiCad-side
entities produced by the converter (mm, rebased, target axis conventions).
Each stage builds new instances; nothing is mutated after construction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PinType(Enum):
    UNSPECIFIED = "unspecified"
    INPUT = "input"
    OUTPUT = "output"
    BIDIRECTIONAL = "bidirectional"
    POWER_IN = "power_in"


class PinStyle(Enum):
    LINE = "line"
    INVERTED = "inverted"
    CLOCK = "clock"
    INVERTED_CLOCK = "inverted_clock"


class PadShape(Enum):
    ELLIPSE = "ELLIPSE"
    RECT = "RECT"
    OVAL = "OVAL"
    POLYGON = "POLYGON"


class FootprintType(Enum):
    SMD = "smd"
    THT = "tht"


@dataclass
class BBox:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class ArcGeometry:
    """Center form of an SVG arc. extent is in degrees."""
    cx: float = 0.0
    cy: float = 0.0
    extent: float = 0.0


# ── SVG path commands ────────────────────────────────────────────────


@dataclass
class SvgMoveTo:
    start_x: float = 0.0
    start_y: float = 0.0


@dataclass
class SvgArcTo:
    radius_x: float = 0.0
    radius_y: float = 0.0
    x_axis_rotation: float = 0.0
    large_arc: bool = False
    sweep: bool = False
    end_x: float = 0.0
    end_y: float = 0.0


@dataclass
class SvgLineTo:
    pos_x: float = 0.0
    pos_y: float = 0.0


@dataclass
class SvgClosePath:
    pass


# ── Symbol (vendor side) ─────────────────────────────────────────────


@dataclass
class SymbolInfo:
    name: str = ""
    prefix: str = ""
    package: str = ""
    manufacturer: str = ""
    datasheet: str = ""
    lcsc_id: str = ""
    jlc_id: str = ""


@dataclass
class PinSettings:
    is_displayed: bool = False
    type_code: float = 0.0
    number: str = ""
    pos_x: float = 0.0
    pos_y: float = 0.0
    rotation: float = 0.0
    id: str = ""
    is_locked: bool = False


@dataclass
class PinPath:
    # SVG-ish lead path, vertical runs rewritten as "h"
    path: str = ""
    color: str = ""


@dataclass
class PinName:
    is_displayed: bool = False
    pos_x: float = 0.0
    pos_y: float = 0.0
    rotation: float = 0.0
    text: str = ""
    text_anchor: str = ""
    font: str = ""
    font_size: float = 7.0


@dataclass
class PinDot:
    is_displayed: bool = False
    circle_x: float = 0.0
    circle_y: float = 0.0


@dataclass
class PinClock:
    is_displayed: bool = False
    path: str = ""


@dataclass
class Pin:
    settings: PinSettings = field(default_factory=PinSettings)
    pin_path: PinPath = field(default_factory=PinPath)
    name: PinName = field(default_factory=PinName)
    dot: PinDot = field(default_factory=PinDot)
    clock: PinClock = field(default_factory=PinClock)


@dataclass
class SymbolRectangle:
    pos_x: float = 0.0
    pos_y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class SymbolCircle:
    center_x: float = 0.0
    center_y: float = 0.0
    radius: float = 0.0
    fill: bool = False


@dataclass
class SymbolEllipse:
    center_x: float = 0.0
    center_y: float = 0.0
    radius_x: float = 0.0
    radius_y: float = 0.0


@dataclass
class SymbolArc:
    path: list = field(default_factory=list)  # list of Svg* commands
    fill: bool = False


@dataclass
class SymbolPolyline:
    """Used for both PL (polyline) and PG (polygon) records."""
    points: str = ""
    fill: bool = False


@dataclass
class SymbolPath:
    path: str = ""


@dataclass
class Symbol:
    info: SymbolInfo = field(default_factory=SymbolInfo)
    bbox: BBox = field(default_factory=BBox)
    pins: list = field(default_factory=list)  # list of Pin
    rectangles: list = field(default_factory=list)  # list of SymbolRectangle
    circles: list = field(default_factory=list)  # list of SymbolCircle
    ellipses: list = field(default_factory=list)  # list of SymbolEllipse
    arcs: list = field(default_factory=list)  # list of SymbolArc
    polylines: list = field(default_factory=list)  # list of SymbolPolyline
    polygons: list = field(default_factory=list)  # list of SymbolPolyline
    paths: list = field(default_factory=list)  # list of SymbolPath


# ── Footprint (vendor side) ──────────────────────────────────────────


@dataclass
class FootprintInfo:
    name: str = ""
    fp_type: FootprintType = FootprintType.SMD
    model_3d_name: str = ""


@dataclass
class Model3D:
    name: str = ""
    uuid: str = ""
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Vector3 = field(default_factory=Vector3)


@dataclass
class Pad:
    shape: PadShape = PadShape.RECT
    center_x: float = 0.0
    center_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    layer_id: int = 0
    net: str = ""
    number: str = ""
    hole_radius: float = 0.0
    # Space separated x y outline, in canvas units
    points: str = ""
    rotation: float = 0.0
    id: str = ""
    hole_length: float = 0.0
    hole_point: str = ""
    is_plated: bool = False
    is_locked: bool = False


@dataclass
class Track:
    stroke_width: float = 0.0
    layer_id: int = 0
    net: str = ""
    points: str = ""
    id: str = ""
    is_locked: bool = False


@dataclass
class Hole:
    center_x: float = 0.0
    center_y: float = 0.0
    radius: float = 0.0
    id: str = ""
    is_locked: bool = False


@dataclass
class Via:
    center_x: float = 0.0
    center_y: float = 0.0
    diameter: float = 0.0
    net: str = ""
    radius: float = 0.0
    id: str = ""
    is_locked: bool = False


@dataclass
class FootprintCircle:
    cx: float = 0.0
    cy: float = 0.0
    radius: float = 0.0
    stroke_width: float = 0.0
    layer_id: int = 0
    id: str = ""
    is_locked: bool = False


@dataclass
class FootprintArc:
    """Kept in canvas units; the writer solves the SVG path itself."""
    stroke_width: float = 0.0
    layer_id: int = 0
    net: str = ""
    path: str = ""
    helper_dots: str = ""
    id: str = ""
    is_locked: bool = False


@dataclass
class FootprintRectangle:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    stroke_width: float = 0.0
    id: str = ""
    layer_id: int = 0
    is_locked: bool = False


@dataclass
class FootprintText:
    # "N" (name), "P" (prefix) or "L" (label)
    text_type: str = ""
    center_x: float = 0.0
    center_y: float = 0.0
    stroke_width: float = 0.0
    rotation: float = 0.0
    mirror: str = ""
    layer_id: int = 0
    net: str = ""
    font_size: float = 0.0
    text: str = ""
    text_path: str = ""
    is_displayed: bool = False
    id: str = ""
    is_locked: bool = False


@dataclass
class Footprint:
    info: FootprintInfo = field(default_factory=FootprintInfo)
    bbox: BBox = field(default_factory=BBox)
    model_3d: Optional[Model3D] = None
    pads: list = field(default_factory=list)  # list of Pad
    tracks: list = field(default_factory=list)  # list of Track
    holes: list = field(default_factory=list)  # list of Hole
    vias: list = field(default_factory=list)  # list of Via
    circles: list = field(default_factory=list)  # list of FootprintCircle
    arcs: list = field(default_factory=list)  # list of FootprintArc
    rectangles: list = field(default_factory=list)  # list of FootprintRectangle
    texts: list = field(default_factory=list)  # list of FootprintText


# ── KiCad side ───────────────────────────────────────────────────────
# All coordinates in mm. Symbols are Y+ up, footprints Y+ down.


@dataclass
class KiPin:
    name: str = ""
    number: str = ""
    style: PinStyle = PinStyle.LINE
    length: float = 0.0
    pin_type: PinType = PinType.UNSPECIFIED
    orientation: float = 0.0
    pos_x: float = 0.0
    pos_y: float = 0.0


@dataclass
class KiRectangle:
    pos_x0: float = 0.0
    pos_y0: float = 0.0
    pos_x1: float = 0.0
    pos_y1: float = 0.0


@dataclass
class KiCircle:
    pos_x: float = 0.0
    pos_y: float = 0.0
    radius: float = 0.0
    background: bool = False


@dataclass
class KiArc:
    start_x: float = 0.0
    start_y: float = 0.0
    mid_x: float = 0.0
    mid_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    fill: bool = False


@dataclass
class KiPolygon:
    points: list = field(default_factory=list)  # list of (x, y)
    is_closed: bool = False


@dataclass
class KiSymbol:
    info: SymbolInfo = field(default_factory=SymbolInfo)
    pins: list = field(default_factory=list)  # list of KiPin
    rectangles: list = field(default_factory=list)  # list of KiRectangle
    circles: list = field(default_factory=list)  # list of KiCircle
    arcs: list = field(default_factory=list)  # list of KiArc
    polygons: list = field(default_factory=list)  # list of KiPolygon


@dataclass
class KiPad:
    shape: PadShape = PadShape.RECT
    center_x: float = 0.0
    center_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    layer_id: int = 0
    number: str = ""
    hole_radius: float = 0.0
    hole_length: float = 0.0
    # Absolute outline points (x, y); non-empty means a custom pad
    outline: list = field(default_factory=list)
    rotation: float = 0.0


@dataclass
class KiTrack:
    stroke_width: float = 0.0
    layer_id: int = 0
    points: list = field(default_factory=list)  # list of (x, y)


@dataclass
class KiFootprint:
    info: FootprintInfo = field(default_factory=FootprintInfo)
    bbox: BBox = field(default_factory=BBox)
    model_3d: Optional[Model3D] = None
    pads: list = field(default_factory=list)  # list of KiPad
    tracks: list = field(default_factory=list)  # list of KiTrack
    holes: list = field(default_factory=list)  # list of Hole (mm, rebased)
    vias: list = field(default_factory=list)  # list of Via (mm, rebased)
    circles: list = field(default_factory=list)  # list of FootprintCircle (mm, rebased)
    arcs: list = field(default_factory=list)  # list of FootprintArc (canvas units)
    rectangles: list = field(default_factory=list)  # list of FootprintRectangle (mm, rebased)
    texts: list = field(default_factory=list)  # list of FootprintText (mm, rebased)


# ── 3D mesh ──────────────────────────────────────────────────────────


@dataclass
class Material:
    # Channel triples kept as the text tokens read from the MTL block
    ambient: list = field(default_factory=list)
    diffuse: list = field(default_factory=list)
    specular: list = field(default_factory=list)
    transparency: list = field(default_factory=list)


@dataclass
class MeshShape:
    material: Material = field(default_factory=Material)
    points: list = field(default_factory=list)  # list of "x y z" strings
    coord_index: list = field(default_factory=list)  # list of list of int, -1 terminated


@dataclass
class MeshModel:
    materials: dict = field(default_factory=dict)  # material id -> Material
    vertices: list = field(default_factory=list)  # list of "x y z" strings
    shapes: list = field(default_factory=list)  # list of MeshShape
