"""KiCad footprint module (.kicad_mod) writer.

Input is a KiFootprint from kicad_convert: mm, rebased on the footprint
origin, Y+ down. Arcs are the exception and still carry their EasyEDA SVG
path, which is scaled and solved here.
"""

import logging

from .cad_model import FootprintType, PadShape, SvgArcTo, SvgMoveTo
from .tokenizer import parse_svg_path
from .utils import angle_to_ki, fixed, fp_to_ki, safe_model_name, svg_arc_to_mid
from .symbol_writer import quote

log = logging.getLogger(__name__)

FOOTPRINT_LIB_NAME = "easyeda2kicad"
FOOTPRINT_TEDIT = "5DC5F6A4"
DEFAULT_MODEL_PATH = "${KIPRJMOD}"

PAD_SHAPES = {
    PadShape.ELLIPSE: "circle",
    PadShape.RECT: "rect",
    PadShape.OVAL: "oval",
    PadShape.POLYGON: "custom",
}

# EasyEDA layer id -> KiCad layers, SMD pads and outline graphics
PAD_LAYERS_SMD = {
    1: "F.Cu F.Paste F.Mask",
    2: "B.Cu B.Paste B.Mask",
    3: "F.SilkS",
    11: "*.Cu *.Paste *.Mask",
    13: "F.Fab",
    15: "Dwgs.User",
}

# EasyEDA layer id -> KiCad layers, through-hole pads
PAD_LAYERS_THT = {
    1: "F.Cu F.Mask",
    2: "B.Cu B.Mask",
    3: "F.SilkS",
    11: "*.Cu *.Mask",
    13: "F.Fab",
    15: "Dwgs.User",
}

# EasyEDA layer id -> KiCad layer, circles, arcs and texts
LAYERS = {
    1: "F.Cu",
    2: "B.Cu",
    3: "F.SilkS",
    4: "B.SilkS",
    5: "F.Paste",
    6: "B.Paste",
    7: "F.Mask",
    8: "B.Mask",
    10: "Edge.Cuts",
    11: "Edge.Cuts",
    12: "Cmts.User",
    13: "F.Fab",
    14: "B.Fab",
    15: "Dwgs.User",
    101: "F.Fab",
}

DEFAULT_LAYER = "F.Fab"
MIN_STROKE_WIDTH = 0.01
MIN_PAD_SIZE = 0.01
# Anchor size of custom pads; the copper comes from the outline primitive
CUSTOM_PAD_SIZE = 0.005
CUSTOM_PAD_OUTLINE_WIDTH = 0.1
MIN_FONT_SIZE = 1
# Reference/Value text distance from the outermost pad rows
TEXT_OFFSET = 4
DEFAULT_PAD_EXTENT = 2


def trim_pad_number(number: str) -> str:
    """Keep only the parenthesized part of a pad number, e.g. "A(12)" -> "12"."""
    number = number or ""
    if "(" in number and ")" in number:
        return number.split("(")[1].split(")")[0]
    return number


def drill_to_ki(hole_radius: float, hole_length: float,
                pad_height: float, pad_width: float) -> str:
    """Drill clause for a pad: oval slot, round hole or nothing."""
    if hole_radius > 0 and hole_length:
        max_hole = max(hole_radius * 2, hole_length)
        margin_0 = pad_height - max_hole
        margin_90 = pad_width - max_hole
        if max(margin_0, margin_90) == margin_0:
            return f"(drill oval {fixed(hole_radius * 2)} {fixed(hole_length)})"
        return f"(drill oval {fixed(hole_length)} {fixed(hole_radius * 2)})"
    if hole_radius > 0:
        return f"(drill {fixed(2 * hole_radius)})"
    return ""


def _fp_line(start_x, start_y, end_x, end_y, layer, width) -> str:
    return (f"\t(fp_line (start {fixed(start_x)} {fixed(start_y)}) "
            f"(end {fixed(end_x)} {fixed(end_y)}) (layer {layer}) "
            f"(width {fixed(max(width, MIN_STROKE_WIDTH))}))\n")


def _fp_text(kind: str, text: str, pos_x: float, pos_y: float, layer: str) -> str:
    return (f"\t(fp_text {kind} {text} (at {fixed(pos_x)} {fixed(pos_y)}) (layer {layer})\n"
            f"\t\t(effects (font (size 1 1) (thickness 0.15)))\n\t)\n")


def export_pad(pad) -> str:
    shape = PAD_SHAPES.get(pad.shape, "custom")
    width = max(pad.width, MIN_PAD_SIZE)
    height = max(pad.height, MIN_PAD_SIZE)
    orientation = angle_to_ki(pad.rotation)
    primitives = ""

    if pad.outline:
        shape = "custom"
        width = height = CUSTOM_PAD_SIZE
        orientation = 0
        pts = " ".join(f"(xy {fixed(x - pad.center_x)} {fixed(y - pad.center_y)})"
                       for x, y in pad.outline)
        primitives = (f"\n\t\t(primitives\n\t\t\t(gr_poly\n\t\t\t\t(pts {pts}\n\t\t\t\t)"
                      f"\n\t\t\t\t(width {CUSTOM_PAD_OUTLINE_WIDTH})\n\t\t\t)\n\t\t)\n\t")

    if pad.hole_radius > 0:
        pad_type = "thru_hole"
        layers = PAD_LAYERS_THT.get(pad.layer_id, "")
    else:
        pad_type = "smd"
        layers = PAD_LAYERS_SMD.get(pad.layer_id, "")

    drill = drill_to_ki(pad.hole_radius, pad.hole_length, height, width)
    number = quote(trim_pad_number(pad.number))

    return (f"\t(pad {number} {pad_type} {shape} "
            f"(at {fixed(pad.center_x)} {fixed(pad.center_y)} {fixed(orientation)}) "
            f"(size {fixed(width)} {fixed(height)}) (layers {layers})"
            f"{' ' + drill if drill else ''}{primitives})\n")


def export_arc(arc, bbox) -> str:
    """Solve an EasyEDA "M x y A rx ry rot large sweep x y" arc into start/mid/end."""
    path = parse_svg_path(arc.path)
    if len(path) < 2 or not isinstance(path[0], SvgMoveTo) or not isinstance(path[1], SvgArcTo):
        log.debug("Skipping footprint arc with unsupported path %r", arc.path)
        return ""
    move, svg_arc = path[0], path[1]

    start_x = fp_to_ki(move.start_x) - bbox.x
    start_y = fp_to_ki(move.start_y) - bbox.y
    end_x = fp_to_ki(svg_arc.end_x) - bbox.x
    end_y = fp_to_ki(svg_arc.end_y) - bbox.y
    radius_x = fp_to_ki(svg_arc.radius_x)
    radius_y = fp_to_ki(svg_arc.radius_y)
    layer = LAYERS.get(arc.layer_id, DEFAULT_LAYER)
    width = max(fp_to_ki(arc.stroke_width), MIN_STROKE_WIDTH)

    # SVG treats a zero radius arc as a straight segment
    if radius_x == 0 or radius_y == 0:
        return _fp_line(start_x, start_y, end_x, end_y, layer, width)

    mid = svg_arc_to_mid(start_x, start_y, end_x, end_y, radius_x, radius_y,
                         svg_arc.x_axis_rotation, svg_arc.large_arc, svg_arc.sweep)
    if mid is None:
        log.debug("Skipping degenerate footprint arc %r", arc.path)
        return ""

    return (f"\t(fp_arc (start {fixed(start_x)} {fixed(start_y)}) "
            f"(mid {fixed(mid[0])} {fixed(mid[1])}) "
            f"(end {fixed(end_x)} {fixed(end_y)}) "
            f"(layer {layer}) (width {fixed(width)}))\n")


def export_text(text) -> str:
    layer = LAYERS.get(text.layer_id, DEFAULT_LAYER)
    # Name texts are documentation, not silkscreen
    if text.text_type == "N":
        layer = layer.replace(".SilkS", ".Fab")
    mirror = " mirror" if layer.startswith("B") else ""
    display = " hide" if not text.is_displayed else ""
    return (f"\t(fp_text user {quote(text.text)} "
            f"(at {fixed(text.center_x)} {fixed(text.center_y)} "
            f"{fixed(angle_to_ki(text.rotation))}) (layer {layer}){display}\n"
            f"\t\t(effects (font (size {fixed(max(text.font_size, MIN_FONT_SIZE))} "
            f"{fixed(max(text.font_size, MIN_FONT_SIZE))}) "
            f"(thickness {fixed(max(text.stroke_width, MIN_STROKE_WIDTH))})) "
            f"(justify left{mirror}))\n\t)\n")


def export_model_3d(model, model_3d_path: str) -> str:
    t = model.translation
    r = model.rotation
    return (f"\t(model {quote(f'{model_3d_path}/{safe_model_name(model.name)}.wrl')}\n"
            f"\t\t(offset (xyz {fixed(t.x, 3)} {fixed(t.y, 3)} {fixed(t.z, 3)}))\n"
            f"\t\t(scale (xyz 1 1 1))\n"
            f"\t\t(rotate (xyz {fixed(r.x, 0)} {fixed(r.y, 0)} {fixed(r.z, 0)}))\n"
            f"\t)\n")


def export_footprint(ki_fp, model_3d_path: str = DEFAULT_MODEL_PATH) -> str:
    """Render a KiFootprint as a .kicad_mod module.

    The 3D model clause is written only when the footprint has a model and
    model_3d_path is set.
    """
    name = ki_fp.info.name
    out = [f"(module {quote(FOOTPRINT_LIB_NAME + ':' + name)} (layer F.Cu) (tedit {FOOTPRINT_TEDIT})\n"]
    attr = "smd" if ki_fp.info.fp_type == FootprintType.SMD else "through_hole"
    out.append(f"\t(attr {attr})\n")

    pad_ys = [pad.center_y for pad in ki_fp.pads]
    y_low = min(pad_ys) if pad_ys else -DEFAULT_PAD_EXTENT
    y_high = max(pad_ys) if pad_ys else DEFAULT_PAD_EXTENT
    out.append(_fp_text("reference", "REF**", 0, y_low - TEXT_OFFSET, "F.SilkS"))
    out.append(_fp_text("value", quote(name), 0, y_high + TEXT_OFFSET, "F.Fab"))
    out.append(_fp_text("user", "%R", 0, 0, "F.Fab"))

    for track in ki_fp.tracks:
        layer = PAD_LAYERS_SMD.get(track.layer_id, DEFAULT_LAYER)
        for (sx, sy), (ex, ey) in zip(track.points, track.points[1:]):
            out.append(_fp_line(sx, sy, ex, ey, layer, track.stroke_width))

    for rect in ki_fp.rectangles:
        layer = PAD_LAYERS_SMD.get(rect.layer_id, DEFAULT_LAYER)
        x0, y0 = rect.x, rect.y
        x1, y1 = rect.x + rect.width, rect.y + rect.height
        for sx, sy, ex, ey in ((x0, y0, x1, y0), (x1, y0, x1, y1),
                               (x1, y1, x0, y1), (x0, y1, x0, y0)):
            out.append(_fp_line(sx, sy, ex, ey, layer, rect.stroke_width))

    for pad in ki_fp.pads:
        out.append(export_pad(pad))

    for hole in ki_fp.holes:
        size = fixed(hole.radius * 2)
        out.append(f"\t(pad \"\" thru_hole circle (at {fixed(hole.center_x)} {fixed(hole.center_y)}) "
                   f"(size {size} {size}) (drill {size}) (layers *.Cu *.Mask))\n")

    for via in ki_fp.vias:
        out.append(f"\t(pad \"\" thru_hole circle (at {fixed(via.center_x)} {fixed(via.center_y)}) "
                   f"(size {fixed(via.diameter)} {fixed(via.diameter)}) "
                   f"(drill {fixed(via.radius * 2)}) (layers *.Cu *.Paste *.Mask))\n")

    for circle in ki_fp.circles:
        out.append(f"\t(fp_circle (center {fixed(circle.cx)} {fixed(circle.cy)}) "
                   f"(end {fixed(circle.cx + circle.radius)} {fixed(circle.cy)}) "
                   f"(layer {LAYERS.get(circle.layer_id, DEFAULT_LAYER)}) "
                   f"(width {fixed(max(circle.stroke_width, MIN_STROKE_WIDTH))}))\n")

    for arc in ki_fp.arcs:
        out.append(export_arc(arc, ki_fp.bbox))

    for text in ki_fp.texts:
        out.append(export_text(text))

    if ki_fp.model_3d is not None and model_3d_path:
        out.append(export_model_3d(ki_fp.model_3d, model_3d_path))

    out.append(")\n")
    return "".join(out)
