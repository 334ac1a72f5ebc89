"""Convert parsed EasyEDA entities into KiCad geometry.

Symbols: rebase on the document origin, scale canvas units to mm and flip
the Y axis (KiCad symbol libraries are Y+ up).
Footprints: rebase and scale only; EasyEDA PCB space and KiCad footprint
space are both Y+ down.
"""

import logging
from dataclasses import replace

from .cad_model import (
    BBox, KiArc, KiCircle, KiFootprint, KiPad, KiPin, KiPolygon,
    KiRectangle, KiSymbol, KiTrack, Model3D, PinStyle, PinType,
    SvgArcTo, SvgClosePath, SvgLineTo, SvgMoveTo, Vector3, FootprintType,
)
from .tokenizer import parse_points, parse_svg_path
from .utils import (
    fp_to_ki, fp_to_mm, negate_y, px_to_mm, svg_arc_to_mid, to_number,
)

log = logging.getLogger(__name__)

# EasyEDA pin electrical type code -> KiCad pin type
PIN_TYPES = {
    0: PinType.UNSPECIFIED,
    1: PinType.INPUT,
    2: PinType.OUTPUT,
    3: PinType.BIDIRECTIONAL,
    4: PinType.POWER_IN,
}


def pin_type(type_code) -> PinType:
    code = to_number(type_code)
    if not code.is_integer():
        return PinType.UNSPECIFIED
    return PIN_TYPES.get(int(code), PinType.UNSPECIFIED)


def pin_style(dot_visible: bool, clock_visible: bool) -> PinStyle:
    if dot_visible and clock_visible:
        return PinStyle.INVERTED_CLOCK
    if dot_visible:
        return PinStyle.INVERTED
    if clock_visible:
        return PinStyle.CLOCK
    return PinStyle.LINE


def pin_orientation(rotation: float) -> float:
    """EasyEDA pins point away from the body, KiCad pins point toward it."""
    return (180 + rotation) % 360


def pin_length(lead_path: str) -> float:
    """Lead length in mm from the last horizontal run of the lead path."""
    return px_to_mm(abs(to_number(str(lead_path or "").split("h")[-1])))


# ── symbols ───────────────────────────────────────────────────────────


def convert_symbol(symbol) -> KiSymbol:
    """Convert a parsed Symbol into a KiSymbol."""
    bbox = symbol.bbox

    def point(x, y):
        return px_to_mm(x - bbox.x), negate_y(px_to_mm(y - bbox.y))

    pins = []
    for pin in symbol.pins:
        pos_x, pos_y = point(pin.settings.pos_x, pin.settings.pos_y)
        pins.append(KiPin(
            name="".join(pin.name.text.split()),
            number="".join(pin.settings.number.split()),
            style=pin_style(pin.dot.is_displayed, pin.clock.is_displayed),
            length=pin_length(pin.pin_path.path),
            pin_type=pin_type(pin.settings.type_code),
            orientation=pin_orientation(pin.settings.rotation),
            pos_x=pos_x,
            pos_y=pos_y,
        ))

    rectangles = []
    for rect in symbol.rectangles:
        x0, y0 = point(rect.pos_x, rect.pos_y)
        rectangles.append(KiRectangle(
            pos_x0=x0,
            pos_y0=y0,
            pos_x1=x0 + px_to_mm(rect.width),
            pos_y1=y0 - px_to_mm(rect.height),
        ))

    circles = []
    for circle in symbol.circles:
        x, y = point(circle.center_x, circle.center_y)
        circles.append(KiCircle(pos_x=x, pos_y=y, radius=px_to_mm(circle.radius),
                                background=circle.fill))

    # KiCad has no ellipse primitive; only circular ones survive
    dropped = 0
    for ellipse in symbol.ellipses:
        if ellipse.radius_x != ellipse.radius_y:
            dropped += 1
            continue
        x, y = point(ellipse.center_x, ellipse.center_y)
        circles.append(KiCircle(pos_x=x, pos_y=y, radius=px_to_mm(ellipse.radius_x)))
    if dropped:
        log.debug("Dropped %d non-circular ellipses", dropped)

    arcs = []
    for arc in symbol.arcs:
        ki_arc = _convert_symbol_arc(arc, point)
        if ki_arc is not None:
            arcs.append(ki_arc)

    polygons = []
    for polyline in symbol.polylines:
        poly = _convert_polyline(polyline.points, polyline.fill, point)
        if poly is not None:
            polygons.append(poly)
    for polygon in symbol.polygons:
        poly = _convert_polyline(polygon.points, True, point)
        if poly is not None:
            polygons.append(poly)
    for path in symbol.paths:
        poly = _convert_path(path.path, point)
        if poly is not None:
            polygons.append(poly)

    log.info("Converted symbol %r: %d pins, %d rectangles, %d circles, %d arcs, "
             "%d polylines", symbol.info.name, len(pins), len(rectangles),
             len(circles), len(arcs), len(polygons))

    return KiSymbol(
        info=symbol.info,
        pins=pins,
        rectangles=rectangles,
        circles=circles,
        arcs=arcs,
        polygons=polygons,
    )


def _convert_symbol_arc(arc, point):
    if (len(arc.path) < 2 or not isinstance(arc.path[0], SvgMoveTo)
            or not isinstance(arc.path[1], SvgArcTo)):
        log.debug("Skipping symbol arc without a leading M A pair")
        return None
    move, svg_arc = arc.path[0], arc.path[1]

    start_x, start_y = point(move.start_x, move.start_y)
    end_x, end_y = point(svg_arc.end_x, svg_arc.end_y)
    # The Y flip mirrors the arc, which reverses its sweep direction
    mid = svg_arc_to_mid(
        start_x, start_y, end_x, end_y,
        px_to_mm(svg_arc.radius_x), px_to_mm(svg_arc.radius_y),
        svg_arc.x_axis_rotation, svg_arc.large_arc, not svg_arc.sweep,
    )
    if mid is None:
        log.debug("Skipping degenerate symbol arc at (%s, %s)", start_x, start_y)
        return None

    return KiArc(
        start_x=start_x,
        start_y=start_y,
        mid_x=mid[0],
        mid_y=mid[1],
        end_x=end_x,
        end_y=end_y,
        fill=arc.fill,
    )


def _polygon(points):
    if not points:
        return None
    return KiPolygon(points=points, is_closed=len(points) > 1 and points[0] == points[-1])


def _convert_polyline(raw_points: str, close: bool, point):
    points = [point(to_number(x), to_number(y)) for x, y in parse_points(raw_points)]
    if points and close:
        points.append(points[0])
    return _polygon(points)


def _convert_path(raw_path: str, point):
    """Paths made of M/L/Z become polylines; arcs inside a path are ignored."""
    points = []
    for cmd in parse_svg_path(raw_path):
        if isinstance(cmd, SvgMoveTo):
            points.append(point(cmd.start_x, cmd.start_y))
        elif isinstance(cmd, SvgLineTo):
            points.append(point(cmd.pos_x, cmd.pos_y))
        elif isinstance(cmd, SvgClosePath) and points:
            points.append(points[0])
    return _polygon(points)


# ── footprints ────────────────────────────────────────────────────────


def convert_footprint(footprint) -> KiFootprint:
    """Convert a parsed Footprint into a KiFootprint (mm, rebased)."""
    bbox = BBox(x=fp_to_mm(footprint.bbox.x), y=fp_to_mm(footprint.bbox.y))

    def x_of(value):
        return fp_to_mm(value) - bbox.x

    def y_of(value):
        return fp_to_mm(value) - bbox.y

    def outline(raw_points):
        return [(fp_to_ki(x) - bbox.x, fp_to_ki(y) - bbox.y)
                for x, y in parse_points(raw_points)]

    pads = [
        KiPad(
            shape=pad.shape,
            center_x=x_of(pad.center_x),
            center_y=y_of(pad.center_y),
            width=fp_to_mm(pad.width),
            height=fp_to_mm(pad.height),
            layer_id=pad.layer_id,
            number=pad.number,
            hole_radius=fp_to_mm(pad.hole_radius),
            hole_length=fp_to_mm(pad.hole_length),
            outline=outline(pad.points),
            rotation=pad.rotation,
        )
        for pad in footprint.pads
    ]

    tracks = [
        KiTrack(
            stroke_width=fp_to_mm(track.stroke_width),
            layer_id=track.layer_id,
            points=outline(track.points),
        )
        for track in footprint.tracks
    ]

    holes = [
        replace(hole, center_x=x_of(hole.center_x), center_y=y_of(hole.center_y),
                radius=fp_to_mm(hole.radius))
        for hole in footprint.holes
    ]

    vias = [
        replace(via, center_x=x_of(via.center_x), center_y=y_of(via.center_y),
                diameter=fp_to_mm(via.diameter), radius=fp_to_mm(via.radius))
        for via in footprint.vias
    ]

    circles = [
        replace(circle, cx=x_of(circle.cx), cy=y_of(circle.cy),
                radius=fp_to_mm(circle.radius),
                stroke_width=fp_to_mm(circle.stroke_width))
        for circle in footprint.circles
    ]

    rectangles = [
        replace(rect, x=x_of(rect.x), y=y_of(rect.y), width=fp_to_mm(rect.width),
                height=fp_to_mm(rect.height), stroke_width=fp_to_mm(rect.stroke_width))
        for rect in footprint.rectangles
    ]

    texts = [
        replace(text, center_x=x_of(text.center_x), center_y=y_of(text.center_y),
                stroke_width=fp_to_mm(text.stroke_width),
                font_size=fp_to_mm(text.font_size))
        for text in footprint.texts
    ]

    model_3d = None
    if footprint.model_3d is not None:
        model_3d = convert_model_3d(footprint.model_3d, bbox, footprint.info.fp_type)

    log.info("Converted footprint %r: origin (%.3f, %.3f) mm",
             footprint.info.name, bbox.x, bbox.y)

    return KiFootprint(
        info=footprint.info,
        bbox=bbox,
        model_3d=model_3d,
        pads=pads,
        tracks=tracks,
        holes=holes,
        vias=vias,
        circles=circles,
        arcs=list(footprint.arcs),
        rectangles=rectangles,
        texts=texts,
    )


def convert_model_3d(model: Model3D, bbox: BBox, fp_type: FootprintType) -> Model3D:
    """Rebase the 3D model offset on the footprint origin (bbox in mm)."""
    t = model.translation
    r = model.rotation
    return Model3D(
        name=model.name,
        uuid=model.uuid,
        translation=Vector3(
            x=fp_to_mm(t.x) - bbox.x,
            y=negate_y(fp_to_mm(t.y) - bbox.y),
            z=-fp_to_mm(t.z) if fp_type == FootprintType.SMD else 0.0,
        ),
        rotation=Vector3(
            x=(360 - r.x) % 360,
            y=(360 - r.y) % 360,
            z=(360 - r.z) % 360,
        ),
    )
