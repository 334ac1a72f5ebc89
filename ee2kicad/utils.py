"""Utility functions for EasyEDA to KiCad conversion.

Handles value coercion, unit conversion, number formatting, text styling
and the SVG elliptical-arc geometry used by both symbols and footprints.
"""

import math
import re

from .cad_model import ArcGeometry

# EasyEDA canvas units are 10 mil in both the schematic and the PCB editor.
SYMBOL_UNIT_MM = 10 * 0.0254
FOOTPRINT_UNIT_MM = 10 * 0.0254

# Returned by compute_arc when the arc direction vectors collapse.
ARC_EXTENT_UNDEFINED = 719.0


def to_number(value, fallback: float = 0.0) -> float:
    """Parse a numeric field, returning fallback when it is not a finite number."""
    try:
        num = float(value)
    except (ValueError, TypeError):
        return fallback
    return num if math.isfinite(num) else fallback


def to_bool(value) -> bool:
    """Normalize EasyEDA show/hide style flags into booleans."""
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in ("show", "true", "1"):
        return True
    if text in ("hide", "false", "0", ""):
        return False
    return bool(value)


def sanitize_identifier(name) -> str:
    """Strip whitespace and path separators so the name is usable as an id."""
    return re.sub(r"\s+", "", str(name or "")).replace("/", "_")


def safe_model_name(name) -> str:
    """Display name made safe for use as a file name."""
    return re.sub(r"[^\w.-]+", "_", str(name or ""))


def px_to_mm(dim: float) -> float:
    """Schematic canvas units to mm."""
    return to_number(dim) * SYMBOL_UNIT_MM


def mm_to_px(mm: float) -> float:
    return mm / SYMBOL_UNIT_MM


def fp_to_mm(dim: float) -> float:
    """PCB canvas units to mm."""
    return to_number(dim) * FOOTPRINT_UNIT_MM


def mm_to_fp(mm: float) -> float:
    return mm / FOOTPRINT_UNIT_MM


def fp_to_ki(dim) -> float:
    """PCB canvas units to mm, rounded to 0.01 mm (half up)."""
    return math.floor(fp_to_mm(dim) * 100 + 0.5) / 100


def negate_y(y: float) -> float:
    """EasyEDA uses Y+ down, KiCad symbols use Y+ up."""
    return -y


def apply_text_style(text: str) -> str:
    """A trailing '#' marks an active-low name; KiCad spells it ~{NAME}."""
    if text.endswith("#"):
        return f"~{{{text[:-1]}}}"
    return text


def apply_pin_name_style(pin_name: str) -> str:
    return "/".join(apply_text_style(part) for part in str(pin_name or "").split("/"))


def angle_to_ki(rotation) -> float:
    """Convert a 0..360 rotation into KiCad's signed -180..180 convention."""
    value = to_number(rotation)
    if value > 180:
        return -(360 - value)
    return value


def fmt(value: float) -> str:
    """Format a float for KiCad output: 6 decimal places, strip trailing zeros."""
    s = f"{value:.6f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s == "-0":
        s = "0"
    return s


def fixed(value: float, places: int = 2) -> str:
    """Format with a fixed number of decimals, never emitting negative zero."""
    s = f"{value:.{places}f}"
    if s.startswith("-") and float(s) == 0:
        s = s[1:]
    return s


def rotate(x: float, y: float, degrees: float):
    """Rotate point (x, y) around the origin by degrees (counter-clockwise)."""
    if abs(degrees) < 0.001:
        return x, y
    rad = math.radians(degrees)
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    return x * cos_a - y * sin_a, x * sin_a + y * cos_a


def compute_arc(start_x: float, start_y: float, radius_x: float, radius_y: float,
                angle: float, large_arc: bool, sweep: bool,
                end_x: float, end_y: float) -> ArcGeometry:
    """Convert SVG endpoint arc parameters into a center and angular extent.

    Follows the SVG implementation notes (F.6.5/F.6.6). The returned extent
    is reported with KiCad's clockwise-positive sign, i.e. negated with
    respect to the SVG angle direction, and reduced into (-360, 360].
    Returns ARC_EXTENT_UNDEFINED as extent when the direction vectors
    degenerate (coincident endpoints or zero radii).
    """
    dx2 = (start_x - end_x) / 2.0
    dy2 = (start_y - end_y) / 2.0

    phi = angle % 360.0

    # Chord midpoint vector in the ellipse's unrotated frame
    x1, y1 = rotate(dx2, dy2, -phi)

    rx = abs(radius_x)
    ry = abs(radius_y)
    prx = rx * rx
    pry = ry * ry
    px1 = x1 * x1
    py1 = y1 * y1

    # Scale radii up when they cannot span the endpoints
    radii_check = px1 / prx + py1 / pry if prx and pry else 0.0
    if radii_check > 1:
        rx = math.sqrt(radii_check) * rx
        ry = math.sqrt(radii_check) * ry
        prx = rx * rx
        pry = ry * ry

    sign = -1 if large_arc == sweep else 1
    sq = 0.0
    denom = prx * py1 + pry * px1
    if denom > 0:
        sq = (prx * pry - prx * py1 - pry * px1) / denom
    coef = sign * math.sqrt(max(sq, 0.0))
    cx1 = coef * (rx * y1 / ry) if ry else 0.0
    cy1 = coef * -(ry * x1 / rx) if rx else 0.0

    sx2 = (start_x + end_x) / 2.0
    sy2 = (start_y + end_y) / 2.0
    off_x, off_y = rotate(cx1, cy1, phi)
    cx = sx2 + off_x
    cy = sy2 + off_y

    ux = (x1 - cx1) / rx if rx else 0.0
    uy = (y1 - cy1) / ry if ry else 0.0
    vx = (-x1 - cx1) / rx if rx else 0.0
    vy = (-y1 - cy1) / ry if ry else 0.0

    n = math.sqrt((ux * ux + uy * uy) * (vx * vx + vy * vy))
    if n == 0:
        return ArcGeometry(cx=cx, cy=cy, extent=ARC_EXTENT_UNDEFINED)

    p = ux * vx + uy * vy
    sign_angle = -1 if ux * vy - uy * vx < 0 else 1
    # acos domain guard against float drift
    extent = math.degrees(sign_angle * math.acos(max(-1.0, min(1.0, p / n))))
    if not sweep and extent > 0:
        extent -= 360
    elif sweep and extent < 0:
        extent += 360

    extent_sign = 1 if extent < 0 else -1
    extent = (abs(extent) % 360) * extent_sign

    return ArcGeometry(cx=cx, cy=cy, extent=extent)


def arc_middle_point(center_x: float, center_y: float, radius: float,
                     angle_start: float, angle_end: float):
    """Point on the circle halfway between two angles (degrees).

    Returns (mid_x, mid_y).
    """
    a_mid = math.radians((angle_start + angle_end) / 2)
    return (center_x + radius * math.cos(a_mid),
            center_y + radius * math.sin(a_mid))


def svg_arc_to_mid(start_x: float, start_y: float, end_x: float, end_y: float,
                   radius_x: float, radius_y: float, angle: float,
                   large_arc: bool, sweep: bool):
    """Midpoint of an SVG arc, for start/mid/end arc output.

    Returns (mid_x, mid_y), or None when the arc geometry is undefined.
    """
    arc = compute_arc(start_x, start_y, radius_x, radius_y, angle,
                      large_arc, sweep, end_x, end_y)
    if arc.extent == ARC_EXTENT_UNDEFINED:
        return None
    angle_start = math.degrees(math.atan2(start_y - arc.cy, start_x - arc.cx))
    # extent is clockwise-positive; step back into the math direction
    angle_end = angle_start - arc.extent
    radius = math.hypot(start_x - arc.cx, start_y - arc.cy)
    return arc_middle_point(arc.cx, arc.cy, radius, angle_start, angle_end)
