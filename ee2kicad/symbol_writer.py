"""KiCad symbol library (.kicad_sym) writer.

Each element is rendered by its own function into a self-contained
s-expression block; blocks are nested by re-indenting them line by line.
"""

import logging

from .utils import apply_pin_name_style, fixed, fmt, sanitize_identifier

log = logging.getLogger(__name__)

SYMBOL_LIB_VERSION = "20211014"
SYMBOL_GENERATOR = "ee2kicad"

PIN_NAME_SIZE = 1.27
PIN_NUMBER_SIZE = 1.27
PROPERTY_FONT_SIZE = 1.27
# Reference sits this far above the top pin, Value this far below the bottom one
FIELD_OFFSET_START = 5.08
FIELD_OFFSET_INCREMENT = 2.54
DEFAULT_LINE_WIDTH = 0

INDENT = "  "


def quote(text) -> str:
    escaped = str(text).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def indent_lines(text: str, level: int) -> str:
    """Prefix every non-blank line of text with level indents."""
    prefix = INDENT * level
    return "\n".join(prefix + line if line.strip() else line
                     for line in text.split("\n"))


def _stroke() -> str:
    return f"(stroke (width {DEFAULT_LINE_WIDTH}) (type default) (color 0 0 0 0))"


def _fill(background: bool) -> str:
    return f"(fill (type {'background' if background else 'none'}))"


def _font(size: float) -> str:
    return f"(font (size {fmt(size)} {fmt(size)}))"


def format_property(key: str, value: str, prop_id: int, pos_y: float,
                    rotation: float = 0, hide: bool = False) -> str:
    effects = f"(effects {_font(PROPERTY_FONT_SIZE)}{' hide' if hide else ''})"
    return "\n".join([
        "(property",
        f"  {quote(key)}",
        f"  {quote(value)}",
        f"  (id {prop_id})",
        f"  (at 0 {fixed(pos_y)} {fmt(rotation)})",
        f"  {effects}",
        ")",
    ])


def export_pin(pin) -> str:
    return "\n".join([
        f"(pin {pin.pin_type.value} {pin.style.value}",
        f"  (at {fixed(pin.pos_x)} {fixed(pin.pos_y)} {fmt(pin.orientation)})",
        f"  (length {fixed(pin.length)})",
        f"  (name {quote(apply_pin_name_style(pin.name))} (effects {_font(PIN_NAME_SIZE)}))",
        f"  (number {quote(pin.number)} (effects {_font(PIN_NUMBER_SIZE)}))",
        ")",
    ])


def export_rectangle(rect) -> str:
    return "\n".join([
        "(rectangle",
        f"  (start {fixed(rect.pos_x0)} {fixed(rect.pos_y0)})",
        f"  (end {fixed(rect.pos_x1)} {fixed(rect.pos_y1)})",
        f"  {_stroke()}",
        f"  {_fill(True)}",
        ")",
    ])


def export_circle(circle) -> str:
    return "\n".join([
        "(circle",
        f"  (center {fixed(circle.pos_x)} {fixed(circle.pos_y)})",
        f"  (radius {fixed(circle.radius)})",
        f"  {_stroke()}",
        f"  {_fill(circle.background)}",
        ")",
    ])


def export_arc(arc) -> str:
    return "\n".join([
        "(arc",
        f"  (start {fixed(arc.start_x)} {fixed(arc.start_y)})",
        f"  (mid {fixed(arc.mid_x)} {fixed(arc.mid_y)})",
        f"  (end {fixed(arc.end_x)} {fixed(arc.end_y)})",
        f"  {_stroke()}",
        f"  {_fill(arc.fill)}",
        ")",
    ])


def export_polygon(poly) -> str:
    lines = ["(polyline", "  (pts"]
    lines.extend(f"    (xy {fixed(x)} {fixed(y)})" for x, y in poly.points)
    lines.extend([
        "  )",
        f"  {_stroke()}",
        f"  {_fill(poly.is_closed)}",
        ")",
    ])
    return "\n".join(lines)


def symbol_properties(ki_symbol) -> list:
    """Property blocks laid out around the pin extent.

    Reference goes above the highest pin and Value below the lowest one;
    optional fields stack further down and are hidden.
    """
    info = ki_symbol.info
    pin_ys = [pin.pos_y for pin in ki_symbol.pins]
    y_low = min(pin_ys) if pin_ys else 0.0
    y_high = max(pin_ys) if pin_ys else 0.0

    offset = FIELD_OFFSET_START
    properties = [
        format_property("Reference", info.prefix or "U", 0, y_high + offset),
        format_property("Value", info.name, 1, y_low - offset),
    ]

    optional = [
        ("Footprint", info.package, 2),
        ("Datasheet", info.datasheet, 3),
        ("Manufacturer", info.manufacturer, 4),
        ("LCSC Part", info.lcsc_id, 5),
        ("JLC Part", info.jlc_id, 6),
    ]
    for key, value, prop_id in optional:
        if not value:
            continue
        offset += FIELD_OFFSET_INCREMENT
        properties.append(format_property(key, value, prop_id, y_low - offset, hide=True))

    return properties


def export_symbol_library(ki_symbol) -> str:
    """Render a KiSymbol as a complete .kicad_sym library file."""
    symbol_id = sanitize_identifier(ki_symbol.info.name or "symbol")

    items = []
    items.extend(export_rectangle(r) for r in ki_symbol.rectangles)
    items.extend(export_circle(c) for c in ki_symbol.circles)
    items.extend(export_arc(a) for a in ki_symbol.arcs)
    items.extend(export_polygon(p) for p in ki_symbol.polygons)
    items.extend(export_pin(p) for p in ki_symbol.pins)

    unit = [f"(symbol {quote(symbol_id + '_0_1')}"]
    unit.extend(indent_lines(item, 1) for item in items)
    unit.append(")")

    symbol = [f"(symbol {quote(symbol_id)}", "  (in_bom yes)", "  (on_board yes)"]
    symbol.extend(indent_lines(prop, 1) for prop in symbol_properties(ki_symbol))
    symbol.append(indent_lines("\n".join(unit), 1))
    symbol.append(")")

    log.debug("Rendered symbol %r with %d items", symbol_id, len(items))

    return "\n".join([
        "(kicad_symbol_lib",
        f"  (version {SYMBOL_LIB_VERSION})",
        f"  (generator {quote(SYMBOL_GENERATOR)})",
        indent_lines("\n".join(symbol), 1),
        ")",
    ]) + "\n"
