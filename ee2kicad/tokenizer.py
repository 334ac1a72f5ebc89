"""Tokenizers for EasyEDA shape records.

Shape records are "~" separated: a designator followed by positional
fields. Pin records are additionally split into segments on "^^". Arc and
path geometry is carried as a restricted SVG path (M, A, L, Z only).
"""

import logging
import re

from .cad_model import SvgArcTo, SvgClosePath, SvgLineTo, SvgMoveTo
from .utils import to_number

log = logging.getLogger(__name__)

FIELD_SEP = "~"
PIN_SEGMENT_SEP = "^^"
# settings, graphic ref, lead path, name label, unused, dot, clock
PIN_SEGMENT_COUNT = 7

# e/E are exponent markers, never commands
_SVG_COMMAND = re.compile(r"([a-df-zA-DF-Z])([\s\-+.\deE]*)")


def split_record(line: str):
    """Split a shape record into (designator, fields)."""
    parts = str(line or "").split(FIELD_SEP)
    return parts[0], parts[1:]


def field(fields: list, index: int) -> str:
    """Positional field, or "" when the record is too short."""
    if 0 <= index < len(fields):
        return fields[index]
    return ""


def split_pin_segments(line: str) -> list:
    """Split a pin record into its field lists.

    Returns PIN_SEGMENT_COUNT lists. The first holds the settings fields
    without the designator; missing segments come back as empty lists.
    """
    segments = str(line or "").split(PIN_SEGMENT_SEP)
    result = []
    for i in range(PIN_SEGMENT_COUNT):
        if i >= len(segments):
            result.append([])
            continue
        fields = segments[i].split(FIELD_SEP)
        result.append(fields[1:] if i == 0 else fields)
    return result


def parse_svg_path(svg_path: str) -> list:
    """Tokenize the SVG path subset emitted by EasyEDA.

    M and L take coordinate pairs, A takes septets
    (rx ry rotation large-arc sweep x y), Z takes nothing. Other commands
    are skipped. Missing arguments read as 0.
    """
    path = str(svg_path or "").replace(",", " ")
    parsed = []

    for m in _SVG_COMMAND.finditer(path):
        cmd = m.group(1)
        args = m.group(2).split()

        if cmd == "M":
            for i in range(0, len(args), 2):
                parsed.append(SvgMoveTo(
                    start_x=to_number(_arg(args, i)),
                    start_y=to_number(_arg(args, i + 1)),
                ))
        elif cmd == "A":
            for i in range(0, len(args), 7):
                parsed.append(SvgArcTo(
                    radius_x=to_number(_arg(args, i)),
                    radius_y=to_number(_arg(args, i + 1)),
                    x_axis_rotation=to_number(_arg(args, i + 2)),
                    large_arc=_arg(args, i + 3) == "1",
                    sweep=_arg(args, i + 4) == "1",
                    end_x=to_number(_arg(args, i + 5)),
                    end_y=to_number(_arg(args, i + 6)),
                ))
        elif cmd == "L":
            for i in range(0, len(args), 2):
                parsed.append(SvgLineTo(
                    pos_x=to_number(_arg(args, i)),
                    pos_y=to_number(_arg(args, i + 1)),
                ))
        elif cmd == "Z":
            parsed.append(SvgClosePath())
        else:
            log.debug("Skipping unsupported SVG command %r", cmd)

    return parsed


def _arg(args: list, index: int) -> str:
    return args[index] if index < len(args) else ""


def parse_points(points: str) -> list:
    """Split a "x1 y1 x2 y2 ..." string into (x, y) string pairs.

    An odd trailing coordinate gets an empty y.
    """
    values = str(points or "").split()
    return [(values[i], _arg(values, i + 1)) for i in range(0, len(values), 2)]
