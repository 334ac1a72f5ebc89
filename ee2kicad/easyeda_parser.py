"""EasyEDA CAD record parser.

Reads the component payload returned by the EasyEDA components API and
produces the vendor-side Symbol and Footprint models.

Payload structure:
  dataStr/head                 - symbol header: x, y origin and c_para metadata
  dataStr/shape                - symbol shape records
  lcsc                         - url (datasheet) and number (LCSC id)
  SMT                          - surface mount flag
  packageDetail/title          - package title ("-TH_" marks through hole)
  packageDetail/dataStr/head   - footprint header
  packageDetail/dataStr/shape  - footprint shape records

Each shape record is "~" separated with the designator first. Records with
an unknown designator are skipped; a malformed field never fails the parse.
"""

import json
import logging

from .cad_model import (
    BBox, Footprint, FootprintArc, FootprintCircle, FootprintInfo,
    FootprintRectangle, FootprintText, FootprintType, Hole, Model3D, Pad,
    PadShape, Pin, PinClock, PinDot, PinName, PinPath, PinSettings, Symbol,
    SymbolArc, SymbolCircle, SymbolEllipse, SymbolInfo, SymbolPath,
    SymbolPolyline, SymbolRectangle, Track, Vector3, Via,
)
from .tokenizer import field, parse_svg_path, split_pin_segments, split_record
from .utils import to_bool, to_number

log = logging.getLogger(__name__)


def parse_symbol(cad_data: dict) -> Symbol:
    """Parse the symbol part of an EasyEDA component payload."""
    return SymbolParser().parse(cad_data)


def parse_footprint(cad_data: dict) -> Footprint:
    """Parse the footprint part of an EasyEDA component payload."""
    return FootprintParser().parse(cad_data)


def _get(data, *keys):
    """Walk nested dicts, returning None as soon as a level is missing."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _is_filled(fill_color: str) -> bool:
    return fill_color.lower() != "none"


def _int(value) -> int:
    return int(to_number(value))


class SymbolParser:
    def __init__(self):
        self.symbol = Symbol()
        self._handlers = {
            "P": self._parse_pin,
            "R": self._parse_rectangle,
            "PL": self._parse_polyline,
            "PG": self._parse_polygon,
            "PT": self._parse_path,
            "C": self._parse_circle,
            "E": self._parse_ellipse,
            "A": self._parse_arc,
        }

    def parse(self, cad_data: dict) -> Symbol:
        head = _dict(_get(cad_data, "dataStr", "head"))
        info = _dict(head.get("c_para"))
        lcsc = _dict(_get(cad_data, "lcsc"))

        self.symbol.info = SymbolInfo(
            name=str(info.get("name") or ""),
            prefix=str(info.get("pre") or "").replace("?", "", 1),
            package=str(info.get("package") or ""),
            manufacturer=str(info.get("BOM_Manufacturer") or ""),
            datasheet=str(lcsc.get("url") or ""),
            lcsc_id=str(lcsc.get("number") or ""),
            jlc_id=str(info.get("BOM_JLCPCB Part Class") or ""),
        )
        self.symbol.bbox = BBox(x=to_number(head.get("x")), y=to_number(head.get("y")))

        skipped = 0
        for line in _get(cad_data, "dataStr", "shape") or []:
            designator, fields = split_record(line)
            handler = self._handlers.get(designator)
            if handler is None:
                log.debug("Skipping symbol record with designator %r", designator)
                skipped += 1
                continue
            handler(line, fields)

        s = self.symbol
        log.info("Symbol %r: %d pins, %d rectangles, %d circles, %d ellipses, "
                 "%d arcs, %d polylines, %d polygons, %d paths (%d skipped)",
                 s.info.name, len(s.pins), len(s.rectangles), len(s.circles),
                 len(s.ellipses), len(s.arcs), len(s.polylines),
                 len(s.polygons), len(s.paths), skipped)
        return self.symbol

    # ── pins ──────────────────────────────────────────────────────────

    def _parse_pin(self, line: str, fields: list):
        settings, _graphic, lead, name, _unused, dot, clock = split_pin_segments(line)

        font_size = field(name, 7)
        if "pt" in font_size:
            font_size = font_size.replace("pt", "")

        self.symbol.pins.append(Pin(
            settings=PinSettings(
                is_displayed=to_bool(field(settings, 0)),
                type_code=to_number(field(settings, 1)),
                number=field(settings, 2).strip(),
                pos_x=to_number(field(settings, 3)),
                pos_y=to_number(field(settings, 4)),
                rotation=to_number(field(settings, 5)),
                id=field(settings, 6),
                is_locked=to_bool(field(settings, 7)),
            ),
            pin_path=PinPath(
                path=field(lead, 0).replace("v", "h"),
                color=field(lead, 1),
            ),
            name=PinName(
                is_displayed=to_bool(field(name, 0)),
                pos_x=to_number(field(name, 1)),
                pos_y=to_number(field(name, 2)),
                rotation=to_number(field(name, 3)),
                text=field(name, 4),
                text_anchor=field(name, 5),
                font=field(name, 6),
                font_size=to_number(font_size, 7.0),
            ),
            dot=PinDot(
                is_displayed=to_bool(field(dot, 0)),
                circle_x=to_number(field(dot, 1)),
                circle_y=to_number(field(dot, 2)),
            ),
            clock=PinClock(
                is_displayed=to_bool(field(clock, 0)),
                path=field(clock, 1),
            ),
        ))

    # ── graphics ──────────────────────────────────────────────────────

    def _parse_rectangle(self, line: str, fields: list):
        self.symbol.rectangles.append(SymbolRectangle(
            pos_x=to_number(field(fields, 0)),
            pos_y=to_number(field(fields, 1)),
            width=to_number(field(fields, 4)),
            height=to_number(field(fields, 5)),
        ))

    def _parse_polyline(self, line: str, fields: list):
        self.symbol.polylines.append(SymbolPolyline(
            points=field(fields, 0),
            fill=_is_filled(field(fields, 4)),
        ))

    def _parse_polygon(self, line: str, fields: list):
        self.symbol.polygons.append(SymbolPolyline(points=field(fields, 0), fill=True))

    def _parse_path(self, line: str, fields: list):
        self.symbol.paths.append(SymbolPath(path=field(fields, 0)))

    def _parse_circle(self, line: str, fields: list):
        self.symbol.circles.append(SymbolCircle(
            center_x=to_number(field(fields, 0)),
            center_y=to_number(field(fields, 1)),
            radius=to_number(field(fields, 2)),
            fill=_is_filled(field(fields, 5)),
        ))

    def _parse_ellipse(self, line: str, fields: list):
        self.symbol.ellipses.append(SymbolEllipse(
            center_x=to_number(field(fields, 0)),
            center_y=to_number(field(fields, 1)),
            radius_x=to_number(field(fields, 2)),
            radius_y=to_number(field(fields, 3)),
        ))

    def _parse_arc(self, line: str, fields: list):
        self.symbol.arcs.append(SymbolArc(
            path=parse_svg_path(field(fields, 0)),
            fill=_is_filled(field(fields, 4)),
        ))


class FootprintParser:
    def __init__(self):
        self.footprint = Footprint()
        self._handlers = {
            "PAD": self._parse_pad,
            "TRACK": self._parse_track,
            "HOLE": self._parse_hole,
            "VIA": self._parse_via,
            "CIRCLE": self._parse_circle,
            "ARC": self._parse_arc,
            "RECT": self._parse_rectangle,
            "TEXT": self._parse_text,
            "SVGNODE": self._parse_svg_node,
        }

    def parse(self, cad_data: dict) -> Footprint:
        package_detail = _dict(_get(cad_data, "packageDetail"))
        data_str = _dict(package_detail.get("dataStr"))
        head = _dict(data_str.get("head"))
        info = _dict(head.get("c_para"))

        smt = _get(cad_data, "SMT")
        if smt is None:
            smt = package_detail.get("SMT")
        is_smd = bool(smt) and "-TH_" not in str(package_detail.get("title") or "")

        self.footprint.info = FootprintInfo(
            name=str(info.get("package") or ""),
            fp_type=FootprintType.SMD if is_smd else FootprintType.THT,
            model_3d_name=str(info.get("3DModel") or ""),
        )
        self.footprint.bbox = BBox(x=to_number(head.get("x")), y=to_number(head.get("y")))

        skipped = 0
        for line in data_str.get("shape") or []:
            designator, fields = split_record(line)
            handler = self._handlers.get(designator)
            if handler is None:
                log.debug("Skipping footprint record with designator %r", designator)
                skipped += 1
                continue
            handler(fields)

        fp = self.footprint
        log.info("Footprint %r (%s): %d pads, %d tracks, %d holes, %d vias, "
                 "%d circles, %d arcs, %d rectangles, %d texts, 3D model: %s "
                 "(%d skipped)",
                 fp.info.name, fp.info.fp_type.value, len(fp.pads), len(fp.tracks),
                 len(fp.holes), len(fp.vias), len(fp.circles), len(fp.arcs),
                 len(fp.rectangles), len(fp.texts),
                 fp.model_3d.name if fp.model_3d else "none", skipped)
        return self.footprint

    # ── copper ────────────────────────────────────────────────────────

    def _parse_pad(self, fields: list):
        shape = PadShape.__members__.get(field(fields, 0).upper(), PadShape.POLYGON)
        self.footprint.pads.append(Pad(
            shape=shape,
            center_x=to_number(field(fields, 1)),
            center_y=to_number(field(fields, 2)),
            width=to_number(field(fields, 3)),
            height=to_number(field(fields, 4)),
            layer_id=_int(field(fields, 5)),
            net=field(fields, 6),
            number=field(fields, 7),
            hole_radius=to_number(field(fields, 8)),
            points=field(fields, 9),
            rotation=to_number(field(fields, 10)),
            id=field(fields, 11),
            hole_length=to_number(field(fields, 12)),
            hole_point=field(fields, 13),
            is_plated=to_bool(field(fields, 14)),
            is_locked=to_bool(field(fields, 15)),
        ))

    def _parse_track(self, fields: list):
        self.footprint.tracks.append(Track(
            stroke_width=to_number(field(fields, 0)),
            layer_id=_int(field(fields, 1)),
            net=field(fields, 2),
            points=field(fields, 3),
            id=field(fields, 4),
            is_locked=to_bool(field(fields, 5)),
        ))

    def _parse_hole(self, fields: list):
        self.footprint.holes.append(Hole(
            center_x=to_number(field(fields, 0)),
            center_y=to_number(field(fields, 1)),
            radius=to_number(field(fields, 2)),
            id=field(fields, 3),
            is_locked=to_bool(field(fields, 4)),
        ))

    def _parse_via(self, fields: list):
        self.footprint.vias.append(Via(
            center_x=to_number(field(fields, 0)),
            center_y=to_number(field(fields, 1)),
            diameter=to_number(field(fields, 2)),
            net=field(fields, 3),
            radius=to_number(field(fields, 4)),
            id=field(fields, 5),
            is_locked=to_bool(field(fields, 6)),
        ))

    # ── graphics ──────────────────────────────────────────────────────

    def _parse_circle(self, fields: list):
        self.footprint.circles.append(FootprintCircle(
            cx=to_number(field(fields, 0)),
            cy=to_number(field(fields, 1)),
            radius=to_number(field(fields, 2)),
            stroke_width=to_number(field(fields, 3)),
            layer_id=_int(field(fields, 4)),
            id=field(fields, 5),
            is_locked=to_bool(field(fields, 6)),
        ))

    def _parse_arc(self, fields: list):
        self.footprint.arcs.append(FootprintArc(
            stroke_width=to_number(field(fields, 0)),
            layer_id=_int(field(fields, 1)),
            net=field(fields, 2),
            path=field(fields, 3),
            helper_dots=field(fields, 4),
            id=field(fields, 5),
            is_locked=to_bool(field(fields, 6)),
        ))

    def _parse_rectangle(self, fields: list):
        self.footprint.rectangles.append(FootprintRectangle(
            x=to_number(field(fields, 0)),
            y=to_number(field(fields, 1)),
            width=to_number(field(fields, 2)),
            height=to_number(field(fields, 3)),
            stroke_width=to_number(field(fields, 4)),
            id=field(fields, 5),
            layer_id=_int(field(fields, 6)),
            is_locked=to_bool(field(fields, 7)),
        ))

    def _parse_text(self, fields: list):
        self.footprint.texts.append(FootprintText(
            text_type=field(fields, 0),
            center_x=to_number(field(fields, 1)),
            center_y=to_number(field(fields, 2)),
            stroke_width=to_number(field(fields, 3)),
            rotation=to_number(field(fields, 4)),
            mirror=field(fields, 5),
            layer_id=_int(field(fields, 6)),
            net=field(fields, 7),
            font_size=to_number(field(fields, 8)),
            text=field(fields, 9),
            text_path=field(fields, 10),
            is_displayed=to_bool(field(fields, 11)),
            id=field(fields, 12),
            is_locked=to_bool(field(fields, 13)),
        ))

    # ── 3D model ──────────────────────────────────────────────────────

    def _parse_svg_node(self, fields: list):
        """SVGNODE carries the 3D model reference as a JSON attribute object."""
        try:
            attrs = json.loads(field(fields, 0))["attrs"]
        except (ValueError, KeyError, TypeError) as e:
            log.warning("Ignoring malformed 3D model metadata: %s", e)
            return
        if not isinstance(attrs, dict):
            log.warning("Ignoring 3D model metadata without attributes")
            return

        origin = str(attrs.get("c_origin") or "0,0").split(",")
        rotation = str(attrs.get("c_rotation") or "0,0,0").split(",")
        self.footprint.model_3d = Model3D(
            name=str(attrs.get("title") or ""),
            uuid=str(attrs.get("uuid") or ""),
            translation=Vector3(
                x=to_number(field(origin, 0)),
                y=to_number(field(origin, 1)),
                z=to_number(attrs.get("z")),
            ),
            rotation=Vector3(
                x=to_number(field(rotation, 0)),
                y=to_number(field(rotation, 1)),
                z=to_number(field(rotation, 2)),
            ),
        )
