#!/usr/bin/env python3
"""Tests for EasyEDA record parsing and conversion to KiCad geometry."""

import math
import sys
import unittest
from pathlib import Path

# Add project root and test directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from ee2kicad.cad_model import (
    BBox, FootprintType, Model3D, PadShape, PinStyle, PinType, SvgArcTo,
    SvgClosePath, SvgLineTo, SvgMoveTo, Symbol, SymbolEllipse, Vector3,
)
from ee2kicad.utils import (
    ARC_EXTENT_UNDEFINED, angle_to_ki, apply_pin_name_style, compute_arc,
    fixed, fmt, fp_to_ki, fp_to_mm, mm_to_fp, mm_to_px, negate_y, px_to_mm,
    rotate, safe_model_name, sanitize_identifier, svg_arc_to_mid, to_bool,
    to_number,
)
from ee2kicad.tokenizer import parse_points, parse_svg_path, split_pin_segments, split_record
from ee2kicad.easyeda_parser import parse_footprint, parse_symbol
from ee2kicad.kicad_convert import (
    convert_footprint, convert_model_3d, convert_symbol, pin_orientation,
    pin_style, pin_type,
)
from sample_data import sample_cad_data


class TestUtils(unittest.TestCase):
    """Test coercion, unit and formatting helpers."""

    def test_to_number(self):
        self.assertEqual(to_number("1.5"), 1.5)
        self.assertEqual(to_number(""), 0.0)
        self.assertEqual(to_number("abc", 7.0), 7.0)
        self.assertEqual(to_number(None), 0.0)
        self.assertEqual(to_number("nan"), 0.0)
        self.assertEqual(to_number("inf", 2.0), 2.0)

    def test_to_bool(self):
        self.assertTrue(to_bool("show"))
        self.assertTrue(to_bool("1"))
        self.assertFalse(to_bool("hide"))
        self.assertFalse(to_bool(""))
        self.assertFalse(to_bool(None))

    def test_unit_round_trip(self):
        for value in (0.0, 1.0, -12.5, 400.0, 3999.75):
            self.assertAlmostEqual(mm_to_px(px_to_mm(value)), value)
            self.assertAlmostEqual(mm_to_fp(fp_to_mm(value)), value)

    def test_unit_scale(self):
        self.assertAlmostEqual(px_to_mm(10), 2.54)
        self.assertAlmostEqual(fp_to_mm(10), 2.54)

    def test_fp_to_ki_rounds(self):
        self.assertEqual(fp_to_ki(1), 0.25)
        self.assertEqual(fp_to_ki(4010), 1018.54)

    def test_negate_y_twice(self):
        for value in (0.0, 5.0, -3.25):
            self.assertEqual(negate_y(negate_y(value)), value)

    def test_angle_to_ki(self):
        self.assertEqual(angle_to_ki(90), 90)
        self.assertEqual(angle_to_ki(180), 180)
        self.assertEqual(angle_to_ki(270), -90)

    def test_fmt(self):
        self.assertEqual(fmt(1.0), "1")
        self.assertEqual(fmt(1.5), "1.5")
        self.assertEqual(fmt(-0.0), "0")

    def test_fixed_no_negative_zero(self):
        self.assertEqual(fixed(-0.001), "0.00")
        self.assertEqual(fixed(-1.234), "-1.23")
        self.assertEqual(fixed(1.5, 3), "1.500")

    def test_pin_name_style(self):
        self.assertEqual(apply_pin_name_style("RESET#"), "~{RESET}")
        self.assertEqual(apply_pin_name_style("RESET#/EN"), "~{RESET}/EN")
        self.assertEqual(apply_pin_name_style("VCC"), "VCC")

    def test_sanitize_identifier(self):
        self.assertEqual(sanitize_identifier("NE 555/A"), "NE555_A")

    def test_safe_model_name(self):
        self.assertEqual(safe_model_name("SOIC-8 Model"), "SOIC-8_Model")
        self.assertEqual(safe_model_name("a  b/c.step"), "a_b_c.step")

    def test_rotate(self):
        x, y = rotate(1, 0, 90)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 1.0)
        x, y = rotate(1, 1, -90)
        self.assertAlmostEqual(x, 1.0)
        self.assertAlmostEqual(y, -1.0)
        self.assertEqual(rotate(2, 3, 0), (2, 3))


class TestArcGeometry(unittest.TestCase):
    """Test the SVG endpoint arc solver."""

    def test_half_circle(self):
        arc = compute_arc(0, 0, 5, 5, 0, False, True, 10, 0)
        self.assertAlmostEqual(arc.cx, 5.0)
        self.assertAlmostEqual(arc.cy, 0.0)
        self.assertAlmostEqual(arc.extent, -180.0)

    def test_quarter_circle_reconstructs_endpoints(self):
        # Center (0,0): (10,0) -> (0,10), increasing angle
        arc = compute_arc(10, 0, 10, 10, 0, False, True, 0, 10)
        self.assertAlmostEqual(arc.cx, 0.0)
        self.assertAlmostEqual(arc.cy, 0.0)
        radius = math.hypot(10 - arc.cx, 0 - arc.cy)
        start = math.atan2(0 - arc.cy, 10 - arc.cx)
        end = start - math.radians(arc.extent)
        self.assertAlmostEqual(arc.cx + radius * math.cos(end), 0.0)
        self.assertAlmostEqual(arc.cy + radius * math.sin(end), 10.0)

    def test_radii_scaled_up(self):
        # Radius too small to span the endpoints
        arc = compute_arc(0, 0, 1, 1, 0, False, True, 10, 0)
        self.assertAlmostEqual(arc.cx, 5.0)
        self.assertAlmostEqual(abs(arc.extent), 180.0)

    def test_rotated_circle_unchanged(self):
        arc = compute_arc(0, 0, 5, 5, 45, False, True, 10, 0)
        self.assertAlmostEqual(arc.cx, 5.0)
        self.assertAlmostEqual(arc.cy, 0.0)
        self.assertAlmostEqual(arc.extent, -180.0)

    def test_rotated_ellipse_matches_swapped_radii(self):
        # rx=10, ry=5 turned 90 degrees is the ellipse rx=5, ry=10
        rotated = compute_arc(0, 0, 10, 5, 90, False, True, 0, 10)
        swapped = compute_arc(0, 0, 5, 10, 0, False, True, 0, 10)
        self.assertAlmostEqual(rotated.cx, swapped.cx)
        self.assertAlmostEqual(rotated.cy, swapped.cy)
        self.assertAlmostEqual(rotated.extent, swapped.extent)
        self.assertAlmostEqual(rotated.cx, -2.5 * math.sqrt(3))
        self.assertAlmostEqual(rotated.cy, 5.0)
        unrotated = compute_arc(0, 0, 10, 5, 0, False, True, 0, 10)
        self.assertAlmostEqual(unrotated.cx, 0.0)

    def test_degenerate_arc(self):
        arc = compute_arc(3, 3, 5, 5, 0, False, True, 3, 3)
        self.assertEqual(arc.extent, ARC_EXTENT_UNDEFINED)
        self.assertIsNone(svg_arc_to_mid(3, 3, 3, 3, 5, 5, 0, False, True))

    def test_mid_point_on_sweep_side(self):
        mid_x, mid_y = svg_arc_to_mid(0, 0, 10, 0, 5, 5, 0, False, True)
        self.assertAlmostEqual(mid_x, 5.0)
        self.assertAlmostEqual(mid_y, -5.0)
        mid_x, mid_y = svg_arc_to_mid(0, 0, 10, 0, 5, 5, 0, False, False)
        self.assertAlmostEqual(mid_x, 5.0)
        self.assertAlmostEqual(mid_y, 5.0)


class TestTokenizer(unittest.TestCase):
    """Test shape record tokenizers."""

    def test_split_record(self):
        designator, fields = split_record("R~1~2~3")
        self.assertEqual(designator, "R")
        self.assertEqual(fields, ["1", "2", "3"])

    def test_split_pin_segments_short(self):
        segments = split_pin_segments("P~show~0~1^^10~20")
        self.assertEqual(len(segments), 7)
        self.assertEqual(segments[0], ["show", "0", "1"])
        self.assertEqual(segments[1], ["10", "20"])
        self.assertEqual(segments[6], [])

    def test_parse_svg_path(self):
        path = parse_svg_path("M 0 0 A 5 5 0 0 1 10 0 L 1,2 Z Q 1 2")
        self.assertEqual(len(path), 4)
        self.assertIsInstance(path[0], SvgMoveTo)
        self.assertIsInstance(path[1], SvgArcTo)
        self.assertTrue(path[1].sweep)
        self.assertFalse(path[1].large_arc)
        self.assertEqual(path[1].end_x, 10.0)
        self.assertIsInstance(path[2], SvgLineTo)
        self.assertEqual((path[2].pos_x, path[2].pos_y), (1.0, 2.0))
        self.assertIsInstance(path[3], SvgClosePath)

    def test_parse_svg_path_missing_args(self):
        path = parse_svg_path("M 5")
        self.assertEqual(path[0].start_x, 5.0)
        self.assertEqual(path[0].start_y, 0.0)

    def test_parse_svg_path_exponents(self):
        path = parse_svg_path("M 1e-3 2E1 L 3 4.5e+1")
        self.assertEqual(len(path), 2)
        self.assertIsInstance(path[0], SvgMoveTo)
        self.assertAlmostEqual(path[0].start_x, 0.001)
        self.assertAlmostEqual(path[0].start_y, 20.0)
        self.assertIsInstance(path[1], SvgLineTo)
        self.assertEqual((path[1].pos_x, path[1].pos_y), (3.0, 45.0))

    def test_parse_points(self):
        self.assertEqual(parse_points("1 2 3 4"), [("1", "2"), ("3", "4")])
        self.assertEqual(parse_points("1 2 3"), [("1", "2"), ("3", "")])
        self.assertEqual(parse_points(""), [])


class TestSymbolParsing(unittest.TestCase):
    """Test EasyEDA symbol records."""

    def setUp(self):
        self.symbol = parse_symbol(sample_cad_data())

    def test_header(self):
        info = self.symbol.info
        self.assertEqual(info.name, "NE555")
        self.assertEqual(info.prefix, "U")
        self.assertEqual(info.package, "SOIC-8")
        self.assertEqual(info.manufacturer, "TI")
        self.assertEqual(info.datasheet, "https://example.com/ne555.pdf")
        self.assertEqual(info.lcsc_id, "C12345")
        self.assertEqual(info.jlc_id, "Basic")
        self.assertEqual((self.symbol.bbox.x, self.symbol.bbox.y), (400.0, 300.0))

    def test_pin(self):
        self.assertEqual(len(self.symbol.pins), 1)
        pin = self.symbol.pins[0]
        self.assertEqual(pin.settings.number, "1")
        self.assertEqual(pin.settings.rotation, 180.0)
        self.assertEqual(pin.name.text, "TRIG")
        self.assertEqual(pin.name.font_size, 7.0)
        self.assertEqual(pin.pin_path.path, "M 370 290 h 10")
        self.assertFalse(pin.dot.is_displayed)
        self.assertFalse(pin.clock.is_displayed)

    def test_shapes(self):
        self.assertEqual(len(self.symbol.rectangles), 1)
        rect = self.symbol.rectangles[0]
        self.assertEqual((rect.pos_x, rect.pos_y, rect.width, rect.height),
                         (380.0, 280.0, 40.0, 40.0))
        self.assertEqual(len(self.symbol.arcs), 1)
        self.assertFalse(self.symbol.arcs[0].fill)
        self.assertEqual(len(self.symbol.polylines), 2)

    def test_unknown_designator_skipped(self):
        cad = sample_cad_data()
        shapes = cad["dataStr"]["shape"]
        mixed = shapes[:2] + ["FOO~1", "BAR"] + shapes[2:]
        cad["dataStr"]["shape"] = [s for s in shapes if not s.startswith("FOO~")]
        expected = parse_symbol(cad)
        cad["dataStr"]["shape"] = mixed
        symbol = parse_symbol(cad)
        for kind in ("pins", "rectangles", "circles", "ellipses", "arcs",
                     "polylines", "polygons", "paths"):
            self.assertEqual(len(getattr(symbol, kind)), len(getattr(expected, kind)), kind)
        self.assertEqual(len(symbol.pins), 1)
        self.assertEqual(len(symbol.polylines), 2)
        self.assertEqual(symbol.pins[0].name.text, "TRIG")

    def test_only_unknown_designators(self):
        cad = sample_cad_data()
        cad["dataStr"]["shape"] = ["FOO~1", "BAR"]
        symbol = parse_symbol(cad)
        self.assertEqual(len(symbol.pins), 0)
        self.assertEqual(len(symbol.rectangles), 0)

    def test_empty_payload(self):
        symbol = parse_symbol({})
        self.assertEqual(symbol.info.name, "")
        self.assertEqual(len(symbol.pins), 0)


class TestFootprintParsing(unittest.TestCase):
    """Test EasyEDA footprint records."""

    def test_footprint(self):
        fp = parse_footprint(sample_cad_data())
        self.assertEqual(fp.info.name, "SOIC-8")
        self.assertEqual(fp.info.fp_type, FootprintType.SMD)
        self.assertEqual(len(fp.pads), 2)
        self.assertEqual(fp.pads[0].shape, PadShape.RECT)
        self.assertEqual(fp.pads[0].number, "1")
        self.assertEqual(fp.pads[0].rotation, 90.0)
        self.assertEqual(fp.pads[1].shape, PadShape.ELLIPSE)
        self.assertEqual(fp.pads[1].hole_radius, 1.5)
        self.assertEqual(len(fp.tracks), 1)
        self.assertEqual(len(fp.arcs), 1)
        self.assertEqual(len(fp.texts), 1)
        self.assertEqual(fp.texts[0].text, "SOIC-8")

    def test_model_3d(self):
        model = parse_footprint(sample_cad_data()).model_3d
        self.assertIsNotNone(model)
        self.assertEqual(model.uuid, "abc123")
        self.assertEqual(model.name, "SOIC-8 Model")
        self.assertEqual((model.translation.x, model.translation.y), (4000.0, 3000.0))
        self.assertEqual(model.rotation.z, 90.0)

    def test_malformed_svgnode_dropped(self):
        cad = sample_cad_data()
        cad["packageDetail"]["dataStr"]["shape"][5] = "SVGNODE~{not json"
        with self.assertLogs("ee2kicad.easyeda_parser", level="WARNING"):
            fp = parse_footprint(cad)
        self.assertIsNone(fp.model_3d)

    def test_unknown_designator_skipped(self):
        cad = sample_cad_data()
        shapes = cad["packageDetail"]["dataStr"]["shape"]
        mixed = shapes[:1] + ["BAZ~1~2", "QUX"] + shapes[1:]
        cad["packageDetail"]["dataStr"]["shape"] = [
            s for s in shapes if not s.startswith("BAR~")]
        expected = parse_footprint(cad)
        cad["packageDetail"]["dataStr"]["shape"] = mixed
        fp = parse_footprint(cad)
        for kind in ("pads", "tracks", "holes", "vias", "circles", "arcs",
                     "rectangles", "texts"):
            self.assertEqual(len(getattr(fp, kind)), len(getattr(expected, kind)), kind)
        self.assertEqual(len(fp.pads), 2)
        self.assertEqual([p.number for p in fp.pads], ["1", "2"])
        self.assertEqual(fp.model_3d, expected.model_3d)
        self.assertEqual(len(fp.pads), 2)

    def test_through_hole_title(self):
        cad = sample_cad_data()
        cad["packageDetail"]["title"] = "DIP-8-TH_P2.54"
        self.assertEqual(parse_footprint(cad).info.fp_type, FootprintType.THT)

    def test_smt_fallback_to_package_detail(self):
        cad = sample_cad_data()
        del cad["SMT"]
        self.assertEqual(parse_footprint(cad).info.fp_type, FootprintType.THT)
        cad["packageDetail"]["SMT"] = True
        self.assertEqual(parse_footprint(cad).info.fp_type, FootprintType.SMD)

    def test_unknown_pad_shape_is_polygon(self):
        cad = sample_cad_data()
        cad["packageDetail"]["dataStr"]["shape"] = ["PAD~STAR~4000~3000~1~1~1~~1~0~4000 3000 4001 3001"]
        self.assertEqual(parse_footprint(cad).pads[0].shape, PadShape.POLYGON)


class TestSymbolConversion(unittest.TestCase):
    """Test symbol conversion into KiCad space."""

    def setUp(self):
        self.ki = convert_symbol(parse_symbol(sample_cad_data()))

    def test_pin(self):
        pin = self.ki.pins[0]
        self.assertAlmostEqual(pin.pos_x, -7.62)
        self.assertAlmostEqual(pin.pos_y, 2.54)
        self.assertAlmostEqual(pin.length, 2.54)
        self.assertEqual(pin.orientation, 0)
        self.assertEqual(pin.pin_type, PinType.UNSPECIFIED)
        self.assertEqual(pin.style, PinStyle.LINE)
        self.assertEqual(pin.name, "TRIG")
        self.assertEqual(pin.number, "1")

    def test_rectangle_flipped(self):
        rect = self.ki.rectangles[0]
        self.assertAlmostEqual(rect.pos_x0, -5.08)
        self.assertAlmostEqual(rect.pos_y0, 5.08)
        self.assertAlmostEqual(rect.pos_x1, 5.08)
        self.assertAlmostEqual(rect.pos_y1, -5.08)

    def test_arc_mid_point(self):
        arc = self.ki.arcs[0]
        self.assertAlmostEqual(arc.start_x, -2.54)
        self.assertAlmostEqual(arc.end_x, 2.54)
        # Clockwise on the EasyEDA canvas passes over the top
        self.assertAlmostEqual(arc.mid_x, 0.0)
        self.assertAlmostEqual(arc.mid_y, 2.54)

    def test_polygon_closure(self):
        closed, open_line = self.ki.polygons
        self.assertTrue(closed.is_closed)
        self.assertEqual(closed.points[0], closed.points[-1])
        self.assertFalse(open_line.is_closed)

    def test_pin_styles(self):
        self.assertEqual(pin_style(False, False), PinStyle.LINE)
        self.assertEqual(pin_style(True, False), PinStyle.INVERTED)
        self.assertEqual(pin_style(False, True), PinStyle.CLOCK)
        self.assertEqual(pin_style(True, True), PinStyle.INVERTED_CLOCK)

    def test_pin_types(self):
        self.assertEqual(pin_type("1"), PinType.INPUT)
        self.assertEqual(pin_type(4), PinType.POWER_IN)
        self.assertEqual(pin_type("9"), PinType.UNSPECIFIED)
        self.assertEqual(pin_type("x"), PinType.UNSPECIFIED)

    def test_pin_orientation(self):
        self.assertEqual(pin_orientation(0), 180)
        self.assertEqual(pin_orientation(90), 270)
        self.assertEqual(pin_orientation(270), 90)

    def test_only_circular_ellipses_kept(self):
        symbol = Symbol(ellipses=[
            SymbolEllipse(center_x=10, center_y=10, radius_x=5, radius_y=5),
            SymbolEllipse(center_x=10, center_y=10, radius_x=5, radius_y=3),
        ])
        ki = convert_symbol(symbol)
        self.assertEqual(len(ki.circles), 1)
        self.assertAlmostEqual(ki.circles[0].radius, 1.27)


class TestFootprintConversion(unittest.TestCase):
    """Test footprint conversion into KiCad space."""

    def setUp(self):
        self.ki = convert_footprint(parse_footprint(sample_cad_data()))

    def test_bbox_in_mm(self):
        self.assertAlmostEqual(self.ki.bbox.x, 1016.0)
        self.assertAlmostEqual(self.ki.bbox.y, 762.0)

    def test_pads_rebased(self):
        pad = self.ki.pads[0]
        self.assertAlmostEqual(pad.center_x, 2.54)
        self.assertAlmostEqual(pad.center_y, 1.27)
        self.assertAlmostEqual(pad.width, 1.524)
        self.assertEqual(pad.outline, [])
        self.assertAlmostEqual(self.ki.pads[1].hole_radius, 0.381)

    def test_track_points(self):
        points = self.ki.tracks[0].points
        self.assertEqual(len(points), 2)
        self.assertAlmostEqual(points[0][0], -2.54)
        self.assertAlmostEqual(points[1][0], 7.62)

    def test_model_rebased(self):
        model = self.ki.model_3d
        self.assertAlmostEqual(model.translation.x, 0.0)
        self.assertAlmostEqual(model.translation.y, 0.0)
        self.assertAlmostEqual(model.rotation.z, 270.0)

    def test_model_z_through_hole(self):
        model = Model3D(name="m", translation=Vector3(x=10, y=10, z=4), rotation=Vector3())
        bbox = BBox(x=0.0, y=0.0)
        smd = convert_model_3d(model, bbox, FootprintType.SMD)
        tht = convert_model_3d(model, bbox, FootprintType.THT)
        self.assertAlmostEqual(smd.translation.z, -1.016)
        self.assertEqual(tht.translation.z, 0.0)
        self.assertAlmostEqual(smd.translation.y, -2.54)
        self.assertEqual(smd.rotation.x, 0)


if __name__ == "__main__":
    unittest.main()
