#!/usr/bin/env python3
"""EasyEDA component to KiCad library converter.

Reads an EasyEDA components API payload (saved as JSON) and writes a KiCad
symbol library, a footprint module and, given the component's OBJ mesh, a
VRML 3D model.

Usage:
    python3 -m ee2kicad.easyeda_to_kicad component.json [-o outdir] [--obj model.obj] [-v]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .easyeda_parser import parse_footprint, parse_symbol
from .footprint_writer import DEFAULT_MODEL_PATH, export_footprint
from .kicad_convert import convert_footprint, convert_symbol
from .obj_to_wrl import convert_obj_to_wrl
from .symbol_writer import export_symbol_library
from .utils import safe_model_name, sanitize_identifier

log = logging.getLogger(__name__)


def unwrap_api_payload(data):
    """Return the CAD object from either a bare payload or an API response.

    The components API wraps the CAD object as {"result": {...}}.
    """
    if not isinstance(data, dict):
        raise ValueError("EasyEDA API returned no component data")
    if "dataStr" in data or "packageDetail" in data:
        return data
    result = data.get("result")
    if not isinstance(result, dict) or not result:
        preview = json.dumps(data)[:500]
        raise ValueError(f"EasyEDA API returned no component data. Payload: {preview}")
    return result


def find_3d_model_info(package_detail):
    """(uuid, name) of the footprint's 3D model reference, or None."""
    model = parse_footprint({"packageDetail": package_detail or {}}).model_3d
    if model is None or not model.uuid:
        return None
    return model.uuid, model.name or model.uuid


def convert_easyeda_cad(cad_data, symbol=True, footprint=True,
                        model_3d_path=DEFAULT_MODEL_PATH):
    """Convert a CAD payload into KiCad library text.

    Returns {"symbol": {"name", "content"}, "footprint": {"name", "content"}}
    holding only the requested kinds.
    """
    if not symbol and not footprint:
        raise ValueError("Nothing to convert: symbol and footprint both disabled")

    result = {}

    if symbol:
        ee_symbol = parse_symbol(cad_data)
        result["symbol"] = {
            "name": sanitize_identifier(ee_symbol.info.name or "symbol"),
            "content": export_symbol_library(convert_symbol(ee_symbol)),
        }

    if footprint:
        ee_footprint = parse_footprint(cad_data)
        result["footprint"] = {
            "name": ee_footprint.info.name or "footprint",
            "content": export_footprint(convert_footprint(ee_footprint), model_3d_path),
        }

    return result


def output_file_names(cad_data, converted, model_name=None):
    """File names for the converted outputs, keyed like convert_easyeda_cad.

    Every name is passed through safe_model_name so it stays inside the
    output directory.
    """
    lcsc_id = safe_model_name(((cad_data or {}).get("lcsc") or {}).get("number"))
    names = {}
    if "symbol" in converted:
        name = converted["symbol"]["name"]
        names["symbol"] = f"{lcsc_id}-{name}.kicad_sym" if lcsc_id else f"{name}.kicad_sym"
    if "footprint" in converted:
        names["footprint"] = f"{safe_model_name(converted['footprint']['name'])}.kicad_mod"
    if model_name:
        names["model"] = f"{safe_model_name(model_name)}.wrl"
    return names


def export_part(cad_data, output_dir, symbol=True, footprint=True, obj_text=None,
                model_3d_path=DEFAULT_MODEL_PATH):
    """Convert a component and write the requested files into output_dir.

    The VRML model is written only when obj_text is given. Returns the
    written paths.
    """
    if not symbol and not footprint and obj_text is None:
        raise ValueError("No output selected")

    converted = {}
    if symbol or footprint:
        converted = convert_easyeda_cad(cad_data, symbol=symbol, footprint=footprint,
                                        model_3d_path=model_3d_path)

    model_name = None
    if obj_text is not None:
        model_info = find_3d_model_info(cad_data.get("packageDetail"))
        if model_info is None:
            log.warning("No 3D model reference in the footprint, naming the model 'model'")
            model_name = "model"
        else:
            model_name = model_info[1]

    names = output_file_names(cad_data, converted, model_name)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for kind in ("symbol", "footprint"):
        if kind in converted:
            path = output_dir / names[kind]
            path.write_text(converted[kind]["content"], encoding="utf-8")
            written.append(path)
    if model_name:
        path = output_dir / names["model"]
        path.write_text(convert_obj_to_wrl(obj_text), encoding="utf-8")
        written.append(path)

    for path in written:
        log.info("Wrote %s", path)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Convert an EasyEDA component to KiCad symbol, footprint and 3D model"
    )
    parser.add_argument("input", help="EasyEDA component JSON (API response or its result)")
    parser.add_argument("-o", "--output-dir", default=".",
                        help="Directory for the generated files (default: current)")
    parser.add_argument("--obj", default=None,
                        help="OBJ mesh of the component, converted to VRML")
    parser.add_argument("--no-symbol", action="store_true",
                        help="Do not write the symbol library")
    parser.add_argument("--no-footprint", action="store_true",
                        help="Do not write the footprint")
    parser.add_argument("--no-model", action="store_true",
                        help="Do not write the 3D model")
    parser.add_argument("--model-path", default=DEFAULT_MODEL_PATH,
                        help="Directory of the 3D model as referenced by the footprint "
                             "(default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: {input_path} not found", file=sys.stderr)
        sys.exit(1)

    obj_text = None
    if args.obj and not args.no_model:
        obj_path = Path(args.obj)
        if not obj_path.exists():
            print(f"Error: {obj_path} not found", file=sys.stderr)
            sys.exit(1)
        obj_text = obj_path.read_text(encoding="utf-8")

    try:
        cad_data = unwrap_api_payload(json.loads(input_path.read_text(encoding="utf-8")))
        written = export_part(
            cad_data,
            args.output_dir,
            symbol=not args.no_symbol,
            footprint=not args.no_footprint,
            obj_text=obj_text,
            model_3d_path=args.model_path,
        )
    except Exception as e:
        print(f"Error converting {input_path}: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc(file=sys.stderr)
        sys.exit(1)

    for path in written:
        print(path)


if __name__ == "__main__":
    main()
