from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from rawport import __version__
from rawport.config import AppConfig, load_config
from rawport.decode.base import DecodeError, PixmapDecodeError, WriteError, describe
from rawport.native.library import load_library
from rawport.utils.formatting import aperture_label, focal_range, shutter_seconds_to_fraction
from rawport.utils.logging_utils import configure_logging


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rawport")
    parser.add_argument("--config", default=None, help="Optional path to YAML config")
    parser.add_argument("--log-level", default=None, help="Override config log level")
    sub = parser.add_subparsers(dest="command", required=True)

    metadata = sub.add_parser("metadata", help="Print camera, lens and exposure metadata")
    metadata.add_argument("input", help="Input RAW file")
    metadata.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

    thumb = sub.add_parser("thumbnail", help="Extract the embedded preview image")
    thumb.add_argument("input", help="Input RAW file")
    thumb.add_argument("output", help="Output path (must not exist)")

    imp = sub.add_parser("import", help="Decode a RAW file and save it through Pillow")
    imp.add_argument("input", help="Input RAW file")
    imp.add_argument("output", help="Output image path; format follows the extension")

    export = sub.add_parser("export", help="Develop a RAW file and write PPM/TIFF with LibRaw")
    export.add_argument("input", help="Input RAW file")
    export.add_argument("output", help="Output path (must not exist)")
    export.add_argument("--tiff", action="store_true", help="Write TIFF instead of PPM")
    export.add_argument("--bps", type=int, choices=(8, 16), default=None, help="Output bits per sample")

    sub.add_parser("version", help="Show rawport and LibRaw versions")

    return parser


def _load(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level, config.log_file)
    return config


def _cmd_metadata(args: argparse.Namespace, config: AppConfig) -> int:
    from rawport.decode.metadata import extract_metadata

    lib = load_library(config.library.path)
    md = extract_metadata(Path(args.input).expanduser(), lib=lib)

    if args.json:
        print(json.dumps(md.to_json_dict(), indent=2))
        return 0

    camera_text = " ".join(v for v in [md.camera.make, md.camera.model] if v) or "unknown"
    lens_text = " ".join(v for v in [md.lens.make, md.lens.model] if v) or "unknown"
    print(f"File: {args.input} ({md.data_size} bytes)")
    print(f"Camera: {camera_text}")
    if md.camera.software:
        print(f"Software: {md.camera.software}")
    print(f"Lens: {lens_text}")
    focal = focal_range(md.lens.min_focal, md.lens.max_focal)
    if focal:
        print(f"  range: {focal}")
    print(f"Sensor: {md.width}x{md.height}, {md.camera.colors} colors")
    print(f"Captured: {md.captured_at.isoformat() if md.captured_at else 'unknown'}")
    exposure = [
        f"ISO {md.iso}" if md.iso > 0 else None,
        shutter_seconds_to_fraction(md.shutter),
        aperture_label(md.aperture),
        f"{md.focal_length:g}mm" if md.focal_length > 0 else None,
    ]
    print(f"Exposure: {' '.join(v for v in exposure if v) or 'unknown'}")
    return 0


def _cmd_thumbnail(args: argparse.Namespace, config: AppConfig) -> int:
    from rawport.decode.thumbnail import extract_thumbnail

    lib = load_library(config.library.path)
    output = Path(args.output).expanduser()
    extract_thumbnail(Path(args.input).expanduser(), output, lib=lib)
    print(str(output))
    return 0


def _cmd_import(args: argparse.Namespace, config: AppConfig) -> int:
    from rawport.decode.pipeline import import_raw
    from rawport.write.atomic import require_new_output

    output = require_new_output(Path(args.output).expanduser())
    if not output.parent.is_dir():
        raise WriteError(f"output directory [{output.parent}] does not exist", path=output)
    lib = load_library(config.library.path)
    image = import_raw(Path(args.input).expanduser(), lib=lib, processing=config.processing)
    image.save(output)
    print(f"{output} {image.size[0]}x{image.size[1]} {image.mode}")
    return 0


def _cmd_export(args: argparse.Namespace, config: AppConfig) -> int:
    from dataclasses import replace

    from rawport.write.export import export_ppm

    processing = config.processing
    if args.tiff:
        processing = replace(processing, output_tiff=True)
    if args.bps is not None:
        processing = replace(processing, output_bps=int(args.bps))

    lib = load_library(config.library.path)
    output = Path(args.output).expanduser()
    export_ppm(Path(args.input).expanduser(), output, lib=lib, processing=processing)
    print(str(output))
    return 0


def _cmd_version(args: argparse.Namespace, config: AppConfig) -> int:
    lib = load_library(config.library.path)
    print(f"rawport {__version__}")
    print(f"LibRaw {lib.version()} ({getattr(lib, 'path', 'unknown')})")
    return 0


_COMMANDS = {
    "metadata": _cmd_metadata,
    "thumbnail": _cmd_thumbnail,
    "import": _cmd_import,
    "export": _cmd_export,
    "version": _cmd_version,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.error(f"unknown command: {args.command}")
        return 2

    try:
        config = _load(args)
        return handler(args, config)
    except PixmapDecodeError as exc:
        logger.exception("internal pixel-map decode failure")
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except DecodeError as exc:
        logger.debug("command %s failed: %s", args.command, describe(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("fatal error")
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
