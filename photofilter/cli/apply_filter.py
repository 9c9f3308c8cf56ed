"""
Command line driver: filter one image, or manage stored presets.

    photofilter apply photo.jpg out.png --preset Vintage --brightness 10
    photofilter presets
    photofilter save-preset "Soft Warm" --temperature 25 --fade 15
    photofilter delete-preset "Soft Warm"
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..errors import PhotoFilterError, PresetNotFoundError
from ..models.adjustment_parameters import MAX_VALUE, MIN_VALUE, Adjustment
from ..repositories.preset_repository import PresetRepository
from ..services.adjustment_service import AdjustmentService
from ..services.image_service import ImageService
from ..services.preset_service import PresetService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def _add_adjustment_flags(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("adjustments", f"integers in [{MIN_VALUE}, {MAX_VALUE}], 0 = neutral")
    for adjustment in Adjustment:
        group.add_argument(
            f"--{adjustment.value.lower()}",
            dest=adjustment.value,
            type=int,
            metavar="N",
            help=f"{adjustment.value} adjustment",
        )


def _collect_adjustments(args: argparse.Namespace) -> dict:
    """Only the flags the user actually passed."""
    return {
        adjustment.value: getattr(args, adjustment.value)
        for adjustment in Adjustment
        if getattr(args, adjustment.value) is not None
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photofilter",
        description="Apply brightness/contrast/saturation/temperature/fade/vignette to an image.",
    )
    parser.add_argument("--db", help="Preset database path (defaults to $PRESET_DB_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    apply_cmd = sub.add_parser("apply", help="Filter a single image and write a PNG")
    apply_cmd.add_argument("input", help="JPEG/PNG/GIF to read")
    apply_cmd.add_argument("output", help="PNG to write ('.png' is appended if missing)")
    apply_cmd.add_argument("--preset", help="Start from a built-in or stored preset")
    _add_adjustment_flags(apply_cmd)

    sub.add_parser("presets", help="List built-in and stored presets")

    save_cmd = sub.add_parser("save-preset", help="Store the given adjustments under a name")
    save_cmd.add_argument("name")
    _add_adjustment_flags(save_cmd)

    delete_cmd = sub.add_parser("delete-preset", help="Remove a stored preset")
    delete_cmd.add_argument("name")

    return parser


def _preset_service(args: argparse.Namespace) -> PresetService:
    """Opened on demand so plain filtering never touches the preset store."""
    return PresetService(PresetRepository(args.db))


def _run_apply(args, image_service: ImageService) -> int:
    overrides = _collect_adjustments(args)
    image = image_service.load(args.input)
    if args.preset:
        adjustment_service = AdjustmentService(_preset_service(args))
        result, params = adjustment_service.apply_preset(image, args.preset, overrides)
    else:
        adjustment_service = AdjustmentService()
        params = adjustment_service.build_parameters(overrides)
        result = adjustment_service.apply(image, params)
    written = image_service.save(result, args.output)
    summary = "no adjustments" if params.is_neutral() else params.to_dict()
    print(f"Wrote {written} ({result.width}x{result.height}) with {summary}")
    return 0


def _run_presets(preset_service: PresetService) -> int:
    presets = preset_service.all_presets()
    saved = preset_service.list_preset_names()
    print("Built-in presets:")
    for name in preset_service.builtin_names():
        if name in saved:
            print(f"  {name} (overridden by a saved preset)")
        else:
            print(f"  {name}: {presets[name].to_dict()}")
    print("Saved presets:")
    if not saved:
        print("  (none)")
    for name in saved:
        print(f"  {name}: {presets[name].to_dict()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "apply":
            return _run_apply(args, ImageService())
        if args.command == "presets":
            return _run_presets(_preset_service(args))
        if args.command == "save-preset":
            name = _preset_service(args).save_preset(args.name, _collect_adjustments(args))
            print(f"Saved preset {name!r}")
            return 0
        if args.command == "delete-preset":
            if _preset_service(args).delete_preset(args.name):
                print(f"Deleted preset {args.name!r}")
                return 0
            print(f"Preset {args.name!r} not found", file=sys.stderr)
            return 1
    except PresetNotFoundError as err:
        print(f"Error: {err.args[0]}", file=sys.stderr)
        return 1
    except PhotoFilterError as err:
        logger.error(f"{args.command} failed: {err}")
        print(f"Error: {err}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
