"""Command-line host for the engine.

    python -m image_processor [--log-level debug] [--settings file.json] OP INPUT [OVERLAY] [options]

Reads the input file(s), runs one operation and writes the PNG result to
`--output` (default: INPUT stem + ".<op>.png"). Query operations print their
result instead.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from image_processor import api
from image_processor.errors import EngineError
from image_processor.logger import get_logger
from image_processor.settings_manager import SETTINGS_ENV, reset_settings

_SINGLE_OPS = ("grayscale", "invert", "sepia", "rotate90", "rotate180", "rotate270", "fliph", "flipv")
_COMBINE_OPS = (
    "combine_top_bottom",
    "combine_bottom_top",
    "combine_left_right",
    "combine_right_left",
    "combine_diagonal_tl_br",
    "combine_diagonal_tr_bl",
)
_QUERY_OPS = ("get_dimensions", "is_square_ish")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image_processor", description="Image filters and compositing")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    parser.add_argument("--settings", help="Path to a JSON settings file")
    sub = parser.add_subparsers(dest="op", required=True)

    def add(name: str, overlay: bool = False) -> argparse.ArgumentParser:
        p = sub.add_parser(name)
        p.add_argument("input", type=Path)
        if overlay:
            p.add_argument("overlay", type=Path)
        p.add_argument("-o", "--output", type=Path)
        return p

    for name in _SINGLE_OPS:
        add(name)
    add("brighten").add_argument("delta", type=int)
    add("adjust_contrast").add_argument("factor", type=float)
    add("blur").add_argument("sigma", type=float)
    p = add("crop_square")
    for arg in ("x", "y", "size"):
        p.add_argument(arg, type=int)
    add("overlay_transparent", overlay=True).add_argument("opacity", type=float)
    for name in _COMBINE_OPS:
        add(name, overlay=True)
    p = add("combine_with_square_region", overlay=True)
    for arg in ("x", "y", "size"):
        p.add_argument(arg, type=int)
    p.add_argument("--blend", action="store_true", help="Composite inside the square instead of replacing")
    p.add_argument("--opacity", type=float, default=1.0)
    for name in _QUERY_OPS:
        sub.add_parser(name).add_argument("input", type=Path)
    return parser


def _apply_environment(args: argparse.Namespace) -> None:
    if args.log_level:
        os.environ["IMAGE_PROCESSOR_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_PROCESSOR_LOG_CATS"] = args.log_cats
    if args.settings:
        os.environ[SETTINGS_ENV] = args.settings
        reset_settings()


def _call(args: argparse.Namespace, data: bytes):
    op = args.op
    if op in _SINGLE_OPS or op in _QUERY_OPS:
        return getattr(api, op)(data)
    if op == "brighten":
        return api.brighten(data, args.delta)
    if op == "adjust_contrast":
        return api.adjust_contrast(data, args.factor)
    if op == "blur":
        return api.blur(data, args.sigma)
    if op == "crop_square":
        return api.crop_square(data, args.x, args.y, args.size)

    overlay = args.overlay.read_bytes()
    if op == "overlay_transparent":
        return api.overlay_transparent(data, overlay, args.opacity)
    if op == "combine_with_square_region":
        return api.combine_with_square_region(
            data, overlay, args.x, args.y, args.size, blend=args.blend, opacity=args.opacity
        )
    return getattr(api, op)(data, overlay)


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    _apply_environment(args)
    logger = get_logger("cli")

    try:
        data = args.input.read_bytes()
        result = _call(args, data)
    except OSError as e:
        logger.error("cannot read input: %s", e)
        return 2
    except EngineError as e:
        print(e, file=sys.stderr)
        return 1

    if args.op in _QUERY_OPS:
        if isinstance(result, tuple):
            print(*result)
        else:
            print("true" if result else "false")
        return 0

    output = args.output or args.input.with_name(f"{args.input.stem}.{args.op}.png")
    try:
        output.write_bytes(result)
    except OSError as e:
        logger.error("cannot write output %s: %s", output, e)
        return 2
    logger.info("wrote %s", output)
    return 0
