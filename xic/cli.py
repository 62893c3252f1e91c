from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Any, Callable, Optional

from .batch import process_batch
from .collisions import CollisionPolicy, CollisionScan
from .errors import CollisionCancelled
from .options import OutputFormat, ScalingMode
from .presets import PRESET_NAMES, apply_preset, parse_anchor, parse_aspect, parse_resolution
from .report import build_report, format_summary, save_report_csv, save_report_json
from .results import ProgressEvent
from .settings import ConvertSettings, load_settings, settings_from_dict, settings_to_dict


def _parse_anchor_override(text: str) -> tuple[str, Any]:
    """NAME=X,Y, e.g. "beach.jpg=0.5,0.2"."""
    name, sep, value = text.rpartition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=X,Y, got {text!r}")
    try:
        return name, parse_anchor(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _arg(parse: Callable[[str], Any]) -> Callable[[str], Any]:
    def wrapped(text: str) -> Any:
        try:
            return parse(text)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e)) from e
    wrapped.__name__ = parse.__name__
    return wrapped


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="xic",
        description="Xe Image Convert: batch crop, letterbox removal, resize and format conversion",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("-q", "--quiet", action="store_true", help="No progress output")
    sub = p.add_subparsers(dest="command", required=True)

    conv = sub.add_parser("convert", help="Convert images in files/folders")
    conv.add_argument("inputs", nargs="+", help="Files and/or folders to process")

    # Output
    conv.add_argument("--out", default=None, help="Output directory")
    conv.add_argument("--config", default=None, help="JSON settings file; flags override it")
    conv.add_argument("--preset", choices=PRESET_NAMES, default=None, help="Named settings preset")
    conv.add_argument("--suffix", default=None, help="Filename suffix (default: none)")
    conv.add_argument(
        "--on-collision",
        choices=["ask", *[c.value for c in CollisionPolicy]],
        default=None,
        help="What to do when an output already exists (default: version)",
    )
    conv.add_argument("--no-recursive", action="store_true", help="Do not scan folders recursively")
    conv.add_argument("--workers", type=int, default=None, help="Parallel workers (default: 1)")
    conv.add_argument("--report", action="store_true", help="Write report.json and report.csv to the output folder")

    # Format
    conv.add_argument("--format", choices=[f.value for f in OutputFormat], default=None, help="Output format (default: jpeg)")
    conv.add_argument("--quality", type=float, default=None, help="0.0-1.0 for JPEG/WebP/HEIC (default 0.8)")
    conv.add_argument("--lossless", action="store_true", default=None, help="WebP lossless mode")

    # Geometry
    conv.add_argument("--remove-letterbox", action="store_true", default=None, help="Strip black bars first")
    conv.add_argument("--threshold", type=float, default=None, help="Letterbox darkness threshold 0-1 (default 0.1)")
    conv.add_argument("--aspect", type=_arg(parse_aspect), default=None, help='e.g. "1:1", "16:9", "2.4:1"')
    conv.add_argument("--mode", choices=[m.value for m in ScalingMode], default=None, help="fill crops, fit pads")
    conv.add_argument(
        "--anchor",
        type=_parse_anchor_override,
        action="append",
        default=[],
        metavar="NAME=X,Y",
        help="Fill anchor for one file (0,0 is top-left). Repeatable.",
    )
    conv.add_argument("--resolution", type=_arg(parse_resolution), default=None, help='Long edge: "4k", "1080p", "2000"')
    conv.add_argument("--no-upscale", action="store_true", help="Never enlarge pixels")

    return p


def _settings_from_args(args: argparse.Namespace) -> ConvertSettings:
    overrides: dict[str, Any] = {
        "output_dir": args.out,
        "suffix": args.suffix,
        "output_format": args.format,
        "quality": args.quality,
        "webp_lossless": args.lossless,
        "remove_letterboxing": args.remove_letterbox,
        "letterbox_threshold": args.threshold,
        "aspect": args.aspect,
        "scaling_mode": args.mode,
        "resolution": args.resolution,
        "max_workers": args.workers,
    }
    if args.on_collision and args.on_collision != "ask":
        overrides["collision_policy"] = args.on_collision
    if args.no_recursive:
        overrides["recursive"] = False
    if args.no_upscale:
        overrides["allow_upscale"] = False
    if args.anchor:
        overrides["anchors"] = dict(args.anchor)

    # Precedence: defaults < config file < preset < explicit flags
    if args.config:
        base = load_settings(args.config, output_dir=args.out)
    else:
        if args.out is None:
            raise ValueError("--out is required unless --config provides output_dir")
        base = settings_from_dict({"output_dir": args.out})

    if args.preset:
        base = apply_preset(args.preset, base)
    return settings_from_dict(settings_to_dict(base), **overrides)


def _prompt_policy(scan: CollisionScan) -> CollisionPolicy:
    print(f"\n{len(scan.colliding)} output file(s) already exist:")
    for planned in scan.colliding[:10]:
        print(f"  {planned.output.name}")
    if len(scan.colliding) > 10:
        print(f"  ... and {len(scan.colliding) - 10} more")

    choices = {"r": CollisionPolicy.REPLACE, "v": CollisionPolicy.VERSION, "c": CollisionPolicy.CANCEL}
    while True:
        try:
            answer = input("[r]eplace, keep both as new [v]ersions, or [c]ancel? ").strip().lower()
        except EOFError:
            return CollisionPolicy.CANCEL
        if answer[:1] in choices:
            return choices[answer[:1]]


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.processed}/{event.total}] {event.current_file}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "convert":
        try:
            settings = _settings_from_args(args)
        except (OSError, ValueError) as e:
            parser.error(str(e))

        inputs = [Path(p) for p in args.inputs]
        chooser = _prompt_policy if args.on_collision == "ask" else None

        try:
            result = process_batch(
                inputs,
                settings,
                choose_policy=chooser,
                progress_callback=None if args.quiet else _print_progress,
            )
        except CollisionCancelled as e:
            print(f"\n{e}. Nothing was written.")
            return 1

        print("\n=== Batch Summary ===")
        for line in format_summary(result):
            print(line)

        if args.report:
            report = build_report(result, settings)

            json_path = Path(settings.output_dir) / "report.json"
            save_report_json(report, json_path)

            csv_path = Path(settings.output_dir) / "report.csv"
            save_report_csv(report, csv_path)

            print("\nReport written:", json_path)
            print("CSV written   :", csv_path)

        return 0 if result.failed == 0 and not result.cancelled else 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
