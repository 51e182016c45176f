import argparse
import logging
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from PIL import Image

from .cgg import Frame, read_frames
from .cgs import CGS_NAME_PATTERN, animation_name, output_stem, read_steps
from .compositor import composite_steps
from .config import RipConfig, build_config, deep_merge, load_config
from .errors import DecodeError, EmptyResultSet, MissingResource
from .export import save_gif, save_layout_json, save_sheet
from .layout import SheetLayout, build_sheet
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class RipResult:
    cgs_path: pathlib.Path
    sheet_path: pathlib.Path
    layout: SheetLayout
    json_path: Optional[pathlib.Path] = None
    gif_path: Optional[pathlib.Path] = None


def cgg_path_for(input_dir: pathlib.Path, unit_id: int) -> pathlib.Path:
    return input_dir / f"unit_cgg_{unit_id}.csv"


def atlas_path_for(input_dir: pathlib.Path, unit_id: int) -> pathlib.Path:
    return input_dir / f"unit_anime_{unit_id}.png"


def cgs_path_for(input_dir: pathlib.Path, anim_name: str, unit_id: int) -> pathlib.Path:
    return input_dir / f"unit_{anim_name}_cgs_{unit_id}.csv"


def collect_cgs_paths(input_dir: pathlib.Path, unit_id: int) -> List[pathlib.Path]:
    if not input_dir.is_dir():
        raise MissingResource(f"Input directory not found: {input_dir}")
    paths = []
    for path in sorted(input_dir.iterdir()):
        match = CGS_NAME_PATTERN.match(path.name)
        if path.is_file() and match and int(match.group("unit_id")) == unit_id:
            paths.append(path)
    return paths


def load_atlas(path: pathlib.Path) -> Image.Image:
    logger.info("Loading %s", path)
    try:
        with Image.open(path) as source_image:
            return source_image.convert("RGBA")
    except OSError as exc:
        raise MissingResource(f"Cannot read atlas {path}: {exc}") from exc


def rip_animation(
    cgs_path: pathlib.Path,
    frames: Sequence[Optional[Frame]],
    atlas: Image.Image,
    config: RipConfig,
    output_dir: pathlib.Path,
) -> RipResult:
    steps = read_steps(cgs_path)
    composited = composite_steps(frames, steps, atlas, config)
    sheet, layout, cropped = build_sheet(composited, config.columns, config.divider, config.margin)

    stem = output_stem(cgs_path)
    result = RipResult(cgs_path, save_sheet(sheet, output_dir / f"{stem}.png"), layout)
    if config.save_json:
        result.json_path = save_layout_json(layout, output_dir / f"{stem}.json")
    if config.save_gif:
        result.gif_path = save_gif(
            cropped, layout.frame_delays, output_dir / f"{stem}.gif", config.gif_alpha_threshold
        )
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "ffbe-rips",
        description="Rebuild unit animation strips and sheets from cgg/cgs rips.",
    )
    parser.add_argument("unit_id", type=int, help="The unit id")
    parser.add_argument("-a", "--anim", help="Animation name; every animation of the unit when omitted")
    parser.add_argument("-c", "--columns", type=int, help="Columns in the sheet, 0 for a single strip")
    parser.add_argument("-d", "--divider", type=int, help="Divider thickness between frames in pixels")
    parser.add_argument("-e", "--include-empty", action="store_true", help="Include empty frames")
    parser.add_argument("-i", "--input", default=".", help="The source input directory")
    parser.add_argument("-o", "--output", default=".", help="The output directory")
    parser.add_argument("-j", "--json", action="store_true", help="Save the json sidecar")
    parser.add_argument("-g", "--gif", action="store_true", help="Save an animated gif")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logs")
    parser.add_argument("--config", help="JSON file with option overrides")
    parser.add_argument("--workers", type=int, help="Compositing threads")
    parser.add_argument("--canvas-size", type=int, help="Working canvas size in pixels")
    parser.add_argument("--skip-invalid-frames", action="store_true",
                        help="Drop frames with bad orientation codes instead of stopping")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.config:
        overrides = load_config(pathlib.Path(args.config))
    cli_values: Dict[str, Any] = {
        "columns": args.columns,
        "divider": args.divider,
        "workers": args.workers,
        "canvas_size": args.canvas_size,
    }
    deep_merge(overrides, {key: value for key, value in cli_values.items() if value is not None})
    if args.include_empty:
        overrides["include_empty"] = True
    if args.skip_invalid_frames:
        overrides["skip_invalid_frames"] = True
    output: Dict[str, Any] = {}
    if args.json:
        output["json"] = True
    if args.gif:
        output["gif"] = True
    if output:
        deep_merge(overrides, {"output": output})
    return overrides


def run(args: argparse.Namespace) -> List[RipResult]:
    if args.unit_id < 0:
        raise SystemExit("The unit id must be zero or greater.")
    try:
        config = build_config(overrides_from_args(args))
    except (MissingResource, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    input_dir = pathlib.Path(args.input)
    output_dir = pathlib.Path(args.output)

    if args.anim:
        cgs_paths = [cgs_path_for(input_dir, args.anim, args.unit_id)]
    else:
        try:
            cgs_paths = collect_cgs_paths(input_dir, args.unit_id)
        except MissingResource as exc:
            raise SystemExit(str(exc)) from exc
        if not cgs_paths:
            raise SystemExit(f"No cgs files found for unit {args.unit_id} in {input_dir}")

    cgg_path = cgg_path_for(input_dir, args.unit_id)
    try:
        frames = read_frames(cgg_path, config.skip_invalid_frames)
        atlas = load_atlas(atlas_path_for(input_dir, args.unit_id))
    except MissingResource as exc:
        raise SystemExit(str(exc)) from exc
    except DecodeError as exc:
        raise SystemExit(f"{cgg_path}: {exc}") from exc

    results: List[RipResult] = []
    failed: List[pathlib.Path] = []
    for cgs_path in cgs_paths:
        try:
            results.append(rip_animation(cgs_path, frames, atlas, config, output_dir))
        except (EmptyResultSet, MissingResource) as exc:
            logger.error("%s: %s", cgs_path, exc)
            failed.append(cgs_path)

    for result in results:
        layout = result.layout
        print(f"Saved {animation_name(result.cgs_path)} {layout.mode} {result.sheet_path.resolve()} with size {layout.image_width}x{layout.image_height} pixels.")
        if result.json_path:
            print(f"Frame metadata saved to {result.json_path.resolve()}.")
        if result.gif_path:
            print(f"Animated gif saved to {result.gif_path.resolve()}.")

    if failed:
        raise SystemExit(f"{len(failed)} of {len(cgs_paths)} animations failed: "
                         + ", ".join(path.name for path in failed))
    return results


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    run(args)


if __name__ == "__main__":
    main()
