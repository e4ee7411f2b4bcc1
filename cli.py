"""Command-line interface for spot counting."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from annotation import annotate_image, render_claims
from batch import process_batch
from config import EPSILON_RANGE, load_detection_config
from image_io import output_path, save_image, write_spot_count
from processing import ImageStage, process_image, stage_raster
from progress import ProgressRenderer
from ring_masks import MAX_RADIUS, MIN_RADIUS, create_mask, format_mask

logger = logging.getLogger(__name__)

STAGES = {
    "greyscale": ImageStage.GREYSCALE,
    "noise": ImageStage.NOISE_REDUCED,
    "edges": ImageStage.EDGE_DETECTED,
    "spots": ImageStage.SPOT_DETECTED,
}

CLAIMS_SUFFIX = "_CL"
ANNOTATED_SUFFIX = "_AN"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments and fill unset values from the config file."""
    parser = argparse.ArgumentParser(
        description="Count ring-shaped spots in an image via noise reduction, edge detection and template matching."
    )
    parser.add_argument(
        "image",
        type=Path,
        nargs="?",
        help="Input image. Omit when using --images-dir or --show-mask.",
    )
    parser.add_argument(
        "--stage",
        choices=list(STAGES),
        default="spots",
        help="Last pipeline stage to run; its raster is saved to the output directory.",
    )
    parser.add_argument(
        "--epsilon",
        type=int,
        help="Edge detection threshold (0-255). Default from config (50).",
    )
    parser.add_argument(
        "--lower-bound",
        type=int,
        help=f"Smallest spot radius to scan ({MIN_RADIUS}-{MAX_RADIUS}).",
    )
    parser.add_argument(
        "--upper-bound",
        type=int,
        help=f"Largest spot radius to scan ({MIN_RADIUS}-{MAX_RADIUS}).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to write output images. Default from config (out).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional JSON file with epsilon, lower_bound, upper_bound and output_dir.",
    )
    parser.add_argument(
        "--write-count",
        action="store_true",
        help="Also write the spot count to <output-dir>/<image>.out.",
    )
    parser.add_argument(
        "--annotate",
        action="store_true",
        help="Save a copy of the input with detected spots circled.",
    )
    parser.add_argument(
        "--claims",
        action="store_true",
        help="Save the claim map (pixels owned by a counted spot) next to the spot map.",
    )
    parser.add_argument(
        "--show-mask",
        type=int,
        metavar="RADIUS",
        help="Print the ring template for a radius and exit.",
    )
    parser.add_argument(
        "--images-dir",
        type=Path,
        help="Process every image in this directory and write summary.csv.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Parallel workers for --images-dir (0 = one per CPU).",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite existing outputs in --images-dir mode.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args(argv)

    if args.show_mask is not None:
        if not (MIN_RADIUS <= args.show_mask <= MAX_RADIUS):
            parser.error(f"--show-mask must be in range [{MIN_RADIUS}, {MAX_RADIUS}]")
        return args

    if args.image is None and args.images_dir is None:
        parser.error("an input image or --images-dir is required")
    if args.image is not None and args.images_dir is not None:
        parser.error("pass either an input image or --images-dir, not both")
    if args.images_dir is not None and not args.images_dir.is_dir():
        parser.error(f"--images-dir is not a directory: {args.images_dir}")

    config = load_detection_config(args.config)
    if args.epsilon is None:
        args.epsilon = config["epsilon"]
    if args.lower_bound is None:
        args.lower_bound = config["lower_bound"]
    if args.upper_bound is None:
        args.upper_bound = config["upper_bound"]
    if args.output_dir is None:
        args.output_dir = Path(config["output_dir"])

    # Validation
    low, high = EPSILON_RANGE
    if not (low <= args.epsilon <= high):
        parser.error(f"--epsilon must be in range [{low}, {high}]")
    for name in ("lower_bound", "upper_bound"):
        value = getattr(args, name)
        if not (MIN_RADIUS <= value <= MAX_RADIUS):
            parser.error(
                f"--{name.replace('_', '-')} must be in range [{MIN_RADIUS}, {MAX_RADIUS}]"
            )
    if args.lower_bound > args.upper_bound:
        parser.error("--lower-bound must not exceed --upper-bound")
    if args.workers < 0:
        parser.error("--workers must be >= 0")

    return args


def run_single(args: argparse.Namespace) -> int:
    """Run the pipeline on one image and save the requested outputs."""
    stage = STAGES[args.stage]
    result = process_image(
        args.image,
        epsilon=args.epsilon,
        lower_bound=args.lower_bound,
        upper_bound=args.upper_bound,
        stage=stage,
    )

    saved = save_image(stage_raster(result, stage), args.image, args.output_dir, stage.suffix)
    logger.info(f"Saved {stage.name.lower()} image to {saved}")

    if stage is ImageStage.SPOT_DETECTED:
        spots = result.spots
        print(spots.count)
        if args.write_count:
            count_path = write_spot_count(args.image, args.output_dir, spots.count)
            logger.info(f"Saved spot count to {count_path}")
        if args.claims:
            save_image(render_claims(spots), args.image, args.output_dir, CLAIMS_SUFFIX)
        if args.annotate:
            annotated_path = output_path(args.image, args.output_dir, ANNOTATED_SUFFIX)
            with Image.open(args.image) as img:
                annotate_image(img, spots.spots).save(annotated_path)
    elif args.write_count or args.claims or args.annotate:
        print(
            "Warning: --write-count, --claims and --annotate only apply to --stage spots",
            file=sys.stderr,
        )
    return 0


def run_batch(args: argparse.Namespace) -> int:
    """Run the full pipeline over a directory of images."""
    renderer = ProgressRenderer(enable=sys.stdout.isatty())
    summary = process_batch(
        images_dir=args.images_dir,
        output_dir=args.output_dir,
        epsilon=args.epsilon,
        lower_bound=args.lower_bound,
        upper_bound=args.upper_bound,
        overwrite=args.overwrite,
        annotate=args.annotate,
        max_workers=None if args.workers == 0 else args.workers,
        progress_renderer=renderer,
    )
    print(
        f"Processed {summary['processed']} image(s): {summary['total_spots']} spot(s) in "
        f"{summary['with_spots']} image(s). Summary written to {args.output_dir / 'summary.csv'}."
    )
    if summary["failed_filenames"]:
        print(
            f"Failed to process {len(summary['failed_filenames'])} image(s): "
            + ", ".join(summary["failed_filenames"]),
            file=sys.stderr,
        )
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.show_mask is not None:
        print(format_mask(create_mask(args.show_mask)))
        return 0

    try:
        if args.images_dir is not None:
            return run_batch(args)
        return run_single(args)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
