"""Batch processing functions for spot counting."""

import logging
import multiprocessing
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from annotation import annotate_image
from image_io import ensure_output, iter_images, save_image
from models import SpotResult
from output import write_csv
from processing import ImageStage, process_image
from progress import ProgressRenderer

logger = logging.getLogger(__name__)

WorkerArgs = Tuple[Path, Path, int, int, int, bool, bool]


def _write_outputs(path: Path, output_dir: Path, spots: SpotResult, overwrite: bool, annotate: bool) -> None:
    spot_dir = output_dir / "SpotMaps"
    map_path = spot_dir / f"{path.stem}{ImageStage.SPOT_DETECTED.suffix}.png"
    if overwrite or not map_path.exists():
        save_image(spots.spot_map, path, spot_dir, ImageStage.SPOT_DETECTED.suffix)

    if annotate and spots.count > 0:
        noted_path = output_dir / "Noted" / f"{path.stem}.png"
        if overwrite or not noted_path.exists():
            ensure_output(noted_path.parent)
            with Image.open(path) as img:
                annotate_image(img, spots.spots).save(noted_path)


def _process_one(args: WorkerArgs) -> Dict[str, object]:
    """Run the full pipeline on one image and write its outputs.

    Every call builds its own rasters and claim grid, so workers share nothing.
    Any failure, while detecting or while writing outputs, is logged and
    reported in the returned record instead of being raised.
    """
    path, output_dir, epsilon, lower_bound, upper_bound, overwrite, annotate = args
    record: Dict[str, object] = {"filename": path.name}
    try:
        result = process_image(path, epsilon, lower_bound, upper_bound)
        spots = result.spots
        height, width = result.greyscale.shape
        radii: Dict[int, int] = {}
        for spot in spots.spots:
            radii[spot.radius] = radii.get(spot.radius, 0) + 1
        record.update(
            {
                "width": width,
                "height": height,
                "spot_count": spots.count,
                "radii": radii,
            }
        )
        _write_outputs(path, output_dir, spots, overwrite, annotate)
    except Exception as exc:
        logger.error(f"Error processing image {path}: {exc}", exc_info=True)
        record.update({"spot_count": 0, "radii": {}, "error": str(exc)})
    return record


def process_batch(
    images_dir: Path,
    output_dir: Path,
    epsilon: int,
    lower_bound: int,
    upper_bound: int,
    overwrite: bool = False,
    annotate: bool = False,
    max_workers: Optional[int] = 1,
    progress_renderer: Optional[ProgressRenderer] = None,
    progress_cb: Optional[Callable[[int, int, float], None]] = None,
    image_paths_override: Optional[List[Path]] = None,
) -> Dict[str, object]:
    """Batch process images; returns summary payload for the CLI.

    Args:
        images_dir: Directory containing input images
        output_dir: Directory for spot maps, annotated copies and summary.csv
        epsilon: Edge detection threshold
        lower_bound: Smallest spot radius to scan
        upper_bound: Largest spot radius to scan
        overwrite: Whether to overwrite existing outputs
        annotate: Whether to save annotated copies of images with spots
        max_workers: Number of parallel workers (None = CPU count, 1 = sequential)
        progress_renderer: Optional terminal progress bar
        progress_cb: Optional callback, signature (current, total, elapsed)
        image_paths_override: Process these paths instead of scanning images_dir

    Returns:
        Dictionary with processing summary
    """
    ensure_output(output_dir)
    image_paths = (
        list(image_paths_override)
        if image_paths_override is not None
        else list(iter_images(images_dir))
    )
    if not image_paths:
        raise FileNotFoundError(f"No images found in {images_dir}")

    if max_workers is None:
        max_workers = multiprocessing.cpu_count()
    max_workers = max(1, max_workers)

    if progress_renderer is not None:
        progress_renderer.reset(len(image_paths))

    worker_args: List[WorkerArgs] = [
        (path, output_dir, epsilon, lower_bound, upper_bound, overwrite, annotate)
        for path in image_paths
    ]
    total = len(worker_args)
    start_time = time.time()
    per_image: List[Dict[str, object]] = []

    def record_done(record: Dict[str, object]) -> None:
        per_image.append(record)
        current = len(per_image)
        if progress_renderer is not None:
            progress_renderer.update(
                current,
                spot_count=int(record.get("spot_count", 0) or 0),
                failed=bool(record.get("error")),
            )
        if progress_cb is not None:
            progress_cb(current, total, time.time() - start_time)

    if max_workers > 1 and total > 1:
        logger.info(f"Processing {total} images with {max_workers} workers")
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            future_to_path = {
                executor.submit(_process_one, args): args[0] for args in worker_args
            }
            for future in as_completed(future_to_path):
                try:
                    record = future.result()
                except Exception as exc:
                    path = future_to_path[future]
                    logger.error(f"Worker failed on image {path}: {exc}")
                    record = {"filename": path.name, "spot_count": 0, "error": str(exc)}
                record_done(record)
        # Keep the summary in input order regardless of completion order
        order = {path.name: idx for idx, path in enumerate(image_paths)}
        per_image.sort(key=lambda item: order[item["filename"]])
    else:
        for args in worker_args:
            record_done(_process_one(args))

    write_csv(
        output_dir / "summary.csv",
        per_image,
        epsilon=epsilon,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
    )
    with_spots = [item["filename"] for item in per_image if int(item.get("spot_count", 0) or 0) > 0]
    failed = [item["filename"] for item in per_image if item.get("error")]
    return {
        "processed": total,
        "with_spots": len(with_spots),
        "total_spots": sum(int(item.get("spot_count", 0) or 0) for item in per_image),
        "found_filenames": with_spots,
        "failed_filenames": failed,
        "details": per_image,
        "output_dir": str(output_dir),
    }
