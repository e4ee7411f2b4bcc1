"""Output generation functions for spot counting."""

import csv
from pathlib import Path
from typing import Dict, Iterable, List


def write_csv(
    output_csv: Path,
    per_image: Iterable[Dict[str, object]],
    epsilon: int,
    lower_bound: int,
    upper_bound: int,
) -> None:
    """Write CSV with one row per image followed by overall stats."""
    per_image_list = list(per_image)

    total_images = len(per_image_list)
    with_spots = 0
    failed = 0
    total_spots = 0
    rows: List[List[object]] = []

    for item in per_image_list:
        error = item.get("error")
        spot_count = int(item.get("spot_count", 0) or 0)
        if error:
            failed += 1
            status = "Error"
        elif spot_count > 0:
            with_spots += 1
            status = "Spots"
        else:
            status = "No Spots"
        total_spots += spot_count

        radii = item.get("radii", {}) or {}
        rows.append(
            [
                item.get("filename", ""),
                item.get("width", ""),
                item.get("height", ""),
                spot_count,
                ";".join(f"{r}:{n}" for r, n in sorted(radii.items())),
                status,
                error or "",
            ]
        )

    with output_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)

        # Section 1: per-image stats
        writer.writerow(
            ["Filename", "Width", "Height", "Spot_Count", "Spots_By_Radius", "Status", "Error"]
        )
        for row in rows:
            writer.writerow(row)

        # Section 2: summary totals
        writer.writerow([])
        writer.writerow(["Statistic", "Value"])
        writer.writerow(["Total_Images", total_images])
        writer.writerow(["Images_With_Spots", with_spots])
        writer.writerow(["Failed_Images", failed])
        writer.writerow(["Total_Spots", total_spots])
        writer.writerow(["Epsilon", epsilon])
        writer.writerow(["Lower_Bound", lower_bound])
        writer.writerow(["Upper_Bound", upper_bound])
        processed = total_images - failed
        avg_spots = total_spots / processed if processed > 0 else 0.0
        writer.writerow(["Average_Spots_Per_Image", f"{avg_spots:.2f}"])
