"""
Serialization of detection summaries.

Responsibility:
    Export the final summary of every processed photo to JSON or CSV
    for offline analysis.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict

from picture_age.summary import DetectionSummary

logger = logging.getLogger(__name__)


def save_json(summaries: Dict[str, DetectionSummary], output_path: str) -> None:
    """Export all summaries to a JSON file.

    Output schema:
        {
            "photos": [
                {
                    "photo": "path/to/img.jpg",
                    "people": 3, "children": 2, "adults": 1,
                    "message": "...",
                    "faces": [
                        {"x1": ..., "y1": ..., "x2": ..., "y2": ..., "confidence": ...,
                         "age_range": "25-32", "age_confidence": ..., "bucket": "adult"}
                    ]
                }
            ],
            "total_photos": N,
            "total_people": M
        }

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    photos = [{"photo": name, **summary.to_dict()} for name, summary in summaries.items()]
    payload = {
        "photos": photos,
        "total_photos": len(photos),
        "total_people": sum(s.people for s in summaries.values()),
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info("JSON output saved: %s (%d photos)", output_path, len(photos))


def save_csv(summaries: Dict[str, DetectionSummary], output_path: str) -> None:
    """Export one row per classified face to a CSV file.

    Photos without faces get a single row with empty face columns.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = [
        "photo", "x1", "y1", "x2", "y2", "confidence",
        "age_range", "age_confidence", "bucket",
    ]

    total = 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for name, summary in summaries.items():
            if not summary.results:
                writer.writerow({"photo": name})
                total += 1
                continue
            for result in summary.results:
                writer.writerow({"photo": name, **result.to_dict()})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _ensure_parent_dir(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
