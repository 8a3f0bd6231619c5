"""
Output handling for processed photos.

Responsibility:
    Route each photo's final summary to the configured sinks: a log
    line, an annotated image, JSON, or CSV. Several sinks may be active
    at once.
"""

import logging
from pathlib import Path
from typing import Dict, Set

import cv2

from picture_age.config import AppConfig, parse_output_modes, resolve_path
from picture_age.photo import Photo
from picture_age.serializer import save_csv, save_json
from picture_age.summary import DetectionSummary
from picture_age.visualizer import draw_faces

logger = logging.getLogger(__name__)

_FILE_MODES = {"save_image", "save_json", "save_csv"}


class OutputHandler:
    """Routes final summaries to configured output sinks.

    Modes:
        - 'log': Log the summary message at INFO.
        - 'save_image': Write the photo with annotated faces.
        - 'save_json': Buffer summaries, write JSON on finalize.
        - 'save_csv': Buffer summaries, write CSV on finalize.

    Usage:
        handler = OutputHandler(config)
        handler.process_photo(photo, summary)
        ...
        handler.finalize()
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._modes: Set[str] = parse_output_modes(config.output.mode)
        self._buffer: Dict[str, DetectionSummary] = {}
        self._save_path: Path = resolve_path(config.output.save_path)
        self._saved_images = 0

        if self._modes & _FILE_MODES:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s",
                    self._modes, self._save_path)

    @property
    def save_path(self) -> Path:
        return self._save_path

    def process_photo(self, photo: Photo, summary: DetectionSummary) -> None:
        if "log" in self._modes:
            logger.info("%s\n%s", photo.name, summary.message or "(no summary)")

        if "save_image" in self._modes:
            self._save_image(photo, summary)

        if "save_json" in self._modes or "save_csv" in self._modes:
            self._buffer[photo.name] = summary

    def _save_image(self, photo: Photo, summary: DetectionSummary) -> None:
        annotated = draw_faces(photo.image, summary.results, self._config.visualization)
        stem = Path(photo.name).stem.replace(":", "_") or "photo"
        output_file = self._save_path / f"{self._saved_images:04d}_{stem}.jpg"
        cv2.imwrite(str(output_file), annotated)
        self._saved_images += 1
        logger.debug("Saved annotated %s to %s", photo.name, output_file)

    def finalize(self) -> None:
        """Flush buffered output. Must be called after the last photo."""
        if "save_json" in self._modes and self._buffer:
            save_json(self._buffer, str(self._save_path / "summaries.json"))

        if "save_csv" in self._modes and self._buffer:
            save_csv(self._buffer, str(self._save_path / "summaries.csv"))

        self._buffer.clear()
        logger.info("OutputHandler finalized.")
