"""
Presentation shell around the detection pipeline.

Session holds the currently presented photo and maps the three user
actions onto the pipeline:

    take_photo(photo)    reset, present, detect
    choose_photo(photo)  reset, present, detect
    detect()             detect on the presented photo, if any

Summaries land in `info_text`; errors go to the alert callback as
(title, message) pairs.
"""

import logging
from typing import Callable, Optional

from picture_age.errors import PreconditionError
from picture_age.photo import Photo
from picture_age.pipeline import DetectionPipeline
from picture_age.summary import DetectionSummary

logger = logging.getLogger(__name__)

AlertCallback = Callable[[str, str], None]
UpdateCallback = Callable[[DetectionSummary], None]


def _log_alert(title: str, message: str) -> None:
    logger.warning("%s: %s", title, message)


class Session:
    """Single-photo interaction state for the pipeline."""

    def __init__(
        self,
        pipeline: DetectionPipeline,
        on_alert: Optional[AlertCallback] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self._pipeline = pipeline
        self._on_alert = on_alert or _log_alert
        self._on_update = on_update
        self._photo: Optional[Photo] = None
        self.info_text = ""

    @property
    def photo(self) -> Optional[Photo]:
        return self._photo

    def take_photo(self, photo: Optional[Photo]) -> Optional[DetectionSummary]:
        """A photo was captured from a camera."""
        return self._present(photo)

    def choose_photo(self, photo: Optional[Photo]) -> Optional[DetectionSummary]:
        """An existing photo was picked."""
        return self._present(photo)

    def detect(self) -> Optional[DetectionSummary]:
        """Run detection on the presented photo.

        Returns:
            The final summary, or None if there is no photo to run on.
        """
        if self._photo is None:
            error = PreconditionError("Choose a correct image.")
            self._alert(error.title, error.message)
            return None

        return self._pipeline.run(
            self._photo,
            on_summary=self._show,
            on_error=self._alert,
        )

    def reset(self) -> None:
        summary = self._pipeline.reset()
        self.info_text = summary.message

    def _present(self, photo: Optional[Photo]) -> Optional[DetectionSummary]:
        self.reset()
        if photo is None:
            self._alert("Error", "Image not found.")
            return None

        self._photo = photo
        return self.detect()

    def _show(self, summary: DetectionSummary) -> None:
        self.info_text = summary.message
        if self._on_update is not None:
            self._on_update(summary)

    def _alert(self, title: str, message: str) -> None:
        self._on_alert(title, message)
