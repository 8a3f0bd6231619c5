"""
Annotation of processed photos.

Draws each face box coloured by its age bucket, with the age range as
a label. Pure rendering: returns an annotated copy and performs no I/O.
"""

from typing import Iterable

import cv2
import numpy as np

from picture_age.config import VisualizationConfig
from picture_age.summary import CHILD, ADULT, FaceResult

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.5
_FONT_THICKNESS = 1
_LABEL_PADDING = 4


def _color_for(result: FaceResult, config: VisualizationConfig):
    if result.bucket == CHILD:
        return config.child_color
    if result.bucket == ADULT:
        return config.adult_color
    return config.unknown_color


def draw_faces(
    frame: np.ndarray,
    results: Iterable[FaceResult],
    config: VisualizationConfig,
) -> np.ndarray:
    """Draw face boxes and age labels onto a copy of `frame`."""
    annotated = frame.copy()

    for result in results:
        b = result.bounds
        color = _color_for(result, config)
        cv2.rectangle(annotated, (b.x1, b.y1), (b.x2, b.y2), color=color, thickness=config.thickness)

        if not config.show_label or result.identifier is None:
            continue

        label = f"{result.identifier} ({result.bucket or '?'})"
        (text_w, text_h), _ = cv2.getTextSize(label, _FONT, _FONT_SCALE, _FONT_THICKNESS)

        # Above the box, or below it if too close to the top
        label_y = b.y1 - _LABEL_PADDING
        if label_y - text_h - _LABEL_PADDING < 0:
            label_y = b.y2 + text_h + _LABEL_PADDING

        cv2.rectangle(
            annotated,
            (b.x1, label_y - text_h - _LABEL_PADDING),
            (b.x1 + text_w + _LABEL_PADDING, label_y + _LABEL_PADDING),
            color=color,
            thickness=cv2.FILLED,
        )
        cv2.putText(
            annotated,
            label,
            (b.x1 + _LABEL_PADDING // 2, label_y),
            _FONT,
            _FONT_SCALE,
            (0, 0, 0),
            _FONT_THICKNESS,
            cv2.LINE_AA,
        )

    return annotated
