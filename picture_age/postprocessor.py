"""
Postprocessing for both networks.

Responsibility:
    - Parse the raw SSD face detector tensor into FaceBounds, applying
      confidence thresholding, coordinate un-normalization and clamping.
    - Turn the age network's score vector into classifications ranked
      by confidence.

Hard-coded:
    - SSD output tensor layout: [1, 1, N, 7] where each row is
      [batch_id, class_id, confidence, x1, y1, x2, y2] with
      coordinates normalized to [0, 1].
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from picture_age.detection import FaceBounds


@dataclass(frozen=True, slots=True)
class Classification:
    """One ranked classifier output: an age range identifier and its score."""

    identifier: str
    confidence: float


def postprocess(
    network_output: np.ndarray,
    frame_width: int,
    frame_height: int,
    confidence_threshold: float,
) -> List[FaceBounds]:
    """Parse raw SSD output into FaceBounds sorted by confidence (descending).

    Args:
        network_output: Raw output from net.forward(), shape (1, 1, N, 7).
        frame_width: Photo width in pixels (for coordinate mapping).
        frame_height: Photo height in pixels (for coordinate mapping).
        confidence_threshold: Minimum confidence to accept a face.
    """
    faces: List[FaceBounds] = []

    raw = network_output[0, 0]  # (N, 7)

    for i in range(raw.shape[0]):
        confidence = float(raw[i, 2])

        if confidence < confidence_threshold:
            continue

        x1 = int(raw[i, 3] * frame_width)
        y1 = int(raw[i, 4] * frame_height)
        x2 = int(raw[i, 5] * frame_width)
        y2 = int(raw[i, 6] * frame_height)

        x1 = max(0, min(x1, frame_width - 1))
        y1 = max(0, min(y1, frame_height - 1))
        x2 = max(0, min(x2, frame_width - 1))
        y2 = max(0, min(y2, frame_height - 1))

        # Skip degenerate boxes
        if x2 <= x1 or y2 <= y1:
            continue

        faces.append(FaceBounds(x1=x1, y1=y1, x2=x2, y2=y2, confidence=confidence))

    faces.sort(key=lambda f: f.confidence, reverse=True)
    return faces


def rank_labels(scores: np.ndarray, labels: Sequence[str]) -> List[Classification]:
    """Pair the age network's scores with their labels, best first.

    Args:
        scores: Network output, any shape flattening to len(labels) values.
        labels: Label identifiers in network output order.

    Raises:
        ValueError: If the number of scores does not match the label set.
    """
    flat = np.asarray(scores, dtype=np.float32).reshape(-1)
    if flat.shape[0] != len(labels):
        raise ValueError(
            f"Age network produced {flat.shape[0]} scores "
            f"for {len(labels)} configured labels."
        )

    order = np.argsort(-flat, kind="stable")
    return [Classification(identifier=labels[i], confidence=float(flat[i])) for i in order]
