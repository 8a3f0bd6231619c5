"""
Preprocessing for both networks.

Responsibility:
    Convert a BGR image (whole photo or a single face) into a 4D
    DNN-compatible input blob using cv2.dnn.blobFromImage.

Hard-coded:
    - Channel order is BGR (both Caffe models expect it).
    - swapRB is False (input is already BGR from OpenCV).
"""

from typing import Tuple

import cv2
import numpy as np

from picture_age.config import AgeModelConfig, ModelConfig


def _to_blob(
    image: np.ndarray,
    size: Tuple[int, int],
    mean: Tuple[float, float, float],
    scale: float = 1.0,
) -> np.ndarray:
    if image is None or image.size == 0:
        raise ValueError(
            "Cannot preprocess an empty image. "
            "Ensure the photo or face crop contains pixels."
        )

    return cv2.dnn.blobFromImage(
        image=image,
        scalefactor=scale,
        size=size,
        mean=mean,
        swapRB=False,
        crop=False,
    )


def preprocess(frame: np.ndarray, config: ModelConfig) -> np.ndarray:
    """Convert a BGR photo into the face detector input blob.

    Returns:
        A float32 array of shape (1, 3, H, W).

    Raises:
        ValueError: If the frame is empty.
    """
    return _to_blob(frame, config.input_size, config.mean_values, config.scale_factor)


def preprocess_face(face: np.ndarray, config: AgeModelConfig) -> np.ndarray:
    """Convert an upright BGR face crop into the age classifier input blob.

    Raises:
        ValueError: If the crop is empty.
    """
    return _to_blob(face, config.input_size, config.mean_values)
