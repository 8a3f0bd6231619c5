"""
Tests for the preprocessing module.
"""

import numpy as np
import pytest

from picture_age.config import AgeModelConfig, ModelConfig
from picture_age.preprocessor import preprocess, preprocess_face


def test_preprocess_valid_input():
    config = ModelConfig(
        input_size=(300, 300),
        scale_factor=1.0,
        mean_values=(104.0, 177.0, 123.0),
    )
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[:, :, 1] = 255

    blob = preprocess(frame, config)

    assert isinstance(blob, np.ndarray)
    assert blob.shape == (1, 3, 300, 300)
    assert blob.dtype == np.float32


def test_preprocess_empty_frame():
    with pytest.raises(ValueError):
        preprocess(np.array([]), ModelConfig())


def test_preprocess_none_frame():
    with pytest.raises(ValueError):
        preprocess(None, ModelConfig())


def test_preprocess_face_uses_age_model_size_and_mean():
    config = AgeModelConfig(input_size=(227, 227), mean_values=(10.0, 20.0, 30.0))
    face = np.full((50, 40, 3), 100, dtype=np.uint8)

    blob = preprocess_face(face, config)

    assert blob.shape == (1, 3, 227, 227)
    assert blob[0, 0, 0, 0] == pytest.approx(90.0)
    assert blob[0, 1, 0, 0] == pytest.approx(80.0)
    assert blob[0, 2, 0, 0] == pytest.approx(70.0)


def test_preprocess_face_empty_crop():
    with pytest.raises(ValueError):
        preprocess_face(np.zeros((0, 10, 3), dtype=np.uint8), AgeModelConfig())
