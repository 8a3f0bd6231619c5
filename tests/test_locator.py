"""
Tests for the face locator.
"""

from pathlib import Path

import numpy as np
import pytest

from conftest import FakeNet, make_photo
from picture_age.config import AppConfig, DetectionConfig
from picture_age.locator import FaceLocator, LocateStatus
from picture_age.photo import Photo

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MODEL_EXISTS = (
    (_PROJECT_ROOT / "models/deploy.prototxt").exists() and
    (_PROJECT_ROOT / "models/res10_300x300_ssd_iter_140000.caffemodel").exists()
)


def _locator(rows, margin=0.0):
    output = np.array([[rows]], dtype=np.float32).reshape(1, 1, -1, 7)
    config = AppConfig(detection=DetectionConfig(confidence_threshold=0.5, face_margin=margin))
    return FaceLocator(config, net=FakeNet(output))


def test_faces_found_and_cropped():
    locator = _locator([
        [0, 1, 0.7, 0.0, 0.0, 0.25, 0.5],
        [0, 1, 0.95, 0.5, 0.5, 0.75, 1.0],
    ])
    photo = make_photo()  # 160x120

    result = locator.locate(photo)

    assert result.status is LocateStatus.FOUND
    assert result.error is None
    assert len(result.faces) == 2
    best = result.faces[0]
    assert best.bounds.confidence == pytest.approx(0.95)
    assert (best.bounds.x1, best.bounds.y1, best.bounds.x2, best.bounds.y2) == (80, 60, 120, 119)
    assert best.image.shape == (59, 40, 3)
    assert best.source == photo.name


def test_margin_applied_to_crop():
    locator = _locator([[0, 1, 0.9, 0.25, 0.25, 0.5, 0.5]], margin=0.5)

    face = locator.locate(make_photo()).faces[0]

    # 40x30 box grown by 20x15 on every side
    assert (face.bounds.x1, face.bounds.y1, face.bounds.x2, face.bounds.y2) == (20, 15, 100, 75)


def test_no_faces_is_not_found():
    locator = _locator([[0, 1, 0.2, 0.0, 0.0, 0.5, 0.5]])

    result = locator.locate(make_photo())

    assert result.status is LocateStatus.NOT_FOUND
    assert result.faces == ()


@pytest.mark.parametrize(
    "image, match",
    [
        ("not a frame", "numpy ndarray"),
        (np.array([], dtype=np.uint8), "empty"),
        (np.zeros((100, 100), dtype=np.uint8), "3-dimensional"),
        (np.zeros((100, 100, 4), dtype=np.uint8), "3 channels"),
    ],
)
def test_invalid_photo_is_failure(image, match):
    locator = _locator([[0, 1, 0.9, 0.0, 0.0, 0.5, 0.5]])

    result = locator.locate(Photo(image=image))

    assert result.status is LocateStatus.FAILED
    assert match in result.error


def test_missing_model_files_fail_fast(tmp_path):
    from picture_age.config import ModelConfig

    config = AppConfig(model=ModelConfig(prototxt_path=str(tmp_path / "missing.prototxt")))
    with pytest.raises(FileNotFoundError, match="prototxt"):
        FaceLocator(config)


@pytest.mark.skipif(not _MODEL_EXISTS, reason="Model files not found")
def test_locator_integration_smoke():
    locator = FaceLocator()
    result = locator.locate(make_photo())
    assert result.status in (LocateStatus.FOUND, LocateStatus.NOT_FOUND)
