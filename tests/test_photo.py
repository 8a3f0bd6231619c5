"""
Tests for photos, face crops and orientation handling.
"""

import numpy as np
import pytest
from PIL import Image

from picture_age.detection import FaceBounds
from picture_age.photo import Orientation, Photo, crop_face, read_orientation, to_upright


def _grid():
    """2x3 image whose blue channel numbers the pixels row by row."""
    image = np.zeros((2, 3, 3), dtype=np.uint8)
    image[:, :, 0] = np.arange(6, dtype=np.uint8).reshape(2, 3)
    return image


@pytest.mark.parametrize(
    "orientation, expected",
    [
        (Orientation.UP, [[0, 1, 2], [3, 4, 5]]),
        (Orientation.UP_MIRRORED, [[2, 1, 0], [5, 4, 3]]),
        (Orientation.DOWN, [[5, 4, 3], [2, 1, 0]]),
        (Orientation.DOWN_MIRRORED, [[3, 4, 5], [0, 1, 2]]),
        (Orientation.LEFT_MIRRORED, [[0, 3], [1, 4], [2, 5]]),
        (Orientation.RIGHT, [[3, 0], [4, 1], [5, 2]]),
        (Orientation.RIGHT_MIRRORED, [[5, 2], [4, 1], [3, 0]]),
        (Orientation.LEFT, [[2, 5], [1, 4], [0, 3]]),
    ],
)
def test_to_upright(orientation, expected):
    upright = to_upright(_grid(), orientation)
    assert upright[:, :, 0].tolist() == expected


@pytest.mark.parametrize("value", [None, 0, 9, "x"])
def test_unknown_exif_values_read_as_up(value):
    assert Orientation.from_exif(value) is Orientation.UP


def test_read_orientation_from_exif(tmp_path):
    path = tmp_path / "rotated.jpg"
    exif = Image.Exif()
    exif[0x0112] = 6
    Image.new("RGB", (8, 4)).save(path, exif=exif)

    assert read_orientation(str(path)) is Orientation.RIGHT


def test_read_orientation_without_exif(tmp_path):
    path = tmp_path / "plain.png"
    Image.new("RGB", (8, 4)).save(path)

    assert read_orientation(str(path)) is Orientation.UP


def test_read_orientation_unreadable_file(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image")

    assert read_orientation(str(path)) is Orientation.UP


def test_crop_face_is_independent_copy():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    photo = Photo(image=image, name="p.jpg")
    face = crop_face(photo, FaceBounds(x1=10, y1=20, x2=30, y2=60, confidence=0.9))

    assert face.image.shape == (40, 20, 3)
    assert face.source == "p.jpg"

    face.image[:] = 255
    assert image.max() == 0


def test_bounds_expanded_and_clamped():
    bounds = FaceBounds(x1=10, y1=10, x2=30, y2=50, confidence=0.8)

    grown = bounds.expanded(0.25, frame_width=100, frame_height=55)

    assert (grown.x1, grown.y1, grown.x2, grown.y2) == (5, 0, 35, 55)
    assert grown.confidence == 0.8
