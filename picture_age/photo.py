"""
Photo, Face and orientation handling.

A Photo is the raw pixel data exactly as stored plus the EXIF orientation
tag that says how those pixels must be turned to appear upright. Faces are
cropped from the raw pixels, so the age classifier needs the orientation of
the source photo to see each face the right way up.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from picture_age.detection import FaceBounds

logger = logging.getLogger(__name__)

# EXIF tag id for Orientation
_EXIF_ORIENTATION = 0x0112


class Orientation(enum.IntEnum):
    """The eight canonical rotation/mirror states, valued as EXIF orientation tags."""

    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @classmethod
    def from_exif(cls, value) -> "Orientation":
        """Map a raw EXIF tag value to an Orientation. Unknown values read as UP."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UP


def to_upright(image: np.ndarray, orientation: Orientation) -> np.ndarray:
    """Return `image` rotated and/or mirrored so its content is upright."""
    if orientation == Orientation.UP_MIRRORED:
        return cv2.flip(image, 1)
    if orientation == Orientation.DOWN:
        return cv2.rotate(image, cv2.ROTATE_180)
    if orientation == Orientation.DOWN_MIRRORED:
        return cv2.flip(image, 0)
    if orientation == Orientation.LEFT_MIRRORED:
        return cv2.transpose(image)
    if orientation == Orientation.RIGHT:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if orientation == Orientation.RIGHT_MIRRORED:
        return cv2.flip(cv2.transpose(image), -1)
    if orientation == Orientation.LEFT:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return image


def read_orientation(path: str) -> Orientation:
    """Read the EXIF orientation tag of an image file (UP if absent or unreadable)."""
    try:
        with Image.open(path) as img:
            value = img.getexif().get(_EXIF_ORIENTATION, Orientation.UP)
    except OSError as e:
        logger.debug("No EXIF orientation for %s: %s", path, e)
        return Orientation.UP
    return Orientation.from_exif(value)


@dataclass(frozen=True, eq=False)
class Photo:
    """An in-memory BGR raster plus its orientation tag.

    Attributes:
        image: BGR uint8 array of shape (H, W, 3), stored as captured.
        orientation: How the stored pixels must be turned to appear upright.
        name: Where the photo came from (file path or camera label).
    """

    image: np.ndarray
    orientation: Orientation = Orientation.UP
    name: str = "photo"

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@dataclass(frozen=True, eq=False)
class Face:
    """A face cropped out of a Photo.

    `image` is an independent copy, so the classifier may hold on to it
    after the source photo is gone.
    """

    image: np.ndarray
    bounds: FaceBounds
    source: Optional[str] = None


def crop_face(photo: Photo, bounds: FaceBounds) -> Face:
    """Cut `bounds` out of the photo's raw pixels into a standalone Face."""
    crop = photo.image[bounds.y1:bounds.y2, bounds.x1:bounds.x2].copy()
    return Face(image=crop, bounds=bounds, source=photo.name)
