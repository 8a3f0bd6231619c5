"""
Photo acquisition.

Responsibility:
    Produce Photo objects from an image file, a directory of images, or a
    single frame captured from a camera. Pixels are read exactly as
    stored; the EXIF orientation tag is kept alongside them.

Robustness:
    - Validates the source at initialization time.
    - Logs and skips unreadable images (never crashes the run).
    - Releases the camera after capture.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

import cv2
import numpy as np

from picture_age.photo import Orientation, Photo, read_orientation

logger = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}

# Frames discarded after opening a camera so auto-exposure can settle
_CAMERA_WARMUP_FRAMES = 5


class InputHandler:
    """Iterator over the photos of a file or directory source.

    Usage:
        handler = InputHandler(source="path/to/photos")
        for photo in handler:
            ...
    """

    def __init__(self, source: str, resize_width: Optional[int] = None) -> None:
        """
        Args:
            source: Image file path or directory of images.
            resize_width: Optional width to downscale photos. Aspect ratio
                          is preserved. None means no resizing.

        Raises:
            FileNotFoundError: If the source does not exist.
            ValueError: If the source has no recognizable images.
        """
        self._resize_width = resize_width
        source_str = str(source).strip()

        if os.path.isfile(source_str):
            ext = Path(source_str).suffix.lower()
            if ext not in _IMAGE_EXTENSIONS:
                raise ValueError(
                    f"Unrecognized file extension: '{ext}' for source '{source_str}'. "
                    f"Supported images: {_IMAGE_EXTENSIONS}."
                )
            self._image_paths: List[str] = [source_str]
        elif os.path.isdir(source_str):
            self._image_paths = sorted(
                str(p)
                for p in Path(source_str).iterdir()
                if p.suffix.lower() in _IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(
                    f"No image files found in directory: '{source_str}'. "
                    f"Supported extensions: {_IMAGE_EXTENSIONS}."
                )
            logger.info("Found %d images in directory: %s", len(self._image_paths), source_str)
        else:
            raise FileNotFoundError(
                f"Input source not found: '{source_str}'. "
                f"Provide a valid image file or directory."
            )

    def __len__(self) -> int:
        return len(self._image_paths)

    def __iter__(self) -> Iterator[Photo]:
        for path in self._image_paths:
            photo = load_photo(path, self._resize_width)
            if photo is None:
                logger.warning("Skipping unreadable image: %s", path)
                continue
            yield photo


def load_photo(path: str, resize_width: Optional[int] = None) -> Optional[Photo]:
    """Read one image file as a Photo. Returns None if it cannot be decoded."""
    image = cv2.imread(path, cv2.IMREAD_COLOR | cv2.IMREAD_IGNORE_ORIENTATION)
    if image is None:
        return None

    return Photo(
        image=_maybe_resize(image, resize_width),
        orientation=read_orientation(path),
        name=path,
    )


def capture_photo(device_index: int, resize_width: Optional[int] = None) -> Optional[Photo]:
    """Capture a single frame from a camera as a Photo.

    Returns:
        The captured Photo, or None if the camera produced no frame.

    Raises:
        RuntimeError: If the camera cannot be opened.
    """
    cap = cv2.VideoCapture(device_index)
    try:
        if not cap.isOpened():
            raise RuntimeError(
                f"Failed to open camera device {device_index}. "
                f"Ensure the device exists and is accessible."
            )

        frame = None
        for _ in range(_CAMERA_WARMUP_FRAMES + 1):
            ret, frame = cap.read()
            if not ret:
                frame = None
    finally:
        cap.release()

    if frame is None:
        logger.warning("Camera device %d returned no frame.", device_index)
        return None

    return Photo(
        image=_maybe_resize(frame, resize_width),
        orientation=Orientation.UP,
        name=f"camera:{device_index}",
    )


def _maybe_resize(frame: np.ndarray, resize_width: Optional[int]) -> np.ndarray:
    """Resize frame if resize_width is set, preserving aspect ratio."""
    if resize_width is None:
        return frame

    h, w = frame.shape[:2]
    if w <= resize_width:
        return frame

    scale = resize_width / w
    return cv2.resize(frame, (resize_width, int(h * scale)), interpolation=cv2.INTER_AREA)
