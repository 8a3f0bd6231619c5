"""
Face Locator: finds and crops every face in a photo.

Public contract:
    FaceLocator.locate(photo: Photo) -> LocateResult

The three outcomes (faces found, no faces, failure) are reported as
distinct LocateResult states rather than raised, so the pipeline can
treat "no faces" as a normal terminal result.

Constraints:
    - The photo image must be a BGR numpy array (as returned by OpenCV).
    - Thread-safety is not guaranteed; the pipeline calls locate() from
      a single thread.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from picture_age.config import AppConfig, load_config
from picture_age.model_loader import load_net
from picture_age.photo import Face, Photo, crop_face
from picture_age.postprocessor import postprocess
from picture_age.preprocessor import preprocess

logger = logging.getLogger(__name__)


class LocateStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class LocateResult:
    """Outcome of one locate() call.

    Attributes:
        status: Which of the three outcomes occurred.
        faces: Cropped faces, best detection first. Empty unless FOUND.
        error: Failure description. None unless FAILED.
    """

    status: LocateStatus
    faces: Tuple[Face, ...] = ()
    error: Optional[str] = None

    @classmethod
    def found(cls, faces) -> "LocateResult":
        return cls(status=LocateStatus.FOUND, faces=tuple(faces))

    @classmethod
    def not_found(cls) -> "LocateResult":
        return cls(status=LocateStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "LocateResult":
        return cls(status=LocateStatus.FAILED, error=error)


class FaceLocator:
    """Face locator using SSD-ResNet10 via OpenCV DNN.

    Usage:
        locator = FaceLocator()                   # Uses safe defaults
        locator = FaceLocator(config=my_config)   # Custom config
        result = locator.locate(photo)

    The constructor loads the detector network once.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        net: Optional[cv2.dnn.Net] = None,
    ) -> None:
        """Initialize the locator and load the detector network.

        Args:
            config: Application configuration. If None, safe defaults are used.
            net: A preloaded network. If None, it is loaded from config.model.

        Raises:
            FileNotFoundError: If model files are missing.
            RuntimeError: If the requested backend is unavailable.
        """
        if config is None:
            config = load_config()

        self._config = config
        if net is None:
            net = load_net(
                config.model.prototxt_path,
                config.model.weights_path,
                backend=config.model.backend,
                config_key="model",
            )
        self._net = net

        logger.info(
            "FaceLocator initialized (confidence_threshold=%.2f, face_margin=%.2f)",
            config.detection.confidence_threshold,
            config.detection.face_margin,
        )

    def locate(self, photo: Photo) -> LocateResult:
        """Find every face in the photo and crop it out.

        Never raises for bad input or OpenCV failures; those become a
        FAILED result carrying the description.
        """
        try:
            self._validate_frame(photo.image)
            bounds = self._detect(photo.image)
        except (TypeError, ValueError, cv2.error) as e:
            logger.warning("Face location failed for %s: %s", photo.name, e)
            return LocateResult.failed(str(e))

        if not bounds:
            logger.info("No faces located in %s.", photo.name)
            return LocateResult.not_found()

        margin = self._config.detection.face_margin
        faces = [
            crop_face(photo, b.expanded(margin, photo.width, photo.height))
            for b in bounds
        ]
        logger.info("Located %d face(s) in %s.", len(faces), photo.name)
        return LocateResult.found(faces)

    def _detect(self, frame: np.ndarray):
        blob = preprocess(frame, self._config.model)
        self._net.setInput(blob)
        output = self._net.forward()

        h, w = frame.shape[:2]
        return postprocess(
            network_output=output,
            frame_width=w,
            frame_height=h,
            confidence_threshold=self._config.detection.confidence_threshold,
        )

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the photo pixels meet the locator contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected photo image to be a numpy ndarray, "
                f"got {type(frame).__name__}."
            )

        if frame.size == 0:
            raise ValueError("Photo image is empty (zero size).")

        if frame.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional image (H, W, C), "
                f"got {frame.ndim} dimensions with shape {frame.shape}."
            )

        if frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels."
            )
