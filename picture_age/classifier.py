"""
Age Classifier: ranks age-range labels for a single face.

Public contract:
    AgeClassifier.classify(image, orientation) -> list[Classification]

The network is loaded lazily on first use. A failed load raises
ModelLoadError for that call only; the next call tries again. One
cv2.dnn.Net must not run forward() from several threads at once, so
inference is serialized behind a lock while callers may sit on a
thread pool.
"""

import logging
import threading
from typing import Callable, List, Optional

import cv2
import numpy as np

from picture_age.config import AppConfig, load_config
from picture_age.errors import ClassificationError, ModelLoadError
from picture_age.model_loader import load_net
from picture_age.photo import Orientation, to_upright
from picture_age.postprocessor import Classification, rank_labels
from picture_age.preprocessor import preprocess_face

logger = logging.getLogger(__name__)


class AgeClassifier:
    """Age range classifier using the Levi-Hassner age_net via OpenCV DNN.

    Usage:
        classifier = AgeClassifier(config)
        ranked = classifier.classify(face.image, photo.orientation)
        ranked[0].identifier  # e.g. "25-32"
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        net_factory: Optional[Callable[[], cv2.dnn.Net]] = None,
    ) -> None:
        """
        Args:
            config: Application configuration. If None, safe defaults are used.
            net_factory: Builds the network on first use. Defaults to loading
                         config.age_model from disk.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._net_factory = net_factory or self._load_from_config
        self._net: Optional[cv2.dnn.Net] = None
        self._lock = threading.Lock()

    def _load_from_config(self) -> cv2.dnn.Net:
        return load_net(
            self._config.age_model.prototxt_path,
            self._config.age_model.weights_path,
            backend=self._config.model.backend,
            config_key="age_model",
        )

    @property
    def labels(self):
        return self._config.age_model.labels

    def classify(self, image: np.ndarray, orientation: Orientation = Orientation.UP) -> List[Classification]:
        """Rank every configured age label for one face crop.

        Args:
            image: BGR face crop, as stored in the source photo.
            orientation: Orientation of the source photo.

        Raises:
            ModelLoadError: If the network cannot be loaded.
            ClassificationError: If preprocessing or inference fails.
        """
        try:
            upright = to_upright(image, orientation)
            blob = preprocess_face(upright, self._config.age_model)
        except (ValueError, cv2.error) as e:
            raise ClassificationError(str(e)) from e

        with self._lock:
            net = self._ensure_net()
            try:
                net.setInput(blob)
                scores = net.forward()
            except cv2.error as e:
                raise ClassificationError(str(e)) from e

        try:
            return rank_labels(scores, self.labels)
        except ValueError as e:
            raise ClassificationError(str(e)) from e

    def _ensure_net(self) -> cv2.dnn.Net:
        # Caller holds self._lock.
        if self._net is None:
            try:
                self._net = self._net_factory()
            except (FileNotFoundError, RuntimeError, cv2.error) as e:
                logger.error("Age model could not be loaded: %s", e)
                raise ModelLoadError() from e
        return self._net
