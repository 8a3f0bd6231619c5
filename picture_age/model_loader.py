"""
Model loading for the picture age detector.

Responsibility:
    Load a Caffe network from disk, configure the compute backend,
    and return a ready-to-infer cv2.dnn.Net. Used for both the face
    detector and the age classifier.

Non-goals:
    - No preprocessing, inference, or frame-level logic.
    - No automatic model downloading.

Failure behavior:
    - Missing model files raise FileNotFoundError with the exact
      missing path and the config key that points at it.
    - Incompatible backend raises RuntimeError.
"""

import logging

import cv2

from picture_age.config import resolve_path

logger = logging.getLogger(__name__)


def load_net(
    prototxt_path: str,
    weights_path: str,
    backend: str = "cpu",
    config_key: str = "model",
) -> cv2.dnn.Net:
    """Load and configure a Caffe network.

    Args:
        prototxt_path: Network definition, absolute or relative to the project root.
        weights_path: Network weights, absolute or relative to the project root.
        backend: 'cpu' or 'cuda'.
        config_key: Config section the paths came from, used in error messages.

    Returns:
        A configured cv2.dnn.Net ready for inference.

    Raises:
        FileNotFoundError: If prototxt or weights file does not exist.
        RuntimeError: If the requested backend is unavailable.
    """
    prototxt = resolve_path(prototxt_path)
    weights = resolve_path(weights_path)

    if not prototxt.is_file():
        raise FileNotFoundError(
            f"Model prototxt not found.\n"
            f"  Expected: {prototxt}\n"
            f"  Provide the file or update '{config_key}.prototxt_path' in your config."
        )

    if not weights.is_file():
        raise FileNotFoundError(
            f"Model weights not found.\n"
            f"  Expected: {weights}\n"
            f"  Download the weights file and place it at the path above,\n"
            f"  or update '{config_key}.weights_path' in your config."
        )

    logger.info("Loading %s: prototxt=%s, weights=%s", config_key, prototxt, weights)
    net = cv2.dnn.readNetFromCaffe(str(prototxt), str(weights))

    if backend == "cuda":
        logger.info("Setting CUDA backend and target.")
        try:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        except cv2.error as e:
            raise RuntimeError(
                f"Failed to set CUDA backend. Ensure OpenCV was built with "
                f"CUDA support.\n"
                f"  OpenCV error: {e}"
            ) from e
    else:
        net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)

    logger.info("Model %s loaded (backend=%s).", config_key, backend)
    return net
