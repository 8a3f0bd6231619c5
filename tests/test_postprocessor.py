"""
Tests for the postprocessing module.
"""

import numpy as np
import pytest

from picture_age.postprocessor import postprocess, rank_labels


def test_postprocess_valid_detection():
    # [batch, class, conf, x1, y1, x2, y2]
    tensor = np.array([[[[0, 1, 0.95, 0.0, 0.0, 0.5, 0.5]]]], dtype=np.float32)

    faces = postprocess(
        network_output=tensor,
        frame_width=640,
        frame_height=480,
        confidence_threshold=0.5,
    )

    assert len(faces) == 1
    face = faces[0]
    assert face.confidence == pytest.approx(0.95, abs=1e-5)
    assert (face.x1, face.y1, face.x2, face.y2) == (0, 0, 320, 240)


def test_postprocess_confidence_filtering():
    tensor = np.array([[[[0, 1, 0.4, 0.0, 0.0, 0.5, 0.5]]]], dtype=np.float32)
    assert postprocess(tensor, 640, 480, 0.5) == []


def test_postprocess_clamping():
    tensor = np.array([[[[0, 1, 0.9, -0.1, -0.1, 1.2, 1.2]]]], dtype=np.float32)

    faces = postprocess(tensor, 100, 100, 0.5)

    assert len(faces) == 1
    assert (faces[0].x1, faces[0].y1, faces[0].x2, faces[0].y2) == (0, 0, 99, 99)


def test_postprocess_degenerate_box():
    tensor = np.array([[[[0, 1, 0.9, 0.5, 0.5, 0.4, 0.4]]]], dtype=np.float32)
    assert postprocess(tensor, 100, 100, 0.5) == []


def test_postprocess_sorted_by_confidence():
    tensor = np.array([[[
        [0, 1, 0.6, 0.0, 0.0, 0.2, 0.2],
        [0, 1, 0.9, 0.5, 0.5, 0.8, 0.8],
    ]]], dtype=np.float32)

    faces = postprocess(tensor, 100, 100, 0.5)

    assert [f.confidence for f in faces] == pytest.approx([0.9, 0.6])


def test_rank_labels_best_first():
    scores = np.array([[0.1, 0.6, 0.3]], dtype=np.float32)

    ranked = rank_labels(scores, ("0-2", "4-6", "8-12"))

    assert [c.identifier for c in ranked] == ["4-6", "8-12", "0-2"]
    assert ranked[0].confidence == pytest.approx(0.6)


def test_rank_labels_size_mismatch():
    with pytest.raises(ValueError, match="2 scores"):
        rank_labels(np.array([0.5, 0.5]), ("0-2", "4-6", "8-12"))
