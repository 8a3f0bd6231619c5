"""
Tests for photo input and summary output.
"""

import csv
import json

import cv2
import numpy as np
import pytest

from picture_age.config import AppConfig, OutputConfig
from picture_age.detection import FaceBounds
from picture_age.input_handler import InputHandler, load_photo
from picture_age.output_handler import OutputHandler
from picture_age.photo import Orientation, Photo
from picture_age.summary import AgeLabel, DetectionSummary, FaceResult
from picture_age.visualizer import draw_faces


def _write_image(path, width=64, height=48):
    cv2.imwrite(str(path), np.full((height, width, 3), 90, dtype=np.uint8))


def _summary():
    summary = DetectionSummary()
    summary.start(2)
    summary.record(FaceResult(FaceBounds(2, 2, 20, 20, 0.9), "4-6", AgeLabel(4, 0.7)))
    summary.record(FaceResult(FaceBounds(30, 5, 50, 30, 0.8), "oops", None))
    return summary


def test_input_handler_directory(tmp_path):
    _write_image(tmp_path / "b.png")
    _write_image(tmp_path / "a.jpg")
    (tmp_path / "notes.txt").write_text("skip me")
    (tmp_path / "broken.png").write_bytes(b"not an image")

    handler = InputHandler(str(tmp_path), resize_width=32)
    photos = list(handler)

    assert len(handler) == 3
    assert [p.name.rsplit("/", 1)[-1] for p in photos] == ["a.jpg", "b.png"]
    assert photos[0].image.shape == (24, 32, 3)
    assert photos[0].orientation is Orientation.UP


def test_input_handler_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        InputHandler(str(tmp_path / "nothing"))


def test_input_handler_empty_directory(tmp_path):
    with pytest.raises(ValueError, match="No image files"):
        InputHandler(str(tmp_path))


def test_input_handler_wrong_extension(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"")
    with pytest.raises(ValueError, match="extension"):
        InputHandler(str(path))


def test_load_photo_unreadable(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"garbage")
    assert load_photo(str(path)) is None


def test_draw_faces_returns_annotated_copy():
    frame = np.zeros((60, 60, 3), dtype=np.uint8)
    summary = _summary()

    annotated = draw_faces(frame, summary.results, AppConfig().visualization)

    assert frame.max() == 0
    assert annotated.shape == frame.shape
    assert annotated.max() > 0


def test_output_handler_writes_files(tmp_path):
    config = AppConfig(output=OutputConfig(mode="log,save_image,save_json,save_csv",
                                           save_path=str(tmp_path / "out")))
    handler = OutputHandler(config)
    photo = Photo(image=np.zeros((60, 60, 3), dtype=np.uint8), name="group.jpg")

    empty = DetectionSummary()
    empty.mark_no_faces()

    handler.process_photo(photo, _summary())
    handler.process_photo(Photo(image=np.zeros((10, 10, 3), dtype=np.uint8), name="wall.jpg"), empty)
    handler.finalize()

    out = tmp_path / "out"
    assert (out / "0000_group.jpg").is_file()
    assert (out / "0001_wall.jpg").is_file()

    payload = json.loads((out / "summaries.json").read_text(encoding="utf-8"))
    assert payload["total_photos"] == 2
    assert payload["total_people"] == 2
    group = payload["photos"][0]
    assert group["photo"] == "group.jpg"
    assert group["children"] == 1
    assert group["faces"][1]["bucket"] is None

    with open(out / "summaries.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 3
    assert rows[0]["age_range"] == "4-6"
    assert rows[0]["bucket"] == "child"
    assert rows[2]["photo"] == "wall.jpg"
    assert rows[2]["x1"] == ""
