"""
Shared fakes for the locator, the classifier and the OpenCV networks.
"""

import random
import threading
import time

import numpy as np
import pytest

from picture_age.detection import FaceBounds
from picture_age.locator import LocateResult
from picture_age.photo import Face, Orientation, Photo
from picture_age.postprocessor import Classification


def make_photo(orientation=Orientation.UP, name="test.jpg") -> Photo:
    return Photo(image=np.zeros((120, 160, 3), dtype=np.uint8), orientation=orientation, name=name)


def make_faces(count: int):
    """Faces whose pixels all hold their index, so fakes can tell them apart."""
    faces = []
    for i in range(count):
        image = np.full((10, 10, 3), i, dtype=np.uint8)
        bounds = FaceBounds(x1=i * 20, y1=0, x2=i * 20 + 10, y2=10, confidence=0.9)
        faces.append(Face(image=image, bounds=bounds, source="test.jpg"))
    return faces


class FakeLocator:
    def __init__(self, result: LocateResult) -> None:
        self.result = result
        self.calls = 0

    def locate(self, photo):
        self.calls += 1
        return self.result


class FakeClassifier:
    """Answers with a scripted identifier, error, or delay per face index."""

    def __init__(self, answers, delays=None, gate=None) -> None:
        self.answers = answers
        self.delays = delays or {}
        self.gate = gate
        self.calls = 0
        self.orientations = []
        self._lock = threading.Lock()

    def classify(self, image, orientation=Orientation.UP):
        index = int(image[0, 0, 0])
        with self._lock:
            self.calls += 1
            self.orientations.append(orientation)

        if self.gate is not None:
            self.gate.wait(timeout=5)
        time.sleep(self.delays.get(index, 0.0))

        answer = self.answers[index]
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return []
        return [Classification(identifier=answer, confidence=0.8),
                Classification(identifier="60-100", confidence=0.1)]


class FakeNet:
    """Stands in for cv2.dnn.Net: records the blob, returns a canned output."""

    def __init__(self, output: np.ndarray) -> None:
        self.output = output
        self.inputs = []

    def setInput(self, blob):
        self.inputs.append(blob)

    def forward(self):
        return self.output


@pytest.fixture
def photo():
    return make_photo()


@pytest.fixture
def random_delays():
    rng = random.Random(7)
    return {i: rng.uniform(0.0, 0.03) for i in range(8)}
