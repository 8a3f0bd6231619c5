"""
Picture Age Detector: count the children and adults in a photo.

Public API:
    - DetectionPipeline: locate faces, classify each, fold the counts.
    - FaceLocator / AgeClassifier: the OpenCV DNN backed collaborators.
    - Session: take / choose / detect actions around a pipeline.
    - Photo, Orientation, DetectionSummary: the data the pipeline works on.

Usage:
    from picture_age import AgeClassifier, DetectionPipeline, FaceLocator

    with DetectionPipeline(FaceLocator(), AgeClassifier()) as pipeline:
        summary = pipeline.run(photo)
        print(summary.message)
"""

from picture_age.classifier import AgeClassifier
from picture_age.locator import FaceLocator, LocateResult, LocateStatus
from picture_age.photo import Face, Orientation, Photo
from picture_age.pipeline import DetectionPipeline, ErrorReport, RunFinished, SummaryUpdate
from picture_age.session import Session
from picture_age.summary import AgeLabel, DetectionSummary, FaceResult

__all__ = [
    "AgeClassifier",
    "AgeLabel",
    "DetectionPipeline",
    "DetectionSummary",
    "ErrorReport",
    "Face",
    "FaceLocator",
    "FaceResult",
    "LocateResult",
    "LocateStatus",
    "Orientation",
    "Photo",
    "RunFinished",
    "Session",
    "SummaryUpdate",
]
