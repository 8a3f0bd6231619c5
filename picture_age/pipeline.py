"""
Detection Pipeline: locate faces, classify each one, fold the counts.

Public contract:
    DetectionPipeline.detect_faces(photo) -> Iterator[PipelineEvent]
    DetectionPipeline.run(photo, on_summary, on_error) -> DetectionSummary
    DetectionPipeline.reset() -> DetectionSummary

Concurrency:
    The locator runs on the caller's thread. Classification of each face
    is submitted to a thread pool and joined as completed. Every mutation
    of the run's DetectionSummary happens on the thread iterating
    detect_faces(), so the aggregate has a single writer no matter how
    many classifications run in the background.

    Starting a new run or calling reset() makes the previous run stale:
    its pending classifications are cancelled and anything it still
    receives is discarded.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Union

from picture_age.classifier import AgeClassifier
from picture_age.errors import LocatorError, PipelineError
from picture_age.locator import FaceLocator, LocateStatus
from picture_age.photo import Face, Orientation, Photo
from picture_age.summary import AgeLabel, DetectionSummary, FaceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryUpdate:
    """The aggregate changed; `summary` is a snapshot taken at that moment."""

    summary: DetectionSummary


@dataclass(frozen=True)
class ErrorReport:
    """An error to surface to the user as a (title, message) pair."""

    title: str
    message: str


@dataclass(frozen=True)
class RunFinished:
    """Terminal event of a run that was not superseded."""

    summary: DetectionSummary


PipelineEvent = Union[SummaryUpdate, ErrorReport, RunFinished]


class DetectionPipeline:
    """Orchestrates the face locator and the age classifier for one photo at a time.

    Usage:
        with DetectionPipeline(locator, classifier) as pipeline:
            pipeline.reset()
            for event in pipeline.detect_faces(photo):
                ...
    """

    def __init__(
        self,
        locator: FaceLocator,
        classifier: AgeClassifier,
        max_workers: int = 4,
    ) -> None:
        self._locator = locator
        self._classifier = classifier
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="age-classify",
        )
        self._lock = threading.Lock()
        self._generation = 0
        self._pending: List[Future] = []
        self._summary = DetectionSummary()

    @property
    def summary(self) -> DetectionSummary:
        """Snapshot of the current run's aggregate."""
        return self._summary.snapshot()

    def reset(self) -> DetectionSummary:
        """Cancel in-flight work and zero the aggregate."""
        with self._lock:
            self._begin_run()
            summary = self._summary
        logger.debug("Pipeline reset.")
        return summary.snapshot()

    def _begin_run(self) -> int:
        # Caller holds self._lock.
        self._generation += 1
        for future in self._pending:
            future.cancel()
        self._pending = []
        self._summary = DetectionSummary()
        return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def classify_age(self, face: Face, orientation: Orientation) -> FaceResult:
        """Classify one face and parse its top-ranked age range.

        An unparsable top label yields a FaceResult without an AgeLabel.

        Raises:
            ModelLoadError: If the age model cannot be loaded.
            ClassificationError: If inference fails.
        """
        ranked = self._classifier.classify(face.image, orientation)
        if not ranked:
            return FaceResult(bounds=face.bounds)

        top = ranked[0]
        label = AgeLabel.parse(top.identifier, top.confidence)
        if label is None:
            logger.debug("Ignoring unparsable age label %r.", top.identifier)
        return FaceResult(bounds=face.bounds, identifier=top.identifier, label=label)

    def detect_faces(self, photo: Photo) -> Iterator[PipelineEvent]:
        """Run detection and classification on one photo.

        Yields a SummaryUpdate whenever the aggregate changes, an
        ErrorReport for every surfaced error, and RunFinished last.
        Closing the iterator early cancels outstanding classifications.
        """
        with self._lock:
            generation = self._begin_run()
            summary = self._summary

        result = self._locator.locate(photo)
        if not self._is_current(generation):
            return

        if result.status is LocateStatus.FAILED:
            error = LocatorError(result.error or "Face detection failed.")
            yield ErrorReport(error.title, error.message)
            if self._is_current(generation):
                yield RunFinished(summary.snapshot())
            return

        if result.status is LocateStatus.NOT_FOUND:
            summary.mark_no_faces()
            yield SummaryUpdate(summary.snapshot())
            if self._is_current(generation):
                yield RunFinished(summary.snapshot())
            return

        summary.start(len(result.faces))
        yield SummaryUpdate(summary.snapshot())

        futures: Dict[Future, Face] = {}
        with self._lock:
            if generation != self._generation:
                return
            for face in result.faces:
                future = self._executor.submit(self.classify_age, face, photo.orientation)
                futures[future] = face
            self._pending = list(futures)

        try:
            for future in as_completed(futures):
                if not self._is_current(generation):
                    logger.info("Run for %s superseded, discarding its results.", photo.name)
                    return

                try:
                    face_result = future.result()
                except PipelineError as e:
                    logger.warning("Classification failed for a face in %s: %s", photo.name, e)
                    yield ErrorReport(e.title, e.message)
                    continue
                except Exception as e:
                    logger.exception("Unexpected error classifying a face in %s", photo.name)
                    yield ErrorReport("Error", str(e) or type(e).__name__)
                    continue

                if summary.record(face_result):
                    logger.debug(
                        "Face %s classified as %s (%s).",
                        futures[future].bounds.to_dict(),
                        face_result.bucket,
                        face_result.identifier,
                    )
                    yield SummaryUpdate(summary.snapshot())
        finally:
            for future in futures:
                future.cancel()

        logger.info(
            "Processed %s: people=%d children=%d adults=%d",
            photo.name, summary.people, summary.children, summary.adults,
        )
        yield RunFinished(summary.snapshot())

    def run(
        self,
        photo: Photo,
        on_summary: Optional[Callable[[DetectionSummary], None]] = None,
        on_error: Optional[Callable[[str, str], None]] = None,
    ) -> DetectionSummary:
        """Drain detect_faces(), forwarding events to the callbacks.

        Returns:
            The run's final summary, or the latest snapshot if the run
            was superseded before finishing.
        """
        final: Optional[DetectionSummary] = None
        latest = DetectionSummary()

        for event in self.detect_faces(photo):
            if isinstance(event, SummaryUpdate):
                latest = event.summary
                if on_summary is not None:
                    on_summary(event.summary)
            elif isinstance(event, ErrorReport):
                if on_error is not None:
                    on_error(event.title, event.message)
                else:
                    logger.warning("%s: %s", event.title, event.message)
            elif isinstance(event, RunFinished):
                final = event.summary

        return final if final is not None else latest

    def close(self) -> None:
        """Cancel pending work and shut the classification pool down."""
        with self._lock:
            self._begin_run()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "DetectionPipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
