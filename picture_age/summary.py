"""
Result aggregation for one detection run.

DetectionSummary is the per-run aggregate: how many people the locator
found, how many of them have been classified as children or adults so
far, the per-face results, and the human-readable message. Only the
pipeline's consuming thread mutates it.
"""

import re
from dataclasses import dataclass, field, replace
from typing import List, Optional

from picture_age.detection import FaceBounds

# Faces whose top age range starts below this are counted as children.
CHILD_AGE_THRESHOLD = 20

CHILD = "child"
ADULT = "adult"

NO_FACES_MESSAGE = "No faces detected."

_LOWER_BOUND = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class AgeLabel:
    """The lower bound of a classified age range and its confidence."""

    lower_bound: int
    confidence: float

    @property
    def is_child(self) -> bool:
        return self.lower_bound < CHILD_AGE_THRESHOLD

    @property
    def bucket(self) -> str:
        return CHILD if self.is_child else ADULT

    @classmethod
    def parse(cls, identifier: str, confidence: float) -> Optional["AgeLabel"]:
        """Parse a "<lo>-<hi>" identifier. Returns None if there is no numeric lower bound."""
        head = identifier.split("-", 1)[0]
        if not _LOWER_BOUND.fullmatch(head):
            return None
        return cls(lower_bound=int(head), confidence=confidence)


@dataclass(frozen=True)
class FaceResult:
    """What happened to one face of the run."""

    bounds: FaceBounds
    identifier: Optional[str] = None
    label: Optional[AgeLabel] = None

    @property
    def bucket(self) -> Optional[str]:
        return self.label.bucket if self.label is not None else None

    def to_dict(self) -> dict:
        return {
            **self.bounds.to_dict(),
            "age_range": self.identifier,
            "age_confidence": round(self.label.confidence, 4) if self.label else None,
            "bucket": self.bucket,
        }


@dataclass
class DetectionSummary:
    """Aggregate counters and message for one pipeline run.

    `people` is set once when the locator returns; `children` and
    `adults` grow by one per classified face.
    """

    people: int = 0
    children: int = 0
    adults: int = 0
    message: str = ""
    results: List[FaceResult] = field(default_factory=list)

    def start(self, people: int) -> None:
        self.people = people
        self.message = f"Number of faces: {people}"

    def mark_no_faces(self) -> None:
        self.people = 0
        self.message = NO_FACES_MESSAGE

    def record(self, result: FaceResult) -> bool:
        """Fold one face's outcome in. Returns True if a counter changed."""
        self.results.append(result)
        label = result.label
        if label is None:
            return False

        if label.is_child:
            self.children += 1
        else:
            self.adults += 1
        self.message = self.render()
        return True

    def render(self) -> str:
        return (
            f"Number of people: {self.people}\n"
            f"Number of children: {self.children}\n"
            f"Number of adults: {self.adults}"
        )

    @property
    def classified(self) -> int:
        return self.children + self.adults

    def snapshot(self) -> "DetectionSummary":
        """Independent copy safe to hand to other threads."""
        return replace(self, results=list(self.results))

    def to_dict(self) -> dict:
        return {
            "people": self.people,
            "children": self.children,
            "adults": self.adults,
            "message": self.message,
            "faces": [r.to_dict() for r in self.results],
        }
