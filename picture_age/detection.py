"""
Face bounding box value object.

FaceBounds is what the face locator reports for every face it finds:
a frozen, serializable box in absolute pixels of the source photo.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FaceBounds:
    """A located face with bounding box and detector confidence.

    Attributes:
        x1: Top-left x coordinate (absolute pixels).
        y1: Top-left y coordinate (absolute pixels).
        x2: Bottom-right x coordinate (absolute pixels).
        y2: Bottom-right y coordinate (absolute pixels).
        confidence: Detector confidence score in [0.0, 1.0].
    """

    x1: int
    y1: int
    x2: int
    y2: int
    confidence: float

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "confidence": round(self.confidence, 4),
        }

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    def expanded(self, margin: float, frame_width: int, frame_height: int) -> "FaceBounds":
        """Grow the box by `margin` of its size on every side, clamped to the frame."""
        dx = int(round(self.width * margin))
        dy = int(round(self.height * margin))
        return FaceBounds(
            x1=max(0, self.x1 - dx),
            y1=max(0, self.y1 - dy),
            x2=min(frame_width, self.x2 + dx),
            y2=min(frame_height, self.y2 + dy),
            confidence=self.confidence,
        )
