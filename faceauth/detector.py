"""
Face detector boundary.

The core only talks to detection engines through the ``FaceDetector``
protocol, so DeepFace, a remote service or a test double can be swapped
without touching hashing or matching logic.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Face region in pixel coordinates of the source frame."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass
class Detection:
    """
    One detected face.

    Attributes:
        confidence: Detector score in [0, 1]
        descriptor: Fixed-length real-valued feature vector
        bounding_box: Face region, if the detector reports one
        expression_scores: Expression label -> probability
    """
    confidence: float
    descriptor: np.ndarray
    bounding_box: Optional[BoundingBox] = None
    expression_scores: Dict[str, float] = field(default_factory=dict)


class FaceDetector(Protocol):
    """Protocol for face detection engines consumed by the core."""

    @property
    def is_initialized(self) -> bool:
        """Whether models are loaded and ``detect`` may be called."""
        ...

    def initialize(self) -> bool:
        """Load models. Returns True on success."""
        ...

    def detect(self, image: Any) -> List[Detection]:
        """
        Detect faces in an image.

        Returns an empty list when no face is found. Raises
        ``DetectionError`` when the engine itself fails.
        """
        ...


def select_best_face(
    detections: Optional[Sequence[Detection]],
    min_confidence: float = 0.0
) -> Optional[Detection]:
    """Return the highest-confidence detection at or above ``min_confidence``."""
    if not detections:
        return None

    candidates = [d for d in detections if d.confidence >= min_confidence]
    if not candidates:
        return None

    return max(candidates, key=lambda d: d.confidence)
