"""Test doubles for the face detector boundary."""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from faceauth.detector import BoundingBox, Detection

NEUTRAL_EXPRESSIONS = {
    "angry": 1 / 7,
    "disgust": 1 / 7,
    "fear": 1 / 7,
    "happy": 1 / 7,
    "sad": 1 / 7,
    "surprise": 1 / 7,
    "neutral": 1 / 7,
}


def make_face(
    descriptor=None,
    confidence: float = 0.9,
    box: tuple = (100.0, 100.0, 50.0, 50.0),
    expressions: dict | None = None,
) -> Detection:
    if descriptor is None:
        descriptor = np.full(128, 0.05)
    return Detection(
        confidence=confidence,
        descriptor=np.asarray(descriptor, dtype=np.float64),
        bounding_box=BoundingBox(*box),
        expression_scores=dict(NEUTRAL_EXPRESSIONS if expressions is None else expressions),
    )


class FakeDetector:
    """Replays scripted detector outputs in call order.

    Each script item is a list of detections or an exception to raise.
    When ``cycle`` is set the script loops, otherwise the last item repeats.
    """

    def __init__(self, script=None, initialized: bool = True, cycle: bool = False):
        self.script = list(script or [[]])
        self.cycle = cycle
        self.calls = 0
        self._initialized = initialized

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        self._initialized = True
        return True

    def detect(self, image):
        if self.cycle:
            item = self.script[self.calls % len(self.script)]
        else:
            item = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1

        if isinstance(item, Exception):
            raise item
        return list(item)


class FakeStream:
    """cv2.VideoCapture-like frame source yielding frame numbers."""

    def __init__(self, readable: bool = True):
        self.readable = readable
        self.frames_read = 0

    def read(self):
        self.frames_read += 1
        if not self.readable:
            return False, None
        return True, self.frames_read


def random_descriptor(rng: np.random.Generator, scale: float = 0.1) -> np.ndarray:
    return rng.normal(0.0, scale, 128)


def png_bytes(color=(120, 90, 60), size=(32, 32)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()
