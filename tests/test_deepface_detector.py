"""Tests for the DeepFace adapter, with DeepFace calls replaced."""

from __future__ import annotations

import numpy as np
import pytest

from faceauth import deepface_detector
from faceauth.deepface_detector import DeepFaceDetector
from faceauth.detector import BoundingBox
from faceauth.errors import DetectionError, NotInitializedError


class DeepFaceCalls:
    """Records DeepFace.represent/analyze calls and replays canned results."""

    def __init__(self, representations=None, emotions=None, error=None):
        self.representations = representations or []
        self.emotions = emotions or {}
        self.error = error
        self.represent_calls = []
        self.analyze_calls = []

    def represent(self, **kwargs):
        self.represent_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.representations

    def analyze(self, **kwargs):
        self.analyze_calls.append(kwargs)
        return [{"emotion": dict(self.emotions)}]


@pytest.fixture
def deepface(monkeypatch):
    def install(**kwargs) -> DeepFaceCalls:
        calls = DeepFaceCalls(**kwargs)
        monkeypatch.setattr(deepface_detector.DeepFace, "represent", calls.represent)
        monkeypatch.setattr(deepface_detector.DeepFace, "analyze", calls.analyze)
        return calls

    return install


def _loaded_detector() -> DeepFaceDetector:
    detector = DeepFaceDetector()
    detector._model_loaded = True
    return detector


def _representation(x, y, w, h, confidence=0.98):
    return {
        "embedding": list(np.linspace(-1.0, 1.0, 128)),
        "facial_area": {"x": x, "y": y, "w": w, "h": h},
        "face_confidence": confidence,
    }


def test_detect_requires_initialize(deepface) -> None:
    calls = deepface()

    with pytest.raises(NotInitializedError):
        DeepFaceDetector().detect(np.zeros((100, 100, 3), dtype=np.uint8))
    assert calls.represent_calls == []


def test_initialize_warms_up_models(deepface) -> None:
    calls = deepface()
    detector = DeepFaceDetector()

    assert detector.initialize()
    assert detector.is_initialized
    assert calls.represent_calls[0]["detector_backend"] == "skip"
    assert len(calls.analyze_calls) == 1


def test_initialize_reports_failure(deepface) -> None:
    deepface(error=RuntimeError("weights missing"))
    detector = DeepFaceDetector()

    assert detector.initialize() is False
    assert not detector.is_initialized


def test_detect_maps_facial_area_and_confidence(deepface) -> None:
    deepface(representations=[_representation(10, 20, 30, 40, confidence=0.87)])

    detections = _loaded_detector().detect(np.zeros((100, 100, 3), dtype=np.uint8))

    assert len(detections) == 1
    assert detections[0].confidence == pytest.approx(0.87)
    assert detections[0].bounding_box == BoundingBox(10.0, 20.0, 30.0, 40.0)
    assert detections[0].descriptor.shape == (128,)
    assert detections[0].descriptor.dtype == np.float64


def test_detect_drops_whole_frame_fallback(deepface) -> None:
    deepface(representations=[
        _representation(0, 0, 100, 100, confidence=0),
        _representation(10, 10, 20, 20, confidence=None),
        _representation(5, 5, 40, 40, confidence=0.9),
    ])

    detections = _loaded_detector().detect(np.zeros((100, 100, 3), dtype=np.uint8))

    assert [d.confidence for d in detections] == [pytest.approx(0.9)]


def test_emotion_percentages_become_probabilities(deepface) -> None:
    deepface(
        representations=[_representation(5, 5, 40, 40)],
        emotions={"happy": 80.0, "neutral": 15.0, "sad": 5.0},
    )

    detection = _loaded_detector().detect(np.zeros((100, 100, 3), dtype=np.uint8))[0]

    assert detection.expression_scores == pytest.approx({"happy": 0.8, "neutral": 0.15, "sad": 0.05})


def test_each_face_crop_is_analyzed_without_detection(deepface) -> None:
    calls = deepface(representations=[
        _representation(10, 20, 30, 40),
        _representation(80, 70, 50, 50),
    ])
    image = np.zeros((100, 100, 3), dtype=np.uint8)

    _loaded_detector().detect(image)

    assert len(calls.analyze_calls) == 2
    assert all(call["detector_backend"] == "skip" for call in calls.analyze_calls)
    assert calls.analyze_calls[0]["img_path"].shape == (40, 30, 3)
    # The second box runs past the frame edge and is clamped
    assert calls.analyze_calls[1]["img_path"].shape == (30, 20, 3)


def test_expressions_can_be_disabled(deepface) -> None:
    calls = deepface(representations=[_representation(5, 5, 40, 40)])
    detector = DeepFaceDetector(analyze_expressions=False)
    detector._model_loaded = True

    detection = detector.detect(np.zeros((100, 100, 3), dtype=np.uint8))[0]

    assert detection.expression_scores == {}
    assert calls.analyze_calls == []


def test_deepface_errors_become_detection_errors(deepface) -> None:
    deepface(error=ValueError("bad tensor"))

    with pytest.raises(DetectionError, match="bad tensor"):
        _loaded_detector().detect(np.zeros((100, 100, 3), dtype=np.uint8))
