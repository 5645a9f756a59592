"""End-to-end tests through the FaceAuthSystem facade."""

from __future__ import annotations

import numpy as np
import pytest

from faceauth.config import FaceAuthConfig
from faceauth.errors import ErrorCode
from faceauth.face_auth import FaceAuthSystem

from helpers import FakeDetector, FakeStream, make_face, random_descriptor


def _hash_of(descriptor) -> str:
    system = FaceAuthSystem(FakeDetector([[make_face(descriptor)]]))
    result = system.scan("frame")
    assert result.success
    return result.fuzzy_hash


def test_noisy_captures_of_same_face_match(rng: np.random.Generator) -> None:
    base = random_descriptor(rng)
    first = _hash_of(base + rng.normal(0.0, 0.01, 128))
    second = _hash_of(base + rng.normal(0.0, 0.01, 128))

    result = FaceAuthSystem(FakeDetector()).verify(first, second)

    assert result.success
    assert result.is_match


def test_independent_faces_do_not_match(rng: np.random.Generator) -> None:
    first = _hash_of(random_descriptor(rng))
    second = _hash_of(random_descriptor(rng))

    result = FaceAuthSystem(FakeDetector()).verify(first, second)

    assert result.success
    assert not result.is_match
    assert result.hamming_distance > 15


def test_enrolled_hash_verifies_fresh_capture(rng: np.random.Generator) -> None:
    base = random_descriptor(rng)
    enroll_faces = [[make_face(base + rng.normal(0.0, 0.005, 128))] for _ in range(3)]
    system = FaceAuthSystem(FakeDetector(enroll_faces + [[make_face(base)]]))

    enrolled = system.enroll(["a", "b", "c"])
    match = system.verify_image("fresh", enrolled.fuzzy_hash)

    assert enrolled.success
    assert match.success and match.is_match


def test_verify_image_without_face_is_not_a_silent_mismatch() -> None:
    system = FaceAuthSystem(FakeDetector([[]]))

    match = system.verify_image("frame", "0" * 128)

    assert not match.success
    assert match.error == ErrorCode.NO_FACE_DETECTED


def test_initialize_loads_detector() -> None:
    detector = FakeDetector(initialized=False)
    system = FaceAuthSystem(detector)

    assert not system.is_initialized
    assert system.initialize()
    assert system.is_initialized


def test_initialize_reports_failure_instead_of_raising() -> None:
    class BrokenDetector(FakeDetector):
        def initialize(self) -> bool:
            raise OSError("weights missing")

    assert FaceAuthSystem(BrokenDetector(initialized=False)).initialize() is False


@pytest.mark.asyncio
async def test_check_liveness_returns_boolean(fast_config: FaceAuthConfig) -> None:
    script = [
        [make_face(box=(0.0, 0.0, 40.0, 40.0))],
        [make_face(box=(30.0, 10.0, 40.0, 40.0))],
    ]
    system = FaceAuthSystem(FakeDetector(script, cycle=True), fast_config)

    assert await system.check_liveness(FakeStream()) is True
    assert await FaceAuthSystem(FakeDetector([[make_face()]]), fast_config).check_liveness(FakeStream()) is False
