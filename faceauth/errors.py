"""
Error taxonomy for the face authentication core.

Exceptions are raised inside the core (mostly by detector adapters) and
converted to structured results with an ``ErrorCode`` at the public boundary.
"""
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable reason attached to a failed result."""
    NOT_INITIALIZED = "not_initialized"
    NO_FACE_DETECTED = "no_face_detected"
    INSUFFICIENT_SAMPLES = "insufficient_samples"
    INVALID_HASH_INPUT = "invalid_hash_input"
    DETECTION_FAILED = "detection_failed"
    INVALID_DURATION = "invalid_duration"


class FaceAuthError(Exception):
    """Base class for face authentication errors."""
    code: ErrorCode = ErrorCode.DETECTION_FAILED


class NotInitializedError(FaceAuthError):
    """The detector models have not been loaded yet."""
    code = ErrorCode.NOT_INITIALIZED


class DetectionError(FaceAuthError):
    """The underlying detector raised or returned malformed output."""
    code = ErrorCode.DETECTION_FAILED
