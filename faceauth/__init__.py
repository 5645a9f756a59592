"""
Face fuzzy-hash verification core.

The DeepFace detector and the FastAPI app live in
``faceauth.deepface_detector`` and ``faceauth.main``; they are not
imported here so the core stays usable with any ``FaceDetector``.
"""
from faceauth.config import FaceAuthConfig
from faceauth.descriptor import DescriptorProcessor, average_descriptors, normalize, quantize
from faceauth.detector import BoundingBox, Detection, FaceDetector, select_best_face
from faceauth.errors import DetectionError, ErrorCode, FaceAuthError, NotInitializedError
from faceauth.face_auth import FaceAuthSystem
from faceauth.fuzzy_hash import create_fuzzy_hash, hamming_distance, is_valid_hash
from faceauth.liveness import LivenessChecker, LivenessSample
from faceauth.matcher import HashMatcher
from faceauth.schemas import EnrollmentResult, LivenessReport, MatchResult, ScanResult

__version__ = "1.0.0"

__all__ = [
    "BoundingBox",
    "DescriptorProcessor",
    "Detection",
    "DetectionError",
    "EnrollmentResult",
    "ErrorCode",
    "FaceAuthConfig",
    "FaceAuthError",
    "FaceAuthSystem",
    "FaceDetector",
    "HashMatcher",
    "LivenessChecker",
    "LivenessReport",
    "LivenessSample",
    "MatchResult",
    "NotInitializedError",
    "ScanResult",
    "average_descriptors",
    "create_fuzzy_hash",
    "hamming_distance",
    "is_valid_hash",
    "normalize",
    "quantize",
    "select_best_face",
]
