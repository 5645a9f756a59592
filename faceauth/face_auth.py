"""
Face authentication facade.

Composes the enrollment pipeline, hash matcher and liveness checker
around one detector and one configuration.
"""
import asyncio
import logging
from typing import Any, Sequence

from faceauth.config import FaceAuthConfig
from faceauth.detector import FaceDetector
from faceauth.enrollment import EnrollmentPipeline
from faceauth.liveness import FrameSource, LivenessChecker
from faceauth.matcher import HashMatcher
from faceauth.schemas import EnrollmentResult, LivenessReport, MatchResult, ScanResult

logger = logging.getLogger(__name__)


class FaceAuthSystem:
    """
    Entry point for enrollment, verification and liveness.

    Nothing here persists state; storing the returned fuzzy hash
    against an identity is up to the caller.
    """

    def __init__(self, detector: FaceDetector, config: FaceAuthConfig = None):
        self.config = config or FaceAuthConfig()
        self.detector = detector
        self.pipeline = EnrollmentPipeline(detector, self.config)
        self.matcher = HashMatcher(self.config)
        self.liveness = LivenessChecker(detector, self.config)

    @property
    def is_initialized(self) -> bool:
        return self.detector.is_initialized

    def initialize(self) -> bool:
        """Load detector models. Returns False instead of raising on failure."""
        if self.detector.is_initialized:
            return True

        try:
            loaded = self.detector.initialize()
        except Exception as e:
            logger.error(f"Error loading face detection models: {e}")
            return False

        if loaded:
            logger.info("Face detection models loaded")
        return bool(loaded)

    def enroll(self, images: Sequence[Any]) -> EnrollmentResult:
        return self.pipeline.enroll(images)

    def scan(self, image: Any) -> ScanResult:
        return self.pipeline.scan(image)

    def verify(self, hash_a: str, hash_b: str) -> MatchResult:
        return self.matcher.verify(hash_a, hash_b)

    def verify_image(self, image: Any, stored_hash: str) -> MatchResult:
        """Hash a fresh sample and compare it with a stored fuzzy hash."""
        scan = self.scan(image)
        if not scan.success:
            return MatchResult(success=False, message=scan.message, error=scan.error)
        return self.matcher.verify(scan.fuzzy_hash, stored_hash)

    async def check_liveness_report(
        self,
        stream: FrameSource,
        duration_ms: int = None,
        cancel_event: asyncio.Event = None
    ) -> LivenessReport:
        return await self.liveness.check(stream, duration_ms, cancel_event)

    async def check_liveness(
        self,
        stream: FrameSource,
        duration_ms: int = None,
        cancel_event: asyncio.Event = None
    ) -> bool:
        report = await self.liveness.check(stream, duration_ms, cancel_event)
        return report.is_live
