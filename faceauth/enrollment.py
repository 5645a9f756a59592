"""
Enrollment Pipeline

Orchestrates multi-sample enrollment:
1. Detect the best face in each of up to N sample images
2. Average the usable descriptors
3. Normalize, quantize and hash the average

The pipeline has no notion of users; binding the hash to an identity
is the caller's job.
"""
import logging
from dataclasses import replace
from typing import Any, Optional, Sequence

import numpy as np

from faceauth.config import FaceAuthConfig
from faceauth.descriptor import DescriptorProcessor, average_descriptors
from faceauth.detector import Detection, FaceDetector, select_best_face
from faceauth.errors import DetectionError, ErrorCode
from faceauth.schemas import EnrollmentResult, ScanResult

logger = logging.getLogger(__name__)


class EnrollmentPipeline:
    """Builds fuzzy hashes from detector output."""

    def __init__(self, detector: FaceDetector, config: FaceAuthConfig = None):
        self.detector = detector
        self.config = config or FaceAuthConfig()
        self.processor = DescriptorProcessor(self.config)

    def _extract(self, image: Any) -> Optional[Detection]:
        """
        Detect the highest-confidence face in one image.

        Returns None when no face is found.

        Raises:
            DetectionError: If the detector fails or returns a malformed descriptor
        """
        try:
            detections = self.detector.detect(image)
        except DetectionError:
            raise
        except Exception as e:
            logger.error(f"Detector raised during face extraction: {e}")
            raise DetectionError(f"Face detection failed: {e}") from e

        detection = select_best_face(detections, self.config.min_detection_confidence)
        if detection is None or detection.descriptor is None:
            return None

        descriptor = np.asarray(detection.descriptor, dtype=np.float64).ravel()
        if descriptor.size != self.config.descriptor_dimension:
            raise DetectionError(
                f"Detector returned a descriptor of length {descriptor.size}, "
                f"expected {self.config.descriptor_dimension}"
            )

        return replace(detection, descriptor=descriptor)

    def enroll(self, image_samples: Sequence[Any]) -> EnrollmentResult:
        """
        Produce one fuzzy hash from several captures of the same face.

        Args:
            image_samples: Images accepted by the detector

        Returns:
            EnrollmentResult; failures are reported, never raised
        """
        if not self.detector.is_initialized:
            return EnrollmentResult(
                success=False,
                message="Face detection models not loaded. Call initialize() first",
                error=ErrorCode.NOT_INITIALIZED
            )

        if not image_samples:
            return EnrollmentResult(
                success=False,
                message="No images provided for scanning",
                error=ErrorCode.INSUFFICIENT_SAMPLES
            )

        samples = list(image_samples)[:self.config.samples_for_registration]
        descriptors = []

        for index, image in enumerate(samples):
            try:
                detection = self._extract(image)
            except DetectionError as e:
                logger.error(f"Enrollment aborted on sample {index + 1}: {e}")
                return EnrollmentResult(
                    success=False,
                    message=str(e),
                    samples_used=len(descriptors),
                    error=ErrorCode.DETECTION_FAILED
                )

            if detection is None:
                logger.warning(f"Could not extract face from sample {index + 1}/{len(samples)}")
                continue

            descriptors.append(detection.descriptor)

        if len(descriptors) < self.config.min_valid_samples:
            logger.warning(
                f"Enrollment rejected: {len(descriptors)} of {len(samples)} samples usable, "
                f"{self.config.min_valid_samples} required"
            )
            return EnrollmentResult(
                success=False,
                message="Insufficient face descriptors extracted",
                samples_used=len(descriptors),
                error=ErrorCode.INSUFFICIENT_SAMPLES
            )

        fuzzy_hash = self.processor.fuzzy_hash(average_descriptors(descriptors))
        logger.info(f"Enrollment hash built from {len(descriptors)} samples")

        return EnrollmentResult(
            success=True,
            message="Face scanned successfully",
            fuzzy_hash=fuzzy_hash,
            samples_used=len(descriptors)
        )

    def scan(self, image: Any) -> ScanResult:
        """Hash a single verification sample with the enrollment settings."""
        if not self.detector.is_initialized:
            return ScanResult(
                success=False,
                message="Face detection models not loaded. Call initialize() first",
                error=ErrorCode.NOT_INITIALIZED
            )

        try:
            detection = self._extract(image)
        except DetectionError as e:
            return ScanResult(
                success=False,
                message=str(e),
                error=ErrorCode.DETECTION_FAILED
            )

        if detection is None:
            logger.warning("No face detected in verification sample")
            return ScanResult(
                success=False,
                message="No face detected in the provided image",
                error=ErrorCode.NO_FACE_DETECTED
            )

        return ScanResult(
            success=True,
            message="Face scanned successfully",
            fuzzy_hash=self.processor.fuzzy_hash(detection.descriptor),
            confidence=float(detection.confidence)
        )
