"""
Liveness Checker

Samples a frame source over a short wall-clock window and decides whether
the subject is live from two signals:
- Head micro-movement (variance of the face center across frames)
- Expression fluctuation (variance of per-frame expression scores)

A static photo shows near-zero variance in both.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import numpy as np

from faceauth.config import FaceAuthConfig
from faceauth.detector import FaceDetector, select_best_face
from faceauth.errors import ErrorCode
from faceauth.schemas import LivenessReport

logger = logging.getLogger(__name__)

MIN_LIVENESS_FRAMES = 2


class FrameSource(Protocol):
    """Anything with a ``cv2.VideoCapture``-style ``read()``."""

    def read(self) -> tuple:
        ...


@dataclass(frozen=True)
class LivenessSample:
    """Signals extracted from one frame."""
    center_x: float
    center_y: float
    expression_variance: float


def expression_variance(scores) -> float:
    """Population variance of a frame's expression probabilities."""
    values = list(scores.values()) if isinstance(scores, dict) else list(scores)
    if not values:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64)))


class LivenessChecker:
    """
    Timer-driven liveness sampling.

    Each call keeps its own sample buffer, so one checker can serve
    concurrent checks.
    """

    def __init__(self, detector: FaceDetector, config: FaceAuthConfig = None):
        self.detector = detector
        self.config = config or FaceAuthConfig()

    def _sample_frame(self, stream: FrameSource) -> Optional[LivenessSample]:
        """Read one frame and reduce it to a sample. Runs in a worker thread."""
        try:
            ok, frame = stream.read()
        except Exception as e:
            logger.warning(f"Frame source failed during liveness check: {e}")
            return None

        if not ok or frame is None:
            logger.debug("Frame source returned no frame")
            return None

        try:
            detections = self.detector.detect(frame)
        except Exception as e:
            logger.warning(f"Detection failed on liveness frame: {e}")
            return None

        detection = select_best_face(detections, self.config.min_detection_confidence)
        if detection is None or detection.bounding_box is None:
            logger.warning("No face detected in liveness check frame")
            return None

        center_x, center_y = detection.bounding_box.center
        return LivenessSample(
            center_x=float(center_x),
            center_y=float(center_y),
            expression_variance=expression_variance(detection.expression_scores)
        )

    async def check(
        self,
        stream: FrameSource,
        duration_ms: int = None,
        cancel_event: asyncio.Event = None
    ) -> LivenessReport:
        """
        Sample ``stream`` for ``duration_ms`` and decide liveness.

        Args:
            stream: Frame source (e.g. cv2.VideoCapture)
            duration_ms: Sampling window, defaults to the configured one
            cancel_event: Set it to stop sampling early; the check then
                reports not-live with ``cancelled=True``

        Returns:
            LivenessReport
        """
        if not self.detector.is_initialized:
            return LivenessReport(
                is_live=False,
                message="Face detection models not loaded. Call initialize() first",
                error=ErrorCode.NOT_INITIALIZED
            )

        if duration_ms is None:
            duration_ms = self.config.liveness_duration_ms
        if duration_ms <= 0:
            return LivenessReport(
                is_live=False,
                message=f"Liveness duration must be positive, got {duration_ms} ms",
                error=ErrorCode.INVALID_DURATION
            )

        duration = duration_ms / 1000
        interval = self.config.liveness_sample_interval_ms / 1000

        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration
        samples: List[LivenessSample] = []
        cancelled = False

        while loop.time() < deadline:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break

            sample = await asyncio.to_thread(self._sample_frame, stream)
            if sample is not None:
                samples.append(sample)

            tick = min(interval, deadline - loop.time())
            if tick <= 0:
                break

            if cancel_event is None:
                await asyncio.sleep(tick)
                continue

            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=tick)
            except asyncio.TimeoutError:
                continue
            cancelled = True
            break

        if cancelled:
            logger.info(f"Liveness check cancelled after {len(samples)} frames")
            return LivenessReport(
                is_live=False,
                frames_sampled=len(samples),
                cancelled=True,
                message="Liveness check cancelled"
            )

        return self.assess(samples)

    def assess(self, samples: Sequence[LivenessSample]) -> LivenessReport:
        """Decide liveness from collected samples."""
        if len(samples) < MIN_LIVENESS_FRAMES:
            logger.warning("Insufficient frames for liveness check")
            return LivenessReport(
                is_live=False,
                frames_sampled=len(samples),
                message="Insufficient frames for liveness check",
                error=ErrorCode.NO_FACE_DETECTED
            )

        xs = np.array([s.center_x for s in samples], dtype=np.float64)
        ys = np.array([s.center_y for s in samples], dtype=np.float64)
        movement_variance = float(np.var(xs) + np.var(ys))
        avg_expression_variance = float(np.mean([s.expression_variance for s in samples]))

        is_live = (
            movement_variance > self.config.movement_variance_threshold
            or avg_expression_variance > self.config.expression_variance_threshold
        )

        logger.info(
            f"Liveness check: movement_variance={movement_variance:.3f}, "
            f"expression_variance={avg_expression_variance:.5f}, is_live={is_live}"
        )

        return LivenessReport(
            is_live=is_live,
            movement_variance=movement_variance,
            expression_variance=avg_expression_variance,
            frames_sampled=len(samples),
            message="Liveness confirmed" if is_live else "No motion or expression change detected"
        )
