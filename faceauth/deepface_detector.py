"""
DeepFace-backed face detector

Production implementation of the ``FaceDetector`` protocol:
- Face detection and alignment (RetinaFace by default)
- 128-d descriptors using Facenet
- Expression probabilities from DeepFace's emotion model
"""
import numpy as np
from typing import Dict, List, Optional
import logging

from deepface import DeepFace

from faceauth.config import FACE_RECOGNITION_MODEL, FACE_DETECTOR_BACKEND
from faceauth.detector import BoundingBox, Detection
from faceauth.errors import DetectionError, NotInitializedError

logger = logging.getLogger(__name__)


class DeepFaceDetector:
    """
    Face detector built on DeepFace.

    Expects BGR frames (OpenCV channel order), as produced by
    ``cv2.VideoCapture`` and ``faceauth.imaging.preprocess_image``.
    """

    def __init__(
        self,
        model_name: str = FACE_RECOGNITION_MODEL,
        detector_backend: str = FACE_DETECTOR_BACKEND,
        analyze_expressions: bool = True
    ):
        self.model_name = model_name
        self.detector_backend = detector_backend
        self.analyze_expressions = analyze_expressions
        self._model_loaded = False

    @property
    def is_initialized(self) -> bool:
        return self._model_loaded

    def initialize(self) -> bool:
        """Warm up the models by running a dummy inference."""
        if self._model_loaded:
            return True

        logger.info(f"Loading {self.model_name} model...")
        dummy_img = np.zeros((160, 160, 3), dtype=np.uint8)
        try:
            DeepFace.represent(
                img_path=dummy_img,
                model_name=self.model_name,
                detector_backend="skip",
                enforce_detection=False
            )
            if self.analyze_expressions:
                DeepFace.analyze(
                    img_path=dummy_img,
                    actions=["emotion"],
                    detector_backend="skip",
                    enforce_detection=False,
                    silent=True
                )
        except Exception as e:
            logger.error(f"Error loading DeepFace models: {e}")
            return False

        self._model_loaded = True
        logger.info(f"{self.model_name} model loaded successfully")
        return True

    def _expressions(self, image: np.ndarray, box: Optional[BoundingBox]) -> Dict[str, float]:
        """Emotion probabilities (0-1) for the face inside ``box``."""
        if box is None:
            return {}

        height, width = image.shape[:2]
        x0, y0 = max(int(box.x), 0), max(int(box.y), 0)
        x1 = min(int(box.x + box.width), width)
        y1 = min(int(box.y + box.height), height)
        if x1 <= x0 or y1 <= y0:
            return {}

        # The crop is already a single face, so detection is skipped
        analyses = DeepFace.analyze(
            img_path=image[y0:y1, x0:x1],
            actions=["emotion"],
            detector_backend="skip",
            enforce_detection=False,
            silent=True
        )
        if isinstance(analyses, list):
            analyses = analyses[0] if analyses else {}

        # DeepFace reports emotions as percentages
        return {
            label: float(score) / 100.0
            for label, score in analyses.get("emotion", {}).items()
        }

    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Detect faces and extract descriptors.

        Returns:
            Detections, empty when no face is found

        Raises:
            NotInitializedError: If initialize() has not succeeded
            DetectionError: If DeepFace fails
        """
        if not self._model_loaded:
            raise NotInitializedError("Models not loaded. Call initialize() first")

        try:
            representations = DeepFace.represent(
                img_path=image,
                model_name=self.model_name,
                detector_backend=self.detector_backend,
                enforce_detection=False,
                align=True
            )

            detections = []
            for representation in representations or []:
                # With enforce_detection=False DeepFace falls back to the whole
                # frame and reports a zero confidence
                confidence = float(representation.get("face_confidence") or 0.0)
                if confidence <= 0:
                    continue

                embedding = representation.get("embedding")
                if embedding is None:
                    continue

                box = self._bounding_box(representation.get("facial_area"))
                detections.append(Detection(
                    confidence=confidence,
                    descriptor=np.array(embedding, dtype=np.float64),
                    bounding_box=box,
                    expression_scores=self._expressions(image, box) if self.analyze_expressions else {}
                ))
        except Exception as e:
            logger.error(f"Error in DeepFace detection: {e}")
            raise DetectionError(f"Face detection failed: {e}") from e

        if not detections:
            logger.warning("No faces detected in the image")

        return detections

    @staticmethod
    def _bounding_box(area: Optional[dict]) -> Optional[BoundingBox]:
        if not area:
            return None
        return BoundingBox(
            x=float(area.get("x", 0)),
            y=float(area.get("y", 0)),
            width=float(area.get("w", 0)),
            height=float(area.get("h", 0))
        )
