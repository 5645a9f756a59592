"""
Descriptor Processor

Turns raw face descriptors into repeatable, quantized vectors:
- Component-wise averaging of enrollment samples
- L2 normalization
- Quantization into evenly spaced bins on [-1, 1]
"""
import numpy as np
from typing import Sequence
import logging

from faceauth.config import FaceAuthConfig
from faceauth.fuzzy_hash import create_fuzzy_hash

logger = logging.getLogger(__name__)

QUANTIZATION_MIN = -1.0
QUANTIZATION_MAX = 1.0


def normalize(descriptor) -> np.ndarray:
    """
    Rescale a descriptor to unit L2 norm.

    A zero vector is returned as a zero vector (the norm is replaced
    by 1 instead of dividing by zero).
    """
    vector = np.asarray(descriptor, dtype=np.float64)
    norm = np.linalg.norm(vector)
    return vector / (norm if norm > 0 else 1.0)


def quantize(descriptor, levels: int = 32) -> np.ndarray:
    """
    Snap every component to one of ``levels`` evenly spaced values on [-1, 1].

    Small capture-to-capture differences collapse into the same bin, which
    keeps the downstream hash bits stable.

    Args:
        descriptor: Normalized descriptor
        levels: Number of bins (>= 1)

    Returns:
        Quantized descriptor

    Raises:
        ValueError: If levels is not positive
    """
    if levels < 1:
        raise ValueError(f"Quantization levels must be positive, got {levels}")

    vector = np.asarray(descriptor, dtype=np.float64)
    span = QUANTIZATION_MAX - QUANTIZATION_MIN
    bin_size = span / levels

    bins = np.floor((vector - QUANTIZATION_MIN) / bin_size)
    bins = np.clip(bins, 0, levels - 1)

    # A single level maps everything onto the lower bound
    return QUANTIZATION_MIN + bins / max(levels - 1, 1) * span


def average_descriptors(descriptors: Sequence) -> np.ndarray:
    """
    Component-wise arithmetic mean of several descriptors.

    Raises:
        ValueError: If no descriptors are given or their lengths differ
    """
    if not descriptors:
        raise ValueError("Cannot average an empty list of descriptors")

    lengths = {len(d) for d in descriptors}
    if len(lengths) != 1:
        raise ValueError(f"Descriptors have mismatched lengths: {sorted(lengths)}")

    return np.mean(np.asarray(descriptors, dtype=np.float64), axis=0)


class DescriptorProcessor:
    """Applies normalize -> quantize -> hash with one instance's settings."""

    def __init__(self, config: FaceAuthConfig = None):
        self.config = config or FaceAuthConfig()

    def process(self, descriptor) -> np.ndarray:
        """Normalize and quantize a raw descriptor."""
        return quantize(normalize(descriptor), self.config.quantization_levels)

    def fuzzy_hash(self, descriptor) -> str:
        """Full pipeline: raw descriptor -> fuzzy hash."""
        fuzzy_hash = create_fuzzy_hash(self.process(descriptor))
        logger.debug(f"Generated {len(fuzzy_hash)}-bit fuzzy hash")
        return fuzzy_hash
