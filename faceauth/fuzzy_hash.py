"""
Fuzzy Hash Generator

A fuzzy hash is a string of '0'/'1' characters, one per descriptor
component. Each bit records whether the quantized component lies above
the descriptor's mean, so small perturbations flip only a few bits.
"""
import numpy as np


def create_fuzzy_hash(quantized_descriptor) -> str:
    """
    Threshold each component against the mean of all components.

    Raises:
        ValueError: If the descriptor is empty
    """
    vector = np.asarray(quantized_descriptor, dtype=np.float64)
    if vector.size == 0:
        raise ValueError("Cannot hash an empty descriptor")

    mean = vector.mean()
    return "".join("1" if value > mean else "0" for value in vector)


def is_valid_hash(fuzzy_hash) -> bool:
    """Non-empty string made only of '0' and '1'."""
    return (
        isinstance(fuzzy_hash, str)
        and len(fuzzy_hash) > 0
        and set(fuzzy_hash) <= {"0", "1"}
    )


def hamming_distance(hash_a: str, hash_b: str) -> int:
    """Count positions where two equal-length hashes differ."""
    if len(hash_a) != len(hash_b):
        raise ValueError(
            f"Hash lengths differ: {len(hash_a)} != {len(hash_b)}"
        )
    return sum(1 for a, b in zip(hash_a, hash_b) if a != b)
