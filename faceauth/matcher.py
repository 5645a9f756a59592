"""
Hash Matcher

Compares two fuzzy hashes by Hamming distance against a fixed bit threshold.
"""
import logging

from faceauth.config import FaceAuthConfig
from faceauth.errors import ErrorCode
from faceauth.fuzzy_hash import hamming_distance, is_valid_hash
from faceauth.schemas import MatchResult

logger = logging.getLogger(__name__)


class HashMatcher:
    """
    Identity decision on fuzzy hashes.

    Malformed input never raises; it yields ``success=False`` so callers
    can tell "could not compare" apart from "no match".
    """

    def __init__(self, config: FaceAuthConfig = None):
        self.config = config or FaceAuthConfig()

    @property
    def max_hamming_distance(self) -> int:
        return self.config.max_hamming_distance

    def verify(self, hash_a, hash_b) -> MatchResult:
        """
        Compare two fuzzy hashes.

        Args:
            hash_a: First fuzzy hash
            hash_b: Second fuzzy hash

        Returns:
            MatchResult with the decision and the raw distance
        """
        if not is_valid_hash(hash_a) or not is_valid_hash(hash_b):
            return MatchResult(
                success=False,
                message="Invalid fuzzy hashes provided for comparison",
                error=ErrorCode.INVALID_HASH_INPUT
            )

        if len(hash_a) != len(hash_b):
            return MatchResult(
                success=False,
                message=f"Fuzzy hash lengths differ ({len(hash_a)} != {len(hash_b)})",
                error=ErrorCode.INVALID_HASH_INPUT
            )

        distance = hamming_distance(hash_a, hash_b)
        is_match = distance <= self.max_hamming_distance

        logger.info(
            f"Hash comparison: distance={distance}/{len(hash_a)} "
            f"(threshold {self.max_hamming_distance}), match={is_match}"
        )

        return MatchResult(
            success=True,
            is_match=is_match,
            hamming_distance=distance,
            message="Face scan verified successfully" if is_match else "Face scan does not match"
        )
