"""Demo trust score counter."""

import logging
from typing import Set

logger = logging.getLogger(__name__)


class TrustScoreTracker:
    """
    Process-wide trust score, bumped once per newly verified transaction.

    Lives from app startup to shutdown and is never persisted.
    """

    def __init__(self, seed: int = 84):
        self.score = seed
        self._verified: Set[str] = set()

    def record_verified(self, tx_hash: str) -> int:
        """Count ``tx_hash`` once and return the current score."""
        key = tx_hash.strip().lower()
        if key not in self._verified:
            self._verified.add(key)
            self.score += 1
            logger.info(f"Trust score raised to {self.score} by tx {key}")
        return self.score
