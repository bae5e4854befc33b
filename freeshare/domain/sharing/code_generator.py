"""
Share Code Generator

Draws candidate share codes. Uniqueness against live records is the
caller's concern.
"""

import random
import secrets
from typing import Optional


class CodeGenerator:
    """Produces 5-digit numeric share codes uniformly from [10000, 99999]."""

    MIN_CODE = 10000
    MAX_CODE = 99999

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source; defaults to the OS CSPRNG
        """
        self._rng = rng or secrets.SystemRandom()

    def generate(self) -> str:
        return str(self._rng.randint(self.MIN_CODE, self.MAX_CODE))
