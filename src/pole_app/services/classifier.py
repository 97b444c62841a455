"""Pole condition classification.

Only a placeholder exists today: ``RandomPoleClassifier`` picks a status at
random with a zero-width confidence interval. It sits behind ``classify`` so a
trained model can replace it without touching the capture flow.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from shared.enums import PoleStatus, status_flags


@dataclass(frozen=True)
class Classification:
    status: PoleStatus
    lower_confidence: float = 0.0
    upper_confidence: float = 0.0

    @property
    def type_flags(self):
        return status_flags(self.status)


class PoleClassifier(Protocol):
    def classify(self, image_path: Optional[str]) -> Classification:
        ...


class RandomPoleClassifier:
    """PLACEHOLDER classifier: uniformly random status, confidence always 0..0."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self.logger = logging.getLogger(self.__class__.__name__)

    def classify(self, image_path=None):
        status = self.rng.choice(list(PoleStatus))
        self.logger.info(f"Placeholder classification for {image_path}: {status.value} (random)")
        return Classification(status=status)


class FixedPoleClassifier:
    """Always reports the same status. Used for manual entry and tests."""

    def __init__(self, status):
        self.status = PoleStatus(status)

    def classify(self, image_path=None):
        return Classification(status=self.status)
