from __future__ import annotations

from abc import ABC, abstractmethod

from ..core.constants import ELIGIBILITY_THRESHOLD
from ..core.enums import Eligibility


class EligibilityPolicy(ABC):
    """Strategy Pattern: decide exam eligibility from an attendance percentage."""

    @abstractmethod
    def classify(self, percentage: float) -> Eligibility:
        raise NotImplementedError

    def is_detained(self, percentage: float) -> bool:
        return self.classify(percentage) == Eligibility.DETAINED


class ThresholdEligibilityPolicy(EligibilityPolicy):
    """Detained strictly below the threshold; the threshold itself is allowed."""

    def __init__(self, threshold: float = ELIGIBILITY_THRESHOLD):
        self._threshold = float(threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    def classify(self, percentage: float) -> Eligibility:
        if float(percentage) < self._threshold:
            return Eligibility.DETAINED
        return Eligibility.ALLOWED
