"""Rolling assessment of GPS signal quality from reported accuracy."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Optional, Tuple

from ..settings import GPSQualityConfig


class GPSQuality(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    VERY_POOR = "Very Poor"

    @property
    def score(self) -> int:
        return _SCORES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, GPSQuality):
            return NotImplemented
        return self.score < other.score


_SCORES = {
    GPSQuality.EXCELLENT: 5,
    GPSQuality.GOOD: 4,
    GPSQuality.FAIR: 3,
    GPSQuality.POOR: 2,
    GPSQuality.VERY_POOR: 1,
}

_DESCRIPTIONS = {
    GPSQuality.EXCELLENT: "GPS signal is excellent",
    GPSQuality.GOOD: "GPS signal is good",
    GPSQuality.FAIR: "GPS signal is fair - tracking may be less accurate",
    GPSQuality.POOR: "GPS signal is poor - move to an open area for better tracking",
    GPSQuality.VERY_POOR: "GPS signal is very poor - tracking may be unreliable",
}


class QualityMonitor:
    """Keeps a bounded window of horizontal accuracies and grades their mean."""

    def __init__(
        self,
        config: GPSQualityConfig | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or GPSQualityConfig()
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._recent: Deque[float] = deque(maxlen=self.config.sample_window)
        self._quality = GPSQuality.GOOD

    @property
    def quality(self) -> GPSQuality:
        return self._quality

    def update(self, horizontal_accuracy: float) -> GPSQuality:
        self._recent.append(horizontal_accuracy)
        average = sum(self._recent) / len(self._recent)
        new_quality = self._quality_for_accuracy(average)
        if new_quality != self._quality:
            self._log.info(
                "GPS quality changed from=%s to=%s avg_accuracy_m=%.1f",
                self._quality.value,
                new_quality.value,
                average,
            )
            self._quality = new_quality
        return self._quality

    def should_warn_user(self) -> bool:
        if not self.config.warns_user:
            return False
        return self._quality.score <= GPSQuality.POOR.score

    def description(self) -> str:
        return self._quality.description

    def average_accuracy(self) -> float | None:
        if not self._recent:
            return None
        return sum(self._recent) / len(self._recent)

    def statistics(self) -> Tuple[GPSQuality, float | None, int]:
        return self._quality, self.average_accuracy(), len(self._recent)

    def reset(self) -> None:
        self._recent.clear()
        self._quality = GPSQuality.GOOD

    def _quality_for_accuracy(self, accuracy: float) -> GPSQuality:
        cfg = self.config
        if accuracy < cfg.excellent_threshold:
            return GPSQuality.EXCELLENT
        if accuracy < cfg.good_threshold:
            return GPSQuality.GOOD
        if accuracy < cfg.fair_threshold:
            return GPSQuality.FAIR
        if accuracy < cfg.poor_threshold:
            return GPSQuality.POOR
        return GPSQuality.VERY_POOR


__all__ = ["GPSQuality", "QualityMonitor"]
