"""Hybrid speed derivation: device-reported versus computed from displacement."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..geo import horizontal_distance_m
from ..models import CleanedReading, SpeedSource
from ..settings import HybridSpeedConfig
from ..utils import mps_to_kmh


def computed_speed(previous: CleanedReading, current: CleanedReading) -> float:
    """Horizontal displacement divided by elapsed time (0 when time does not advance)."""

    elapsed = (current.timestamp - previous.timestamp).total_seconds()
    if elapsed <= 0:
        return 0.0
    return max(0.0, horizontal_distance_m(previous, current) / elapsed)


class SpeedFuser:
    """Decides per reading pair whether the device speed can be trusted.

    The decision only depends on the two readings and the immutable config;
    usage counters are kept purely for diagnostics.
    """

    def __init__(
        self,
        config: HybridSpeedConfig | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or HybridSpeedConfig()
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._last_source: SpeedSource | None = None
        self._device_count = 0
        self._computed_count = 0

    def calculate_speed(
        self, current: CleanedReading, previous: CleanedReading
    ) -> Tuple[float, SpeedSource]:
        calculated = computed_speed(previous, current)
        if not self.config.enabled:
            self._computed_count += 1
            return calculated, SpeedSource.COMPUTED

        device = current.device_speed
        if self.should_use_device_speed(device, calculated, current.horizontal_accuracy):
            speed = max(0.0, device)
            source = SpeedSource.DEVICE
            self._device_count += 1
        else:
            speed = calculated
            source = SpeedSource.COMPUTED
            self._computed_count += 1

        if self._last_source is not None and source != self._last_source:
            self._log.debug(
                "Switched to %s speed device_kmh=%.1f computed_kmh=%.1f accuracy_m=%.1f",
                source.value,
                mps_to_kmh(device),
                mps_to_kmh(calculated),
                current.horizontal_accuracy,
            )
        self._last_source = source
        return speed, source

    def should_use_device_speed(
        self, device_speed: float, computed: float, horizontal_accuracy: float
    ) -> bool:
        cfg = self.config
        if device_speed < 0:
            return False
        if not 0 <= horizontal_accuracy < cfg.device_speed_max_accuracy:
            return False
        # Computed speed degrades with sampling jitter at high speed.
        if computed > cfg.trust_device_speed_above:
            return True
        if computed >= cfg.device_speed_minimum:
            average = (device_speed + computed) / 2.0
            difference = abs(device_speed - computed)
            relative = difference / average if average > 0 else 0.0
            return relative < cfg.agreement_tolerance
        return False

    def usage_statistics(self) -> Tuple[int, int, float]:
        """Return (device count, computed count, device share in percent)."""

        total = self._device_count + self._computed_count
        share = self._device_count / total * 100.0 if total else 0.0
        return self._device_count, self._computed_count, share

    def reset_statistics(self) -> None:
        self._device_count = 0
        self._computed_count = 0
        self._last_source = None


__all__ = ["SpeedFuser", "computed_speed"]
