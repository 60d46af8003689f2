"""Chooses the positioning tier to request from speed and battery state."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..models import AccuracyTier
from ..settings import AdaptiveAccuracyConfig


class AccuracySelector:
    """Maps speed bands to accuracy tiers and rate-limits tier changes."""

    def __init__(
        self,
        config: AdaptiveAccuracyConfig | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or AdaptiveAccuracyConfig()
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._current = AccuracyTier.BEST
        self._last_change: datetime | None = None

    @property
    def current_accuracy(self) -> AccuracyTier:
        return self._current

    def determine_accuracy(
        self,
        speed: float,
        battery_level: float | None = None,
        is_charging: bool | None = None,
    ) -> AccuracyTier:
        """Return the tier for ``speed``, stepped down once on low battery."""

        tier = self._accuracy_for_speed(speed)
        if self.config.reduces_accuracy_on_low_battery:
            tier = self._apply_battery_optimization(tier, battery_level, is_charging)
        return tier

    def should_update(
        self, new_tier: AccuracyTier, now: datetime, force: bool = False
    ) -> bool:
        if force:
            return True
        if new_tier == self._current:
            return False
        if self._last_change is not None:
            elapsed = (now - self._last_change).total_seconds()
            if elapsed < self.config.min_update_interval_s:
                return False
        return True

    def record_update(self, tier: AccuracyTier, now: datetime) -> None:
        previous = self._current
        self._current = tier
        self._last_change = now
        if previous != tier:
            self._log.info(
                "Accuracy changed from=%s to=%s", previous.value, tier.value
            )

    def speed_category(self, speed: float) -> str:
        if speed < self.config.stationary_threshold:
            return "Stationary"
        if speed < self.config.walking_threshold:
            return "Walking"
        if speed < self.config.moving_threshold:
            return "Moving"
        return "Fast"

    def reset(self) -> None:
        self._current = AccuracyTier.BEST
        self._last_change = None

    def _accuracy_for_speed(self, speed: float) -> AccuracyTier:
        cfg = self.config
        if speed < cfg.stationary_threshold:
            return cfg.stationary_accuracy
        if speed < cfg.walking_threshold:
            return cfg.walking_accuracy
        if speed < cfg.moving_threshold:
            return cfg.moving_accuracy
        return cfg.fast_accuracy

    def _apply_battery_optimization(
        self,
        tier: AccuracyTier,
        battery_level: float | None,
        is_charging: bool | None,
    ) -> AccuracyTier:
        if is_charging or battery_level is None:
            return tier
        if battery_level > self.config.battery_threshold:
            return tier
        reduced = tier.step_down()
        self._log.warning(
            "Reducing accuracy due to low battery battery=%d%% original=%s reduced=%s",
            int(battery_level * 100),
            tier.value,
            reduced.value,
        )
        return reduced


__all__ = ["AccuracySelector"]
