"""Scalar recursive estimators used to smooth latitude, longitude and altitude.

Each axis gets its own instance; no cross-axis covariance is modelled.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..settings import AdaptiveNoiseConfig

DEFAULT_PROCESS_NOISE = 0.125
DEFAULT_MEASUREMENT_NOISE = 1.0
_INITIAL_COVARIANCE = 1.0


@dataclass(slots=True)
class NoiseFilterState:
    estimate: float = 0.0
    covariance: float = _INITIAL_COVARIANCE
    process_noise: float = DEFAULT_PROCESS_NOISE
    measurement_noise: float = DEFAULT_MEASUREMENT_NOISE
    gain: float = 0.0
    initialized: bool = False


class NoiseFilter:
    """One-dimensional Kalman-style low-pass estimator."""

    def __init__(
        self,
        process_noise: float = DEFAULT_PROCESS_NOISE,
        measurement_noise: float = DEFAULT_MEASUREMENT_NOISE,
    ) -> None:
        if process_noise <= 0 or measurement_noise <= 0:
            raise ValueError("noise values must be > 0")
        self.state = NoiseFilterState(
            process_noise=process_noise, measurement_noise=measurement_noise
        )

    @property
    def initialized(self) -> bool:
        return self.state.initialized

    @property
    def estimate(self) -> float:
        return self.state.estimate

    def filter(self, measurement: float) -> float:
        """Blend ``measurement`` into the estimate and return the new estimate."""

        state = self.state
        if not state.initialized:
            state.estimate = measurement
            state.covariance = _INITIAL_COVARIANCE
            state.initialized = True
            return measurement

        # Prediction: inflate uncertainty by the process noise.
        state.covariance += state.process_noise
        # Measurement update.
        state.gain = state.covariance / (state.covariance + state.measurement_noise)
        state.estimate += state.gain * (measurement - state.estimate)
        state.covariance *= 1.0 - state.gain
        return state.estimate

    def reset(self) -> None:
        """Re-anchor on the next measurement instead of blending against stale state."""

        self.state.initialized = False


class AdaptiveNoiseFilter(NoiseFilter):
    """Noise filter whose noise levels follow speed and reported accuracy."""

    def __init__(self, config: AdaptiveNoiseConfig | None = None) -> None:
        self.config = config or AdaptiveNoiseConfig()
        super().__init__(
            process_noise=self.config.base_process_noise,
            measurement_noise=self.config.base_measurement_noise,
        )

    def filter_adaptive(self, measurement: float, *, accuracy: float, speed: float) -> float:
        if not self.config.enabled:
            return self.filter(measurement)

        state = self.state
        stored_q = state.process_noise
        stored_r = state.measurement_noise
        state.process_noise = self.process_noise_for(speed=speed, accuracy=accuracy)
        state.measurement_noise = self.measurement_noise_for(accuracy=accuracy)
        try:
            return self.filter(measurement)
        finally:
            state.process_noise = stored_q
            state.measurement_noise = stored_r

    def process_noise_for(self, *, speed: float, accuracy: float) -> float:
        base = self.config.base_process_noise
        noise = base
        # Position changes faster at speed.
        if speed > 0:
            noise += speed * self.config.speed_noise_factor
        # Poor accuracy makes changes less certain; capped at 50 m accuracy.
        if accuracy > 10.0:
            accuracy_factor = min((accuracy - 10.0) / 40.0, 1.0)
            noise += accuracy_factor * base * self.config.accuracy_noise_factor
        return noise

    def measurement_noise_for(self, *, accuracy: float) -> float:
        base = self.config.base_measurement_noise
        noise = base
        if accuracy > 5.0:
            noise += (accuracy / 50.0) * base * self.config.accuracy_noise_factor
        return noise

    def reset(self) -> None:
        super().reset()
        self.state.process_noise = self.config.base_process_noise
        self.state.measurement_noise = self.config.base_measurement_noise


__all__ = ["AdaptiveNoiseFilter", "NoiseFilter", "NoiseFilterState"]
