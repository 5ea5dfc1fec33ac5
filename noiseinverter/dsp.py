"""Signal-processing building blocks: a small IIR filter and a circular delay line."""

from __future__ import annotations

import math
from enum import IntEnum


class FilterType(IntEnum):
    """Shape of the filter applied before inversion."""

    BANDPASS = 0
    LOWPASS = 1
    HIGHPASS = 2


class IIRFilter:
    """Second-order IIR filter in transposed direct form II.

    The band-pass shape uses fixed coefficients; the low-pass shape is a
    one-pole filter at ``high_freq`` and the high-pass shape a one-pole
    filter at ``low_freq``.
    """

    def __init__(
        self,
        filter_type: FilterType,
        low_freq: float,
        high_freq: float,
        sample_rate: float,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError(f"sample rate must be positive, got {sample_rate}")
        self.sample_rate = float(sample_rate)
        self.filter_type = FilterType.BANDPASS
        self.low_freq = 0.0
        self.high_freq = 0.0
        self.b: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.a: tuple[float, float, float] = (1.0, 0.0, 0.0)
        self._state = [0.0, 0.0]
        self.configure(filter_type, low_freq, high_freq)

    def configure(
        self, filter_type: FilterType, low_freq: float, high_freq: float
    ) -> None:
        """Recompute the coefficients for a new shape and clear the filter state."""
        self.filter_type = FilterType(filter_type)
        self.low_freq = float(low_freq)
        self.high_freq = float(high_freq)

        omega_low = 2.0 * math.pi * self.low_freq / self.sample_rate
        omega_high = 2.0 * math.pi * self.high_freq / self.sample_rate

        if self.filter_type is FilterType.BANDPASS:
            self.b = (0.25, 0.0, -0.25)
            self.a = (1.0, -1.5, 0.5)
        elif self.filter_type is FilterType.LOWPASS:
            alpha = math.exp(-omega_high)
            self.b = (1.0 - alpha, 0.0, 0.0)
            self.a = (1.0, -alpha, 0.0)
        else:
            alpha = math.exp(-omega_low)
            half = (1.0 + alpha) / 2.0
            self.b = (half, -half, 0.0)
            self.a = (1.0, -alpha, 0.0)

        self.reset()

    def reset(self) -> None:
        """Clear the internal state without touching the coefficients."""
        self._state = [0.0, 0.0]

    def process(self, sample: float) -> float:
        """Filter one sample and return the result."""
        b0, b1, b2 = self.b
        _, a1, a2 = self.a
        z0, z1 = self._state
        output = b0 * sample + z0
        self._state = [
            b1 * sample - a1 * output + z1,
            b2 * sample - a2 * output,
        ]
        return output


class DelayLine:
    """Fixed-size circular buffer that returns samples written earlier."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"delay line size must be positive, got {size}")
        self.size = int(size)
        self._buffer = [0.0] * self.size
        self._pos = 0

    def __len__(self) -> int:
        return self.size

    def push(self, value: float, delay_samples: int) -> float:
        """Store ``value`` and return the sample written ``delay_samples`` pushes ago.

        A delay of zero returns ``value`` itself; delays wrap around the
        buffer size.
        """
        self._buffer[self._pos] = value
        read_pos = (self._pos + self.size - int(delay_samples)) % self.size
        delayed = self._buffer[read_pos]
        self._pos = (self._pos + 1) % self.size
        return delayed