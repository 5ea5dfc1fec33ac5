"""Real-time noise inversion: filter, invert, delay and mix the input signal."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from .audio import OUTPUT_ID_OFFSET, AudioBackend, AudioDevice, AudioError, list_devices
from .dsp import DelayLine, FilterType, IIRFilter

logger = logging.getLogger(__name__)

CALIBRATED_GAIN = 0.92
MIN_CALIBRATED_DELAY_MS = 1.0
MAX_DELAY_SECONDS = 0.050
MONITOR_INTERVAL_SECONDS = 1.0


class NoiseInverter:
    """Adds a filtered, inverted and delayed copy of the input to itself.

    Blocks of mono input are handed to :meth:`process_block` by the audio
    backend; the returned mono block is played on both output channels.
    """

    sample_rate: int = 48000
    buffer_frames: int = 128
    viz_buffer_size: int = 1024

    def __init__(self, backend: AudioBackend) -> None:
        self.backend = backend
        self.delay_ms = 5.0
        self.gain = 1.0
        self.low_freq = 100.0
        self.high_freq = 1000.0
        self.update_callback: Callable[[], None] | None = None

        self._running = False
        self._latency_ms = 0.0
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._monitor: threading.Thread | None = None

        self._delay = DelayLine(int(self.sample_rate * MAX_DELAY_SECONDS))
        self._filter = IIRFilter(
            FilterType.BANDPASS, self.low_freq, self.high_freq, self.sample_rate
        )
        self._viz_input = [0.0] * self.viz_buffer_size
        self._viz_output = [0.0] * self.viz_buffer_size

        logger.info("NoiseInverter ready")
        logger.info("Sample rate: %d Hz", self.sample_rate)
        logger.info("Buffer size: %d frames", self.buffer_frames)

    @property
    def running(self) -> bool:
        """Whether a stream is currently being processed."""
        return self._running

    @property
    def latency(self) -> float:
        """Estimated round-trip latency in milliseconds."""
        return self._latency_ms

    @property
    def filter_type(self) -> FilterType:
        """The filter shape currently in use."""
        return self._filter.filter_type

    @property
    def filter(self) -> IIRFilter:
        """The filter applied before inversion."""
        return self._filter

    def __enter__(self) -> NoiseInverter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def list_devices(self) -> list[AudioDevice]:
        """Return the input and output sides of every device the backend knows."""
        return list_devices(self.backend)

    def start(self, input_device: int, output_device: int) -> None:
        """Open a full-duplex stream and begin processing.

        Device ids at or above the output offset are mapped back to their
        device index. Does nothing if processing is already running.
        Raises :class:`AudioError` if the stream cannot be opened.
        """
        if self._running:
            return
        if input_device >= OUTPUT_ID_OFFSET:
            input_device -= OUTPUT_ID_OFFSET
        if output_device >= OUTPUT_ID_OFFSET:
            output_device -= OUTPUT_ID_OFFSET

        logger.info("Opening audio stream: input %d, output %d", input_device, output_device)
        try:
            frames = self.backend.open(
                input_device,
                output_device,
                self.sample_rate,
                self.buffer_frames,
                self.process_block,
            )
        except AudioError:
            raise
        except Exception as exc:
            raise AudioError(f"cannot start audio stream: {exc}") from exc

        self.buffer_frames = int(frames)
        self._latency_ms = self.buffer_frames * 1000.0 / self.sample_rate * 2.0
        logger.info("Audio stream started, buffer %d frames", self.buffer_frames)
        logger.info("Estimated latency: %g ms", self._latency_ms)

        self._running = True
        self._stop_event.clear()
        self._monitor = threading.Thread(
            target=self._monitor_loop, name="noiseinverter-monitor", daemon=True
        )
        self._monitor.start()

    def stop(self) -> None:
        """Stop processing and close the stream; errors while closing are logged."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        try:
            self.backend.close()
            logger.info("Audio stream stopped")
        except AudioError as exc:
            logger.error("Error while stopping: %s", exc)

    def set_parameters(
        self,
        delay_ms: float | None = None,
        gain: float | None = None,
        low_freq: float | None = None,
        high_freq: float | None = None,
        filter_type: FilterType | None = None,
    ) -> None:
        """Update processing parameters.

        ``None`` or a negative value leaves a parameter unchanged. The filter
        is recomputed whenever a frequency or the filter type changes.
        """
        needs_update = False
        if delay_ms is not None and delay_ms >= 0:
            self.delay_ms = float(delay_ms)
        if gain is not None and gain >= 0:
            self.gain = float(gain)
        if low_freq is not None and low_freq >= 0:
            self.low_freq = float(low_freq)
            needs_update = True
        if high_freq is not None and high_freq >= 0:
            self.high_freq = float(high_freq)
            needs_update = True

        new_type = self._filter.filter_type
        if filter_type is not None and FilterType(filter_type) != new_type:
            new_type = FilterType(filter_type)
            needs_update = True

        if needs_update:
            with self._lock:
                self._filter.configure(new_type, self.low_freq, self.high_freq)

    def calibrate(self) -> tuple[float, float]:
        """Derive delay and gain from the measured latency; return ``(delay_ms, gain)``.

        When not running, the current values are returned unchanged.
        """
        if not self._running:
            return self.delay_ms, self.gain
        logger.info("Calibrating...")
        self.delay_ms = max(MIN_CALIBRATED_DELAY_MS, self._latency_ms * 0.5)
        self.gain = CALIBRATED_GAIN
        logger.info("Calibration done: delay = %g ms, gain = %g", self.delay_ms, self.gain)
        return self.delay_ms, self.gain

    def visualization_data(self) -> tuple[list[float], list[float]]:
        """Return copies of the most recent input and output samples."""
        with self._lock:
            return list(self._viz_input), list(self._viz_output)

    def process_block(self, samples: Sequence[float]) -> list[float]:
        """Process one block of mono input and return the mono output block."""
        delay_samples = int(self.delay_ms * self.sample_rate / 1000.0)
        gain = self.gain
        output: list[float] = []

        with self._lock:
            for index, sample in enumerate(samples):
                value = float(sample)
                inverted = -self._filter.process(value) * gain
                delayed = self._delay.push(inverted, delay_samples)
                mixed = max(-1.0, min(1.0, value + delayed))
                output.append(mixed)
                if index % 2 == 0:
                    pos = (index // 2) % self.viz_buffer_size
                    self._viz_input[pos] = value
                    self._viz_output[pos] = mixed

        if self.update_callback is not None:
            self.update_callback()
        return output

    def _monitor_loop(self) -> None:
        while not self._stop_event.wait(MONITOR_INTERVAL_SECONDS):
            if not self._running:
                break
            logger.info("Latency: %g ms", self._latency_ms)