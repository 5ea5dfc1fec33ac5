"""Audio device discovery and a full-duplex stream backend built on SDL."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from array import array
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

OUTPUT_ID_OFFSET = 1000
"""Added to a device index to tell its output side from its input side."""

INPUT_CHANNELS = 1
OUTPUT_CHANNELS = 2
SDL_SAMPLE_RATES: tuple[int, ...] = (22050, 44100, 48000, 96000)

_FOCUSRITE_MARKERS = ("Focusrite", "Saffire")
_BYTES_PER_SAMPLE = 4

BlockCallback = Callable[[Sequence[float]], Sequence[float]]


class AudioError(RuntimeError):
    """Raised when an audio device cannot be found, opened or used."""


@dataclass(frozen=True)
class DeviceInfo:
    """What a backend reports about one physical device."""

    name: str
    input_channels: int = 0
    output_channels: int = 0
    is_default_input: bool = False
    is_default_output: bool = False
    sample_rates: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AudioDevice:
    """One selectable side (input or output) of a physical device."""

    id: int
    name: str
    is_input: bool
    is_output: bool
    is_default: bool
    max_channels: int
    sample_rates: tuple[int, ...]


class AudioBackend(ABC):
    """A source of device information and full-duplex streams.

    ``open`` starts a stream that feeds blocks of mono input samples to
    ``callback`` and plays the mono samples it returns on both output
    channels. It returns the number of frames per block in use.
    """

    @abstractmethod
    def device_infos(self) -> list[DeviceInfo]:
        """Return the devices in index order."""

    @abstractmethod
    def open(
        self,
        input_device: int,
        output_device: int,
        sample_rate: int,
        buffer_frames: int,
        callback: BlockCallback,
    ) -> int:
        """Open and start a stream; return the effective block size in frames."""

    @abstractmethod
    def close(self) -> None:
        """Stop and close the stream if one is open."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether a stream is currently open."""

    def __enter__(self) -> AudioBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def list_devices(backend: AudioBackend) -> list[AudioDevice]:
    """Split every device reported by ``backend`` into input and output entries.

    An input side keeps the device index as its id; an output side gets the
    index plus ``OUTPUT_ID_OFFSET``. Sides without channels are left out.
    """
    devices: list[AudioDevice] = []
    infos = backend.device_infos()
    logger.info("Audio devices available: %d", len(infos))

    for index, info in enumerate(infos):
        rates = tuple(info.sample_rates)
        if info.input_channels > 0:
            devices.append(
                AudioDevice(
                    id=index,
                    name=info.name,
                    is_input=True,
                    is_output=False,
                    is_default=info.is_default_input,
                    max_channels=info.input_channels,
                    sample_rates=rates,
                )
            )
            logger.info("Device %d: %s (input)", index, info.name)
        if info.output_channels > 0:
            devices.append(
                AudioDevice(
                    id=index + OUTPUT_ID_OFFSET,
                    name=info.name,
                    is_input=False,
                    is_output=True,
                    is_default=info.is_default_output,
                    max_channels=info.output_channels,
                    sample_rates=rates,
                )
            )
            logger.info("Device %d: %s (output)", index, info.name)

        logger.info(
            "  inputs: %d, outputs: %d", info.input_channels, info.output_channels
        )
        shown = " ".join(str(rate) for rate in rates[:5])
        logger.info("  sample rates: %s%s", shown, " ..." if len(rates) > 5 else "")
        if any(marker in info.name for marker in _FOCUSRITE_MARKERS):
            logger.info("  Focusrite device detected")

    return devices


def _load_sdl_audio() -> Any:
    try:
        import pygame
        import pygame._sdl2.audio as sdl_audio
    except ImportError as exc:
        raise AudioError(f"SDL audio is unavailable: {exc}") from exc
    try:
        if not pygame.mixer.get_init():
            pygame.mixer.init()
    except pygame.error as exc:
        raise AudioError(f"cannot initialise audio: {exc}") from exc
    return sdl_audio


class SdlAudioBackend(AudioBackend):
    """Full-duplex streaming through a pair of SDL capture and playback devices.

    SDL reports only device names, so every capture device is taken to offer
    one channel, every playback device two, and the first name in each list
    to be the default.
    """

    def __init__(self, audio_module: Any = None) -> None:
        self._sdl = audio_module
        self._capture: Any = None
        self._playback: Any = None
        self._pending: deque[float] = deque()

    def _module(self) -> Any:
        if self._sdl is None:
            self._sdl = _load_sdl_audio()
        return self._sdl

    @property
    def is_open(self) -> bool:
        return self._capture is not None or self._playback is not None

    def device_infos(self) -> list[DeviceInfo]:
        sdl = self._module()
        capture = list(sdl.get_audio_device_names(True))
        playback = list(sdl.get_audio_device_names(False))
        names = list(dict.fromkeys([*capture, *playback]))
        return [
            DeviceInfo(
                name=name,
                input_channels=INPUT_CHANNELS if name in capture else 0,
                output_channels=OUTPUT_CHANNELS if name in playback else 0,
                is_default_input=bool(capture) and name == capture[0],
                is_default_output=bool(playback) and name == playback[0],
                sample_rates=SDL_SAMPLE_RATES,
            )
            for name in names
        ]

    def open(
        self,
        input_device: int,
        output_device: int,
        sample_rate: int,
        buffer_frames: int,
        callback: BlockCallback,
    ) -> int:
        if self.is_open:
            raise AudioError("a stream is already open")
        if sample_rate <= 0:
            raise AudioError(f"invalid sample rate: {sample_rate}")
        if buffer_frames <= 0:
            raise AudioError(f"invalid buffer size: {buffer_frames}")

        infos = self.device_infos()
        input_info = self._resolve(infos, input_device, want_input=True)
        output_info = self._resolve(infos, output_device, want_input=False)

        sdl = self._module()
        self._pending = deque(maxlen=max(int(sample_rate), int(buffer_frames) * 4))

        def on_capture(_device: Any, data: Any) -> None:
            samples = array("f")
            samples.frombytes(bytes(data))
            self._pending.extend(samples)

        def on_playback(_device: Any, data: Any) -> None:
            view = memoryview(data).cast("B")
            frames = len(view) // (_BYTES_PER_SAMPLE * OUTPUT_CHANNELS)
            pending = self._pending
            block = [pending.popleft() if pending else 0.0 for _ in range(frames)]
            produced = list(callback(block))[:frames]
            produced.extend([0.0] * (frames - len(produced)))
            stereo = array("f", (s for sample in produced for s in (sample, sample)))
            payload = stereo.tobytes()
            view[:] = payload + bytes(len(view) - len(payload))

        try:
            self._capture = sdl.AudioDevice(
                devicename=input_info.name,
                iscapture=True,
                frequency=int(sample_rate),
                audioformat=sdl.AUDIO_F32,
                numchannels=INPUT_CHANNELS,
                chunksize=int(buffer_frames),
                allowed_changes=0,
                callback=on_capture,
            )
            self._playback = sdl.AudioDevice(
                devicename=output_info.name,
                iscapture=False,
                frequency=int(sample_rate),
                audioformat=sdl.AUDIO_F32,
                numchannels=OUTPUT_CHANNELS,
                chunksize=int(buffer_frames),
                allowed_changes=0,
                callback=on_playback,
            )
            self._capture.pause(0)
            self._playback.pause(0)
        except Exception as exc:
            self.close()
            raise AudioError(f"cannot open audio stream: {exc}") from exc
        return int(buffer_frames)

    @staticmethod
    def _resolve(infos: list[DeviceInfo], index: int, *, want_input: bool) -> DeviceInfo:
        side = "input" if want_input else "output"
        if not 0 <= index < len(infos):
            raise AudioError(f"no {side} device with index {index}")
        info = infos[index]
        channels = info.input_channels if want_input else info.output_channels
        if channels <= 0:
            raise AudioError(f"device {index} ({info.name}) has no {side} channels")
        return info

    def close(self) -> None:
        errors: list[str] = []
        for device in (self._capture, self._playback):
            if device is None:
                continue
            try:
                device.pause(1)
                device.close()
            except Exception as exc:  # keep closing the other side
                errors.append(str(exc))
        self._capture = None
        self._playback = None
        self._pending.clear()
        if errors:
            raise AudioError("error while closing stream: " + "; ".join(errors))