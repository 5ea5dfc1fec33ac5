"""Interactive text menu for driving a :class:`NoiseInverter`."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterator, Sequence
from typing import TextIO

from .audio import AudioDevice, AudioError, SdlAudioBackend
from .dsp import FilterType
from .inverter import NoiseInverter

HEADER = "=== NoiseInverter - noise cancellation system ==="
INITIALISING = "Initialising..."
MENU = (
    "\n=== NoiseInverter Menu ===\n"
    "1. List audio devices\n"
    "2. Start processing\n"
    "3. Calibrate\n"
    "4. Change parameters\n"
    "5. Stop\n"
    "0. Quit\n"
    "Your choice: "
)
INPUT_SECTION = "\n=== Input devices ==="
OUTPUT_SECTION = "\n=== Output devices ==="
DEFAULT_MARK = " (default)"
ALREADY_RUNNING = "Processing is already running."
STARTING = "Starting processing..."
START_OK = "Processing started."
START_FAILED = "Failed to start processing."
NOT_STARTED = "Please start processing first."
CALIBRATING = "Calibrating..."
PARAMS_UPDATED = "Parameters updated."
NOT_RUNNING = "Processing is not running."
STOPPING = "Stopping processing..."
STOPPED = "Processing stopped."
GOODBYE = "Goodbye!"
INVALID_CHOICE = "Invalid choice. Please try again."
INVALID_VALUE = "Invalid value."


class _Tokens:
    """Whitespace-separated tokens read lazily from a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._tokens = self._generate(stream)

    @staticmethod
    def _generate(stream: TextIO) -> Iterator[str]:
        for line in iter(stream.readline, ""):
            yield from line.split()

    def next(self) -> str:
        try:
            return next(self._tokens)
        except StopIteration:
            raise EOFError("end of input") from None

    def next_int(self) -> int:
        return int(self.next())

    def next_float(self) -> float:
        return float(self.next())


class _Menu:
    def __init__(self, inverter: NoiseInverter, stdin: TextIO, stdout: TextIO) -> None:
        self.inverter = inverter
        self.tokens = _Tokens(stdin)
        self.out = stdout
        self.input_device = -1
        self.output_device = -1

    def say(self, text: str = "") -> None:
        print(text, file=self.out)

    def prompt(self, text: str) -> None:
        print(text, end="", file=self.out)
        self.out.flush()

    def run(self) -> int:
        while True:
            self.prompt(MENU)
            try:
                token = self.tokens.next()
            except EOFError:
                self.quit()
                return 0
            try:
                choice = int(token)
            except ValueError:
                choice = None

            try:
                if choice == 0:
                    self.quit()
                    return 0
                action = {
                    1: self.show_devices,
                    2: self.start,
                    3: self.calibrate,
                    4: self.change_parameters,
                    5: self.stop,
                }.get(choice)
                if action is None:
                    self.say(INVALID_CHOICE)
                else:
                    action()
            except EOFError:
                self.quit()
                return 0
            except ValueError:
                self.say(INVALID_VALUE)

            if self.inverter.running:
                self.say(f"Latency: {self.inverter.latency:g} ms")

    def _print_side(self, devices: Sequence[AudioDevice], *, inputs: bool) -> None:
        self.say(INPUT_SECTION if inputs else OUTPUT_SECTION)
        for device in devices:
            if (device.is_input if inputs else device.is_output):
                mark = DEFAULT_MARK if device.is_default else ""
                self.say(f"{device.id}: {device.name}{mark}")

    def show_devices(self) -> None:
        devices = self.inverter.list_devices()
        self._print_side(devices, inputs=True)
        self._print_side(devices, inputs=False)

    def start(self) -> None:
        if self.inverter.running:
            self.say(ALREADY_RUNNING)
            return

        if self.input_device == -1 or self.output_device == -1:
            for device in self.inverter.list_devices():
                if device.is_input and device.is_default:
                    self.input_device = device.id
                if device.is_output and device.is_default:
                    self.output_device = device.id

            self.prompt(f"Input device (default={self.input_device}): ")
            chosen = self.tokens.next_int()
            if chosen > 0:
                self.input_device = chosen
            self.prompt(f"Output device (default={self.output_device}): ")
            chosen = self.tokens.next_int()
            if chosen > 0:
                self.output_device = chosen

        self.say(STARTING)
        try:
            self.inverter.start(self.input_device, self.output_device)
        except AudioError as exc:
            self.say(f"Error: {exc}")
            self.say(START_FAILED)
            return
        self.say(START_OK)

    def calibrate(self) -> None:
        if not self.inverter.running:
            self.say(NOT_STARTED)
            return
        self.say(CALIBRATING)
        delay, gain = self.inverter.calibrate()
        self.say(f"Calibration done: delay = {delay:g} ms, gain = {gain:g}")

    def change_parameters(self) -> None:
        if not self.inverter.running:
            self.say(NOT_STARTED)
            return

        self.prompt("New delay (ms, -1 to keep): ")
        delay = self.tokens.next_float()
        self.prompt("New gain (0-1, -1 to keep): ")
        gain = self.tokens.next_float()
        self.prompt("New low frequency (Hz, -1 to keep): ")
        low_freq = self.tokens.next_float()
        self.prompt("New high frequency (Hz, -1 to keep): ")
        high_freq = self.tokens.next_float()
        self.prompt("Filter type (0=band-pass, 1=low-pass, 2=high-pass, -1 to keep): ")
        type_code = self.tokens.next_int()

        filter_type = self.inverter.filter_type
        if type_code in {member.value for member in FilterType}:
            filter_type = FilterType(type_code)

        self.inverter.set_parameters(delay, gain, low_freq, high_freq, filter_type)
        self.say(PARAMS_UPDATED)

    def stop(self) -> None:
        if not self.inverter.running:
            self.say(NOT_RUNNING)
            return
        self.say(STOPPING)
        self.inverter.stop()
        self.say(STOPPED)

    def quit(self) -> None:
        if self.inverter.running:
            self.say(STOPPING)
            self.inverter.stop()
        self.say(GOODBYE)


def run_menu(
    inverter: NoiseInverter,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Run the interactive menu until the user quits or input ends; return 0."""
    return _Menu(
        inverter,
        stdin if stdin is not None else sys.stdin,
        stdout if stdout is not None else sys.stdout,
    ).run()


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive noise inverter on the system's audio devices."""
    parser = argparse.ArgumentParser(
        prog="noiseinverter",
        description="Cancel noise by playing back a filtered, inverted copy of the input.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log device and stream details"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s",
    )

    print(HEADER)
    print(INITIALISING)
    backend = SdlAudioBackend()
    inverter = NoiseInverter(backend)
    try:
        return run_menu(inverter, sys.stdin, sys.stdout)
    finally:
        inverter.stop()


if __name__ == "__main__":
    raise SystemExit(main())