# noiseinverter

A small real-time noise canceller. It captures a mono input and runs it
through a simple IIR filter (band-pass, low-pass or high-pass). It then
inverts and scales the filtered signal, delays it and mixes it back with the
original. The result is clipped to [-1, 1] and played on both channels of a
stereo output.

## Installation

```
pip install .
```

Audio input and output go through pygame's SDL audio layer
(`noiseinverter.audio.SdlAudioBackend`). SDL reports only device names, so
each capture device is listed with one input channel and each playback device
with two output channels. The first name in each list is taken to be the
default device.

## Interactive use

```
noise-inverter
```

Pass `-v` / `--verbose` to log details about devices and the stream.

The command opens a numbered menu:

1. List audio devices. Input devices keep their index. Output devices are
   shown with 1000 added to their index.
2. Start processing. The first time, this asks for the input and output
   device. The system's default devices are proposed, and entering 0 or a
   negative number keeps the proposed device.
3. Calibrate. This sets the delay to half the estimated latency, at least
   1 ms, and the gain to 0.92.
4. Change parameters: delay, gain, low and high cut-off frequencies and filter
   type (0 = band-pass, 1 = low-pass, 2 = high-pass). Enter -1 to leave a
   value as it is.
5. Stop.
0. Quit. Reaching the end of input also quits.

Calibrate and Change parameters only work while processing runs. While
processing runs, the menu shows the estimated latency after each command. The
estimate is twice the buffer duration.

## Library use

```python
from noiseinverter.audio import SdlAudioBackend
from noiseinverter.dsp import FilterType
from noiseinverter.inverter import NoiseInverter

inverter = NoiseInverter(SdlAudioBackend())
for device in inverter.list_devices():
    print(device.id, device.name, device.is_input, device.is_default)

inverter.set_parameters(5.0, 0.8, 100.0, 4000.0, FilterType.LOWPASS)
mono = inverter.process_block([0.0, 0.1, 0.2, 0.1])
inputs, outputs = inverter.visualization_data()
```

`NoiseInverter` starts with these settings:

- sample rate 48000 Hz and blocks of 128 frames
- delay 5 ms and gain 1.0
- cut-off frequencies 100 Hz and 1000 Hz
- a band-pass filter

The delay line holds 50 ms of samples.

With `set_parameters`, any argument that is `None` or negative is left
unchanged.

`start(input_device, output_device)` raises `noiseinverter.audio.AudioError`
if the stream cannot be opened. `stop()` closes it. A `NoiseInverter` can also
be used as a context manager, and it stops on exit.

`process_block` takes a block of mono samples and returns the processed mono
block. It does not need an open audio stream, so you can run the processing
chain offline on your own samples. `visualization_data()` returns copies of
the last 1024 input and output samples it recorded. Every second sample of
each block is recorded.

The building blocks are in `noiseinverter.dsp`:

- `IIRFilter`, configured with a `FilterType`
- `DelayLine`, a fixed-size ring buffer

To stream through a different audio layer, subclass
`noiseinverter.audio.AudioBackend`.

## What it does not do

The package has no graphical display. The visualisation buffers are only
available through `visualization_data()`. Latency is estimated from the
buffer size, not measured.

## Running the tests

```
pip install .[test]
pytest
```