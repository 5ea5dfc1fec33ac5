import pytest

from noiseinverter.dsp import DelayLine, FilterType, IIRFilter

SAMPLE_RATE = 48000.0


def _run(filt, samples):
    return [filt.process(s) for s in samples]


def test_bandpass_coefficients_are_fixed():
    filt = IIRFilter(FilterType.BANDPASS, 100.0, 2000.0, SAMPLE_RATE)
    assert filt.b == (0.25, 0.0, -0.25)
    assert filt.a == (1.0, -1.5, 0.5)


def test_bandpass_ignores_frequencies():
    one = IIRFilter(FilterType.BANDPASS, 100.0, 2000.0, SAMPLE_RATE)
    two = IIRFilter(FilterType.BANDPASS, 500.0, 9000.0, SAMPLE_RATE)
    assert one.b == two.b
    assert one.a == two.a


@pytest.mark.parametrize("ftype", list(FilterType))
def test_first_impulse_output_is_b0(ftype):
    filt = IIRFilter(ftype, 200.0, 3000.0, SAMPLE_RATE)
    assert filt.process(1.0) == pytest.approx(filt.b[0])


@pytest.mark.parametrize("ftype", list(FilterType))
def test_zero_input_gives_zero_output(ftype):
    filt = IIRFilter(ftype, 200.0, 3000.0, SAMPLE_RATE)
    assert _run(filt, [0.0] * 50) == [0.0] * 50


def test_lowpass_has_unit_dc_gain():
    filt = IIRFilter(FilterType.LOWPASS, 100.0, 2000.0, SAMPLE_RATE)
    b0, _, _ = filt.b
    assert b0 - filt.a[1] == pytest.approx(1.0)
    assert 0.0 < -filt.a[1] < 1.0
    out = _run(filt, [1.0] * 2000)
    assert out[-1] == pytest.approx(1.0, abs=1e-6)


def test_lowpass_depends_only_on_high_freq():
    one = IIRFilter(FilterType.LOWPASS, 100.0, 2000.0, SAMPLE_RATE)
    two = IIRFilter(FilterType.LOWPASS, 700.0, 2000.0, SAMPLE_RATE)
    three = IIRFilter(FilterType.LOWPASS, 100.0, 4000.0, SAMPLE_RATE)
    assert one.b == two.b and one.a == two.a
    assert one.b[0] < three.b[0]


def test_highpass_blocks_dc():
    filt = IIRFilter(FilterType.HIGHPASS, 100.0, 2000.0, SAMPLE_RATE)
    assert filt.b[0] == pytest.approx(-filt.b[1])
    assert filt.b[2] == 0.0
    out = _run(filt, [1.0] * 5000)
    assert abs(out[-1]) < 1e-3
    assert abs(out[-1]) < abs(out[0])


def test_highpass_depends_only_on_low_freq():
    one = IIRFilter(FilterType.HIGHPASS, 100.0, 2000.0, SAMPLE_RATE)
    two = IIRFilter(FilterType.HIGHPASS, 100.0, 9000.0, SAMPLE_RATE)
    three = IIRFilter(FilterType.HIGHPASS, 1000.0, 2000.0, SAMPLE_RATE)
    assert one.b == two.b and one.a == two.a
    assert one.a != three.a


@pytest.mark.parametrize("ftype", list(FilterType))
def test_filter_is_linear(ftype):
    signal = [0.1, -0.4, 0.7, 0.0, 0.3, -0.2, 0.5]
    plain = _run(IIRFilter(ftype, 150.0, 2500.0, SAMPLE_RATE), signal)
    scaled = _run(IIRFilter(ftype, 150.0, 2500.0, SAMPLE_RATE), [3.0 * s for s in signal])
    assert scaled == pytest.approx([3.0 * v for v in plain])


def test_reset_restores_fresh_behaviour():
    signal = [0.5, -0.25, 0.75, 0.1]
    fresh = _run(IIRFilter(FilterType.BANDPASS, 100.0, 2000.0, SAMPLE_RATE), signal)
    filt = IIRFilter(FilterType.BANDPASS, 100.0, 2000.0, SAMPLE_RATE)
    _run(filt, [1.0, 1.0, -1.0])
    filt.reset()
    assert _run(filt, signal) == pytest.approx(fresh)


def test_configure_changes_shape_and_clears_state():
    signal = [0.5, -0.25, 0.75, 0.1]
    expected = _run(IIRFilter(FilterType.LOWPASS, 100.0, 3000.0, SAMPLE_RATE), signal)
    filt = IIRFilter(FilterType.BANDPASS, 100.0, 2000.0, SAMPLE_RATE)
    _run(filt, [1.0, 0.5, -1.0])
    filt.configure(FilterType.LOWPASS, 100.0, 3000.0)
    assert filt.filter_type is FilterType.LOWPASS
    assert _run(filt, signal) == pytest.approx(expected)


def test_configure_accepts_integer_type():
    filt = IIRFilter(0, 100.0, 2000.0, SAMPLE_RATE)
    filt.configure(2, 100.0, 2000.0)
    assert filt.filter_type is FilterType.HIGHPASS


def test_non_positive_sample_rate_rejected():
    with pytest.raises(ValueError):
        IIRFilter(FilterType.LOWPASS, 100.0, 2000.0, 0.0)


def test_delay_line_zero_delay_returns_current():
    line = DelayLine(8)
    assert [line.push(v, 0) for v in (0.1, 0.2, 0.3)] == [0.1, 0.2, 0.3]


def test_delay_line_returns_earlier_values():
    line = DelayLine(8)
    values = [float(i) for i in range(1, 20)]
    out = [line.push(v, 3) for v in values]
    assert out[:3] == [0.0, 0.0, 0.0]
    assert out[3:] == values[:-3]


def test_delay_line_full_size_delay_wraps_to_current():
    line = DelayLine(4)
    out = [line.push(v, 4) for v in (1.0, 2.0, 3.0, 4.0, 5.0)]
    assert out == [1.0, 2.0, 3.0, 4.0, 5.0]


def test_delay_line_maximum_delay():
    line = DelayLine(5)
    values = [float(i) for i in range(1, 13)]
    out = [line.push(v, 4) for v in values]
    assert out[4:] == values[:-4]
    assert len(line) == 5


@pytest.mark.parametrize("size", [0, -3])
def test_delay_line_rejects_bad_size(size):
    with pytest.raises(ValueError):
        DelayLine(size)