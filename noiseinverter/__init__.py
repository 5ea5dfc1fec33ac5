"""Real-time noise cancellation by inverting and delaying a filtered input signal."""

__version__ = "1.0.0"
__all__ = ["audio", "cli", "dsp", "inverter"]