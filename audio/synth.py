# audio/synth.py
import numpy as np

S8_MIN = -128
S8_MAX = 127


def sample_count(duration_ms: int, sample_rate_hz: int) -> int:
    if duration_ms <= 0:
        return 0
    # integer math: floor(rate * ms / 1000) without float drift
    return (int(sample_rate_hz) * int(duration_ms)) // 1000


def synthesize(frequency_hz: float, duration_ms: int, amplitude: float, sample_rate_hz: int) -> np.ndarray:
    """
    Sine tone as signed 8-bit PCM (numpy int8, one sample per frame).
    sample[i] = clamp(round(sin(2*pi*f*i/rate) * amplitude), -128, 127)
    Pure; identical inputs always give identical buffers.
    """
    n = sample_count(duration_ms, sample_rate_hz)
    if n == 0:
        return np.zeros(0, dtype=np.int8)
    t = np.arange(n, dtype=np.float64) / float(sample_rate_hz)
    raw = np.sin(2.0 * np.pi * float(frequency_hz) * t) * float(amplitude)
    return np.clip(np.rint(raw), S8_MIN, S8_MAX).astype(np.int8)


def to_bytes(buffer: np.ndarray, channels: int = 1) -> bytes:
    """Raw S8 bytes; mono samples are duplicated into interleaved frames when channels > 1."""
    if channels > 1:
        buffer = np.repeat(buffer, channels)
    return buffer.astype(np.int8, copy=False).tobytes()
