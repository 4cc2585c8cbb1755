"""
Fallback beep for sounds that have no audio attached yet.

440 Hz sine for half a second with the gain ramping exponentially from 0.1
down to 0.01, rendered once as 16-bit mono WAV.
"""

import io
import wave
from functools import lru_cache

import numpy as np

SAMPLE_RATE = 44100
FREQUENCY_HZ = 440.0
DURATION_SEC = 0.5
START_GAIN = 0.1
END_GAIN = 0.01


def render_tone(
    frequency: float = FREQUENCY_HZ,
    duration: float = DURATION_SEC,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Float samples in [-1, 1]."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    gain = START_GAIN * (END_GAIN / START_GAIN) ** (t / duration)
    return gain * np.sin(2 * np.pi * frequency * t)


def to_wav_bytes(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buf.getvalue()


@lru_cache(maxsize=1)
def fallback_tone_wav() -> bytes:
    return to_wav_bytes(render_tone())
