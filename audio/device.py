# audio/device.py
from dataclasses import dataclass
from typing import Optional

AUDIO_S8 = 0x8008  # signed 8-bit samples
NOT_OPEN = 0       # handle sentinel

AudioDeviceHandle = int


class AudioError(Exception):
    """Base for audio device failures; carries the platform diagnostic."""
    def __init__(self, message: str, diagnostic: Optional[str] = None):
        self.diagnostic = diagnostic or ""
        super().__init__(f"{message}: {diagnostic}" if diagnostic else message)


class DeviceOpenError(AudioError):
    pass


class DeviceControlError(AudioError):
    pass


class QueueError(AudioError):
    def __init__(self, message: str, code: int = -1, diagnostic: Optional[str] = None):
        self.code = code
        super().__init__(message, diagnostic)


@dataclass(frozen=True)
class AudioSpec:
    sample_rate_hz: int = 44100
    format: int = AUDIO_S8
    channels: int = 1
    buffer_samples: int = 1024

    def __post_init__(self):
        for name in ("sample_rate_hz", "channels", "buffer_samples"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
                raise ValueError(f"AudioSpec.{name} must be a positive integer, got {v!r}")
        if self.format != AUDIO_S8:
            raise ValueError(f"Only signed 8-bit PCM is supported (format {AUDIO_S8:#x})")
