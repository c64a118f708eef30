# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

from audio.device import AudioSpec


@dataclass
class AudioConfig:
    sample_rate: int = 44100
    channels: int = 1
    buffer_samples: int = 1024
    device_name: Optional[str] = None
    amplitude: int = 20      # peak, must stay within ±127 (S8)
    mute: bool = False       # NullBackend: no sound card needed

    def to_spec(self) -> AudioSpec:
        return AudioSpec(
            sample_rate_hz=self.sample_rate,
            channels=self.channels,
            buffer_samples=self.buffer_samples,
        )


@dataclass
class PlaybackConfig:
    score_path: Optional[str] = None  # .json or .mid; None = built-in riff
    repeat: int = 1
    prerender: bool = False


@dataclass
class AppConfig:
    audio: AudioConfig = field(default_factory=AudioConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
