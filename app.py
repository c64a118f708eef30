# app.py
import json
import logging
from typing import Optional

from audio.backend import AudioBackend, make_backend
from audio.device import DeviceControlError, DeviceOpenError
from audio.sink import AudioSink
from config import AppConfig
from midi.parser import parse_midi_to_score
from notes.model import OutOfRangeError, Score, ScoreFormatError
from notes.score import DEFAULT_SCORE, load_score
from timeline.scheduler import PlaybackStats, play
from utils.crashlog import log_exception

log = logging.getLogger("tonequeue.app")

EXIT_OK = 0
EXIT_DEVICE = 1
EXIT_SCORE = 2
EXIT_CONTROL = 3


def load_any_score(path: Optional[str]) -> Score:
    if not path:
        return list(DEFAULT_SCORE)
    if path.lower().endswith((".mid", ".midi")):
        return parse_midi_to_score(path)
    return load_score(path)


class App:
    def __init__(self, cfg: AppConfig, backend: Optional[AudioBackend] = None):
        self.cfg = cfg
        self.sink = AudioSink(backend or make_backend(cfg.audio.mute))
        self.stats: Optional[PlaybackStats] = None

    def run(self) -> int:
        try:
            score = load_any_score(self.cfg.playback.score_path)
        except (OSError, ValueError, EOFError) as e:
            # ScoreFormatError / OutOfRangeError / JSONDecodeError are ValueErrors
            kind = "bad score" if isinstance(e, (ScoreFormatError, OutOfRangeError, json.JSONDecodeError)) else "cannot read score"
            log.error("%s %s: %s", kind, self.cfg.playback.score_path, e)
            return EXIT_SCORE
        if not score:
            log.warning("score is empty, nothing to play")
            return EXIT_OK

        audio = self.cfg.audio
        try:
            self.stats = play(
                score, audio.to_spec(), audio.amplitude, self.sink,
                device_name=audio.device_name,
                repeat=self.cfg.playback.repeat,
                prerender=self.cfg.playback.prerender,
            )
        except DeviceOpenError as e:
            log_exception("open audio device", e)
            log.error("failed to open audio device: %s", e.diagnostic or e)
            return EXIT_DEVICE
        except DeviceControlError as e:
            log_exception("audio device control", e)
            log.error("%s", e)
            return EXIT_CONTROL
        return EXIT_OK
