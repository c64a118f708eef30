# timeline/scheduler.py
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from audio.device import AudioDeviceHandle, AudioSpec, QueueError
from audio.sink import AudioSink
from audio.synth import S8_MAX, synthesize
from notes.frequency import DEFAULT_TABLE, FrequencyTable
from notes.model import Note, Rest, Score

log = logging.getLogger("tonequeue.sequencer")


@dataclass
class PlaybackStats:
    notes: int = 0
    rests: int = 0
    dropped: int = 0
    samples: int = 0


def check_amplitude(amplitude: float) -> float:
    if abs(amplitude) > S8_MAX:
        raise ValueError(f"|amplitude| must be <= {S8_MAX}, got {amplitude}")
    return amplitude


def check_repeat(repeat: int) -> int:
    if isinstance(repeat, bool) or not isinstance(repeat, int) or repeat < 1:
        raise ValueError(f"repeat must be a positive integer, got {repeat!r}")
    return repeat


def render_note(note: Note, spec: AudioSpec, amplitude: float,
                table: FrequencyTable = DEFAULT_TABLE) -> np.ndarray:
    hz = table.frequency(note.pitch_class, note.octave)
    return synthesize(hz, note.duration_ms, amplitude, spec.sample_rate_hz)


def prerender_score(score: Iterable, spec: AudioSpec, amplitude: float,
                    table: FrequencyTable = DEFAULT_TABLE) -> List[Optional[np.ndarray]]:
    """One buffer per Note (None for Rests), computed ahead of playback."""
    return [render_note(e, spec, amplitude, table) if isinstance(e, Note) else None for e in score]


class Sequencer:
    """Walks a score in order: synthesize, enqueue, then wait out each entry.
    A note never starts before the previous entry's wait has returned.
    """
    def __init__(self, sink: AudioSink, handle: AudioDeviceHandle, spec: AudioSpec,
                 amplitude: float = 20, table: FrequencyTable = DEFAULT_TABLE):
        self.sink = sink
        self.handle = handle
        self.spec = spec
        self.amplitude = check_amplitude(amplitude)
        self.table = table

    def render(self, note: Note) -> np.ndarray:
        return render_note(note, self.spec, self.amplitude, self.table)

    def run(self, score: Score, buffers: Optional[List[Optional[np.ndarray]]] = None,
            stats: Optional[PlaybackStats] = None) -> PlaybackStats:
        if stats is None:
            stats = PlaybackStats()
        for i, entry in enumerate(score):
            if isinstance(entry, Rest):
                stats.rests += 1
                self.sink.wait(entry.duration_ms)
                continue
            buf = buffers[i] if buffers is not None else self.render(entry)
            stats.notes += 1
            stats.samples += len(buf)
            try:
                self.sink.enqueue(self.handle, buf)
            except QueueError as e:
                # 丟掉這一個音，節奏照走
                stats.dropped += 1
                log.warning("dropped %s%d (%d ms): %s",
                            entry.pitch_class.value, entry.octave, entry.duration_ms, e)
            self.sink.wait(entry.duration_ms)
        return stats


def play(score: Score, spec: AudioSpec, amplitude: float, sink: AudioSink,
         device_name: Optional[str] = None, repeat: int = 1, prerender: bool = False) -> PlaybackStats:
    """Open a device session on `sink` and play `score` through it `repeat` times."""
    check_amplitude(amplitude)
    check_repeat(repeat)
    score = list(score)
    buffers = prerender_score(score, spec, amplitude) if prerender else None
    with sink.session(spec, device_name) as handle:
        seq = Sequencer(sink, handle, spec, amplitude)
        stats = PlaybackStats()
        for _ in range(repeat):
            seq.run(score, buffers, stats)
    log.info("played %d notes, %d rests, %d dropped", stats.notes, stats.rests, stats.dropped)
    return stats
