# midi/parser.py
import logging
from typing import List, Tuple

import mido

from notes.model import MAX_OCTAVE, MIN_OCTAVE, Note, PitchClass, Rest, Score

log = logging.getLogger("tonequeue.midi")

_PITCH_CLASSES = list(PitchClass)


def midi_to_pitch(note_number: int) -> Tuple[PitchClass, int]:
    # MIDI 12 = C0 (16.35 Hz)
    return _PITCH_CLASSES[note_number % 12], note_number // 12 - 1


def _read_notes(path: str) -> List[Tuple[float, float, int]]:
    mid = mido.MidiFile(path)
    tpb = mid.ticks_per_beat
    tempo = 500000  # default 120 bpm
    time_sec = 0.0
    active = {}
    notes = []

    for msg in mido.merge_tracks(mid.tracks):
        time_sec += mido.tick2second(msg.time, tpb, tempo)
        if msg.is_meta:
            if msg.type == 'set_tempo':
                tempo = msg.tempo
        elif msg.type == 'note_on' and msg.velocity > 0:
            active[(msg.channel, msg.note)] = time_sec
        elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
            st = active.pop((msg.channel, msg.note), None)
            if st is not None:
                notes.append((st, time_sec, msg.note))
    for (_, p), st in active.items():
        notes.append((st, time_sec, p))
    return notes


def parse_midi_to_score(path: str) -> Score:
    """Reduce a MIDI file to a monophonic score.

    Onsets are grouped per millisecond and the highest pitch wins; each note
    is cut at the next onset, and gaps between notes become rests.
    """
    by_onset = {}
    for st, end, pitch in _read_notes(path):
        onset = int(round(st * 1000))
        end_ms = int(round(end * 1000))
        if onset not in by_onset or pitch > by_onset[onset][1]:
            by_onset[onset] = (end_ms, pitch)

    onsets = sorted(by_onset)
    score: Score = []
    cursor = 0
    for i, onset in enumerate(onsets):
        end_ms, pitch = by_onset[onset]
        if i + 1 < len(onsets):
            end_ms = min(end_ms, onsets[i + 1])
        duration = end_ms - onset
        if duration <= 0:
            continue
        pc, octave = midi_to_pitch(pitch)
        if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
            log.warning("skipping MIDI note %d at %d ms: octave %d out of range", pitch, onset, octave)
            continue
        if onset > cursor:
            score.append(Rest(onset - cursor))
        score.append(Note(pc, octave, duration))
        cursor = onset + duration

    log.info("loaded %d entries from %s", len(score), path)
    return score
