# notes/score.py
import json
from typing import Iterable, List, Optional

from notes.model import (
    DEFAULT_DURATION_MS, DEFAULT_OCTAVE, Note, PitchClass, Rest, Score, ScoreEntry, ScoreFormatError,
)


def parse_entry(item) -> Optional[ScoreEntry]:
    """Turn one external score item into a Note or Rest.

    - 250                      -> Rest(250)   (0 -> None, nothing to do)
    - "e"                      -> Note(E, 3, 500)
    - ["as", 3, 300]           -> Note(AS, 3, 300), octave/duration optional
    - {"note": "a", ...}       -> Note, {"rest": 250} -> Rest
    """
    if isinstance(item, (Note, Rest)):
        return item
    if isinstance(item, bool):
        raise ScoreFormatError(f"Not a score entry: {item!r}")
    if isinstance(item, int):
        if item < 0:
            raise ScoreFormatError(f"Rest duration must be non-negative, got {item}")
        return Rest(item) if item else None
    if isinstance(item, str):
        return Note(PitchClass.parse(item))
    if isinstance(item, (list, tuple)):
        if not 1 <= len(item) <= 3:
            raise ScoreFormatError(f"Expected (pitch_class, octave?, duration_ms?), got {item!r}")
        pc, octave, duration = (list(item) + [None, None])[:3]
        return Note(
            PitchClass.parse(pc),
            DEFAULT_OCTAVE if octave is None else octave,
            DEFAULT_DURATION_MS if duration is None else duration,
        )
    if isinstance(item, dict):
        if "rest" in item:
            return parse_entry(item["rest"])
        if "note" not in item:
            raise ScoreFormatError(f"Entry needs 'note' or 'rest': {item!r}")
        return Note(
            PitchClass.parse(item["note"]),
            item.get("octave", DEFAULT_OCTAVE),
            item.get("duration_ms", DEFAULT_DURATION_MS),
        )
    raise ScoreFormatError(f"Not a score entry: {item!r}")


def parse_score(items: Iterable) -> Score:
    out: List[ScoreEntry] = []
    for item in items:
        entry = parse_entry(item)
        if entry is not None:
            out.append(entry)
    return out


def serialize_entry(entry: ScoreEntry):
    if isinstance(entry, Rest):
        return entry.duration_ms
    return [entry.pitch_class.value, entry.octave, entry.duration_ms]


def load_score(path: str) -> Score:
    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)
    if not isinstance(obj, list):
        raise ScoreFormatError(f"{path}: score must be a JSON list")
    return parse_score(obj)


def save_score(score: Score, path: str):
    with open(path, "w", encoding="utf-8") as f:
        json.dump([serialize_entry(e) for e in score], f, ensure_ascii=False, indent=2)


_RIFF = ["e", ["e", 3, 300], ["e", 4, 300], ["as", 3, 300], ["a", 3, 300], 500]
DEFAULT_SCORE: Score = parse_score(_RIFF * 2)
