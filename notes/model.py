# notes/model.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Union

MIN_OCTAVE = 0
MAX_OCTAVE = 8
DEFAULT_OCTAVE = 3
DEFAULT_DURATION_MS = 500


class ScoreFormatError(ValueError):
    """A score entry could not be understood."""


class OutOfRangeError(ValueError):
    """Octave or duration outside the supported range."""


class PitchClass(Enum):
    C = "c"
    CS = "cs"
    D = "d"
    DS = "ds"
    E = "e"
    F = "f"
    FS = "fs"
    G = "g"
    GS = "gs"
    A = "a"
    AS = "as"
    B = "b"

    @property
    def semitone(self) -> int:
        return _SEMITONE_INDEX[self]

    @classmethod
    def parse(cls, name) -> "PitchClass":
        """Accepts 'cs', 'c#', 'C♯' and friends."""
        if isinstance(name, PitchClass):
            return name
        key = str(name).strip().lower().replace("#", "s").replace("♯", "s")
        try:
            return cls(key)
        except ValueError:
            raise ScoreFormatError(f"Unknown pitch class: {name!r}") from None


_SEMITONE_INDEX = {pc: i for i, pc in enumerate(PitchClass)}


def check_octave(octave: int) -> int:
    if isinstance(octave, bool) or not isinstance(octave, int):
        raise OutOfRangeError(f"octave must be an integer, got {octave!r}")
    if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
        raise OutOfRangeError(f"octave {octave} outside [{MIN_OCTAVE},{MAX_OCTAVE}]")
    return octave


def _check_duration(duration_ms: int) -> int:
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, int):
        raise OutOfRangeError(f"duration_ms must be an integer, got {duration_ms!r}")
    if duration_ms <= 0:
        raise OutOfRangeError(f"duration_ms must be positive, got {duration_ms}")
    return duration_ms


@dataclass(frozen=True)
class Note:
    pitch_class: PitchClass
    octave: int = DEFAULT_OCTAVE
    duration_ms: int = DEFAULT_DURATION_MS

    def __post_init__(self):
        object.__setattr__(self, "pitch_class", PitchClass.parse(self.pitch_class))
        check_octave(self.octave)
        _check_duration(self.duration_ms)


@dataclass(frozen=True)
class Rest:
    duration_ms: int

    def __post_init__(self):
        _check_duration(self.duration_ms)


ScoreEntry = Union[Note, Rest]
Score = List[ScoreEntry]
