# notes/frequency.py
from types import MappingProxyType
from typing import Mapping, Tuple

from notes.model import MAX_OCTAVE, MIN_OCTAVE, PitchClass, check_octave

BASE_FREQUENCY = 16.35  # C0, Hz
SEMITONES_PER_OCTAVE = 12


def equal_tempered(semitone: int, octave: int, base: float = BASE_FREQUENCY) -> float:
    # base * r^(s + 12o), r = 2^(1/12)
    return base * 2.0 ** ((semitone + SEMITONES_PER_OCTAVE * octave) / SEMITONES_PER_OCTAVE)


class FrequencyTable:
    """Precomputed (pitch class, octave) -> Hz lookup.

    Built once for octaves 0..8; read-only afterwards. The formula in
    equal_tempered() is authoritative, the table is only a cache of it.
    """
    def __init__(self, base: float = BASE_FREQUENCY):
        self.base = base
        table = {
            (pc, octave): equal_tempered(pc.semitone, octave, base)
            for octave in range(MIN_OCTAVE, MAX_OCTAVE + 1)
            for pc in PitchClass
        }
        self._table: Mapping[Tuple[PitchClass, int], float] = MappingProxyType(table)

    def __len__(self) -> int:
        return len(self._table)

    def frequency(self, pitch_class, octave: int) -> float:
        pc = PitchClass.parse(pitch_class)
        return self._table[(pc, check_octave(octave))]


# 啟動時建立一次
DEFAULT_TABLE = FrequencyTable()


def frequency(pitch_class, octave: int) -> float:
    return DEFAULT_TABLE.frequency(pitch_class, octave)
