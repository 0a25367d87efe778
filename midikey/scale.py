"""Diatonic scales, degree/note conversion and key-signature spelling.

Terminology:
  degree  zero-based index into a 7-note scale; negative and >6 values
          walk into neighbouring octaves
  tone    relative pitch in semitones
  note    absolute pitch, MIDI numbering (12 * octave + tone, so with the
          default octave 5 the C major tonic is note 60)

A scale is stored as 8 semitone offsets from C: the 7 degrees plus the
octave-closing tone.  Offsets may start above 11 (``B#`` is 12) so that
every degree of a scale stays in one ascending run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .errors import (
    InvalidKeySignature,
    NonMonotonicScale,
    OutOfRangeAccidental,
    UnknownMode,
    UnknownTonic,
)

MIDDLE_OCTAVE = 5
DEGREES_PER_OCTAVE = 7
SEMITONES_PER_OCTAVE = 12

TONES: Dict[str, int] = {
    "C": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "E#": 5,
    "Fb": 4,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "B#": 12,
    "Cb": 11,
}

MODES: Dict[str, Tuple[int, ...]] = {
    "ionian": (2, 2, 1, 2, 2, 2, 1),
    "dorian": (2, 1, 2, 2, 2, 1, 2),
    "phrygian": (1, 2, 2, 2, 1, 2, 2),
    "lydian": (2, 2, 2, 1, 2, 2, 1),
    "mixolydian": (2, 2, 1, 2, 2, 1, 2),
    "aeolian": (2, 1, 2, 2, 1, 2, 2),
    "locrian": (1, 2, 2, 1, 2, 2, 2),
}

LETTERS = ("C", "D", "E", "F", "G", "A", "B")

# Mode whose scale on a bare letter uses only white keys.
WHITE_KEY_MODES = {
    "C": "ionian",
    "D": "dorian",
    "E": "phrygian",
    "F": "lydian",
    "G": "mixolydian",
    "A": "aeolian",
    "B": "locrian",
}

# Position of each accidental in a written key signature (circle of fifths).
SIGNATURE_ORDER = {
    "F#": 0,
    "C#": 1,
    "G#": 2,
    "D#": 3,
    "A#": 4,
    "E#": 5,
    "B#": 6,
    "Bb": 0,
    "Eb": 1,
    "Ab": 2,
    "Db": 3,
    "Gb": 4,
    "Cb": 5,
    "Fb": 6,
}

# Treble staff position of each glyph, in steps above the middle line.
SIGNATURE_STAFF_STEPS = {
    "A#": 5,
    "B#": 6,
    "C#": 7,
    "D#": 8,
    "E#": 9,
    "F#": 10,
    "G#": 11,
    "Ab": 5,
    "Bb": 6,
    "Cb": 7,
    "Db": 8,
    "Eb": 9,
    "Fb": 3,
    "Gb": 4,
}

SHARP_GLYPH = "♯"
FLAT_GLYPH = "♭"

# Key-signature meta event tables, indexed by sharp count or (flats + 7).
MAJOR_SHARP_KEYS = ("C", "G", "D", "A", "E", "B", "F#", "C#")
MAJOR_FLAT_KEYS = ("Cb", "Gb", "Db", "Ab", "Eb", "Bb", "F", "C")
MINOR_SHARP_KEYS = ("A", "E", "B", "F#", "C#", "G#", "D#", "A#")
MINOR_FLAT_KEYS = ("Ab", "Eb", "Bb", "F", "C", "G", "D", "A")

CHROMATIC_NAMES = ("C", "CD", "D", "DE", "E", "F", "FG", "G", "GA", "A", "AB", "B")


@dataclass(frozen=True)
class Scale:
    tonic: str
    mode: str
    offsets: Tuple[int, ...]

    def __post_init__(self) -> None:
        offsets = self.offsets
        if len(offsets) != DEGREES_PER_OCTAVE + 1:
            raise NonMonotonicScale(f"scale needs {DEGREES_PER_OCTAVE + 1} offsets, got {len(offsets)}")
        if any(lo >= hi for lo, hi in zip(offsets, offsets[1:])):
            raise NonMonotonicScale(f"scale offsets {offsets} are not strictly ascending")
        if offsets[-1] != offsets[0] + SEMITONES_PER_OCTAVE:
            raise NonMonotonicScale(f"scale offsets {offsets} do not span one octave")

    def __getitem__(self, index: int) -> int:
        return self.offsets[index]

    def __len__(self) -> int:
        return len(self.offsets)


def tonic_tone(tonic: str) -> int:
    try:
        return TONES[tonic]
    except KeyError:
        raise UnknownTonic(f"unknown tonic {tonic!r}") from None


def mode_steps(mode: str) -> Tuple[int, ...]:
    try:
        return MODES[mode]
    except KeyError:
        valid = ", ".join(MODES)
        raise UnknownMode(f"unknown mode {mode!r}; expected one of: {valid}") from None


def build_scale(tonic: str, mode: str) -> Scale:
    offsets = [tonic_tone(tonic)]
    for step in mode_steps(mode):
        offsets.append(offsets[-1] + step)
    return Scale(tonic=tonic, mode=mode, offsets=tuple(offsets))


def degree_to_note(scale: Scale, octave: int, degree: int) -> int:
    octaves, index = divmod(degree, DEGREES_PER_OCTAVE)
    return SEMITONES_PER_OCTAVE * (octave + octaves) + scale[index]


def note_to_degrees(scale: Scale, octave: int, note: int) -> List[int]:
    """Degrees that bound ``note``.

    Returns ``[degree]`` when the note is in the scale, otherwise the two
    neighbouring degrees ``[below, above]``; the caller derives each
    accidental as ``note - degree_to_note(...)``.
    """
    shift = 0
    floor = SEMITONES_PER_OCTAVE * octave + scale[0]
    while note < floor:
        note += SEMITONES_PER_OCTAVE
        shift -= DEGREES_PER_OCTAVE

    degree = 0
    while degree_to_note(scale, octave, degree) < note:
        degree += 1
    if degree_to_note(scale, octave, degree) == note:
        return [shift + degree]
    return [shift + degree - 1, shift + degree]


def accidental_for(scale: Scale, octave: int, note: int, degree: int) -> int:
    accidental = note - degree_to_note(scale, octave, degree)
    if not -1 <= accidental <= 1:
        raise OutOfRangeAccidental(
            f"note {note} is {accidental:+d} semitones from degree {degree} "
            f"of {scale.tonic} {scale.mode}"
        )
    return accidental


@dataclass(frozen=True)
class SpelledAccidental:
    letter: str
    count: int  # > 0 sharps, < 0 flats
    symbol: str  # "#", "##", "b", ...
    order: int
    staff_step: int

    @property
    def glyph(self) -> str:
        return self.symbol.replace("#", SHARP_GLYPH).replace("b", FLAT_GLYPH)


@dataclass(frozen=True)
class KeySignatureSpelling:
    tonic: str
    mode: str
    accidentals: Tuple[SpelledAccidental, ...]

    @property
    def sharps(self) -> int:
        return sum(1 for acc in self.accidentals if acc.count > 0)

    @property
    def flats(self) -> int:
        return sum(1 for acc in self.accidentals if acc.count < 0)

    def as_dict(self) -> Dict[str, int]:
        return {acc.letter: acc.count for acc in self.accidentals}

    def render(self, *, unicode: bool = True) -> str:
        parts = [acc.letter + (acc.glyph if unicode else acc.symbol) for acc in self.accidentals]
        return " ".join(parts)


def key_signature_spelling(tonic: str, mode: str, octave: int = MIDDLE_OCTAVE) -> KeySignatureSpelling:
    """Sharps/flats a staff needs to notate ``tonic`` ``mode``.

    Each degree is compared with the same degree of the white-key scale
    on the tonic's bare letter.  ``Cb`` sits below its letter's C, so its
    reference is taken one octave up.
    """
    scale = build_scale(tonic, mode)
    letter = tonic[0]
    white = build_scale(letter, WHITE_KEY_MODES[letter])
    reference_octave = octave + 1 if tonic == "Cb" else octave
    first = LETTERS.index(letter)

    accidentals: List[SpelledAccidental] = []
    for degree in range(DEGREES_PER_OCTAVE):
        name = LETTERS[(first + degree) % DEGREES_PER_OCTAVE]
        expected = degree_to_note(white, reference_octave, degree)
        observed = degree_to_note(scale, octave, degree)
        count = observed - expected
        if count == 0:
            continue
        atom = "b" if count < 0 else "#"
        key = name + atom
        accidentals.append(
            SpelledAccidental(
                letter=name,
                count=count,
                symbol=atom * abs(count),
                order=SIGNATURE_ORDER[key],
                staff_step=SIGNATURE_STAFF_STEPS[key],
            )
        )
    accidentals.sort(key=lambda acc: (acc.count < 0, acc.order))
    return KeySignatureSpelling(tonic=tonic, mode=mode, accidentals=tuple(accidentals))


def decode_key_signature(parameters: Sequence[int]) -> Tuple[str, str]:
    """Decode Key Signature meta parameters ``[2, sf, mi]`` to (tonic, mode).

    ``sf`` is a signed byte: negative counts flats, positive counts
    sharps.  ``mi`` is 0 for major (ionian) and 1 for minor (aeolian).
    """
    if len(parameters) != 3 or parameters[0] != 2:
        raise InvalidKeySignature(f"key signature parameters must be [2, sf, mi], got {list(parameters)}")
    raw = parameters[1] & 0xFF
    minor = parameters[2]
    if minor == 0:
        sharp_keys, flat_keys, mode = MAJOR_SHARP_KEYS, MAJOR_FLAT_KEYS, "ionian"
    elif minor == 1:
        sharp_keys, flat_keys, mode = MINOR_SHARP_KEYS, MINOR_FLAT_KEYS, "aeolian"
    else:
        raise InvalidKeySignature(f"key signature mode byte must be 0 or 1, got {minor}")

    if raw & 0x80:
        index = (raw + 7) & 0xFF
        table = flat_keys
    else:
        index = raw
        table = sharp_keys
    if index >= len(table):
        raise InvalidKeySignature(f"key signature accidental byte 0x{raw:02X} out of range")
    return table[index], mode


def note_name(note: int) -> str:
    """Pitch-class letters; chromatic notes name both neighbours (``"CD"``)."""
    return CHROMATIC_NAMES[note % len(CHROMATIC_NAMES)]


def note_frequency(note: int) -> int:
    """Equal-tempered frequency in whole hertz, A4 (note 69) = 440."""
    return int(440 * 2 ** ((note - 69) / 12))
