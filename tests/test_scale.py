"""Tests for scale construction, degree mapping and key signatures."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midikey.errors import (
    InvalidKeySignature,
    NonMonotonicScale,
    OutOfRangeAccidental,
    ScaleError,
    UnknownMode,
    UnknownTonic,
)
from midikey.scale import (
    MODES,
    TONES,
    Scale,
    accidental_for,
    build_scale,
    decode_key_signature,
    degree_to_note,
    key_signature_spelling,
    note_frequency,
    note_name,
    note_to_degrees,
)

C_MAJOR = build_scale("C", "ionian")


class TestBuildScale:
    def test_c_ionian(self):
        assert C_MAJOR.offsets == (0, 2, 4, 5, 7, 9, 11, 12)

    def test_a_aeolian(self):
        assert build_scale("A", "aeolian").offsets == (9, 11, 12, 14, 16, 17, 19, 21)

    def test_enharmonic_tonics_above_octave(self):
        assert build_scale("B#", "ionian")[0] == 12
        assert build_scale("Cb", "ionian")[0] == 11

    def test_every_scale_spans_one_octave(self):
        for tonic in TONES:
            for mode in MODES:
                scale = build_scale(tonic, mode)
                assert len(scale) == 8
                assert scale[7] - scale[0] == 12

    def test_unknown_names(self):
        with pytest.raises(UnknownTonic):
            build_scale("H", "ionian")
        with pytest.raises(UnknownMode, match="expected one of"):
            build_scale("C", "major")
        assert issubclass(UnknownTonic, ScaleError)
        assert issubclass(UnknownMode, ValueError)

    @pytest.mark.parametrize(
        "offsets",
        [
            (0, 2, 1, 5, 7, 9, 11, 12),
            (0, 2, 2, 5, 7, 9, 11, 12),
            (0, 2, 4, 5, 7, 9, 11, 13),
            (0, 2, 4, 5, 7, 9, 12),
        ],
    )
    def test_malformed_offsets(self, offsets):
        with pytest.raises(NonMonotonicScale):
            Scale("C", "custom", offsets)


class TestDegreeToNote:
    @pytest.mark.parametrize(
        "degree, note",
        [(0, 60), (1, 62), (6, 71), (7, 72), (14, 84), (-1, 59), (-7, 48), (-8, 47)],
    )
    def test_c_major_middle_octave(self, degree, note):
        assert degree_to_note(C_MAJOR, 5, degree) == note

    def test_octave_shifts_by_twelve(self):
        assert degree_to_note(C_MAJOR, 4, 0) == 48
        assert degree_to_note(build_scale("G", "ionian"), 5, 0) == 67


class TestNoteToDegrees:
    def test_scale_note(self):
        assert note_to_degrees(C_MAJOR, 5, 60) == [0]
        assert note_to_degrees(C_MAJOR, 5, 72) == [7]
        assert note_to_degrees(C_MAJOR, 5, 59) == [-1]

    def test_chromatic_note_is_ambiguous(self):
        assert note_to_degrees(C_MAJOR, 5, 61) == [0, 1]
        assert note_to_degrees(C_MAJOR, 5, 58) == [-2, -1]
        assert note_to_degrees(C_MAJOR, 5, 73) == [7, 8]

    def test_far_below_anchor(self):
        assert note_to_degrees(C_MAJOR, 5, 24) == [-21]

    def test_round_trip_all_scales(self):
        for tonic in TONES:
            for mode in MODES:
                scale = build_scale(tonic, mode)
                for octave in (2, 5, 7):
                    for degree in range(-14, 15):
                        note = degree_to_note(scale, octave, degree)
                        assert degree in note_to_degrees(scale, octave, note), (tonic, mode, octave, degree)

    def test_chromatic_neighbours_are_one_semitone_away(self):
        for tonic in ("C", "F#", "Bb", "B#", "Cb"):
            for mode in MODES:
                scale = build_scale(tonic, mode)
                for note in range(40, 90):
                    degrees = note_to_degrees(scale, 5, note)
                    accidentals = [accidental_for(scale, 5, note, degree) for degree in degrees]
                    if len(degrees) == 1:
                        assert accidentals == [0]
                    else:
                        assert accidentals == [1, -1]


def test_accidental_out_of_range() -> None:
    assert accidental_for(C_MAJOR, 5, 61, 0) == 1
    assert accidental_for(C_MAJOR, 5, 61, 1) == -1
    with pytest.raises(OutOfRangeAccidental):
        accidental_for(C_MAJOR, 5, 63, 0)


# ── key signatures ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    "parameters, expected",
    [
        ([2, 0x00, 0], ("C", "ionian")),
        ([2, 0x01, 0], ("G", "ionian")),
        ([2, 0x07, 0], ("C#", "ionian")),
        ([2, 0xFF, 0], ("F", "ionian")),
        ([2, 0xFE, 0], ("Bb", "ionian")),
        ([2, 0xF9, 0], ("Cb", "ionian")),
        ([2, 0x00, 1], ("A", "aeolian")),
        ([2, 0x01, 1], ("E", "aeolian")),
        ([2, 0xFD, 1], ("C", "aeolian")),
        ([2, 0xF9, 1], ("Ab", "aeolian")),
        (b"\x02\x03\x00", ("A", "ionian")),
    ],
)
def test_decode_key_signature(parameters, expected) -> None:
    assert decode_key_signature(parameters) == expected


@pytest.mark.parametrize(
    "parameters",
    [[3, 0, 0], [2, 0, 2], [2, 8, 0], [2, 0xF8, 0], [2, 0], [2, 0, 0, 0]],
)
def test_decode_key_signature_rejects(parameters) -> None:
    with pytest.raises(InvalidKeySignature):
        decode_key_signature(parameters)


class TestKeySignatureSpelling:
    def test_white_key_scales_need_nothing(self):
        assert key_signature_spelling("C", "ionian").accidentals == ()
        assert key_signature_spelling("A", "aeolian").accidentals == ()
        assert key_signature_spelling("D", "dorian").render() == ""

    def test_sharp_keys(self):
        g_major = key_signature_spelling("G", "ionian")
        assert g_major.as_dict() == {"F": 1}
        assert g_major.sharps == 1
        d_major = key_signature_spelling("D", "ionian")
        assert d_major.render(unicode=False) == "F# C#"
        assert d_major.render() == "F♯ C♯"
        assert d_major.accidentals[0].staff_step == 10

    def test_six_sharps(self):
        spelling = key_signature_spelling("F#", "ionian")
        assert spelling.sharps == 6
        assert spelling.render(unicode=False) == "F# C# G# D# A# E#"

    def test_flat_keys(self):
        assert key_signature_spelling("F", "ionian").as_dict() == {"B": -1}
        b_flat = key_signature_spelling("Bb", "ionian")
        assert b_flat.render(unicode=False) == "Bb Eb"
        assert b_flat.flats == 2

    def test_minor_key(self):
        assert key_signature_spelling("E", "aeolian").as_dict() == {"F": 1}
        assert key_signature_spelling("C", "aeolian").render(unicode=False) == "Bb Eb Ab"

    def test_c_flat_has_seven_flats(self):
        spelling = key_signature_spelling("Cb", "ionian")
        assert spelling.flats == 7
        assert all(acc.count == -1 for acc in spelling.accidentals)
        assert all(abs(acc.count) < 12 for acc in spelling.accidentals)
        assert spelling.render(unicode=False) == "Bb Eb Ab Db Gb Cb Fb"

    def test_every_decodable_key_spells(self):
        for sf in list(range(0, 8)) + list(range(0xF9, 0x100)):
            for mi in (0, 1):
                tonic, mode = decode_key_signature([2, sf, mi])
                spelling = key_signature_spelling(tonic, mode)
                count = sf if sf < 0x80 else 0x100 - sf
                assert len(spelling.accidentals) == count, (tonic, mode)


def test_note_name_and_frequency() -> None:
    assert note_name(60) == "C"
    assert note_name(61) == "CD"
    assert note_name(71) == "B"
    assert note_frequency(69) == 440
    assert note_frequency(57) == 220
    assert note_frequency(60) == 261
