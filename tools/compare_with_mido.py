#!/usr/bin/env python3
"""Cross-check midikey's merged note timing against mido's decoder.

For every file, both decoders produce the ordered list of note on/off
messages with absolute timestamps; the first mismatch (or a count
difference) is reported.  SMPTE-timed and format 2 files are skipped
because mido does not play them back.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import List, Optional, Tuple

import mido
from loguru import logger

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midikey.decoder import decode_file  # noqa: E402
from midikey.timeline import merge_file  # noqa: E402

NoteRow = Tuple[str, int, int, float]  # (kind, channel, note, seconds)

TOLERANCE = 1e-6


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> | {name}:{function}:{line} - {message}",
    )


def _kind(is_on: bool, velocity: int) -> str:
    return "on" if is_on and velocity > 0 else "off"


def midikey_notes(data: bytes) -> Optional[List[NoteRow]]:
    midi = decode_file(data)
    if midi.division.is_smpte or midi.format_type == 2:
        return None
    rows: List[NoteRow] = []
    for merged in merge_file(midi):
        event = merged.event
        if event.is_note_on or event.is_note_off:
            note, velocity = event.parameters[0], event.parameters[1]
            assert event.channel is not None
            rows.append((_kind(event.is_note_on, velocity), event.channel, note, merged.timestamp))
    return rows


def mido_notes(path: Path) -> List[NoteRow]:
    rows: List[NoteRow] = []
    now = 0.0
    for msg in mido.MidiFile(str(path)):
        now += msg.time
        if msg.type in ("note_on", "note_off"):
            rows.append((_kind(msg.type == "note_on", msg.velocity), msg.channel, msg.note, now))
    return rows


def first_mismatch(ours: List[NoteRow], theirs: List[NoteRow]) -> Optional[str]:
    for idx, (a, b) in enumerate(zip(ours, theirs)):
        if a[:3] != b[:3] or abs(a[3] - b[3]) > TOLERANCE:
            return f"row {idx}: midikey={a} mido={b}"
    if len(ours) != len(theirs):
        return f"row count differs: midikey={len(ours)} mido={len(theirs)}"
    return None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compare note timing with mido.")
    parser.add_argument("paths", nargs="+", type=Path, help="MIDI files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show decoder debug logging")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    failures = 0
    for path in args.paths:
        ours = midikey_notes(path.read_bytes())
        if ours is None:
            print(f"skip  {path} (SMPTE or format 2)")
            continue
        mismatch = first_mismatch(ours, mido_notes(path))
        if mismatch is None:
            print(f"ok    {path} notes={len(ours)}")
        else:
            failures += 1
            print(f"FAIL  {path} {mismatch}")
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
