#!/usr/bin/env python3
"""Human-readable Standard MIDI File inspector.

Prints the header, the resolved time division and a per-track summary.
With ``--events`` every decoded event is listed with its absolute tick,
merged timestamp and raw parameter bytes; note events also show the
pitch-class name and frequency, which helps when checking a file's key
against the degrees the timeline reports.
"""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path
import sys
from typing import List

from loguru import logger

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midikey.decoder import MidiFile, decode_file  # noqa: E402
from midikey.errors import MidiError  # noqa: E402
from midikey.scale import decode_key_signature, key_signature_spelling, note_frequency, note_name  # noqa: E402
from midikey.tempo import SmpteFrames  # noqa: E402
from midikey.timeline import MergedEvent, merge_file  # noqa: E402


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> | {name}:{function}:{line} - {message}",
    )


def describe_division(midi: MidiFile) -> str:
    division = midi.division
    if isinstance(division, SmpteFrames):
        return f"SMPTE {division.frames_per_second:g} fps x {division.ticks_per_frame} ticks/frame"
    return f"{division.ticks} ticks/quarter"


def format_event(merged: MergedEvent) -> str:
    event = merged.event
    line = (
        f"  {merged.timestamp:10.4f}s  tick={merged.tick:<8d} trk={merged.track:<3d} "
        f"{event.describe():<28s} {event.parameters.hex(' ')}"
    )
    if event.is_note_on or event.is_note_off:
        note = event.parameters[0]
        line += f"  [{note_name(note)} {note_frequency(note)}hz ch{event.channel}]"
    elif event.is_key_signature:
        tonic, mode = decode_key_signature(event.parameters)
        spelling = key_signature_spelling(tonic, mode).render(unicode=False) or "-"
        line += f"  [{tonic} {mode}: {spelling}]"
    return line


def report(path: Path, *, show_events: bool) -> List[str]:
    midi = decode_file(path.read_bytes())
    header = midi.header
    lines = [
        f"file: {path}",
        f"format={header.format_type} tracks={header.track_count} "
        f"division=0x{header.time_division:04X} ({describe_division(midi)})",
    ]
    for track in midi.tracks:
        kinds = Counter(event.describe() for event in track.events)
        tag = track.chunk_id.decode("latin-1")
        summary = ", ".join(f"{name} x{count}" for name, count in kinds.most_common(4))
        lines.append(
            f"  track {track.index:<3d} {tag} size={track.chunk_size:<7d} events={len(track.events):<6d} {summary}"
        )
    if show_events:
        lines.append("events:")
        lines.extend(format_event(merged) for merged in merge_file(midi))
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect Standard MIDI Files.")
    parser.add_argument("paths", nargs="+", type=Path, help="MIDI files to inspect")
    parser.add_argument("--events", action="store_true", help="List every merged event")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show decoder debug logging")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    status = 0
    for path in args.paths:
        try:
            lines = report(path, show_events=args.events)
        except (OSError, MidiError) as exc:
            print(f"{path}: {exc}", file=sys.stderr)
            status = 1
            continue
        print("\n".join(lines))
    return status


if __name__ == "__main__":
    raise SystemExit(main())
