#!/usr/bin/env python3
"""Write the degree-mapped timeline of a MIDI file as JSON.

Examples
--------
    python tools/midi_to_targets.py song.mid
    python tools/midi_to_targets.py song.mid --session session.json -o song.targets.json
    python tools/midi_to_targets.py song.mid --tonic G --mode mixolydian --octave 4
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

from loguru import logger

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midikey.errors import MidiError  # noqa: E402
from midikey.pipeline import load_timeline  # noqa: E402
from midikey.session import Session, load_session  # noqa: E402


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> | {name}:{function}:{line} - {message}",
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a MIDI file into timestamped scale-degree targets",
    )
    parser.add_argument("midi", type=Path, help="Input .mid file")
    parser.add_argument(
        "--session",
        type=Path,
        default=None,
        help="JSON session file (tonic, mode, octave, transpose, muted_tracks)",
    )
    parser.add_argument("--tonic", default=None, help="Initial tonic (overrides session)")
    parser.add_argument("--mode", default=None, help="Initial mode (overrides session)")
    parser.add_argument("--octave", type=int, default=None, help="Anchor octave (overrides session)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output JSON path (default: stdout)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show decoder debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        session = load_session(args.session) if args.session is not None else Session()
        session = session.with_overrides(tonic=args.tonic, mode=args.mode, octave=args.octave)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    try:
        timeline = load_timeline(args.midi, session)
    except (OSError, MidiError) as exc:
        print(f"{args.midi}: {exc}", file=sys.stderr)
        return 1
    payload = {
        "source": str(args.midi),
        "tonic": session.tonic,
        "mode": session.mode,
        "octave": session.octave,
        "events": [event.to_dict() for event in timeline],
    }
    text = json.dumps(payload, indent=2)

    if args.output is None:
        print(text)
        return 0

    out_path = args.output.expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {len(timeline)} events -> {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
