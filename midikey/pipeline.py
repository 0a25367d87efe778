"""One-shot entry points: bytes (or a path) in, projected timeline out."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from loguru import logger

from .decoder import MidiFile, decode_file
from .session import Session
from .targets import TimelineEvent, TimelineProjector
from .tempo import TempoMap
from .timeline import merge_tracks


def build_timeline(data: bytes, session: Optional[Session] = None) -> List[TimelineEvent]:
    """Decode ``data`` and return every timeline record in playback order.

    The tempo map lives only for this call; nothing is kept between calls.
    """
    session = session if session is not None else Session()
    midi = decode_file(data)
    tempo_map = TempoMap(midi.division)
    merged = merge_tracks(midi.tracks, tempo_map)
    timeline = TimelineProjector(session, smpte=midi.division.is_smpte).project(merged)
    logger.debug(
        "timeline: {} merged event(s) -> {} record(s), last at {:.3f}s",
        len(merged),
        len(timeline),
        timeline[-1].timestamp if timeline else 0.0,
    )
    return timeline


def read_midi(path: Path | str) -> MidiFile:
    return decode_file(Path(path).expanduser().read_bytes())


def load_timeline(path: Path | str, session: Optional[Session] = None) -> List[TimelineEvent]:
    midi_path = Path(path).expanduser()
    return build_timeline(midi_path.read_bytes(), session)
