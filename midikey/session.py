from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Tuple

from .scale import MIDDLE_OCTAVE, MODES, TONES
from .targets import EventType, TimelineEvent

SUPPORTED_SESSION_VERSION = 1
OCTAVE_RANGE = (-1, 9)
MAX_TRACK_INDEX = 0xFFFF  # header track count is a u16


@dataclass(frozen=True)
class Session:
    """Caller-owned settings for one timeline build.

    ``transpose`` locks the displayed key: the timeline still reports
    every key signature, but ``display_key`` ignores them.
    """

    tonic: str = "C"
    mode: str = "ionian"
    octave: int = MIDDLE_OCTAVE
    transpose: bool = False
    muted_tracks: FrozenSet[int] = field(default_factory=frozenset)

    def with_overrides(
        self,
        *,
        tonic: Optional[str] = None,
        mode: Optional[str] = None,
        octave: Optional[int] = None,
        transpose: Optional[bool] = None,
    ) -> "Session":
        updated = replace(
            self,
            tonic=tonic if tonic is not None else self.tonic,
            mode=mode if mode is not None else self.mode,
            octave=octave if octave is not None else self.octave,
            transpose=transpose if transpose is not None else self.transpose,
        )
        _check_key(updated.tonic, updated.mode)
        _check_octave(updated.octave)
        return updated

    def display_key(self, events: Iterable[TimelineEvent]) -> Tuple[str, str]:
        """Key shown after ``events`` have played, honouring ``transpose``."""
        tonic, mode = self.tonic, self.mode
        if self.transpose:
            return tonic, mode
        for event in events:
            if event.event_type is EventType.KEY_SIGNATURE:
                assert event.tonic is not None and event.mode is not None
                tonic, mode = event.tonic, event.mode
        return tonic, mode


def _check_int(value: object, name: str) -> int:
    # bool is an int subclass; JSON true/false is not a number here.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    return value


def _check_octave(value: object) -> int:
    octave = _check_int(value, "octave")
    low, high = OCTAVE_RANGE
    if not low <= octave <= high:
        raise ValueError(f"octave={octave} outside [{low}, {high}]")
    return octave


def _check_key(tonic: object, mode: object) -> None:
    if tonic not in TONES:
        raise ValueError(f"tonic must be one of: {', '.join(TONES)}")
    if mode not in MODES:
        raise ValueError(f"mode must be one of: {', '.join(MODES)}")


def _muted_tracks(value: object) -> FrozenSet[int]:
    if not isinstance(value, list):
        raise ValueError("muted_tracks must be a list of track indices")
    tracks = set()
    for idx, item in enumerate(value):
        track = _check_int(item, f"muted_tracks[{idx}]")
        if not 0 <= track <= MAX_TRACK_INDEX:
            raise ValueError(f"muted_tracks[{idx}]={track} outside [0, {MAX_TRACK_INDEX}]")
        tracks.add(track)
    return frozenset(tracks)


def parse_session(data: object) -> Session:
    """Build a ``Session`` from decoded JSON; every key is optional."""
    if not isinstance(data, dict):
        raise ValueError("session must be a JSON object")

    version = _check_int(data.get("version", SUPPORTED_SESSION_VERSION), "version")
    if version != SUPPORTED_SESSION_VERSION:
        raise ValueError(
            f"unsupported session version {version}; supported version is {SUPPORTED_SESSION_VERSION}"
        )

    tonic = data.get("tonic", "C")
    mode = data.get("mode", "ionian")
    _check_key(tonic, mode)

    transpose = data.get("transpose", False)
    if not isinstance(transpose, bool):
        raise ValueError("transpose must be a boolean")

    return Session(
        tonic=tonic,
        mode=mode,
        octave=_check_octave(data.get("octave", MIDDLE_OCTAVE)),
        transpose=transpose,
        muted_tracks=_muted_tracks(data.get("muted_tracks", [])),
    )


def load_session(path: Path | str) -> Session:
    session_path = Path(path).expanduser().resolve()
    payload = json.loads(session_path.read_text(encoding="utf-8"))
    return parse_session(payload)
