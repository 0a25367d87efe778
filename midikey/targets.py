"""Project merged MIDI events into degree-mapped timeline records.

A note between two scale degrees yields two records, one per bounding
degree, each with its own accidental.  Key signatures re-key every note
that follows them in the merged stream.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from loguru import logger

from .scale import MIDDLE_OCTAVE, accidental_for, build_scale, decode_key_signature, note_to_degrees
from .tempo import MICROS_PER_SECOND, tempo_from_payload
from .timeline import MergedEvent

if TYPE_CHECKING:
    from .session import Session


class EventType(enum.Enum):
    NOTE_ON = "Note On"
    NOTE_OFF = "Note Off"
    KEY_SIGNATURE = "Key Signature"
    TEMPO_CHANGE = "Tempo Change"
    OTHER = "Other"


@dataclass(frozen=True)
class TimelineEvent:
    timestamp: float
    event_type: EventType
    track: int
    degree: Optional[int] = None
    accidental: Optional[int] = None
    note: Optional[int] = None
    velocity: Optional[int] = None
    channel: Optional[int] = None
    tonic: Optional[str] = None
    mode: Optional[str] = None
    tempo_bpm: Optional[float] = None
    description: str = ""

    @property
    def is_note(self) -> bool:
        return self.event_type in (EventType.NOTE_ON, EventType.NOTE_OFF)

    def to_dict(self) -> dict:
        out: dict = {
            "timestamp": self.timestamp,
            "type": self.event_type.value,
            "track": self.track,
        }
        for name in ("degree", "accidental", "note", "velocity", "channel", "tonic", "mode", "tempo_bpm"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        if self.description:
            out["description"] = self.description
        return out


def _tempo_bpm(payload: bytes, smpte: bool) -> Optional[float]:
    """BPM of a Set-Tempo payload.

    SMPTE-timed files ignore tempo, so an empty or zero payload there is
    reported with no BPM instead of failing the build.
    """
    if smpte and int.from_bytes(payload, "big") == 0:
        return None
    return 60.0 * MICROS_PER_SECOND / tempo_from_payload(payload)


def project_event(
    merged: MergedEvent,
    tonic: str,
    mode: str,
    octave: int = MIDDLE_OCTAVE,
    *,
    smpte: bool = False,
) -> List[TimelineEvent]:
    event = merged.event
    base = dict(timestamp=merged.timestamp, track=merged.track, description=event.describe())

    if event.is_key_signature:
        key_tonic, key_mode = decode_key_signature(event.parameters)
        return [TimelineEvent(event_type=EventType.KEY_SIGNATURE, tonic=key_tonic, mode=key_mode, **base)]

    if event.is_set_tempo:
        bpm = _tempo_bpm(event.payload, smpte)
        return [TimelineEvent(event_type=EventType.TEMPO_CHANGE, tempo_bpm=bpm, **base)]

    if event.is_note_on or event.is_note_off:
        note, velocity = event.parameters[0], event.parameters[1]
        event_type = EventType.NOTE_OFF if event.is_note_off or velocity == 0 else EventType.NOTE_ON
        scale = build_scale(tonic, mode)
        return [
            TimelineEvent(
                event_type=event_type,
                degree=degree,
                accidental=accidental_for(scale, octave, note, degree),
                note=note,
                velocity=velocity,
                channel=event.channel,
                **base,
            )
            for degree in note_to_degrees(scale, octave, note)
        ]

    if event.is_end_of_track:
        return []

    return [TimelineEvent(event_type=EventType.OTHER, channel=event.channel, **base)]


class TimelineProjector:
    """Walk a merged stream, tracking the key in force at each event."""

    def __init__(self, session: "Session", *, smpte: bool = False) -> None:
        self.session = session
        self.smpte = smpte
        self.tonic = session.tonic
        self.mode = session.mode

    def project(self, merged_events: Iterable[MergedEvent]) -> List[TimelineEvent]:
        timeline: List[TimelineEvent] = []
        muted = self.session.muted_tracks
        for merged in merged_events:
            records = project_event(merged, self.tonic, self.mode, self.session.octave, smpte=self.smpte)
            for record in records:
                if record.event_type is EventType.KEY_SIGNATURE:
                    assert record.tonic is not None and record.mode is not None
                    if (record.tonic, record.mode) != (self.tonic, self.mode):
                        logger.debug(
                            "key change to {} {} at {:.3f}s (track {})",
                            record.tonic,
                            record.mode,
                            record.timestamp,
                            record.track,
                        )
                    self.tonic, self.mode = record.tonic, record.mode
                elif record.is_note and merged.track in muted:
                    continue
                timeline.append(record)
        return timeline
