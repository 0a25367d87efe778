"""Merge per-track event lists into one chronologically ordered stream.

Each track holds at most one pending candidate in a heap keyed on
``(absolute_tick, track_index)``.  All tracks share the file's tick
clock, so tick order is timestamp order; timestamps are taken from the
tempo map as candidates leave the heap, after every earlier Set-Tempo
event has been applied.  Equal ticks resolve to the lower track index.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .decoder import MidiFile, Track
from .events import TrackEvent
from .tempo import TempoMap, tempo_from_payload


@dataclass(frozen=True)
class MergedEvent:
    timestamp: float  # seconds from the start of the file
    tick: int  # absolute tick on the owning track
    track: int
    event: TrackEvent


@dataclass(frozen=True)
class Candidate:
    tick: int
    track: int
    position: int  # index of the event within its track
    event: TrackEvent


class _TrackReader:
    """Running tick accumulator over one track's events."""

    def __init__(self, index: int, track: Track) -> None:
        self.index = index
        self.track = track
        self.position = 0
        self.tick = 0

    def next_candidate(self) -> Optional[Candidate]:
        events = self.track.events
        if self.position >= len(events):
            return None
        event = events[self.position]
        self.tick += event.delta
        candidate = Candidate(self.tick, self.index, self.position, event)
        self.position += 1
        return candidate


def iter_merged(tracks: Sequence[Track], tempo_map: TempoMap) -> Iterator[MergedEvent]:
    readers = [_TrackReader(index, track) for index, track in enumerate(tracks)]
    heap: List[Tuple[int, int, int, Candidate]] = []

    def refill(index: int) -> None:
        candidate = readers[index].next_candidate()
        if candidate is not None:
            heapq.heappush(heap, (candidate.tick, candidate.track, candidate.position, candidate))

    for index in range(len(readers)):
        refill(index)

    while heap:
        _, _, _, candidate = heapq.heappop(heap)
        event = candidate.event
        timestamp = tempo_map.seconds_at(candidate.tick)
        # SMPTE clocks ignore tempo, so their Set-Tempo payloads are not decoded.
        if event.is_set_tempo and not tempo_map.is_smpte:
            tempo_map.apply_tempo(candidate.tick, tempo_from_payload(event.payload))
        yield MergedEvent(timestamp=timestamp, tick=candidate.tick, track=candidate.track, event=event)
        refill(candidate.track)


def merge_tracks(tracks: Sequence[Track], tempo_map: TempoMap) -> List[MergedEvent]:
    return list(iter_merged(tracks, tempo_map))


def merge_file(midi: MidiFile) -> List[MergedEvent]:
    """Merge every track of ``midi`` with a fresh tempo map."""
    return merge_tracks(midi.tracks, TempoMap(midi.division))
