"""Decode Standard MIDI File chunks into headers and track event lists.

File layout::

  "MThd" u32 size=6  u16 format  u16 ntrks  u16 division
  "MTrk" u32 size    <delta VLQ> <event> ... (exactly `size` bytes)
  ...                (ntrks track chunks, nothing after the last)

Chunks with any other tag inside the track area are vendor extensions:
their bytes are skipped and they count as an empty track.

Running status: a channel message may omit its status byte when it
matches the previous channel message on the same track.  Meta and sysex
events always carry an explicit status and leave running status alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from loguru import logger

from .cursor import ByteCursor
from .errors import (
    InvalidDivision,
    InvalidHeaderTag,
    MissingInitialStatus,
    OutOfBounds,
    TrailingData,
    TruncatedChunk,
    TruncatedTrack,
)
from .events import (
    META,
    SYSEX,
    SYSEX_ESCAPE,
    SYSTEM_DATA_LENGTHS,
    EventKind,
    TrackEvent,
    channel_data_length,
)
from .tempo import TimeDivision

HEADER_TAG = b"MThd"
TRACK_TAG = b"MTrk"
HEADER_BODY_SIZE = 6


@dataclass(frozen=True)
class Header:
    chunk_id: bytes
    chunk_size: int
    format_type: int
    track_count: int
    time_division: int

    @property
    def division(self) -> TimeDivision:
        return TimeDivision.from_raw(self.time_division)

    @classmethod
    def read(cls, cursor: ByteCursor) -> "Header":
        start = cursor.position
        chunk_id = cursor.read_tag()
        if chunk_id != HEADER_TAG:
            raise InvalidHeaderTag(f"bad header tag {chunk_id!r}, expected {HEADER_TAG!r}", offset=start)
        chunk_size = cursor.read_be32()
        if chunk_size < HEADER_BODY_SIZE:
            raise TruncatedChunk(
                f"header chunk declares {chunk_size} bytes, need {HEADER_BODY_SIZE}",
                offset=start,
            )
        body_start = cursor.position
        format_type = cursor.read_be16()
        track_count = cursor.read_be16()
        time_division = cursor.read_be16()
        try:
            TimeDivision.from_raw(time_division)
        except InvalidDivision as exc:
            raise InvalidDivision(str(exc), offset=body_start + 4) from None
        # Later revisions of the format may extend the header; skip the rest.
        cursor.seek(body_start)
        cursor.skip(chunk_size)
        return cls(
            chunk_id=chunk_id,
            chunk_size=chunk_size,
            format_type=format_type,
            track_count=track_count,
            time_division=time_division,
        )


@dataclass(frozen=True)
class Track:
    """One track chunk.  Vendor chunks decode to an empty event list."""

    index: int
    chunk_id: bytes
    chunk_size: int
    offset: int
    events: List[TrackEvent] = field(default_factory=list)

    @property
    def is_vendor_chunk(self) -> bool:
        return self.chunk_id != TRACK_TAG

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class MidiFile:
    header: Header
    tracks: List[Track]

    @property
    def division(self) -> TimeDivision:
        return self.header.division

    @property
    def format_type(self) -> int:
        return self.header.format_type

    @property
    def event_count(self) -> int:
        return sum(len(track.events) for track in self.tracks)


def decode_event(cursor: ByteCursor, running_status: Optional[int]) -> Tuple[TrackEvent, Optional[int]]:
    """Decode one event starting at its delta time.

    Returns the event and the running status to use for the next event.
    """
    offset = cursor.position
    delta = cursor.read_vlq()
    status_pos = cursor.position
    status = cursor.read_u8()

    if status & 0xF0 == 0xF0:
        if status == META:
            meta_type = cursor.read_u8()
            length_start = cursor.position
            length = cursor.read_vlq()
            length_bytes = cursor.data[length_start : cursor.position]
            parameters = length_bytes + cursor.read_bytes(length)
            event = TrackEvent(delta, status, parameters, EventKind.META, meta_type=meta_type, offset=offset)
        elif status == SYSEX:
            end = cursor.data.find(bytes([SYSEX_ESCAPE]), cursor.position)
            if end == -1:
                raise OutOfBounds("unterminated system exclusive message", offset=status_pos)
            parameters = cursor.read_bytes(end + 1 - cursor.position)
            event = TrackEvent(delta, status, parameters, EventKind.SYSEX, offset=offset)
        elif status == SYSEX_ESCAPE:
            length_start = cursor.position
            length = cursor.read_vlq()
            length_bytes = cursor.data[length_start : cursor.position]
            parameters = length_bytes + cursor.read_bytes(length)
            event = TrackEvent(delta, status, parameters, EventKind.SYSEX, offset=offset)
        else:
            parameters = cursor.read_bytes(SYSTEM_DATA_LENGTHS.get(status, 0))
            event = TrackEvent(delta, status, parameters, EventKind.SYSTEM, offset=offset)
        return event, running_status

    if status & 0x80:
        running_status = status
        data = b""
    else:
        if running_status is None:
            raise MissingInitialStatus(
                f"data byte 0x{status:02X} before any status byte",
                offset=status_pos,
            )
        data = bytes([status])

    remaining = channel_data_length(running_status) - len(data)
    parameters = data + cursor.read_bytes(remaining)
    return TrackEvent(delta, running_status, parameters, EventKind.CHANNEL, offset=offset), running_status


def decode_track(cursor: ByteCursor, index: int = 0) -> Track:
    offset = cursor.position
    chunk_id = cursor.read_tag()
    chunk_size = cursor.read_be32()
    chunk_start = cursor.position
    chunk_end = chunk_start + chunk_size
    if chunk_end > len(cursor.data):
        raise TruncatedTrack(
            f"chunk {chunk_id!r} declares {chunk_size} bytes, only {cursor.remaining} left",
            offset=offset,
        )

    if chunk_id != TRACK_TAG:
        logger.debug("skipping vendor chunk {!r} ({} bytes) at 0x{:X}", chunk_id, chunk_size, offset)
        cursor.skip(chunk_size)
        return Track(index=index, chunk_id=chunk_id, chunk_size=chunk_size, offset=offset)

    events: List[TrackEvent] = []
    running_status: Optional[int] = None
    # Reads are bounded by the chunk so an event cannot spill into the next chunk.
    track_cursor = ByteCursor(cursor.data[:chunk_end], chunk_start)
    try:
        while track_cursor.position < chunk_end:
            event, running_status = decode_event(track_cursor, running_status)
            events.append(event)
    except OutOfBounds as exc:
        raise TruncatedTrack(f"track {index} ends mid-event: {exc}", offset=exc.offset) from exc
    cursor.seek(chunk_end)
    return Track(index=index, chunk_id=chunk_id, chunk_size=chunk_size, offset=offset, events=events)


def decode_file(data: bytes) -> MidiFile:
    cursor = ByteCursor(data)
    header = Header.read(cursor)
    tracks = [decode_track(cursor, index) for index in range(header.track_count)]
    if not cursor.at_end:
        raise TrailingData(
            f"{cursor.remaining} byte(s) after the last of {header.track_count} track chunk(s)",
            offset=cursor.position,
        )
    midi = MidiFile(header=header, tracks=tracks)
    logger.debug(
        "decoded format {} file: {} track(s), {} event(s), division 0x{:04X}",
        header.format_type,
        len(tracks),
        midi.event_count,
        header.time_division,
    )
    return midi
