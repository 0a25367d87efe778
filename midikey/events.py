"""Decoded track events and the MIDI status/meta vocabulary.

Status byte layout:

  0x80-0xEF  channel messages: high nibble = message, low nibble = channel
  0xF0       system exclusive, terminated by 0xF7
  0xF7       escaped sysex: VLQ length + raw bytes
  0xF1-0xFE  system common / realtime
  0xFF       meta event (files only): type byte, VLQ length, payload
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .cursor import vlq_length

NOTE_OFF = 0x80
NOTE_ON = 0x90
POLY_PRESSURE = 0xA0
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_BEND = 0xE0

SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7
META = 0xFF

META_SEQUENCE_NUMBER = 0x00
META_TEXT = 0x01
META_TRACK_NAME = 0x03
META_END_OF_TRACK = 0x2F
META_SET_TEMPO = 0x51
META_TIME_SIGNATURE = 0x58
META_KEY_SIGNATURE = 0x59

CHANNEL_MESSAGE_NAMES = {
    NOTE_OFF: "Note Off",
    NOTE_ON: "Note On",
    POLY_PRESSURE: "Polyphonic Key Pressure",
    CONTROL_CHANGE: "Control Change",
    PROGRAM_CHANGE: "Program Change",
    CHANNEL_PRESSURE: "Channel Pressure",
    PITCH_BEND: "Pitch Bend Change",
}

META_NAMES = {
    0x00: "Sequence Number",
    0x01: "Text",
    0x02: "Copyright",
    0x03: "Track Name",
    0x04: "Instrument Name",
    0x05: "Lyric",
    0x06: "Marker",
    0x07: "Cue Point",
    0x08: "Program Name",
    0x09: "Device Name",
    0x20: "Channel Prefix",
    0x21: "Port",
    0x2F: "End of Track",
    0x51: "Set Tempo",
    0x54: "SMPTE Offset",
    0x58: "Time Signature",
    0x59: "Key Signature",
    0x7F: "Sequencer Specific",
}

# Data bytes following a system-common status byte (0xF0/0xF7 handled separately).
SYSTEM_DATA_LENGTHS = {0xF1: 1, 0xF2: 2, 0xF3: 1}


def channel_data_length(status: int) -> int:
    """Program Change and Channel Pressure carry one data byte, the rest two."""
    return 1 if (status & 0xF0) in (PROGRAM_CHANGE, CHANNEL_PRESSURE) else 2


class EventKind(enum.Enum):
    CHANNEL = "channel"
    META = "meta"
    SYSEX = "sysex"
    SYSTEM = "system"


@dataclass(frozen=True)
class TrackEvent:
    """One event from a track chunk, resolved at decode time.

    ``parameters`` holds the bytes that follow the status byte in the file.
    For meta events that is the VLQ length plus payload; use ``payload``
    for the data alone.
    """

    delta: int
    status: int
    parameters: bytes
    kind: EventKind
    meta_type: Optional[int] = None
    offset: Optional[int] = None  # byte offset of the event in the file

    @property
    def message(self) -> Optional[int]:
        """High nibble of a channel status (0x80..0xE0)."""
        if self.kind is not EventKind.CHANNEL:
            return None
        return self.status & 0xF0

    @property
    def channel(self) -> Optional[int]:
        if self.kind is not EventKind.CHANNEL:
            return None
        return self.status & 0x0F

    @property
    def payload(self) -> bytes:
        if self.kind is EventKind.META or self.status == SYSEX_ESCAPE:
            return self.parameters[vlq_length(self.parameters):]
        return self.parameters

    @property
    def is_note_on(self) -> bool:
        return self.message == NOTE_ON

    @property
    def is_note_off(self) -> bool:
        return self.message == NOTE_OFF

    @property
    def is_set_tempo(self) -> bool:
        return self.kind is EventKind.META and self.meta_type == META_SET_TEMPO

    @property
    def is_key_signature(self) -> bool:
        return self.kind is EventKind.META and self.meta_type == META_KEY_SIGNATURE

    @property
    def is_end_of_track(self) -> bool:
        return self.kind is EventKind.META and self.meta_type == META_END_OF_TRACK

    def describe(self) -> str:
        """Human readable event name, ``"???"`` for unmapped types."""
        if self.kind is EventKind.CHANNEL:
            return CHANNEL_MESSAGE_NAMES.get(self.status & 0xF0, "???")
        if self.kind is EventKind.META:
            assert self.meta_type is not None
            return "Meta: " + META_NAMES.get(self.meta_type, f"0x{self.meta_type:02X}")
        if self.kind is EventKind.SYSEX:
            return "System Exclusive"
        return f"System 0x{self.status:02X}"
