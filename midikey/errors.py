"""Exception types raised while decoding and mapping MIDI files.

Every error derives from ``ValueError`` so callers that only care about
"bad input" can catch that, while tests and tools can match the precise
condition.
"""

from __future__ import annotations

from typing import Optional


class MidiError(ValueError):
    """Base class for every error raised by midikey."""


class MidiDecodeError(MidiError):
    """The byte stream violates the Standard MIDI File encoding."""

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset 0x{offset:X})"
        super().__init__(message)


class OutOfBounds(MidiDecodeError):
    """A read ran past the end of the buffer."""


class MalformedVLQ(MidiDecodeError):
    """A variable-length quantity needs more than 28 bits."""


class InvalidHeaderTag(MidiDecodeError):
    """The file does not start with an ``MThd`` chunk."""


class TrailingData(MidiDecodeError):
    """Bytes remain after the last declared track chunk."""


class TruncatedChunk(MidiDecodeError):
    """A chunk's declared size does not match its contents."""


class TruncatedTrack(TruncatedChunk):
    """Track events do not end exactly on the chunk boundary."""


class MissingInitialStatus(MidiDecodeError):
    """Running status was needed before any status byte appeared."""


class InvalidDivision(MidiDecodeError):
    """The header time division cannot drive a clock."""


class InvalidTempo(MidiError):
    """A Set-Tempo payload is empty or zero."""


class ScaleError(MidiError):
    """Base class for scale and key-signature errors."""


class UnknownTonic(ScaleError):
    """Tonic name is not in the enharmonic table."""


class UnknownMode(ScaleError):
    """Mode name is not one of the seven diatonic modes."""


class NonMonotonicScale(ScaleError):
    """Scale offsets are not strictly ascending."""


class InvalidKeySignature(ScaleError):
    """Key-signature meta parameters cannot be decoded."""


class OutOfRangeAccidental(ScaleError):
    """A note sits more than one semitone away from its degree."""
