"""Decode Standard MIDI Files into degree-mapped timelines for keyboard practice."""

from .cursor import ByteCursor, encode_vlq  # noqa: F401
from .decoder import (  # noqa: F401
    Header,
    MidiFile,
    Track,
    decode_event,
    decode_file,
    decode_track,
)
from .errors import (  # noqa: F401
    InvalidDivision,
    InvalidHeaderTag,
    InvalidKeySignature,
    InvalidTempo,
    MalformedVLQ,
    MidiDecodeError,
    MidiError,
    MissingInitialStatus,
    NonMonotonicScale,
    OutOfBounds,
    OutOfRangeAccidental,
    ScaleError,
    TrailingData,
    TruncatedChunk,
    TruncatedTrack,
    UnknownMode,
    UnknownTonic,
)
from .events import EventKind, TrackEvent  # noqa: F401
from .pipeline import build_timeline, load_timeline, read_midi  # noqa: F401
from .scale import (  # noqa: F401
    MIDDLE_OCTAVE,
    MODES,
    TONES,
    KeySignatureSpelling,
    Scale,
    build_scale,
    decode_key_signature,
    degree_to_note,
    key_signature_spelling,
    note_to_degrees,
)
from .session import Session, load_session, parse_session  # noqa: F401
from .targets import EventType, TimelineEvent, TimelineProjector, project_event  # noqa: F401
from .tempo import SmpteFrames, TempoMap, TicksPerQuarter, TimeDivision  # noqa: F401
from .timeline import MergedEvent, merge_file, merge_tracks  # noqa: F401
