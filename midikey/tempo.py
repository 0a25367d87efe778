"""Tick to seconds conversion driven by the header division and tempo events.

The header's 16-bit division field selects one of two clocks:

  bit 15 = 0  ticks per quarter note; wall time follows Set-Tempo events
              (default 500000 us per quarter = 120 BPM)
  bit 15 = 1  SMPTE: high byte is the negative frame rate (-24, -25, -29,
              -30), low byte is ticks per frame; tempo events do not apply
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from loguru import logger

from .errors import InvalidDivision, InvalidTempo

DEFAULT_BEATS_PER_SECOND = 2.0  # 120 BPM
MICROS_PER_SECOND = 1_000_000
DROP_FRAME_RATE = 29.97
SMPTE_FRAME_RATES = (24, 25, 29, 30)


@dataclass(frozen=True)
class TicksPerQuarter:
    ticks: int

    def __post_init__(self) -> None:
        if self.ticks <= 0:
            raise InvalidDivision(f"ticks per quarter note must be positive, got {self.ticks}")

    @property
    def is_smpte(self) -> bool:
        return False


@dataclass(frozen=True)
class SmpteFrames:
    ticks_per_frame: int
    frames_per_second: float

    def __post_init__(self) -> None:
        if self.ticks_per_frame <= 0:
            raise InvalidDivision(f"ticks per frame must be positive, got {self.ticks_per_frame}")
        if self.frames_per_second not in (24.0, 25.0, DROP_FRAME_RATE, 30.0):
            raise InvalidDivision(f"unsupported SMPTE frame rate {self.frames_per_second:g}")

    @property
    def is_smpte(self) -> bool:
        return True


Division = Union[TicksPerQuarter, SmpteFrames]


class TimeDivision:
    """Factory for the two division variants.

    Raises ``InvalidDivision`` for a zero tick count or a frame rate other
    than -24, -25, -29 or -30.
    """

    @staticmethod
    def from_raw(value: int) -> Division:
        if not value & 0x8000:
            return TicksPerQuarter(ticks=value & 0x7FFF)
        frame_byte = (value >> 8) & 0xFF
        frames = 256 - frame_byte  # two's-complement negative rate
        if frames not in SMPTE_FRAME_RATES:
            raise InvalidDivision(f"SMPTE frame byte 0x{frame_byte:02X} is not -24, -25, -29 or -30")
        ticks_per_frame = value & 0xFF
        fps = DROP_FRAME_RATE if frames == 29 else float(frames)
        return SmpteFrames(ticks_per_frame=ticks_per_frame, frames_per_second=fps)


def tempo_from_payload(payload: bytes) -> int:
    """Microseconds per quarter note from a Set-Tempo payload (u24 BE)."""
    if not payload:
        raise InvalidTempo("empty Set-Tempo payload")
    micros = int.from_bytes(payload, "big")
    if micros == 0:
        raise InvalidTempo("Set-Tempo of 0 microseconds per beat")
    return micros


class TempoMap:
    """Mutable tempo state for a single decode-and-merge pass.

    ``seconds_at`` converts an absolute tick using the tempo changes
    applied so far; changes are only ever applied at or after the last
    converted tick, so earlier timestamps never move.
    """

    def __init__(self, division: Division) -> None:
        self.division = division
        self.beats_per_second = DEFAULT_BEATS_PER_SECOND
        self._anchor_tick = 0
        self._anchor_seconds = 0.0

    @property
    def is_smpte(self) -> bool:
        return self.division.is_smpte

    @property
    def ticks_per_beat(self) -> float:
        if isinstance(self.division, TicksPerQuarter):
            return float(self.division.ticks)
        return self.division.ticks_per_frame * self.division.frames_per_second

    @property
    def bpm(self) -> float:
        return self.beats_per_second * 60.0

    def _ticks_per_second(self) -> float:
        if isinstance(self.division, SmpteFrames):
            return self.division.ticks_per_frame * self.division.frames_per_second
        return self.division.ticks * self.beats_per_second

    def ticks_to_seconds(self, ticks: int) -> float:
        """Length of ``ticks`` at the current tempo."""
        return ticks / self._ticks_per_second()

    def seconds_at(self, tick: int) -> float:
        return self._anchor_seconds + self.ticks_to_seconds(tick - self._anchor_tick)

    def apply_tempo(self, tick: int, micros_per_beat: int) -> None:
        if micros_per_beat <= 0:
            raise InvalidTempo(f"invalid tempo {micros_per_beat} us per beat")
        if self.is_smpte:
            logger.debug("ignoring tempo {} us/beat at tick {} in SMPTE file", micros_per_beat, tick)
            return
        self._anchor_seconds = self.seconds_at(tick)
        self._anchor_tick = tick
        self.beats_per_second = MICROS_PER_SECOND / micros_per_beat
        logger.debug("tempo {:.3f} BPM from tick {} ({:.6f}s)", self.bpm, tick, self._anchor_seconds)
