"""Sequential big-endian reader over a Standard MIDI File buffer.

All multi-byte integers in an SMF are big-endian.  Delta times and meta
event lengths use the variable-length quantity (VLQ) encoding: 7 data
bits per byte, most significant group first, high bit set on every byte
except the last.  The format caps a VLQ at four bytes (0x0FFFFFFF).
"""

from __future__ import annotations

import struct

from .errors import MalformedVLQ, OutOfBounds

VLQ_MAX = 0x0FFFFFFF
VLQ_MAX_BYTES = 4


class ByteCursor:
    """Single-direction read head over an immutable byte buffer."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes, position: int = 0) -> None:
        self._data = bytes(data)
        if not 0 <= position <= len(self._data):
            raise OutOfBounds(f"start position {position} outside buffer of {len(self._data)} bytes")
        self._pos = position

    def __repr__(self) -> str:
        return f"ByteCursor(position=0x{self._pos:X}, size={len(self._data)})"

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _require(self, count: int) -> None:
        if count > self.remaining:
            raise OutOfBounds(
                f"need {count} byte(s), only {self.remaining} left",
                offset=self._pos,
            )

    def seek(self, offset: int) -> None:
        if not 0 <= offset <= len(self._data):
            raise OutOfBounds(f"seek outside buffer of {len(self._data)} bytes", offset=offset)
        self._pos = offset

    def skip(self, count: int) -> None:
        self._require(count)
        self._pos += count

    def peek_u8(self) -> int:
        self._require(1)
        return self._data[self._pos]

    def read_u8(self) -> int:
        self._require(1)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_be16(self) -> int:
        self._require(2)
        (value,) = struct.unpack_from(">H", self._data, self._pos)
        self._pos += 2
        return value

    def read_be32(self) -> int:
        self._require(4)
        (value,) = struct.unpack_from(">I", self._data, self._pos)
        self._pos += 4
        return value

    def read_bytes(self, count: int) -> bytes:
        self._require(count)
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def read_tag(self) -> bytes:
        """Read a 4-byte chunk identifier such as ``b"MThd"``."""
        return self.read_bytes(4)

    def read_vlq(self) -> int:
        """Read a variable-length quantity.

        Raises ``MalformedVLQ`` when a fifth byte would be needed, and
        ``OutOfBounds`` when the buffer ends mid-quantity.
        """
        start = self._pos
        value = 0
        for _ in range(VLQ_MAX_BYTES):
            byte = self.read_u8()
            value = (value << 7) | (byte & 0x7F)
            if not byte & 0x80:
                return value
        raise MalformedVLQ("variable-length quantity exceeds 28 bits", offset=start)


def encode_vlq(value: int) -> bytes:
    """Encode ``value`` as a MIDI variable-length quantity."""
    if value < 0 or value > VLQ_MAX:
        raise MalformedVLQ(f"value {value} outside VLQ range [0, 0x{VLQ_MAX:X}]")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def vlq_length(data: bytes) -> int:
    """Return how many leading bytes of ``data`` form one VLQ."""
    for idx, byte in enumerate(data[:VLQ_MAX_BYTES]):
        if not byte & 0x80:
            return idx + 1
    raise MalformedVLQ("no terminated variable-length quantity at start of data")
