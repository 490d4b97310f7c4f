"""Exact entry timestamps for ZIP archives.

ZIP headers store a DOS date/time: local time, 2-second resolution, years
1980-2107.  Script timestamps are epoch milliseconds, so each entry also
carries an extra field holding the exact value:

  header id  uint16  0x5342 ("SB")
  data size  uint16  8
  timestamp  int64   milliseconds since the Unix epoch

All values little-endian.  Entries without the field fall back to the DOS
time, read as UTC.
"""

from __future__ import annotations

import calendar
import struct
from datetime import UTC, datetime

TIMESTAMP_EXTRA_ID = 0x5342
TIMESTAMP_EXTRA_SIZE = 8

_EXTRA_HEADER_FMT = "<HH"
_EXTRA_HEADER_SIZE = 4
_TIMESTAMP_FMT = "<q"

DOS_MIN_MILLIS = int(datetime(1980, 1, 1, tzinfo=UTC).timestamp() * 1000)
DOS_MAX_MILLIS = int(datetime(2107, 12, 31, 23, 59, 58, tzinfo=UTC).timestamp() * 1000)


def encode_timestamp_extra(millis: int) -> bytes:
    """Build the extra field for *millis*.

    Raises:
        ValueError: If *millis* does not fit in a signed 64-bit integer.
    """
    try:
        return struct.pack(
            _EXTRA_HEADER_FMT + _TIMESTAMP_FMT[1:], TIMESTAMP_EXTRA_ID, TIMESTAMP_EXTRA_SIZE, millis
        )
    except struct.error as exc:
        raise ValueError(f"Timestamp {millis} out of range: {exc}") from exc


def decode_timestamp_extra(extra: bytes) -> int | None:
    """Return the timestamp stored in a ZIP extra block, or ``None`` if absent.

    Raises:
        ValueError: If a field header points past the end of the block or the
            timestamp field has the wrong size.
    """
    offset = 0
    while offset + _EXTRA_HEADER_SIZE <= len(extra):
        header_id, size = struct.unpack_from(_EXTRA_HEADER_FMT, extra, offset)
        offset += _EXTRA_HEADER_SIZE
        if offset + size > len(extra):
            raise ValueError(
                f"Extra field 0x{header_id:04x} truncated: need {size} bytes, "
                f"have {len(extra) - offset}"
            )
        if header_id == TIMESTAMP_EXTRA_ID:
            if size != TIMESTAMP_EXTRA_SIZE:
                raise ValueError(f"Timestamp extra field has size {size}, expected 8")
            (millis,) = struct.unpack_from(_TIMESTAMP_FMT, extra, offset)
            return millis
        offset += size
    return None


def to_dos_date_time(millis: int) -> tuple[int, int, int, int, int, int]:
    """Convert epoch milliseconds to a ZIP ``date_time`` tuple, clamped to the DOS range."""
    clamped = min(max(millis, DOS_MIN_MILLIS), DOS_MAX_MILLIS)
    dt = datetime.fromtimestamp(clamped / 1000, UTC)
    return (dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)


def from_dos_date_time(date_time: tuple[int, int, int, int, int, int]) -> int:
    """Convert a ZIP ``date_time`` tuple to epoch milliseconds, read as UTC.

    Fields outside their calendar range are clamped; archivers commonly store
    an all-zero DOS date, which zipfile reports as ``(1980, 0, 0, 0, 0, 0)``.
    """
    year, month, day, hour, minute, second = date_time
    year = min(max(year, 1980), 2107)
    month = min(max(month, 1), 12)
    day = min(max(day, 1), calendar.monthrange(year, month)[1])
    dt = datetime(
        year, month, day, min(hour, 23), min(minute, 59), min(second, 59), tzinfo=UTC
    )
    return int(dt.timestamp() * 1000)
