import mmap
from typing import Sequence, Union

from src.utils.config_loader import config

SYNC_MARKER: bytes = bytes(config.parser.sync_header)

HeaderLike = Union[bytes, bytearray, Sequence[int]]
LogBuffer = Union[bytes, bytearray, memoryview, mmap.mmap]


def normalize_header(header: HeaderLike) -> bytes:
    """Turn a 2-byte header given as bytes or as two ints into bytes."""
    if isinstance(header, (bytes, bytearray)):
        header_bytes = bytes(header)
    else:
        try:
            values = list(header)
        except TypeError:
            raise ValueError(f"Header must be two bytes, got {header!r}") from None
        if not all(isinstance(value, int) and not isinstance(value, bool) for value in values):
            raise ValueError(f"Header values must be integers, got {values!r}")
        if not all(0 <= value <= 255 for value in values):
            raise ValueError(f"Header values must be in 0..255, got {values!r}")
        header_bytes = bytes(values)

    if len(header_bytes) != 2:
        raise ValueError(f"Header must be exactly 2 bytes, got {len(header_bytes)}")
    return header_bytes


def as_searchable(log_data: LogBuffer) -> Union[bytes, bytearray, mmap.mmap]:
    """Return a buffer supporting find() and int indexing (memoryviews are copied)."""
    if isinstance(log_data, memoryview):
        return log_data.tobytes()
    return log_data


def decode_fixed_string(raw_bytes: bytes) -> str:
    """Decode a NUL-padded char[] field, cut at the first zero byte."""
    return raw_bytes.split(b"\x00", 1)[0].decode("ascii", "ignore")
