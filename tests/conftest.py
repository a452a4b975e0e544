import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import mmap
import struct
import tempfile
import pytest
from typing import List, Sequence
from src.utils.log_config import setup_test_logger



logger = setup_test_logger()

SYNC_MARKER = b"\xA3\x95"
FMT_TYPE_ID = 0x80
FMT_MESSAGE_LENGTH = 89  # same as in parser

TST_TYPE_ID = 200
TST_STRUCT = struct.Struct("<Iff")
TST_LENGTH = TST_STRUCT.size + 3

GPS_TYPE_ID = 130
GPS_STRUCT = struct.Struct("<IB")
GPS_LENGTH = GPS_STRUCT.size + 3

TST_VALUES = [(1000, 1.5, -2.25), (1010, 3.0, 0.5), (1020, 10.0, 20.5)]
GPS_VALUES = [(1005, 3), (1015, 4)]


def build_fmt_message(message_type_id: int, name: str, ardu_format: str, field_names_csv: str,
                      total_msg_length: int, header: bytes = SYNC_MARKER) -> bytes:
    """Construct an FMT message definition binary block."""
    name_bytes = name.encode("ascii")
    if len(name_bytes) > 4:
        raise ValueError("name too long (max 4 bytes)")
    format_bytes = ardu_format.encode("ascii").ljust(16, b"\x00")
    fields_bytes = field_names_csv.encode("ascii")
    if len(fields_bytes) > 64:
        raise ValueError("fields string too long (max 64 bytes)")
    return (
        header
        + bytes([FMT_TYPE_ID, message_type_id, total_msg_length])
        + name_bytes.ljust(4, b"\x00")
        + format_bytes
        + fields_bytes.ljust(64, b"\x00")
    )


def build_data_message(message_type_id: int, payload_bytes: bytes, header: bytes = SYNC_MARKER) -> bytes:
    """Wrap a raw payload in sync and message ID markers."""
    return header + bytes([message_type_id]) + payload_bytes


def fmt_of_fmt(header: bytes = SYNC_MARKER) -> bytes:
    return build_fmt_message(FMT_TYPE_ID, "FMT", "BBnNZ", "Type,Length,Name,Format,Columns", FMT_MESSAGE_LENGTH, header)


def tst_fmt(header: bytes = SYNC_MARKER) -> bytes:
    return build_fmt_message(TST_TYPE_ID, "TST", "Iff", "TimeUS,Val1,Val2", TST_LENGTH, header)


def gps_fmt(header: bytes = SYNC_MARKER) -> bytes:
    return build_fmt_message(GPS_TYPE_ID, "GPS", "IB", "TimeUS,Status", GPS_LENGTH, header)


def tst_message(values: Sequence, header: bytes = SYNC_MARKER) -> bytes:
    return build_data_message(TST_TYPE_ID, TST_STRUCT.pack(*values), header)


def gps_message(values: Sequence, header: bytes = SYNC_MARKER) -> bytes:
    return build_data_message(GPS_TYPE_ID, GPS_STRUCT.pack(*values), header)


def make_synthetic_bin(header: bytes = SYNC_MARKER) -> bytes:
    """
    FMT(FMT) FMT(TST) FMT(GPS) then TST GPS TST GPS TST.
    Three 89-byte FMT records followed by interleaved data records.
    """
    data_messages: List[bytes] = []
    for index, tst_values in enumerate(TST_VALUES):
        data_messages.append(tst_message(tst_values, header))
        if index < len(GPS_VALUES):
            data_messages.append(gps_message(GPS_VALUES[index], header))

    binary_data = fmt_of_fmt(header) + tst_fmt(header) + gps_fmt(header) + b"".join(data_messages)
    logger.info(f"Created synthetic BIN with {len(data_messages)} data messages ({len(binary_data)} bytes).")
    return binary_data


@pytest.fixture
def synthetic_log() -> bytes:
    return make_synthetic_bin()


@pytest.fixture
def tmp_synthetic_file(synthetic_log):
    """Create a temporary .bin file with sample messages."""
    fd, temp_path = tempfile.mkstemp(suffix=".bin")
    with os.fdopen(fd, "wb") as file_handle:
        file_handle.write(synthetic_log)

    try:
        yield temp_path
    finally:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass


@pytest.fixture
def open_mapped_file(tmp_synthetic_file):
    """Open the synthetic .bin file as an mmap object."""
    with open(tmp_synthetic_file, "rb") as file_handle:
        mapped_log_file = mmap.mmap(file_handle.fileno(), 0, access=mmap.ACCESS_READ)
    try:
        yield mapped_log_file
    finally:
        mapped_log_file.close()
