import time
from typing import FrozenSet, Generator, List, Optional, Tuple

from src.bussines_logic.errors import EmptyFormatTableError, FORMAT_TABLE_OVERFLOW
from src.bussines_logic.message_filter import MessageFilter, resolve_message_filter
from src.bussines_logic.models import FRAME_LENGTH, FormatRecord, MessageInstance, ParseResult
from src.utils.config_loader import config
from src.utils.log_config import logger
from src.utils.utils import SYNC_MARKER, HeaderLike, LogBuffer, as_searchable, decode_fixed_string, normalize_header


FMT_TYPE_ID: int = config.parser.fmt_type_id
FMT_MESSAGE_LENGTH: int = config.parser.default_fmt_length
MAX_FORMAT_COUNT: int = config.parser.max_format_count

# FMT payload layout: type, length, name[4], format[16], labels[64]
FMT_TYPE_OFFSET: int = 0
FMT_LENGTH_OFFSET: int = 1
FMT_NAME_SLICE: slice = slice(2, 6)
FMT_FORMAT_SLICE: slice = slice(6, 22)
FMT_LABELS_SLICE: slice = slice(22, 86)


class BinLogParser:
    def __init__(
        self,
        log_data: LogBuffer,
        header: HeaderLike = SYNC_MARKER,
        max_format_count: int = MAX_FORMAT_COUNT,
    ) -> None:

        self.log_data = as_searchable(log_data)
        self.log_size: int = len(self.log_data)
        self.header: bytes = normalize_header(header)
        self.fmt_pattern: bytes = self.header + bytes([FMT_TYPE_ID])
        self.max_format_count = max_format_count
        self.fmt_record_length: int = FMT_MESSAGE_LENGTH
        self.fmt_definitions: List[FormatRecord] = []
        self.warnings: List[str] = []

    def parse(self, message_filter: MessageFilter = None) -> ParseResult:
        """Probe the FMT length, build the format table, then extract every selected message."""
        start_time: float = time.perf_counter()

        self.find_fmt_length()
        self.preload_fmt_messages()
        accepted_ids = resolve_message_filter(self.fmt_definitions, message_filter)
        instances_by_format, total_count = self.parse_messages(accepted_ids)

        logger.debug(
            "Parsed %s messages of %s/%s types in %.2fs",
            total_count, len(accepted_ids), len(self.fmt_definitions), time.perf_counter() - start_time,
        )
        return ParseResult(
            formats=list(self.fmt_definitions),
            instances_by_format=instances_by_format,
            total_message_count=total_count,
            fmt_record_length=self.fmt_record_length,
            warnings=list(self.warnings),
        )

    # ---------------------------------------------------------------------
    # FMT length probe
    # ---------------------------------------------------------------------
    def find_fmt_length(self) -> int:
        """
        Find the length of FMT records from the FMT message describing itself
        (frame followed by a second FMT id). Falls back to 89 when the log has
        no such record.
        """
        log_data = self.log_data
        position: int = 0

        while position + 5 <= self.log_size:
            match_offset: int = log_data.find(self.fmt_pattern, position)
            if match_offset == -1 or match_offset + 5 > self.log_size:
                break
            if log_data[match_offset + 3] == FMT_TYPE_ID:
                self.fmt_record_length = log_data[match_offset + 4]
                logger.debug("FMT record length %s found at offset %s", self.fmt_record_length, match_offset)
                return self.fmt_record_length
            position = match_offset + 1

        self.fmt_record_length = FMT_MESSAGE_LENGTH
        logger.debug("No self-describing FMT record, using default length %s", FMT_MESSAGE_LENGTH)
        return self.fmt_record_length

    # ---------------------------------------------------------------------
    # FMT table
    # ---------------------------------------------------------------------
    def preload_fmt_messages(self) -> int:
        """
        Scan the whole log for FMT messages and build the format table.
        Every offset is checked, so duplicate and overlapping declarations are kept.
        """
        fmt_length: int = self.fmt_record_length
        last_offset: int = self.log_size - fmt_length
        logger.debug("Scanning FMT messages in %s bytes (FMT length %s)...", f"{self.log_size:,}", fmt_length)

        self.fmt_definitions = []
        for fmt_offset in self._find_fmt_offsets(last_offset):
            if not self.is_valid_message(fmt_offset, fmt_length):
                continue

            fmt_record = self._parse_fmt_message(fmt_offset, fmt_length)
            if fmt_record is None:
                continue

            if len(self.fmt_definitions) >= self.max_format_count:
                warning = (
                    f"{FORMAT_TABLE_OVERFLOW}: more than {self.max_format_count} FMT messages, "
                    f"ignoring FMT at offset {fmt_offset} and beyond"
                )
                self.warnings.append(warning)
                logger.warning(warning)
                break

            self.fmt_definitions.append(fmt_record)

        if not self.fmt_definitions:
            raise EmptyFormatTableError(self.log_size)

        logger.debug("Total FMT definitions found: %s", len(self.fmt_definitions))
        return len(self.fmt_definitions)

    def _find_fmt_offsets(self, last_offset: int) -> Generator[int, None, None]:
        """Yield every offset <= last_offset where the FMT frame pattern starts."""
        position: int = 0
        while position <= last_offset:
            fmt_offset: int = self.log_data.find(self.fmt_pattern, position)
            if fmt_offset == -1 or fmt_offset > last_offset:
                break
            yield fmt_offset
            position = fmt_offset + 1

    def _parse_fmt_message(self, offset: int, fmt_length: int) -> Optional[FormatRecord]:
        """
        Read the fixed FMT fields; fields running past the record are truncated.
        Records too short to hold a type id and length are skipped.
        """
        payload: bytes = bytes(self.log_data[offset + FRAME_LENGTH : offset + fmt_length])
        if len(payload) <= FMT_LENGTH_OFFSET:
            logger.debug("FMT at offset %s too short (%s payload bytes), skipped", offset, len(payload))
            return None

        fmt_record = FormatRecord(
            type_id=payload[FMT_TYPE_OFFSET],
            record_length=payload[FMT_LENGTH_OFFSET],
            name=decode_fixed_string(payload[FMT_NAME_SLICE]),
            format_codes=decode_fixed_string(payload[FMT_FORMAT_SLICE]),
            field_labels=decode_fixed_string(payload[FMT_LABELS_SLICE]),
        )
        logger.debug("FMT %-3d %-4s len=%s @%s", fmt_record.type_id, fmt_record.name, fmt_record.record_length, offset)
        return fmt_record

    # ---------------------------------------------------------------------
    # Frame validation
    # ---------------------------------------------------------------------
    def is_valid_message(self, position: int, message_length: int) -> bool:
        """
        A candidate is accepted when it fits in the log and is followed by
        either the end of the log or another sync header. There is no checksum.
        """
        next_position: int = position + message_length
        if next_position > self.log_size:
            return False
        if next_position + 1 >= self.log_size:
            return True  # end of log, or a single trailing byte
        return (
            self.log_data[next_position] == self.header[0]
            and self.log_data[next_position + 1] == self.header[1]
        )

    # ---------------------------------------------------------------------
    # Message scan
    # ---------------------------------------------------------------------
    def build_lookup_table(self, accepted_ids: FrozenSet[int]) -> List[int]:
        """Map each type id to its format index; later declarations overwrite earlier ones."""
        lookup: List[int] = [-1] * 256
        for index, fmt_record in enumerate(self.fmt_definitions):
            if fmt_record.type_id in accepted_ids:
                lookup[fmt_record.type_id] = index
        return lookup

    def parse_messages(self, accepted_ids: FrozenSet[int]) -> Tuple[List[List[MessageInstance]], int]:
        """
        Single forward pass over the log. After a valid record the scan jumps
        to its end; otherwise it moves one byte past the header match.
        """
        lookup: List[int] = self.build_lookup_table(accepted_ids)
        instances_by_format: List[List[MessageInstance]] = [[] for _ in self.fmt_definitions]
        record_lengths: List[int] = [fmt_record.record_length for fmt_record in self.fmt_definitions]

        log_data = self.log_data
        header: bytes = self.header
        scan_end: int = self.log_size - 2
        total_count: int = 0
        position: int = 0
        start_time: float = time.perf_counter()

        while position < scan_end:
            position = log_data.find(header, position)
            if position == -1 or position >= scan_end:
                break

            fmt_index: int = lookup[log_data[position + 2]]
            if fmt_index < 0:
                position += 1  # unknown or filtered-out id
                continue

            message_length: int = record_lengths[fmt_index]
            if message_length < FRAME_LENGTH or not self.is_valid_message(position, message_length):
                position += 1  # false header match or truncated record
                continue

            payload: bytes = bytes(log_data[position + FRAME_LENGTH : position + message_length])
            instances_by_format[fmt_index].append(MessageInstance(position + 1, payload))
            total_count += 1
            position += message_length

        logger.debug("Extracted %s messages in %.2fs", total_count, time.perf_counter() - start_time)
        return instances_by_format, total_count

