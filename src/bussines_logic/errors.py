class BinLogParseError(Exception):
    """Base class for errors raised while scanning a BIN log."""


class EmptyFormatTableError(BinLogParseError):
    """No FMT record was found anywhere in the log; nothing can be extracted."""

    def __init__(self, log_size: int) -> None:
        super().__init__(f"No FMT messages found in {log_size:,} bytes of log data")
        self.log_size = log_size


FORMAT_TABLE_OVERFLOW = "FormatTableOverflow"
