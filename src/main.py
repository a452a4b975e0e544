import argparse
import logging
import sys

from src.bussines_logic.controller import parse_log_file
from src.bussines_logic.errors import BinLogParseError
from src.bussines_logic.message_filter import ByName, ByTypeId
from src.utils.log_config import logger, set_console_level


def _parse_header(values):
    return [int(value, 16) for value in values]


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Scan an ArduPilot BIN log and list its message types.")
    ap.add_argument("file", help="Path to .BIN log file")
    ap.add_argument("--header", nargs=2, default=["A3", "95"], metavar=("H0", "H1"),
                    help="Sync header bytes in hex (default: A3 95)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print scan progress to stderr")
    group = ap.add_mutually_exclusive_group()
    group.add_argument("--names", nargs="+", help="Only extract these message names")
    group.add_argument("--ids", nargs="+", type=int, help="Only extract these message type ids")
    return ap


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)

    message_filter = None
    if args.names:
        message_filter = ByName(args.names)
    elif args.ids:
        message_filter = ByTypeId(args.ids)

    try:
        header = _parse_header(args.header)
        result = parse_log_file(args.file, header=header, message_filter=message_filter)
    except (BinLogParseError, OSError, ValueError) as error:
        logger.error(f"Failed to parse {args.file}: {error}")
        return 1

    print(f"FMT length: {result.fmt_record_length} | formats: {len(result.formats)} | "
          f"messages: {result.total_message_count:,}")
    for fmt_record, instances in zip(result.formats, result.instances_by_format):
        print(f"{fmt_record.type_id:>4} {fmt_record.name:<4} len={fmt_record.record_length:<4} "
              f"count={len(instances):<8} {fmt_record.format_codes:<16} {fmt_record.field_labels}")
    for warning in result.warnings:
        print(f"[WARNING] {warning}", file=sys.stderr)

    logger.debug(f"Total messages: {result.total_message_count}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
