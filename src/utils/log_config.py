# src/utils/log_config.py
import logging
import logging.handlers
import sys
from pathlib import Path
from src.utils.config_loader import config

SCANNER_LOGGER_NAME = "BinLogScanner"
TEST_LOGGER_NAME = "BinLogScannerTests"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _log_path(file_name: str) -> Path:
    """Place log files under the configured directory at the project root."""
    log_dir = Path(__file__).resolve().parents[2] / config.logging.dir
    log_dir.mkdir(exist_ok=True)
    return log_dir / file_name


def _file_handler(file_name: str, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=_log_path(file_name),
        mode="a",
        maxBytes=config.logging.max_bytes,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(config.logging.format, datefmt=DATE_FORMAT))
    handler.setLevel(level)
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.logging.format, datefmt=DATE_FORMAT))
    handler.setLevel(level)
    return handler


def _install_excepthook(scanner_logger: logging.Logger) -> None:
    """Route crashes (e.g. a log that cannot be mapped) into the scan log before exiting."""
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        scanner_logger.error("Scan aborted by %s: %s", exc_type.__name__, exc_value)
        print(f"\033[91m[bin-scanner] {exc_type.__name__}: {exc_value}\033[0m", file=sys.stderr)

    sys.excepthook = handle_exception


def setup_logger() -> logging.Logger:
    """
    Scanner logger.
    Per-log progress (FMT counts, scan timings) goes to the rotating scan log
    at the configured level; only errors reach the console.
    """
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    scanner_logger = logging.getLogger(SCANNER_LOGGER_NAME)
    scanner_logger.setLevel(level)
    scanner_logger.handlers.clear()
    scanner_logger.addHandler(_file_handler(config.logging.file_name, level))
    scanner_logger.addHandler(_console_handler(logging.ERROR))
    scanner_logger.propagate = False

    _install_excepthook(scanner_logger)
    return scanner_logger


def set_console_level(level: int) -> None:
    """Let the CLI surface scanner progress on stderr (e.g. --verbose)."""
    logger.setLevel(min(logger.level, level))
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def setup_test_logger() -> logging.Logger:
    """Test logger writing to logs/tests.log and the console, apart from the scan log."""
    test_logger = logging.getLogger(TEST_LOGGER_NAME)
    test_logger.setLevel(logging.INFO)
    test_logger.handlers.clear()
    test_logger.addHandler(_file_handler("tests.log", logging.INFO))
    test_logger.addHandler(_console_handler(logging.INFO))
    test_logger.propagate = False
    return test_logger


logger = setup_logger()
