import os
import mmap
import time
import tempfile
import pickle
from multiprocessing import Pool
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence

from src.bussines_logic.bin_log_parser import BinLogParser
from src.bussines_logic.message_filter import MessageFilter
from src.bussines_logic.models import ParseResult
from src.utils.config_loader import config
from src.utils.log_config import logger
from src.utils.utils import SYNC_MARKER, HeaderLike, LogBuffer


#  Global state for Multiprocessing workers
SHARED_HEADER: HeaderLike = SYNC_MARKER
SHARED_MESSAGE_FILTER: MessageFilter = None


def parse_log(
    log_data: LogBuffer,
    header: HeaderLike = SYNC_MARKER,
    message_filter: MessageFilter = None,
) -> ParseResult:
    """
    Parse an in-memory BIN log.

    Raises:
        EmptyFormatTableError: the log declares no message formats.
        ValueError: header is not two bytes.
    """
    return BinLogParser(log_data, header=header).parse(message_filter)


def parse_log_file(
    file_path: str,
    header: HeaderLike = SYNC_MARKER,
    message_filter: MessageFilter = None,
) -> ParseResult:
    """Memory-map a BIN file read-only and parse it. Payloads are copied, so the map can close."""
    if os.path.getsize(file_path) == 0:
        return parse_log(b"", header, message_filter)  # mmap refuses empty files

    with open(file_path, "rb") as file_handle:
        with mmap.mmap(file_handle.fileno(), 0, access=mmap.ACCESS_READ) as mapped_log_file:
            return parse_log(mapped_log_file, header, message_filter)


# ️ Multiprocessing Worker Initialization
def _init_worker(header: HeaderLike, message_filter: MessageFilter) -> None:
    """Store the parse options once per worker process."""
    global SHARED_HEADER, SHARED_MESSAGE_FILTER
    SHARED_HEADER = header
    SHARED_MESSAGE_FILTER = message_filter


#  Worker Functions (Processes / Threads)
def _worker_process_file(file_path: str) -> str:
    """
    Worker function for multiprocessing pool.

    Returns:
        Path to temporary pickle file holding the ParseResult.
    """
    try:
        parse_result = parse_log_file(file_path, SHARED_HEADER, SHARED_MESSAGE_FILTER)
        return _save_result_to_temp_file(parse_result)

    except Exception as error:
        logger.error(f"Worker failed on {file_path}: {error}")
        raise


def _worker_thread_file(file_path: str, header: HeaderLike, message_filter: MessageFilter) -> ParseResult:
    """Worker function for thread pool; results stay in memory."""
    try:
        return parse_log_file(file_path, header, message_filter)

    except Exception as error:
        logger.error(f"Thread failed on {file_path}: {error}")
        raise


#  Shared Helper Functions
def _save_result_to_temp_file(parse_result: ParseResult) -> str:
    """
    Pickle a ParseResult to a temporary file.
    Large payload sets travel through disk instead of the pool's result pipe.
    """
    with tempfile.NamedTemporaryFile(suffix=".pkl", delete=False) as output_file:
        pickle.dump(parse_result, output_file, protocol=pickle.HIGHEST_PROTOCOL)
    return output_file.name


def _load_temp_result(temporary_path: str) -> ParseResult:
    try:
        with open(temporary_path, "rb") as temp_file:
            return pickle.load(temp_file)
    finally:
        os.remove(temporary_path)


#  Main Parallel Decoder Class
class ParallelLogDecoder:
    """
    Parse several independent BIN logs concurrently.
    Supports both multiprocessing and thread-based execution; each log is
    parsed by exactly one worker and no state is shared between parses.
    """

    def __init__(
        self,
        file_paths: Sequence[str],
        num_workers: int = config.controller.num_workers,
        running_mode: str = config.controller.running_mode,
        header: HeaderLike = SYNC_MARKER,
        message_filter: MessageFilter = None,
    ) -> None:
        if running_mode not in ("process", "thread"):
            raise ValueError(f"running_mode must be 'process' or 'thread', got {running_mode!r}")
        self.file_paths = list(file_paths)
        self.num_workers = max(1, num_workers)
        self.running_mode = running_mode
        self.header = header
        self.message_filter = message_filter

    def run(self) -> Dict[str, ParseResult]:
        """
        Parse every file.

        Returns:
            ParseResult per file path, in the order the paths were given.
        """
        if not self.file_paths:
            return {}

        start_time = time.perf_counter()

        if self.running_mode == "process":
            parse_results = self._run_with_processes()
        else:
            parse_results = self._run_with_threads()

        elapsed_time = time.perf_counter() - start_time
        total_messages = sum(result.total_message_count for result in parse_results)
        logger.info(f"Parsed {len(parse_results)} logs ({total_messages:,} messages) in {elapsed_time:.2f}s")

        return dict(zip(self.file_paths, parse_results))

    def _worker_count(self) -> int:
        return min(self.num_workers, len(self.file_paths))

    def _run_with_processes(self) -> List[ParseResult]:
        """Use multiprocessing pool for parallel processing."""
        worker_count = self._worker_count()
        logger.info(f"Using Multiprocessing Pool ({worker_count} processes)...")

        with Pool(
            processes=worker_count,
            initializer=_init_worker,
            initargs=(self.header, self.message_filter),
        ) as process_pool:
            temporary_file_paths = process_pool.map(_worker_process_file, self.file_paths)

        return [_load_temp_result(temporary_path) for temporary_path in temporary_file_paths]

    def _run_with_threads(self) -> List[ParseResult]:
        """Use thread pool for parallel processing."""
        worker_count = self._worker_count()
        logger.info(f"Using ThreadPoolExecutor ({worker_count} threads)...")

        with ThreadPoolExecutor(max_workers=worker_count) as thread_pool:
            futures = [
                thread_pool.submit(_worker_thread_file, file_path, self.header, self.message_filter)
                for file_path in self.file_paths
            ]
            return [future.result() for future in futures]

