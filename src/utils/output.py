from typing import Any, Dict, List

import numpy as np

from src.bussines_logic.models import ParseResult


def _message_data_matrix(instances, payload_length: int) -> np.ndarray:
    """Stack payloads into a (count, payload_length) uint8 matrix."""
    if not instances:
        return np.empty((0, 0), dtype=np.uint8)
    joined = b"".join(instance.payload for instance in instances)
    return np.frombuffer(joined, dtype=np.uint8).reshape(len(instances), payload_length)


def _message_indices(instances) -> np.ndarray:
    return np.fromiter((instance.byte_offset for instance in instances), dtype=np.int64, count=len(instances))


def build_output(parse_result: ParseResult) -> Dict[str, Any]:
    """
    Render a ParseResult as named, array-backed outputs:
    fmt_messages, message_data, message_indices, message_names,
    total_messages and fmt_length. Per-format lists are parallel to fmt_messages.
    """
    message_data: List[np.ndarray] = []
    message_indices: List[np.ndarray] = []

    for fmt_record, instances in zip(parse_result.formats, parse_result.instances_by_format):
        message_data.append(_message_data_matrix(instances, fmt_record.payload_length))
        message_indices.append(_message_indices(instances))

    return {
        "fmt_messages": [fmt_record.to_dict() for fmt_record in parse_result.formats],
        "message_data": message_data,
        "message_indices": message_indices,
        "message_names": parse_result.message_names,
        "total_messages": parse_result.total_message_count,
        "fmt_length": parse_result.fmt_record_length,
    }
