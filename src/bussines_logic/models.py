from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

FRAME_LENGTH: int = 3  # sync marker (2) + message id (1)


@dataclass(frozen=True)
class FormatRecord:
    """One FMT declaration, in the order it was found in the log."""

    type_id: int
    record_length: int
    name: str
    format_codes: str
    field_labels: str

    @property
    def payload_length(self) -> int:
        return max(self.record_length - FRAME_LENGTH, 0)

    @property
    def labels(self) -> List[str]:
        return [label for label in self.field_labels.split(",") if label]

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type_id,
            "length": self.record_length,
            "name": self.name,
            "format": self.format_codes,
            "labels": self.field_labels,
        }


class MessageInstance(NamedTuple):
    byte_offset: int  # offset of the message id byte
    payload: bytes


@dataclass
class ParseResult:
    """
    Everything one scan produced.

    instances_by_format is parallel to formats: entry i holds the instances
    extracted for formats[i], in log order (possibly empty).
    """

    formats: List[FormatRecord]
    instances_by_format: List[List[MessageInstance]]
    total_message_count: int
    fmt_record_length: int
    warnings: List[str] = field(default_factory=list)

    @property
    def message_names(self) -> List[str]:
        return [fmt.name for fmt in self.formats]

    def instances_for(self, name: str) -> List[MessageInstance]:
        """Instances of the last format declared under ``name`` (dispatch is last-write-wins)."""
        index: Optional[int] = None
        for i, fmt in enumerate(self.formats):
            if fmt.name == name:
                index = i
        if index is None:
            return []
        return self.instances_by_format[index]

    def counts_by_name(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for fmt, instances in zip(self.formats, self.instances_by_format):
            counts[fmt.name] = counts.get(fmt.name, 0) + len(instances)
        return counts
