from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from src.bussines_logic.models import FormatRecord
from src.utils.log_config import logger


@dataclass(frozen=True)
class ByName:
    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        names = (self.names,) if isinstance(self.names, str) else tuple(self.names)
        object.__setattr__(self, "names", names)


@dataclass(frozen=True)
class ByTypeId:
    type_ids: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_ids", tuple(self.type_ids))


MessageFilter = Optional[Union[ByName, ByTypeId, str, bytes, bytearray, Sequence[Any], FrozenSet[Any]]]


def _is_type_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_names(formats: List[FormatRecord], names: Iterable[Any]) -> FrozenSet[int]:
    """Exact-match names against the table; non-strings and unknown names are skipped."""
    type_ids_by_name = {}
    for fmt in formats:
        type_ids_by_name.setdefault(fmt.name, fmt.type_id)  # first declaration of a name

    accepted = set()
    for name in names:
        if not isinstance(name, str):
            continue
        type_id = type_ids_by_name.get(name)
        if type_id is None:
            logger.debug("Message filter: unknown name %r ignored", name)
            continue
        accepted.add(type_id)
    return frozenset(accepted)


def _resolve_type_ids(formats: List[FormatRecord], type_ids: Iterable[Any]) -> FrozenSet[int]:
    """Keep only ids that some FMT declared."""
    declared = {fmt.type_id for fmt in formats}
    accepted = set()
    for type_id in type_ids:
        if not _is_type_id(type_id) or type_id not in declared:
            logger.debug("Message filter: unknown type id %r ignored", type_id)
            continue
        accepted.add(type_id)
    return frozenset(accepted)


def _resolve_filter_shape(formats: List[FormatRecord], message_filter: MessageFilter, all_type_ids: FrozenSet[int]) -> FrozenSet[int]:
    """Match the filter by its shape; an empty set means nothing matched."""
    if isinstance(message_filter, ByName):
        return _resolve_names(formats, message_filter.names) if message_filter.names else all_type_ids
    if isinstance(message_filter, ByTypeId):
        return _resolve_type_ids(formats, message_filter.type_ids) if message_filter.type_ids else all_type_ids

    if message_filter is None:
        return all_type_ids
    if isinstance(message_filter, str):
        return _resolve_names(formats, [message_filter]) if message_filter else all_type_ids
    if isinstance(message_filter, (bytes, bytearray)):
        return _resolve_type_ids(formats, list(message_filter)) if message_filter else all_type_ids

    try:
        entries = list(message_filter)
    except TypeError:
        logger.debug("Message filter of type %s not recognised, accepting all", type(message_filter).__name__)
        return all_type_ids

    if not entries:
        return all_type_ids
    if any(isinstance(entry, str) for entry in entries):
        return _resolve_names(formats, entries)
    if all(_is_type_id(entry) for entry in entries):
        return _resolve_type_ids(formats, entries)

    logger.debug("Message filter entries %r not recognised, accepting all", entries[:5])
    return all_type_ids


def resolve_message_filter(formats: List[FormatRecord], message_filter: MessageFilter = None) -> FrozenSet[int]:
    """
    Resolve a message filter into the set of type ids to extract.

    Names (a ByName, a single str, or any iterable holding strings) and numeric
    ids (a ByTypeId, bytes, or an iterable of ints) are matched against the
    format table and unmatched entries are dropped. A filter that is empty,
    unrecognised, or left with no matching entry accepts every declared type.
    """
    all_type_ids = frozenset(fmt.type_id for fmt in formats)
    accepted = _resolve_filter_shape(formats, message_filter, all_type_ids)
    if not accepted:
        logger.debug("Message filter %r matched no declared type, accepting all", message_filter)
        return all_type_ids
    return accepted
