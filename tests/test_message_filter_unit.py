import pytest
from src.bussines_logic.controller import parse_log
from src.bussines_logic.message_filter import ByName, ByTypeId, resolve_message_filter
from src.bussines_logic.models import FormatRecord
from src.utils.log_config import setup_test_logger

from conftest import FMT_TYPE_ID, GPS_TYPE_ID, TST_TYPE_ID

logger = setup_test_logger()

FORMATS = [
    FormatRecord(FMT_TYPE_ID, 89, "FMT", "BBnNZ", "Type,Length,Name,Format,Columns"),
    FormatRecord(TST_TYPE_ID, 15, "TST", "Iff", "TimeUS,Val1,Val2"),
    FormatRecord(GPS_TYPE_ID, 8, "GPS", "IB", "TimeUS,Status"),
]
ALL_IDS = {FMT_TYPE_ID, TST_TYPE_ID, GPS_TYPE_ID}


@pytest.mark.parametrize("message_filter", [None, [], (), "", b"", set(), ByName([]), ByTypeId([])])
def test_empty_filter_accepts_everything(message_filter):
    assert resolve_message_filter(FORMATS, message_filter) == ALL_IDS


@pytest.mark.parametrize(
    "message_filter, expected",
    [
        (["TST"], {TST_TYPE_ID}),
        ({"TST", "GPS"}, {TST_TYPE_ID, GPS_TYPE_ID}),
        ("GPS", {GPS_TYPE_ID}),
        (ByName(["FMT", "NOPE"]), {FMT_TYPE_ID}),
        (ByName("TST"), {TST_TYPE_ID}),
        (["TST", 42, None], {TST_TYPE_ID}),
    ],
)
def test_name_filter(message_filter, expected):
    """Names match exactly; unknown names and non-string entries are dropped."""
    assert resolve_message_filter(FORMATS, message_filter) == expected


@pytest.mark.parametrize(
    "message_filter, expected",
    [
        ([TST_TYPE_ID], {TST_TYPE_ID}),
        ((GPS_TYPE_ID, 7, 999, -1), {GPS_TYPE_ID}),
        (bytes([TST_TYPE_ID, GPS_TYPE_ID]), {TST_TYPE_ID, GPS_TYPE_ID}),
        (ByTypeId([FMT_TYPE_ID, 3]), {FMT_TYPE_ID}),
    ],
)
def test_type_id_filter(message_filter, expected):
    """Ids are accepted only when some FMT declared them."""
    assert resolve_message_filter(FORMATS, message_filter) == expected


@pytest.mark.parametrize(
    "message_filter",
    [3.5, object(), [1.0, 2.0], [True, False], ["tst"], ["NOPE"], range(5), ByTypeId([3, 4])],
)
def test_unrecognised_or_unmatched_filter_accepts_everything(message_filter):
    assert resolve_message_filter(FORMATS, message_filter) == ALL_IDS


def test_name_filter_on_log(synthetic_log):
    """Filtering extracts only the named type, but the format table stays complete."""
    result = parse_log(synthetic_log, message_filter=["TST"])

    logger.info(f"Filtered counts: {result.counts_by_name()}")
    assert result.message_names == ["FMT", "TST", "GPS"]
    assert result.counts_by_name() == {"FMT": 0, "TST": 3, "GPS": 0}
    assert result.total_message_count == 3


def test_id_filter_on_log(synthetic_log):
    result = parse_log(synthetic_log, message_filter=ByTypeId([GPS_TYPE_ID]))
    assert result.counts_by_name() == {"FMT": 0, "TST": 0, "GPS": 2}


def test_filter_containment(synthetic_log):
    """Extracted type ids are always a subset of the resolved filter."""
    for message_filter in (None, ["GPS"], ["GPS", "TST"], [FMT_TYPE_ID], ["NOPE"]):
        accepted = resolve_message_filter(FORMATS, message_filter)
        result = parse_log(synthetic_log, message_filter=message_filter)
        present = {fmt.type_id for fmt, instances in zip(result.formats, result.instances_by_format) if instances}
        assert present <= accepted


def test_unmatched_filter_extracts_everything(synthetic_log):
    """A filter left with no matching entry behaves like no filter at all."""
    unfiltered = parse_log(synthetic_log)
    for message_filter in (["GPS2"], ByName(["NOPE"]), ByTypeId([7]), [999]):
        result = parse_log(synthetic_log, message_filter=message_filter)
        assert result == unfiltered
        assert result.total_message_count == 8
