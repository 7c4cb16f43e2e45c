from __future__ import annotations

import pytest

from state.errors import MalformedDataError
from state.models import (
    ProcessedTimestamps,
    dump_timestamps_json,
    load_timestamps_json,
)


def test_dump_is_compact_and_sorted():
    ts = ProcessedTimestamps({"US": 1000, "JP": 2000})
    assert dump_timestamps_json(ts) == '{"JP":2000,"US":1000}'


def test_dump_empty_map():
    assert dump_timestamps_json(ProcessedTimestamps.empty()) == "{}"


@pytest.mark.parametrize("data", [None, ""])
def test_load_absent_is_empty(data):
    assert load_timestamps_json(data).root == {}


def test_load_preserves_64bit_values():
    big = 2**62 + 7
    ts = load_timestamps_json(f'{{"440": {big}}}')
    assert ts.get("440") == big


def test_get_missing_region_is_zero():
    ts = ProcessedTimestamps.empty()
    assert ts.get("US") == 0
    ts.set("US", 9)
    assert ts.get("US") == 9


def test_load_rejects_non_text():
    with pytest.raises(MalformedDataError):
        load_timestamps_json(1000)


@pytest.mark.parametrize(
    "blob",
    [
        '{"US": 1.5}',
        '{"US": 1.0}',
        '{"US": "1000"}',
        '{"US": true}',
        '{"US": 99999999999999999999999}',
        '{"US": -9223372036854775809}',
    ],
)
def test_load_rejects_values_that_are_not_int64(blob):
    with pytest.raises(MalformedDataError):
        load_timestamps_json(blob)


def test_load_accepts_int64_bounds():
    ts = load_timestamps_json('{"MAX": 9223372036854775807, "MIN": -9223372036854775808}')
    assert ts.get("MAX") == 2**63 - 1
    assert ts.get("MIN") == -(2**63)


@pytest.mark.parametrize("value", [2**63, "1000", True, 1.0])
def test_set_rejects_values_that_are_not_int64(value):
    ts = ProcessedTimestamps.empty()
    with pytest.raises(ValueError):
        ts.set("US", value)
    assert ts.get("US") == 0


def test_malformed_error_chains_cause():
    with pytest.raises(MalformedDataError) as exc:
        load_timestamps_json("{")
    assert exc.value.__cause__ is not None
    assert isinstance(exc.value, ValueError)
