from __future__ import annotations

import math

import pytest

from serialplot.core.recompute import format_field, iter_csv_rows, recompute, statistics, to_csv
from serialplot.dataio.log_loader import load_csv_export

RECORDS = (
    '{"x": 1, "y": 2}',
    "not json",
    '{"y": 4}',
    '{"x": 3, "z": "hi"}',
    '{"x": 5.5}',
)


def test_recompute_replays_log_in_first_appearance_order() -> None:
    result = recompute(RECORDS)
    assert result.channel_names == ["x", "y", "z"]
    assert result.record_count == 5
    assert result.malformed_count == 1
    by_name = {s.channel_name: s.points for s in result.snapshot}
    assert by_name == {
        "x": [(0, 1), (3, 3), (4, 5.5)],
        "y": [(0, 2), (2, 4)],
        "z": [(3, "hi")],
    }


def test_recompute_is_idempotent() -> None:
    assert recompute(RECORDS) == recompute(RECORDS)


def test_recompute_of_empty_log() -> None:
    result = recompute(())
    assert result.snapshot == []
    assert result.channel_names == []
    assert to_csv(()) == "sample\n"
    assert statistics(()) == []


def test_csv_has_one_row_per_record_and_blank_absent_fields() -> None:
    assert to_csv(RECORDS) == (
        "sample,x,y,z\n"
        "0,1,2,\n"
        "1,,,\n"
        "2,,4,\n"
        "3,3,,hi\n"
        "4,5.5,,\n"
    )


def test_iter_csv_rows_yields_header_first() -> None:
    rows = list(iter_csv_rows(RECORDS))
    assert rows[0] == ["sample", "x", "y", "z"]
    assert len(rows) == len(RECORDS) + 1


def test_csv_round_trip_matches_recomputed_values() -> None:
    records = ['{"a": 1.25, "b": -3}', '{"b": 7}', '{"a": 0, "c": "on"}', "garbage"]
    parsed = load_csv_export(to_csv(records))
    snapshot = {s.channel_name: s.points for s in recompute(records).snapshot}
    assert parsed == snapshot


def test_csv_quotes_values_containing_commas() -> None:
    text = to_csv(['{"label": "a,b", "nested": {"k": 1}}'])
    assert text.splitlines()[1] == '0,"a,b","{""k"":1}"'


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, ""), (True, "true"), (False, "false"), (3, "3"), (2.5, "2.5"), ("s", "s"), ([1, 2], "[1,2]")],
)
def test_format_field(value, expected) -> None:
    assert format_field(value) == expected


def test_statistics_population_stdev_and_rsd() -> None:
    records = [f'{{"v": {n}}}' for n in [2, 4, 4, 4, 5, 5, 7, 9]]
    (row,) = statistics(records)
    assert row.channel_name == "v"
    assert row.count == 8
    assert row.mean == pytest.approx(5.0)
    assert row.standard_deviation == pytest.approx(2.0)
    assert row.relative_standard_deviation_percent == pytest.approx(40.0)


def test_statistics_use_each_channels_own_samples() -> None:
    records = ['{"a": 1, "b": 10}', '{"a": 3}', '{"a": 5}', '{"b": 30}']
    rows = {row.channel_name: row for row in statistics(records)}
    assert rows["a"].count == 3
    assert rows["a"].mean == pytest.approx(3.0)
    assert rows["b"].count == 2
    assert rows["b"].mean == pytest.approx(20.0)
    assert rows["b"].standard_deviation == pytest.approx(10.0)


def test_statistics_exclude_non_numeric_values() -> None:
    records = ['{"a": 2}', '{"a": "error"}', '{"a": 4}', '{"a": true}', '{"a": "6"}']
    (row,) = statistics(records)
    assert row.count == 3
    assert row.mean == pytest.approx(4.0)


def test_degenerate_statistics_are_nan_not_errors() -> None:
    records = ['{"zero": 0, "text": "x"}', '{"zero": 0, "text": "y"}']
    rows = {row.channel_name: row for row in statistics(records)}

    assert rows["zero"].mean == 0.0
    assert rows["zero"].standard_deviation == 0.0
    assert math.isnan(rows["zero"].relative_standard_deviation_percent)

    assert rows["text"].count == 0
    assert math.isnan(rows["text"].mean)
    assert math.isnan(rows["text"].standard_deviation)
    assert math.isnan(rows["text"].relative_standard_deviation_percent)


def test_statistics_to_dict_uses_wire_names() -> None:
    (row,) = statistics(['{"v": 1}', '{"v": 3}'])
    assert row.to_dict() == {
        "channelName": "v",
        "count": 2,
        "mean": 2.0,
        "standardDeviation": 1.0,
        "relativeStandardDeviationPercent": 50.0,
    }


def test_statistics_skip_integers_too_large_for_a_float() -> None:
    records = ['{"x": 1}', '{"x": ' + "9" * 400 + "}", '{"x": 3}']
    (row,) = statistics(records)
    assert row.count == 2
    assert row.mean == pytest.approx(2.0)
    assert to_csv(records).splitlines()[2] == "1," + "9" * 400
