from copy import deepcopy

import pytest

from dupprof.analyzer import profile
from dupprof.config import ProfilerConfig
from dupprof.errors import SchemaError


def test_profile_reports_repeated_key():
    records = [{"id": "a"}, {"id": "a"}, {"id": "b"}]

    report = profile(records, ["id"], sample_limit=10)

    assert report.total_count == 3
    assert report.duplicate_count == 2
    assert [row.record for row in report.sample] == [{"id": "a"}, {"id": "a"}]
    assert [row.group_size for row in report.sample] == [2, 2]
    assert [row.row_index for row in report.sample] == [0, 1]


def test_profile_empty_input():
    report = profile([], ["id"], sample_limit=10)

    assert report.total_count == 0
    assert report.duplicate_count == 0
    assert report.sample == []
    assert report.duplicate_ratio == 0.0
    assert report.risk_level == "none"


def test_profile_empty_input_with_declared_schema_still_checks_keys():
    assert profile([], ["id"], columns=["id", "name"]).total_count == 0

    with pytest.raises(SchemaError):
        profile([], ["missing"], columns=["id", "name"])


def test_profile_unknown_key_column(orders):
    with pytest.raises(SchemaError) as exc_info:
        profile(orders, ["order_id", "sku"])

    assert exc_info.value.missing_columns == ["sku"]
    assert "order_id" in exc_info.value.available_columns


def test_profile_rejects_empty_key(orders):
    with pytest.raises(ValueError):
        profile(orders, [])


def test_profile_rejects_negative_sample_limit(orders):
    with pytest.raises(ValueError):
        profile(orders, ["order_id"], sample_limit=-1)


def test_profile_distinct_records_have_no_duplicates():
    records = [{"id": i, "name": f"n{i}"} for i in range(20)]

    report = profile(records, ["id"])

    assert report.total_count == 20
    assert report.duplicate_count == 0
    assert report.sample == []
    assert report.groups == []
    assert report.duplicate_group_count == 0


def test_profile_counts_and_sample_in_input_order(orders):
    report = profile(orders, ["order_id"], sample_limit=10)

    assert report.total_count == 7
    assert report.duplicate_count == 5
    assert report.duplicate_group_count == 2
    assert [row.row_index for row in report.sample] == [0, 1, 2, 5, 6]
    assert [row.group_size for row in report.sample] == [3, 2, 3, 2, 3]
    assert report.sample[0].record == orders[0]


@pytest.mark.parametrize("sample_limit", [0, 1, 3, 5, 100])
def test_profile_sample_is_bounded(orders, sample_limit):
    report = profile(orders, ["order_id"], sample_limit=sample_limit)

    assert len(report.sample) == min(report.duplicate_count, sample_limit)
    assert report.duplicate_count == 5


@pytest.mark.parametrize("key", [["order_id"], ["customer"], ["region"], ["order_id", "region"]])
def test_profile_duplicates_never_exceed_total(orders, key):
    report = profile(orders, key)

    assert 0 <= report.duplicate_count <= report.total_count
    assert report.unique_count == report.total_count - report.duplicate_count


def test_profile_groups_null_keys_together(orders):
    report = profile(orders, ["region"])

    assert report.nulls_grouped is True
    assert report.null_key_count == 2
    assert report.duplicate_count == 7
    assert report.duplicate_group_count == 3
    assert [(group.key, group.count, group.first_row_index) for group in report.groups] == [
        ({"region": "us"}, 3, 1),
        ({"region": "eu"}, 2, 0),
        ({"region": None}, 2, 3),
    ]


def test_profile_treats_nan_and_none_as_the_same_null():
    records = [{"score": float("nan")}, {"score": None}, {"score": 1.5}]

    report = profile(records, ["score"])

    assert report.duplicate_count == 2
    assert report.null_key_count == 2


def test_profile_missing_field_reads_as_null():
    records = [{"id": 1, "tag": "x"}, {"id": 2}, {"id": 3}]

    report = profile(records, ["tag"])

    assert report.duplicate_count == 2
    assert [row.record for row in report.sample] == [{"id": 2}, {"id": 3}]


def test_profile_composite_key(orders):
    report = profile(orders, ["order_id", "region"])

    assert report.duplicate_count == 4
    assert report.duplicate_group_count == 2
    assert report.groups[0].key == {"order_id": 1, "region": "eu"}
    assert report.null_key_count == 2


def test_profile_limits_reported_groups(orders):
    report = profile(orders, ["region"], config=ProfilerConfig(max_groups=1))

    assert report.duplicate_group_count == 3
    assert len(report.groups) == 1
    assert report.groups[0].count == 3


def test_profile_is_idempotent_and_does_not_mutate_input(orders):
    original = deepcopy(orders)

    first = profile(orders, ["order_id"], sample_limit=3)
    second = profile(orders, ["order_id"], sample_limit=3)

    assert first == second
    assert orders == original

    first.sample[0].record["customer"] = "changed"
    assert orders == original


def test_profile_accepts_single_column_name(orders):
    assert profile(orders, "order_id") == profile(orders, ["order_id"])


def test_report_to_dict(orders):
    data = profile(orders, ["order_id"], sample_limit=2).to_dict()

    assert data["total_count"] == 7
    assert data["duplicate_count"] == 5
    assert data["duplicate_ratio"] == round(5 / 7, 5)
    assert data["risk_level"] == "high"
    assert data["unique_count"] == 2
    assert data["sample"][0] == {"record": orders[0], "group_size": 3, "row_index": 0}
    assert data["nulls_grouped"] is True


def test_profile_keeps_large_int_keys_distinct():
    records = [{"id": 2**53}, {"id": 2**53 + 1}, {"id": None}]

    report = profile(records, ["id"])

    assert report.duplicate_count == 0
    assert report.groups == []


def test_profile_group_key_keeps_original_values():
    records = [{"id": 2**53 + 1}, {"id": None}, {"id": 2**53 + 1}]

    report = profile(records, ["id"])

    assert report.duplicate_count == 2
    assert report.groups[0].key == {"id": 2**53 + 1}
    assert type(report.groups[0].key["id"]) is int


def test_profile_records_without_key_field_raise_schema_error():
    with pytest.raises(SchemaError) as exc_info:
        profile([{}, {}], ["id"])

    assert exc_info.value.missing_columns == ["id"]
