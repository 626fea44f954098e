"""Tests for table version detection."""

import random

import pytest

from acs_explorer.acs.models import Estimate, VariableType
from acs_explorer.acs.versions import detect_table_versions

from conftest import make_var


def _layout(year, labels, **kwargs):
    return [make_var(f"{i:03d}", year, label, **kwargs) for i, label in enumerate(labels, start=1)]


def test_new_column_opens_new_version():
    records = (
        _layout(2010, ["Total", "Male"])
        + _layout(2011, ["Total", "Male"])
        + _layout(2012, ["Total", "Male", "Female"])
    )

    versions = detect_table_versions(records, 2010, 2012)

    assert [(v.min_year, v.max_year) for v in versions] == [(2010, 2011), (2012, 2012)]
    assert len(versions[0].records) == 2
    assert len(versions[1].records) == 3
    assert versions[0].years == [2010, 2011]


def test_gap_year_does_not_split_version():
    records = _layout(2010, ["Total", "Male"]) + _layout(2012, ["Total", "Male"])

    versions = detect_table_versions(records, 2010, 2012)

    assert len(versions) == 1
    assert (versions[0].min_year, versions[0].max_year) == (2010, 2012)
    assert versions[0].years == [2010, 2012]


def test_relabel_with_same_count_opens_new_version():
    records = _layout(2010, ["Total", "Male"]) + _layout(2011, ["Total", "Men"])

    versions = detect_table_versions(records, 2010, 2011)

    assert [(v.min_year, v.max_year) for v in versions] == [(2010, 2010), (2011, 2011)]


def test_label_comparison_ignores_case():
    records = _layout(2010, ["Total", "Male"]) + _layout(2011, ["TOTAL", "male"])

    versions = detect_table_versions(records, 2010, 2011)

    assert len(versions) == 1


def test_table_introduced_after_start_year_has_empty_first_version():
    records = _layout(2012, ["Total"]) + _layout(2013, ["Total"])

    versions = detect_table_versions(records, 2010, 2013)

    assert versions[0].records == []
    assert versions[0].years == []
    assert (versions[0].min_year, versions[0].max_year) == (2010, 2011)
    assert (versions[1].min_year, versions[1].max_year) == (2012, 2013)


def test_last_version_extends_to_end_year():
    records = _layout(2010, ["Total"])

    versions = detect_table_versions(records, 2010, 2015)

    assert len(versions) == 1
    assert versions[0].max_year == 2015


def test_filters_by_estimate_and_var_type():
    records = (
        _layout(2010, ["Total"])
        + _layout(2011, ["Total", "Male"], estimate=Estimate.ONE_YEAR)
        + _layout(2011, ["Total", "Male"], var_type=VariableType.MARGIN_OF_ERROR)
        + _layout(2011, ["Total"])
    )

    versions = detect_table_versions(
        records, 2010, 2011, estimate=Estimate.FIVE_YEAR, var_type=VariableType.VALUE,
    )

    assert len(versions) == 1
    assert versions[0].years == [2010, 2011]


def test_detection_is_independent_of_input_order():
    records = (
        _layout(2010, ["Total", "Male"])
        + _layout(2011, ["Total", "Male"])
        + _layout(2012, ["Total", "Male", "Female"])
    )
    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    expected = detect_table_versions(records, 2010, 2012)
    actual = detect_table_versions(shuffled, 2010, 2012)

    assert [(v.min_year, v.max_year, v.records) for v in actual] == \
        [(v.min_year, v.max_year, v.records) for v in expected]


def test_rejects_inverted_range():
    with pytest.raises(ValueError):
        detect_table_versions([], 2012, 2010)
