import pandas as pd
import pytest
from pydantic import ValidationError

from conftest import make_records
from surveillance_models import (
    CategoryCountSeries,
    MutationCorrelationMatrix,
    Record,
    RecordSet,
    SeriesOrdering,
    StackedShareSeries,
)


def test_record_reads_csv_column_names() -> None:
    record = Record.from_row({
        "pango_lineage": " BA.2 ", "country": "India", "date": "2022-02-14",
        "year": "2022", "month": "2.0", "totalSubstitutions": "57",
        "substitutions": "S:K417N, S:N501Y", "sex": "Female", "age": "38",
    })

    assert record.lineage == "BA.2"
    assert record.collection_date == "2022-02-14"
    assert (record.year, record.month) == (2022, 2)
    assert record.year_month == "2022-02"
    assert record.total_substitutions == 57.0
    assert record.age == 38.0
    assert record.mutations == ("S:K417N", "S:N501Y")
    assert record.unparsed == {}


def test_blank_cells_become_missing() -> None:
    record = Record.from_row({"pango_lineage": "", "country": "   ", "age": "", "sex": None})

    assert record.lineage is None
    assert record.country is None
    assert record.age is None
    assert record.sex is None
    assert record.mutations == ()
    assert record.year_month is None


def test_invalid_cells_are_kept_raw_instead_of_rejecting_the_row() -> None:
    record = Record.from_row({
        "pango_lineage": "BA.1", "age": "not recorded", "month": "13",
        "year": "2021.5", "totalSubstitutions": "n/a",
    })

    assert record.lineage == "BA.1"
    assert record.age is None and record.month is None and record.year is None
    assert record.total_substitutions is None
    assert record.unparsed == {
        "age": "not recorded", "month": "13", "year": "2021.5", "totalSubstitutions": "n/a",
    }


def test_non_finite_numbers_are_unparsed() -> None:
    record = Record.from_row({"age": "inf", "totalSubstitutions": "nan"})

    assert record.age is None
    assert "age" in record.unparsed
    # "nan" text is not blank, so it is rejected rather than treated as missing
    assert record.total_substitutions is None


def test_substitutions_may_be_a_sequence() -> None:
    record = Record.from_row({"substitutions": ("S:D614G", " N:R203K ", "")})
    assert record.mutations == ("S:D614G", "N:R203K")


def test_extras_are_carried_through() -> None:
    record = Record.from_row({"pango_lineage": "BA.1"}, extras={"is_complete": True, "strain": "x"})
    assert record.extras == {"is_complete": True, "strain": "x"}


def test_records_are_immutable() -> None:
    record = Record.from_row({"pango_lineage": "BA.1"})
    with pytest.raises(ValidationError):
        record.lineage = "BA.2"


def test_record_set_is_an_ordered_sequence(dated_records) -> None:
    assert len(dated_records) == 5
    assert [r.lineage for r in dated_records] == ["B", "A", "A", "B", "C"]
    assert dated_records[-1].lineage == "C"
    assert "5 records" in repr(dated_records)


def test_record_set_hashes_by_identity() -> None:
    first = make_records({"pango_lineage": "BA.1"})
    second = make_records({"pango_lineage": "BA.1"})

    assert first != second
    assert len({first, second, first}) == 2


def test_frame_columns_and_dtypes(dated_records) -> None:
    frame = dated_records.frame

    assert list(frame.columns) == [
        "lineage", "country", "collection_date", "year", "month", "year_month",
        "total_substitutions", "sex", "age", "mutations",
    ]
    assert str(frame["year"].dtype) == "Int64"
    assert frame["age"].dtype == "float64"
    assert pd.isna(frame.loc[3, "total_substitutions"])
    assert frame.loc[0, "mutations"] == ("S:D614G", "N:R203K")
    assert dated_records.frame is frame


def test_empty_record_set_frame(empty_records) -> None:
    frame = empty_records.frame

    assert frame.empty
    assert "mutations" in frame.columns


def test_category_series_helpers() -> None:
    series = CategoryCountSeries(labels=("a", "b"), values=(3, 1), ordering=SeriesOrdering.FREQUENCY)

    assert series.pairs() == [("a", 3), ("b", 1)]
    assert series.total == 4
    assert not series.is_empty
    assert CategoryCountSeries().is_empty


def test_stacked_share_month_total() -> None:
    shares = StackedShareSeries(
        labels=("January",), month_keys=("2022-01",),
        categories=("A", "Other"), shares=((75.0,), (25.0,)),
    )
    assert shares.month_total(0) == 100.0


def test_correlation_matrix_lookup() -> None:
    matrix = MutationCorrelationMatrix(codes=("a", "b"), cells=((None, 2), (2, None)))

    assert matrix.pair_count("a", "b") == 2
    assert matrix.pair_count("b", "b") is None
    assert matrix.as_dict() == {"a": {"b": 2}, "b": {"a": 2}}
