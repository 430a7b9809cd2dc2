"""
Pytest fixtures shared by the dashboard tests.

Puts the repository root on sys.path so the flat modules import the same
way the Dash app imports them.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from surveillance_models import Record, RecordSet  # noqa: E402

SAMPLE_DATA = ROOT / "data" / "df_cleaned.csv"


def make_records(*rows) -> RecordSet:
    """RecordSet from CSV-keyed dicts, validated like loader rows."""
    return RecordSet([Record.from_row(row) for row in rows], source="test")


@pytest.fixture
def scenario_records() -> RecordSet:
    """Three-sample data set with known aggregates."""
    return make_records(
        {"pango_lineage": "BA.1", "year": 2022, "month": 1, "age": 25, "sex": "Female",
         "substitutions": "S:N501Y,S:E484K"},
        {"pango_lineage": "BA.1", "year": 2022, "month": 1, "age": 70, "sex": "Male",
         "substitutions": "S:N501Y"},
        {"pango_lineage": "BA.2", "year": 2022, "month": 2, "age": 5, "sex": "Female",
         "substitutions": ""},
    )


@pytest.fixture
def empty_records() -> RecordSet:
    return RecordSet()


@pytest.fixture
def dated_records() -> RecordSet:
    """Lineages with dates, burden counts and countries across two years."""
    return make_records(
        {"pango_lineage": "B", "country": "India", "date": "2021-03-04", "year": 2021, "month": 3,
         "totalSubstitutions": 30, "substitutions": "S:D614G,N:R203K", "sex": "Male", "age": 41},
        {"pango_lineage": "A", "country": "Nepal", "date": "2021-01-15", "year": 2021, "month": 1,
         "totalSubstitutions": 20, "substitutions": "S:D614G", "sex": "Female", "age": 12},
        {"pango_lineage": "A", "country": "India", "date": "2022-01-20", "year": 2022, "month": 1,
         "totalSubstitutions": 25, "substitutions": "S:D614G,ORF1b:P314L", "sex": "Female", "age": 66},
        {"pango_lineage": "B", "country": "", "date": "2021-02-01", "year": 2021, "month": 2,
         "totalSubstitutions": "n/a", "substitutions": "S:D614G,S:P681R", "sex": " Male ", "age": 9.5},
        {"pango_lineage": "C", "country": "India", "date": "2022-01-02", "year": 2022, "month": 1,
         "substitutions": "S:P681R,ORF1b:P314L,Del", "sex": "male", "age": 90},
    )


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    """Small CSV on disk, including one row with an extra field."""
    path = tmp_path / "samples.csv"
    path.write_text(
        "pango_lineage,country,date,year,month,totalSubstitutions,substitutions,sex,age,is_complete\n"
        'BA.1,India,2022-01-04,2022,1,53,"S:K417N,S:N501Y",Male,44,true\n'
        'BA.2,Nepal,2022-02-14,2022,2,57,"S:N501Y",Female,not a number,false\n'
        "BA.2,India,2022-02-20,2022,2,,,Female,38,true,unexpected\n"
        "XBB.1.5,India,2023-01-12,2023,1,78.5,S:F486P,,13,\n",
        encoding="utf-8",
    )
    return path
