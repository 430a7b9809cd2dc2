import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Column names of the cleaned surveillance CSV, keyed by Record attribute
CSV_COLUMNS = {
    "lineage": "pango_lineage",
    "country": "country",
    "collection_date": "date",
    "year": "year",
    "month": "month",
    "total_substitutions": "totalSubstitutions",
    "substitutions": "substitutions",
    "sex": "sex",
    "age": "age",
}

FRAME_COLUMNS = [
    "lineage", "country", "collection_date", "year", "month", "year_month",
    "total_substitutions", "sex", "age", "mutations",
]


def parse_substitutions(value) -> Tuple[str, ...]:
    """Split a substitutions cell into mutation-code tokens.

    Delimited strings are split on commas; sequences pass through. Tokens are
    trimmed and empty tokens dropped either way.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        return ()
    return tuple(p.strip() for p in parts if isinstance(p, str) and p.strip())


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


#########################
# RECORD SCHEMA
#########################


class Record(BaseModel):
    """One surveillance sample. Every field is optional."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lineage: Optional[str] = Field(default=None, alias="pango_lineage")
    country: Optional[str] = None
    collection_date: Optional[str] = Field(default=None, alias="date")
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    total_substitutions: Optional[float] = Field(default=None, alias="totalSubstitutions", allow_inf_nan=False)
    substitutions: Optional[Union[str, Tuple[str, ...]]] = None
    sex: Optional[str] = None
    age: Optional[float] = Field(default=None, allow_inf_nan=False)

    # raw cell text for declared fields that failed validation
    unparsed: Dict[str, str] = Field(default_factory=dict)
    # undeclared CSV columns, dynamically typed by the loader
    extras: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("lineage", "country", "collection_date", "sex", mode="before")
    @classmethod
    def _text(cls, value):
        if _blank(value):
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("year", "month", mode="before")
    @classmethod
    def _whole_number(cls, value):
        if _blank(value):
            return None
        if isinstance(value, str):
            text = value.strip()
            try:
                number = float(text)
            except ValueError:
                return text
            return int(number) if number.is_integer() else text
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator("total_substitutions", "age", "substitutions", mode="before")
    @classmethod
    def _optional(cls, value):
        if _blank(value):
            return None
        return value.strip() if isinstance(value, str) else value

    @classmethod
    def from_row(cls, row: Dict[str, Any], extras: Optional[Dict[str, Any]] = None) -> "Record":
        """Build a Record from a CSV-keyed row.

        A declared field that does not validate is set to None and its raw
        text kept in ``unparsed``; the row itself is never rejected.
        """
        values = {alias: row[alias] for alias in CSV_COLUMNS.values() if alias in row}
        unparsed = {}
        for _ in range(len(values) + 1):
            try:
                return cls.model_validate({**values, "unparsed": unparsed, "extras": extras or {}})
            except ValidationError as exc:
                bad = {err["loc"][0] for err in exc.errors() if err["loc"] and err["loc"][0] in values}
                if not bad:
                    raise
                for alias in bad:
                    unparsed[alias] = str(values.pop(alias))
        raise RuntimeError("unreachable: every declared field was moved to unparsed")

    @property
    def mutations(self) -> Tuple[str, ...]:
        return parse_substitutions(self.substitutions)

    @property
    def year_month(self) -> Optional[str]:
        if self.year is None or self.month is None:
            return None
        return f"{self.year}-{self.month:02d}"


class RecordSet:
    """Ordered, immutable sequence of Records shared by every aggregator.

    Hashes by identity, so aggregators can be memoized per loaded data set.
    """

    def __init__(self, records=(), source: Optional[str] = None):
        self._records = tuple(records)
        self.source = source
        self._frame = None

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __getitem__(self, index):
        return self._records[index]

    def __repr__(self):
        return f"RecordSet({len(self._records)} records, source={self.source!r})"

    @property
    def frame(self) -> pd.DataFrame:
        """Column view of the records; callers must not modify it."""
        if self._frame is None:
            rows = [
                {
                    "lineage": r.lineage,
                    "country": r.country,
                    "collection_date": r.collection_date,
                    "year": r.year,
                    "month": r.month,
                    "year_month": r.year_month,
                    "total_substitutions": r.total_substitutions,
                    "sex": r.sex,
                    "age": r.age,
                    "mutations": r.mutations,
                }
                for r in self._records
            ]
            df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
            df["year"] = df["year"].astype("Int64")
            df["month"] = df["month"].astype("Int64")
            df["total_substitutions"] = pd.to_numeric(df["total_substitutions"], errors="coerce").astype("float64")
            df["age"] = pd.to_numeric(df["age"], errors="coerce").astype("float64")
            for col in ["lineage", "country", "collection_date", "year_month", "sex", "mutations"]:
                df[col] = df[col].astype("object")
            self._frame = df
        return self._frame


#########################
# AGGREGATE MODELS
#########################


class SeriesOrdering(str, Enum):
    FREQUENCY = "frequency"
    CHRONOLOGICAL = "chronological"
    BAND = "band"


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: str = ""
    max: str = ""


class SummaryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_samples: int = 0
    unique_lineage_count: int = 0
    unique_country_count: int = 0
    avg_mutation_burden: Optional[float] = None
    date_range: DateRange = DateRange()


class CategoryCountSeries(BaseModel):
    """Ordered labels with one aligned numeric sequence."""

    model_config = ConfigDict(frozen=True)

    labels: Tuple[str, ...] = ()
    values: Tuple[Union[int, float], ...] = ()
    ordering: SeriesOrdering = SeriesOrdering.FREQUENCY
    name: str = "Sample Count"

    def pairs(self) -> List[Tuple[str, Union[int, float]]]:
        return list(zip(self.labels, self.values))

    @property
    def total(self):
        return sum(self.values)

    @property
    def is_empty(self) -> bool:
        return not self.labels


class LineageDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    lineage: str
    count: int
    percentage: float
    first_detected: str
    last_detected: str


class StackedShareSeries(BaseModel):
    """Per-month percentage share of each category.

    ``shares[c][m]`` is the share of ``categories[c]`` in month ``m``. Labels
    are month names only; ``month_keys`` keeps the YYYY-MM key of each bucket.
    """

    model_config = ConfigDict(frozen=True)

    labels: Tuple[str, ...] = ()
    month_keys: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    shares: Tuple[Tuple[float, ...], ...] = ()

    def month_total(self, index: int) -> float:
        return sum(share[index] for share in self.shares)

    @property
    def is_empty(self) -> bool:
        return not self.labels


class MultiSeries(BaseModel):
    """Several named series sharing one label axis."""

    model_config = ConfigDict(frozen=True)

    labels: Tuple[str, ...] = ()
    names: Tuple[str, ...] = ()
    values: Tuple[Tuple[int, ...], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.labels or not self.names


class AgeGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    bands: Tuple[str, ...]
    count: int
    percentage: float


class AgeGroupSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_classified: int = 0
    groups: Tuple[AgeGroup, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.total_classified > 0


class MutationCorrelationMatrix(BaseModel):
    """Co-occurrence counts over the top mutation codes; diagonal is None."""

    model_config = ConfigDict(frozen=True)

    codes: Tuple[str, ...] = ()
    cells: Tuple[Tuple[Optional[int], ...], ...] = ()

    def pair_count(self, first: str, second: str) -> Optional[int]:
        i, j = self.codes.index(first), self.codes.index(second)
        return self.cells[i][j]

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            a: {b: self.cells[i][j] for j, b in enumerate(self.codes) if i != j}
            for i, a in enumerate(self.codes)
        }

    @property
    def is_empty(self) -> bool:
        return not self.codes
