"""Aggregations behind the dashboard tabs.

Every function takes the loaded RecordSet and returns a frozen summary model.
None of them modify the RecordSet, and all of them return an empty result
rather than raising when nothing qualifies. Results are memoized per
RecordSet identity and parameters.
"""
from functools import lru_cache

import numpy as np
import pandas as pd

from surveillance_models import (
    AgeGroup,
    AgeGroupSummary,
    CategoryCountSeries,
    DateRange,
    LineageDetail,
    MultiSeries,
    MutationCorrelationMatrix,
    RecordSet,
    SeriesOrdering,
    StackedShareSeries,
    SummaryStats,
    parse_substitutions,
)

# === CONFIG & CONSTANTS ======================================================
TOP_LINEAGES = 10
TOP_SHARE_LINEAGES = 8
TOP_MUTATIONS = 15
TOP_PROTEIN_MUTATIONS = 10
TOP_TIMELINE_MUTATIONS = 5
SPIKE_PREFIX = "S"
OTHER_LABEL = "Other"
UNKNOWN_DATE = "Unknown"

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

AGE_BANDS = ["0-9", "10-19", "20-29", "30-39", "40-49",
             "50-59", "60-69", "70-79", "80-89", "90+"]

AGE_GROUPS = [
    ("Children (0-9)", ("0-9",)),
    ("Young Adults (20-39)", ("20-29", "30-39")),
    ("Middle-aged (40-59)", ("40-49", "50-59")),
    ("Elderly (60+)", ("60-69", "70-79", "80-89", "90+")),
]

_CACHE_SIZE = 64

__all__ = [
    "summary_stats", "lineage_counts", "lineage_details", "monthly_counts",
    "monthly_growth", "lineage_share_by_month", "gender_counts",
    "age_band_counts", "age_group_summary", "parse_substitutions",
    "mutation_frequencies", "protein_mutations", "lineage_mutation_burden",
    "protein_group_counts", "mutation_cooccurrence", "mutation_timeline",
]


# === HELPERS =================================================================
def _ranked_counts(values: pd.Series) -> pd.Series:
    """Counts per distinct value, most frequent first; ties keep first-seen order."""
    values = values.dropna()
    if values.empty:
        return pd.Series(dtype="int64")
    counts = values.groupby(values, sort=False).size()
    return counts.sort_values(ascending=False, kind="stable")


def _to_series(counts: pd.Series, ordering: SeriesOrdering, name: str = "Sample Count") -> CategoryCountSeries:
    return CategoryCountSeries(
        labels=tuple(str(k) for k in counts.index),
        values=tuple(int(v) for v in counts.to_numpy()),
        ordering=ordering,
        name=name,
    )


@lru_cache(maxsize=_CACHE_SIZE)
def _mutation_occurrences(records: RecordSet) -> pd.DataFrame:
    """One row per (record, mutation token), in record then token order."""
    frame = records.frame[["lineage", "year_month", "mutations"]]
    exploded = frame.explode("mutations").dropna(subset=["mutations"])
    exploded = exploded.rename(columns={"mutations": "mutation"})
    return exploded.rename_axis("record").reset_index()


def _mutation_presence(records: RecordSet) -> pd.DataFrame:
    """Like _mutation_occurrences but each code counted once per record."""
    return _mutation_occurrences(records).drop_duplicates(subset=["record", "mutation"])


# === SUMMARY =================================================================
@lru_cache(maxsize=_CACHE_SIZE)
def summary_stats(records: RecordSet) -> SummaryStats:
    frame = records.frame

    burden = frame["total_substitutions"].dropna()
    avg_burden = round(float(burden.mean()), 1) if len(burden) else None

    dates = frame["collection_date"].dropna().tolist()
    date_range = DateRange(min=min(dates), max=max(dates)) if dates else DateRange()

    return SummaryStats(
        total_samples=len(records),
        unique_lineage_count=int(frame["lineage"].dropna().nunique()),
        unique_country_count=int(frame["country"].dropna().nunique()),
        avg_mutation_burden=avg_burden,
        date_range=date_range,
    )


# === VARIANTS ================================================================
@lru_cache(maxsize=_CACHE_SIZE)
def lineage_counts(records: RecordSet, limit: int = TOP_LINEAGES) -> CategoryCountSeries:
    counts = _ranked_counts(records.frame["lineage"]).head(max(limit, 0))
    return _to_series(counts, SeriesOrdering.FREQUENCY)


@lru_cache(maxsize=_CACHE_SIZE)
def lineage_details(records: RecordSet, limit: int = TOP_LINEAGES) -> tuple:
    """Detail rows for the top lineages.

    Percentages are shares of the displayed top-N subtotal, not of the whole
    data set, so they sum to 100 across the rows shown.
    """
    series = lineage_counts(records, limit)
    if series.is_empty:
        return ()

    subtotal = series.total
    dated = records.frame.dropna(subset=["lineage", "collection_date"])
    bounds = dated.groupby("lineage")["collection_date"].agg(["min", "max"])

    rows = []
    for lineage, count in series.pairs():
        first = bounds.at[lineage, "min"] if lineage in bounds.index else UNKNOWN_DATE
        last = bounds.at[lineage, "max"] if lineage in bounds.index else UNKNOWN_DATE
        rows.append(LineageDetail(
            lineage=lineage,
            count=count,
            percentage=round(count / subtotal * 100, 1),
            first_detected=first,
            last_detected=last,
        ))
    return tuple(rows)


# === TEMPORAL ================================================================
@lru_cache(maxsize=_CACHE_SIZE)
def monthly_counts(records: RecordSet) -> CategoryCountSeries:
    months = records.frame["year_month"].dropna()
    counts = months.groupby(months, sort=True).size()
    return _to_series(counts, SeriesOrdering.CHRONOLOGICAL)


def monthly_growth(series: CategoryCountSeries) -> CategoryCountSeries:
    """Month-over-month growth in percent, one point fewer than the input.

    A month following a zero count gets 0 rather than a non-finite value.
    """
    counts = series.values
    growth = []
    for prev, cur in zip(counts, counts[1:]):
        growth.append(0.0 if prev == 0 else (cur - prev) / prev * 100)
    return CategoryCountSeries(
        labels=series.labels[1:],
        values=tuple(growth),
        ordering=series.ordering,
        name="Monthly Growth Rate (%)",
    )


@lru_cache(maxsize=_CACHE_SIZE)
def lineage_share_by_month(records: RecordSet, top_n: int = TOP_SHARE_LINEAGES) -> StackedShareSeries:
    """Share of the top-N lineages plus 'Other' in each month.

    Buckets are labelled by month name only, so two Januaries from different
    years read the same; ``month_keys`` keeps them apart.
    """
    frame = records.frame.dropna(subset=["year_month", "lineage"])
    if frame.empty:
        return StackedShareSeries()

    # a lineage literally named "Other" merges into the aggregate bucket
    top = [name for name in lineage_counts(records, top_n).labels if name != OTHER_LABEL]
    categories = top + [OTHER_LABEL]

    bucket = frame["lineage"].where(frame["lineage"].isin(top), OTHER_LABEL)
    table = pd.crosstab(frame["year_month"], bucket).reindex(columns=categories, fill_value=0)
    shares = table.div(table.sum(axis=1), axis=0) * 100

    month_keys = [str(k) for k in shares.index]
    return StackedShareSeries(
        labels=tuple(MONTH_NAMES[int(k[-2:]) - 1] for k in month_keys),
        month_keys=tuple(month_keys),
        categories=tuple(categories),
        shares=tuple(tuple(float(v) for v in shares[c].to_numpy()) for c in categories),
    )


# === DEMOGRAPHICS ============================================================
@lru_cache(maxsize=_CACHE_SIZE)
def gender_counts(records: RecordSet) -> CategoryCountSeries:
    # Free-text categories: "Male", "male" and "M" stay distinct
    counts = _ranked_counts(records.frame["sex"])
    return _to_series(counts, SeriesOrdering.FREQUENCY, name="Gender Distribution")


@lru_cache(maxsize=_CACHE_SIZE)
def age_band_counts(records: RecordSet) -> CategoryCountSeries:
    ages = records.frame["age"].dropna()
    ages = ages[ages >= 0]
    band = np.minimum(ages.to_numpy() // 10, len(AGE_BANDS) - 1).astype(int)
    counts = np.bincount(band, minlength=len(AGE_BANDS))
    return CategoryCountSeries(
        labels=tuple(AGE_BANDS),
        values=tuple(int(c) for c in counts),
        ordering=SeriesOrdering.BAND,
        name="Age Distribution",
    )


@lru_cache(maxsize=_CACHE_SIZE)
def age_group_summary(records: RecordSet) -> AgeGroupSummary:
    by_band = dict(age_band_counts(records).pairs())
    total = sum(by_band.values())
    if total == 0:
        return AgeGroupSummary()

    groups = []
    for name, bands in AGE_GROUPS:
        count = sum(by_band[b] for b in bands)
        groups.append(AgeGroup(name=name, bands=bands, count=count,
                               percentage=round(count / total * 100, 1)))
    return AgeGroupSummary(total_classified=total, groups=tuple(groups))


# === MUTATIONS ===============================================================
@lru_cache(maxsize=_CACHE_SIZE)
def _ranked_mutations(records: RecordSet) -> pd.Series:
    return _ranked_counts(_mutation_presence(records)["mutation"])


@lru_cache(maxsize=_CACHE_SIZE)
def mutation_frequencies(records: RecordSet, limit: int = TOP_MUTATIONS) -> CategoryCountSeries:
    """Number of samples carrying each mutation code, most frequent first."""
    counts = _ranked_mutations(records).head(max(limit, 0))
    return _to_series(counts, SeriesOrdering.FREQUENCY, name="Frequency")


@lru_cache(maxsize=_CACHE_SIZE)
def protein_mutations(records: RecordSet, prefix: str = SPIKE_PREFIX,
                      limit: int = TOP_PROTEIN_MUTATIONS) -> CategoryCountSeries:
    ranked = _ranked_mutations(records)
    scoped = ranked[ranked.index.str.startswith(f"{prefix}:")] if len(ranked) else ranked
    return _to_series(scoped.head(max(limit, 0)), SeriesOrdering.FREQUENCY, name=f"{prefix} Protein Mutations")


@lru_cache(maxsize=_CACHE_SIZE)
def lineage_mutation_burden(records: RecordSet, limit: int = TOP_LINEAGES) -> CategoryCountSeries:
    """Mean substitution count of each top lineage.

    Lineages without any numeric count are left out instead of shown as 0.
    """
    top = list(lineage_counts(records, limit).labels)
    frame = records.frame
    scoped = frame[frame["lineage"].isin(top)].dropna(subset=["total_substitutions"])
    means = scoped.groupby("lineage")["total_substitutions"].mean()

    labels, values = [], []
    for lineage in top:
        if lineage in means.index:
            labels.append(lineage)
            values.append(round(float(means[lineage]), 2))
    return CategoryCountSeries(labels=tuple(labels), values=tuple(values),
                               ordering=SeriesOrdering.FREQUENCY, name="Average Mutations")


@lru_cache(maxsize=_CACHE_SIZE)
def protein_group_counts(records: RecordSet) -> CategoryCountSeries:
    """Mutation occurrences per protein prefix; tokens without ':' are skipped."""
    tokens = _mutation_occurrences(records)["mutation"].astype(str)
    tokens = tokens[tokens.str.contains(":", regex=False)]
    proteins = tokens.str.split(":", n=1).str[0].str.strip()
    proteins = proteins[proteins != ""]
    return _to_series(_ranked_counts(proteins), SeriesOrdering.FREQUENCY, name="Mutations")


@lru_cache(maxsize=_CACHE_SIZE)
def mutation_cooccurrence(records: RecordSet, limit: int = TOP_MUTATIONS) -> MutationCorrelationMatrix:
    codes = list(mutation_frequencies(records, limit).labels)
    if not codes:
        return MutationCorrelationMatrix()

    presence = _mutation_presence(records)
    presence = presence[presence["mutation"].isin(codes)]
    indicator = (
        pd.crosstab(presence["record"], presence["mutation"])
        .clip(upper=1)
        .reindex(columns=codes, fill_value=0)
    )
    together = indicator.T.dot(indicator).to_numpy()

    n = len(codes)
    cells = tuple(
        tuple(None if i == j else int(together[i, j]) for j in range(n))
        for i in range(n)
    )
    return MutationCorrelationMatrix(codes=tuple(codes), cells=cells)


@lru_cache(maxsize=_CACHE_SIZE)
def mutation_timeline(records: RecordSet, top_n: int = TOP_TIMELINE_MUTATIONS) -> MultiSeries:
    """Samples per month carrying each of the top-N mutations."""
    months = list(monthly_counts(records).labels)
    codes = list(mutation_frequencies(records, top_n).labels)
    if not months or not codes:
        return MultiSeries()

    presence = _mutation_presence(records).dropna(subset=["year_month"])
    presence = presence[presence["mutation"].isin(codes)]
    if presence.empty:
        table = pd.DataFrame(0, index=months, columns=codes)
    else:
        table = (
            pd.crosstab(presence["year_month"], presence["mutation"])
            .reindex(index=months, columns=codes, fill_value=0)
        )
    return MultiSeries(
        labels=tuple(months),
        names=tuple(codes),
        values=tuple(tuple(int(v) for v in table[c].to_numpy()) for c in codes),
    )
