"""Plain-text findings shown beside the charts on each tab.

Each builder returns ``(heading, text)`` pairs computed from aggregate
models, so the tab views stay free of arithmetic.
"""
from surveillance_models import AgeGroupSummary, CategoryCountSeries, SummaryStats


def _fmt_list(values, max_items=3, *, empty_label="N/A"):
    vals = [v for v in (values or []) if v]
    if not vals:
        return empty_label
    if len(vals) <= max_items:
        return ", ".join(vals)
    return f"{', '.join(vals[:max_items])} +{len(vals)-max_items} more"


def format_burden(value) -> str:
    return "N/A" if value is None else f"{value:.1f}"


def peak(series: CategoryCountSeries):
    """(label, value) of the first maximum, or None for an empty series."""
    if series.is_empty:
        return None
    top = max(series.values)
    i = series.values.index(top)
    return series.labels[i], top


def gender_ratio_text(gender: CategoryCountSeries) -> str:
    total = gender.total
    if not total:
        return "No gender data"
    counts = dict(gender.pairs())
    male = counts.get("Male", 0) / total * 100
    female = counts.get("Female", 0) / total * 100
    other = 100 - male - female
    text = f"{male:.1f}% male vs {female:.1f}% female"
    if other > 0.05:
        text += f" ({other:.1f}% other/unknown)"
    return text


def most_common_age_range(ages: CategoryCountSeries) -> str:
    if ages.total == 0:
        return "unknown"
    label, _ = peak(ages)
    return label


def variant_insights(summary: SummaryStats, lineages: CategoryCountSeries):
    dominant = peak(lineages)
    top3 = [f"{label} ({count:,} samples)" for label, count in lineages.pairs()[:3]]
    return [
        ("Dominant Variant",
         f"{dominant[0]} ({dominant[1]:,} samples)" if dominant else "N/A (0 samples)"),
        ("Variant Diversity",
         f"The dataset contains {summary.unique_lineage_count} different variant lineages."),
        ("Top 3 Variants", _fmt_list(top3)),
        ("Variant Timeline",
         f"The earliest variant in this dataset was detected on {summary.date_range.min or 'N/A'} "
         f"and the most recent on {summary.date_range.max or 'N/A'}."),
    ]


def temporal_insights(summary: SummaryStats, monthly: CategoryCountSeries):
    if monthly.is_empty:
        return [("Temporal Data", "Insufficient temporal data for analysis")]

    label, count = peak(monthly)
    average = monthly.total / len(monthly.values)
    return [
        ("Date Range", f"{summary.date_range.min or 'N/A'} to {summary.date_range.max or 'N/A'}"),
        ("Peak Collection Month", f"{label} ({count:,} samples)"),
        ("Total Time Period", f"{len(monthly.labels)} months"),
        ("Average Samples Per Month", f"{average:.1f}"),
    ]


def demographic_insights(summary: SummaryStats, gender: CategoryCountSeries,
                         ages: CategoryCountSeries, groups: AgeGroupSummary):
    findings = [
        ("Samples", f"This dataset contains {summary.total_samples:,} COVID-19 samples."),
        ("Gender ratio", gender_ratio_text(gender)),
        ("Age distribution", f"Most samples are from the {most_common_age_range(ages)} age range"),
    ]
    young = next((g.percentage for g in groups.groups if g.bands == ("20-29", "30-39")), 0.0)
    findings.append(("Young adults", f"Make up {young:.1f}% of all cases"))
    if groups.has_data:
        largest = max(groups.groups, key=lambda g: g.count)
        findings.append(("Largest age group", f"{largest.name}: {largest.percentage:.1f}% of samples with an age"))
    return findings


def mutation_insights(summary: SummaryStats, frequencies: CategoryCountSeries,
                      spike: CategoryCountSeries, proteins: CategoryCountSeries,
                      burden: CategoryCountSeries):
    common = peak(frequencies)
    heaviest = burden.pairs()[0] if not burden.is_empty else None
    return [
        ("Most Common Mutation",
         f"{common[0]} (found in {common[1]:,} samples)" if common else "N/A"),
        ("Common Spike Mutations", _fmt_list(list(spike.labels))),
        ("Proteins Affected", _fmt_list(list(proteins.labels), max_items=5)),
        ("Highest Mutation Burden",
         f"{heaviest[0]} ({heaviest[1]:.2f} avg. mutations)" if heaviest else "N/A"),
        ("Average Mutation Burden", f"{format_burden(summary.avg_mutation_burden)} substitutions per sample"),
    ]
