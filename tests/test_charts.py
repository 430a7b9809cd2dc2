import numpy as np
import plotly.graph_objects as go

import aggregations as agg
import charts
from surveillance_models import CategoryCountSeries, MultiSeries, MutationCorrelationMatrix, StackedShareSeries


def _annotation(fig: go.Figure) -> str:
    return fig.layout.annotations[0].text


def test_category_bar_keeps_label_order(dated_records) -> None:
    fig = charts.make_category_bar(agg.lineage_counts(dated_records), "Lineage", "Number of Samples")

    assert list(fig.data[0].x) == ["B", "A", "C"]
    assert list(fig.data[0].y) == [2, 2, 1]
    assert fig.layout.xaxis.title.text == "Lineage"
    assert fig.layout.yaxis.title.text == "Number of Samples"


def test_horizontal_category_bar_with_palette(scenario_records) -> None:
    fig = charts.make_category_bar(agg.lineage_counts(scenario_records), "Lineage", "Samples",
                                   color=charts.COLORS, horizontal=True)

    assert list(fig.data[0].y) == ["BA.1", "BA.2"]
    assert list(fig.data[0].marker.color) == charts.COLORS[:2]


def test_empty_series_render_a_message(empty_records) -> None:
    assert _annotation(charts.make_category_bar(CategoryCountSeries(), "a", "b")) == "No data available"
    assert _annotation(charts.make_monthly_line(agg.monthly_counts(empty_records))) == "No dated samples available"
    assert _annotation(charts.make_gender_pie(agg.gender_counts(empty_records))) == "No gender data available"
    assert _annotation(charts.make_age_bar(agg.age_band_counts(empty_records))) == "No age data available"
    assert _annotation(charts.make_share_stacked_bar(StackedShareSeries())) == "No lineage data by month"
    assert _annotation(charts.make_mutation_timeline(MultiSeries())) == "No mutation data by month"
    assert _annotation(charts.make_correlation_heatmap(MutationCorrelationMatrix())) == "No mutation data available"
    assert _annotation(charts.make_protein_pie(CategoryCountSeries())) == "No mutation data available"


def test_growth_bar_colours_declines_red() -> None:
    series = CategoryCountSeries(labels=("a", "b", "c"), values=(2, 4, 1))
    fig = charts.make_growth_bar(agg.monthly_growth(series))

    assert list(fig.data[0].x) == ["b", "c"]
    assert list(fig.data[0].marker.color) == [charts.TEAL, charts.RED]


def test_growth_bar_needs_two_months() -> None:
    single = CategoryCountSeries(labels=("2022-01",), values=(3,))
    fig = charts.make_growth_bar(agg.monthly_growth(single))
    assert _annotation(fig) == "Not enough temporal data for growth rate calculation"


def test_lineage_donut(dated_records) -> None:
    fig = charts.make_lineage_donut(agg.lineage_counts(dated_records))

    assert fig.data[0].hole == 0.55
    assert list(fig.data[0].labels) == ["B", "A", "C"]


def test_empty_lineage_donut_is_a_placeholder(empty_records) -> None:
    fig = charts.make_lineage_donut(agg.lineage_counts(empty_records))
    assert list(fig.data[0].labels) == ["No data"]


def test_share_stacked_bar(dated_records) -> None:
    fig = charts.make_share_stacked_bar(agg.lineage_share_by_month(dated_records, top_n=1))

    assert fig.layout.barmode == "stack"
    assert [trace.name for trace in fig.data] == ["B", "Other"]
    assert list(fig.data[0].x) == ["January", "February", "March", "January"]
    assert list(fig.data[0].customdata) == ["2021-01", "2021-02", "2021-03", "2022-01"]
    assert fig.data[-1].marker.color == charts.OTHER_COLOR


def test_correlation_heatmap_blanks_the_diagonal(dated_records) -> None:
    matrix = agg.mutation_cooccurrence(dated_records)
    fig = charts.make_correlation_heatmap(matrix)
    z = np.asarray(fig.data[0].z, dtype=float)

    assert z.shape == (len(matrix.codes), len(matrix.codes))
    assert np.isnan(np.diag(z)).all()
    assert list(fig.data[0].x) == list(matrix.codes)


def test_mutation_timeline_has_one_trace_per_code(dated_records) -> None:
    timeline = agg.mutation_timeline(dated_records)
    fig = charts.make_mutation_timeline(timeline)

    assert [trace.name for trace in fig.data] == list(timeline.names)
    assert list(fig.data[1].y) == [0, 0, 0, 2]


def test_age_bar_uses_band_order(scenario_records) -> None:
    fig = charts.make_age_bar(agg.age_band_counts(scenario_records))
    assert list(fig.data[0].x) == agg.AGE_BANDS
