"""Component trees for the five dashboard tabs.

Each ``*_tab`` function takes the loaded RecordSet, runs the aggregations
that tab needs and returns Dash components. The page callbacks only pick
which one to call.
"""
import dash_bootstrap_components as dbc
from dash import dcc, html

import aggregations as agg
import charts
import insights
from surveillance_models import AgeGroupSummary, RecordSet

TABS = [
    ("overview", "Overview"),
    ("variants", "Variants"),
    ("temporal", "Temporal"),
    ("demographics", "Demographics"),
    ("mutations", "Mutations"),
]

# === HELPERS FOR LAYOUT =====================================================
def _indicator(title, value, icon):
    return dbc.Col([
        dbc.Card([
            dbc.Row([
                dbc.Col([
                    dbc.CardBody([
                        html.H6(title, className="card-subtitle"),
                        html.H4(value, className="card-title mb-0")
                    ])
                ], width=9),
                dbc.Col([
                    html.Div([
                        html.I(className=icon, style={"fontSize": "2rem"})
                    ], className="d-flex align-items-center justify-content-center bg-primary text-white h-100")
                ], width=3)
            ], className="g-0")
        ], className="mb-4 shadow-sm")
    ], md=3, sm=6)

def build_indicators(records: RecordSet):
    stats = agg.summary_stats(records)
    return dbc.Row([
        _indicator("Total Samples", f"{stats.total_samples:,}", "bi bi-bar-chart-fill"),
        _indicator("Unique Lineages", f"{stats.unique_lineage_count:,}", "bi bi-diagram-3-fill"),
        _indicator("Countries", f"{stats.unique_country_count:,}", "bi bi-globe"),
        _indicator("Avg. Mutations", insights.format_burden(stats.avg_mutation_burden), "bi bi-activity"),
    ], className="mb-2")

def _chart_card(title, figure, graph_id=None, footer=None, width=6):
    body = [html.H6(title, className="fw-bold mb-3"),
            dcc.Graph(figure=figure, config={"displayModeBar": False},
                      **({"id": graph_id} if graph_id else {}))]
    if footer:
        body.append(html.Small(footer, className="text-muted"))
    return dbc.Col(dbc.Card(dbc.CardBody(body), className="mb-4 shadow-sm"), lg=width)

def _insights_card(title, findings, width=12):
    items = [html.P([html.Strong(f"{heading}: "), text], className="mb-2")
             for heading, text in findings]
    return dbc.Col(dbc.Card(dbc.CardBody([html.H6(title, className="fw-bold mb-3"), *items]),
                            className="mb-4 shadow-sm bg-light"), lg=width)

def error_alert(message):
    return dbc.Alert([
        html.H4("Error Loading Data", className="alert-heading"),
        html.P(message, className="mb-0"),
        html.Hr(),
        html.P("Check the data source and reload the page.", className="mb-0 small"),
    ], color="danger", className="mt-4")

def lineage_detail_table(details):
    if not details:
        return html.P("No lineage data available", className="text-muted")

    header = html.Thead(html.Tr([html.Th(c) for c in
                                 ["Lineage", "Sample Count", "Percentage", "First Detected", "Last Detected"]]))
    rows = []
    for i, row in enumerate(details):
        swatch = html.Span(style={"display": "inline-block", "width": "12px", "height": "12px",
                                  "borderRadius": "2px", "marginRight": "0.5rem",
                                  "backgroundColor": charts.COLORS[i % len(charts.COLORS)]})
        rows.append(html.Tr([
            html.Td([swatch, row.lineage]),
            html.Td(f"{row.count:,}"),
            html.Td(f"{row.percentage:.1f}%"),
            html.Td(row.first_detected),
            html.Td(row.last_detected),
        ]))
    return dbc.Table([header, html.Tbody(rows)], bordered=True, striped=True, hover=True, size="sm")

def age_group_list(groups: AgeGroupSummary):
    if not groups.has_data:
        return html.P("No age data available", className="text-muted")
    return html.Ul([
        html.Li([html.Strong(f"{g.name}: "), f"{g.count:,} samples ({g.percentage:.1f}%)"],
                className="d-flex justify-content-between border-bottom pb-2 mb-2")
        for g in groups.groups
    ], className="list-unstyled mb-0")

def protein_options(records: RecordSet):
    return [{"label": p, "value": p} for p in agg.protein_group_counts(records).labels]

def protein_mutation_figure(records: RecordSet, prefix):
    series = agg.protein_mutations(records, prefix or agg.SPIKE_PREFIX)
    return charts.make_category_bar(series, "Mutation", "Number of Samples", color=charts.PURPLE,
                                    empty_message=f"No {prefix or agg.SPIKE_PREFIX} protein mutations found")

# === TABS ===================================================================
def overview_tab(records: RecordSet):
    lineages = agg.lineage_counts(records)
    monthly = agg.monthly_counts(records)
    return dbc.Row([
        _chart_card("Top Lineages", charts.make_lineage_donut(lineages)),
        _chart_card("Samples Over Time", charts.make_monthly_line(monthly)),
        _chart_card("Gender Distribution", charts.make_gender_pie(agg.gender_counts(records))),
        _chart_card("Age Distribution", charts.make_age_bar(agg.age_band_counts(records))),
        _insights_card("Key Findings", insights.variant_insights(agg.summary_stats(records), lineages)),
    ])

def variants_tab(records: RecordSet):
    lineages = agg.lineage_counts(records)
    return dbc.Row([
        _chart_card("Variant Distribution",
                    charts.make_category_bar(lineages, "Lineage", "Number of Samples", color=charts.COLORS),
                    width=12),
        dbc.Col(dbc.Card(dbc.CardBody([
            html.H6("Lineage Details", className="fw-bold mb-3"),
            lineage_detail_table(agg.lineage_details(records)),
            html.Small("Percentages are shares of the lineages listed.", className="text-muted"),
        ]), className="mb-4 shadow-sm"), lg=12),
        _insights_card("Variant Analysis Insights",
                       insights.variant_insights(agg.summary_stats(records), lineages)),
    ])

def temporal_tab(records: RecordSet):
    monthly = agg.monthly_counts(records)
    return dbc.Row([
        _chart_card("Monthly Sample Collection", charts.make_monthly_line(monthly), width=12),
        _chart_card("Lineage Share by Month",
                    charts.make_share_stacked_bar(agg.lineage_share_by_month(records)),
                    footer="Bars are labelled by month name only.", width=12),
        _chart_card("Monthly Growth Rate", charts.make_growth_bar(agg.monthly_growth(monthly))),
        _insights_card("Temporal Analysis Insights",
                       insights.temporal_insights(agg.summary_stats(records), monthly), width=6),
    ])

def demographics_tab(records: RecordSet):
    gender = agg.gender_counts(records)
    ages = agg.age_band_counts(records)
    groups = agg.age_group_summary(records)
    return dbc.Row([
        _chart_card("Gender Distribution", charts.make_gender_pie(gender)),
        _chart_card("Age Distribution", charts.make_age_bar(ages)),
        dbc.Col(dbc.Card(dbc.CardBody([
            html.H6("Age Groups", className="fw-bold mb-3"),
            age_group_list(groups),
        ]), className="mb-4 shadow-sm"), lg=6),
        _insights_card("Gender and Age Distribution",
                       insights.demographic_insights(agg.summary_stats(records), gender, ages, groups),
                       width=6),
    ])

def mutations_tab(records: RecordSet):
    frequencies = agg.mutation_frequencies(records)
    spike = agg.protein_mutations(records, agg.SPIKE_PREFIX)
    proteins = agg.protein_group_counts(records)
    burden = agg.lineage_mutation_burden(records)
    options = protein_options(records)
    default_prefix = agg.SPIKE_PREFIX if any(o["value"] == agg.SPIKE_PREFIX for o in options) else (
        options[0]["value"] if options else agg.SPIKE_PREFIX)

    protein_card = dbc.Col(dbc.Card(dbc.CardBody([
        dbc.Row([
            dbc.Col(html.H6("Mutations by Protein", className="fw-bold mb-0"), width="auto"),
            dbc.Col(dcc.Dropdown(id="protein-prefix", options=options, value=default_prefix,
                                 clearable=False, style={"minWidth": "140px"}), width="auto"),
        ], className="mb-3 align-items-center", justify="between"),
        dcc.Graph(id="protein-mutation-bar", figure=protein_mutation_figure(records, default_prefix),
                  config={"displayModeBar": False}),
    ]), className="mb-4 shadow-sm"), lg=6)

    return dbc.Row([
        _chart_card("Top Mutations",
                    charts.make_category_bar(frequencies, "Mutation", "Number of Samples",
                                             empty_message="No mutation data available")),
        protein_card,
        _chart_card("Mutation Burden by Lineage",
                    charts.make_category_bar(burden, "Lineage",
                                             "Average Substitutions", color=charts.BLUE)),
        _chart_card("Mutations per Protein", charts.make_protein_pie(proteins)),
        _chart_card("Mutation Co-occurrence", charts.make_correlation_heatmap(agg.mutation_cooccurrence(records)),
                    footer="Samples carrying both mutations; the diagonal is left blank.", width=12),
        _chart_card("Mutation Emergence Timeline", charts.make_mutation_timeline(agg.mutation_timeline(records)),
                    width=12),
        _insights_card("Mutation Insights",
                       insights.mutation_insights(agg.summary_stats(records), frequencies, spike, proteins, burden)),
    ])

TAB_BUILDERS = {
    "overview": overview_tab,
    "variants": variants_tab,
    "temporal": temporal_tab,
    "demographics": demographics_tab,
    "mutations": mutations_tab,
}

def render_tab(tab, records: RecordSet):
    builder = TAB_BUILDERS.get(tab or "overview", overview_tab)
    return builder(records)
