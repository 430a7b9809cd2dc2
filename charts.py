import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio

from surveillance_models import (
    CategoryCountSeries,
    MultiSeries,
    MutationCorrelationMatrix,
    StackedShareSeries,
)
pio.templates.default = "plotly_white"

# === CONFIG & CONSTANTS ======================================================
COLORS = [
    "#8884d8", "#83a6ed", "#8dd1e1", "#82ca9d", "#a4de6c",
    "#d0ed57", "#ffc658", "#ff8042", "#ff6361", "#bc5090",
]
GENDER_COLORS = ["rgba(54, 162, 235, 0.8)", "rgba(255, 99, 132, 0.8)", "rgba(255, 206, 86, 0.8)"]
TEAL = "rgba(75, 192, 192, 0.6)"
TEAL_LINE = "rgba(75, 192, 192, 1)"
PURPLE = "rgba(153, 102, 255, 0.6)"
BLUE = "rgba(54, 162, 235, 0.6)"
RED = "rgba(255, 99, 132, 0.6)"
OTHER_COLOR = "#CCCCCC"

_AXIS = dict(gridcolor="rgba(0,0,0,0.08)", linecolor="rgba(0,0,0,0.25)", zeroline=False)


def _base_layout(fig: go.Figure, height: int = 400, **kwargs) -> go.Figure:
    fig.update_layout(
        height=height,
        margin=dict(t=40, b=0, l=0, r=0),
        plot_bgcolor="white",
        paper_bgcolor="white",
        **kwargs,
    )
    return fig

def _empty_plot(message):
    """Create an empty plot with a message"""
    fig = go.Figure()
    fig.update_layout(
        xaxis={"visible": False},
        yaxis={"visible": False},
        annotations=[{
            "text": message,
            "xref": "paper", "yref": "paper",
            "x": 0.5, "y": 0.5, "showarrow": False,
            "font": {"size": 16}
        }],
        height=300
    )
    return fig

def series_frame(series: CategoryCountSeries, label_col: str = "Category", value_col: str = "Count") -> pd.DataFrame:
    return pd.DataFrame({label_col: list(series.labels), value_col: list(series.values)})

# === FIGURE BUILDERS =========================================================
def make_category_bar(
    series: CategoryCountSeries,
    label_title: str,
    value_title: str,
    color: str | list | None = None,
    horizontal: bool = False,
    empty_message: str = "No data available",
) -> go.Figure:
    """Bar chart of one CategoryCountSeries, keeping its label order."""
    if series.is_empty:
        return _empty_plot(empty_message)

    df = series_frame(series)
    colors = color if isinstance(color, list) else None
    if horizontal:
        fig = px.bar(df, x="Count", y="Category", orientation="h",
                     category_orders={"Category": list(series.labels)})
    else:
        fig = px.bar(df, x="Category", y="Count",
                     category_orders={"Category": list(series.labels)})

    if colors:
        fig.update_traces(marker_color=[colors[i % len(colors)] for i in range(len(df))])
    else:
        fig.update_traces(marker_color=color or TEAL)

    value_axis, label_axis = ("x", "y") if horizontal else ("y", "x")
    fig.update_traces(
        hovertemplate=f"<b>%{{{label_axis}}}</b><br>{series.name}: %{{{value_axis}:,}}<extra></extra>"
    )
    layout = {
        f"{label_axis}axis": dict(title=label_title, showgrid=False, automargin=True, linecolor="rgba(0,0,0,0.25)"),
        f"{value_axis}axis": dict(title=value_title, **_AXIS),
    }
    if not horizontal:
        layout["xaxis"]["tickangle"] = -45
    return _base_layout(fig, **layout)

def make_lineage_donut(series: CategoryCountSeries) -> go.Figure:
    """Donut of the top lineages; shares are of the lineages shown."""
    if series.is_empty:
        fig = px.pie(pd.DataFrame({"Lineage": ["No data"], "Count": [1]}),
                     names="Lineage", values="Count", hole=0.6)
        fig.update_traces(textinfo="none", hoverinfo="skip", showlegend=False)
        fig.update_layout(margin=dict(l=10, r=10, t=40, b=40))
        return fig

    df = series_frame(series, "Lineage")
    fig = px.pie(df, names="Lineage", values="Count", hole=0.55,
                 color_discrete_sequence=COLORS,
                 category_orders={"Lineage": list(series.labels)})
    fig.update_traces(
        textinfo="percent", textposition="inside", sort=False,
        marker=dict(line=dict(color="#fff", width=1)),
        hovertemplate="<b>%{label}</b><br>Samples: %{value:,}<br>Share: %{percent}<extra></extra>",
    )
    fig.update_layout(
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="center", x=0.5,
                    bgcolor="rgba(0,0,0,0)", font=dict(size=11), title_text=""),
        margin=dict(l=20, r=20, t=60, b=20), height=400,
    )
    return fig

def make_monthly_line(series: CategoryCountSeries) -> go.Figure:
    if series.is_empty:
        return _empty_plot("No dated samples available")

    df = series_frame(series, "Month", "Samples")
    fig = px.line(df, x="Month", y="Samples", markers=True, line_shape="spline")
    fig.update_traces(
        mode="lines+markers", marker=dict(size=5), line=dict(color=TEAL_LINE),
        fill="tozeroy", fillcolor="rgba(75, 192, 192, 0.2)",
        hovertemplate="<b>%{x}</b><br>%{y:,} samples<extra></extra>",
    )
    return _base_layout(
        fig,
        xaxis=dict(title="Month", type="category", showgrid=False, linecolor="rgba(0,0,0,0.25)"),
        yaxis=dict(title="Number of Samples", rangemode="tozero", **_AXIS),
    )

def make_growth_bar(growth: CategoryCountSeries) -> go.Figure:
    """Month-over-month growth; declines drawn in red."""
    if growth.is_empty:
        return _empty_plot("Not enough temporal data for growth rate calculation")

    values = np.asarray(growth.values, dtype=float)
    fig = go.Figure(go.Bar(
        x=list(growth.labels),
        y=values,
        marker_color=np.where(values >= 0, TEAL, RED).tolist(),
        hovertemplate="<b>%{x}</b><br>Growth: %{y:.1f}%<extra></extra>",
        name=growth.name,
    ))
    return _base_layout(
        fig,
        xaxis=dict(title="Month", type="category", showgrid=False, linecolor="rgba(0,0,0,0.25)"),
        yaxis=dict(title="Growth Rate (%)", ticksuffix="%", **_AXIS),
    )

def make_share_stacked_bar(shares: StackedShareSeries) -> go.Figure:
    """100%-stacked bars of lineage share per month."""
    if shares.is_empty:
        return _empty_plot("No lineage data by month")

    fig = go.Figure()
    for i, (category, values) in enumerate(zip(shares.categories, shares.shares)):
        color = OTHER_COLOR if i == len(shares.categories) - 1 else COLORS[i % len(COLORS)]
        fig.add_trace(go.Bar(
            # month names only; buckets from different years share a label
            x=list(shares.labels),
            y=list(values),
            customdata=list(shares.month_keys),
            name=category,
            marker_color=color,
            hovertemplate=f"<b>{category}</b><br>%{{customdata}}: %{{y:.1f}}%<extra></extra>",
        ))
    return _base_layout(
        fig, height=450, barmode="stack",
        xaxis=dict(title="Month", showgrid=False, linecolor="rgba(0,0,0,0.25)"),
        yaxis=dict(title="Share of Samples (%)", ticksuffix="%", **_AXIS),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="center", x=0.5),
    )

def make_gender_pie(series: CategoryCountSeries) -> go.Figure:
    if series.is_empty:
        return _empty_plot("No gender data available")

    df = series_frame(series, "Gender")
    fig = px.pie(df, names="Gender", values="Count",
                 color_discrete_sequence=GENDER_COLORS + COLORS,
                 category_orders={"Gender": list(series.labels)})
    fig.update_traces(
        textinfo="label+percent", sort=False,
        hovertemplate="<b>%{label}</b><br>Samples: %{value:,}<br>%{percent}<extra></extra>",
    )
    fig.update_layout(height=380, margin=dict(l=10, r=10, t=30, b=10))
    return fig

def make_age_bar(series: CategoryCountSeries) -> go.Figure:
    if series.is_empty or series.total == 0:
        return _empty_plot("No age data available")
    return make_category_bar(series, "Age Range", "Number of Samples", color=PURPLE)

def make_correlation_heatmap(matrix: MutationCorrelationMatrix) -> go.Figure:
    """Co-occurrence heatmap; the diagonal stays blank."""
    if matrix.is_empty:
        return _empty_plot("No mutation data available")

    z = np.array([[np.nan if v is None else v for v in row] for row in matrix.cells], dtype=float)
    codes = list(matrix.codes)
    fig = go.Figure(go.Heatmap(
        z=z, x=codes, y=codes,
        colorscale="Blues",
        hoverongaps=False,
        colorbar=dict(title="Samples"),
        hovertemplate="<b>%{y}</b> + <b>%{x}</b><br>Together in %{z} samples<extra></extra>",
    ))
    return _base_layout(
        fig, height=520,
        xaxis=dict(tickangle=-45, automargin=True, showgrid=False),
        yaxis=dict(autorange="reversed", automargin=True, showgrid=False),
    )

def make_mutation_timeline(timeline: MultiSeries) -> go.Figure:
    if timeline.is_empty:
        return _empty_plot("No mutation data by month")

    fig = go.Figure()
    for i, (code, values) in enumerate(zip(timeline.names, timeline.values)):
        fig.add_trace(go.Scatter(
            x=list(timeline.labels), y=list(values),
            mode="lines+markers", name=code,
            line=dict(color=COLORS[i % len(COLORS)], shape="spline"),
            hovertemplate=f"<b>{code}</b><br>%{{x}}: %{{y}} samples<extra></extra>",
        ))
    return _base_layout(
        fig,
        xaxis=dict(title="Month", type="category", showgrid=False, linecolor="rgba(0,0,0,0.25)"),
        yaxis=dict(title="Samples with Mutation", rangemode="tozero", **_AXIS),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="center", x=0.5),
    )

def make_protein_pie(series: CategoryCountSeries) -> go.Figure:
    if series.is_empty:
        return _empty_plot("No mutation data available")

    df = series_frame(series, "Protein")
    fig = px.pie(df, names="Protein", values="Count", hole=0.4,
                 color_discrete_sequence=COLORS,
                 category_orders={"Protein": list(series.labels)})
    fig.update_traces(
        textinfo="label+percent", textposition="inside", sort=False,
        hovertemplate="<b>%{label}</b><br>Mutations: %{value:,}<extra></extra>",
    )
    fig.update_layout(height=380, margin=dict(l=10, r=10, t=30, b=10))
    return fig
