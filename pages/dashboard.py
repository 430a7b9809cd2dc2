from dash import html, register_page, dcc, callback, Input, Output
import dash_bootstrap_components as dbc
from dash.exceptions import PreventUpdate

from data_loader import get_data_store
from tab_views import TABS, build_indicators, error_alert, protein_mutation_figure, render_tab


register_page(__name__, path="/dashboard", name="Dashboard", order=0)

# === APP LAYOUT ==============================================================
def create_dashboard_layout():
    data = get_data_store()

    header = dbc.Row([
        dbc.Col([
            html.Div([
                html.I(className="bi bi-virus me-2", style={"fontSize": "1.8rem"}),
                html.H4("SARS-CoV-2 Genomic Surveillance Dashboard", className="mb-0")
            ], className="d-flex align-items-center")
        ], width="auto"),
    ], className="mb-4 align-items-center", justify="between")

    # A failed load replaces the whole page body; nothing is rendered partially
    if data['error']:
        return dbc.Container([header, error_alert(data['error'])], fluid=True,
                             style={'backgroundColor': '#f8f9fa', 'minHeight': '100vh', 'padding': '20px'})

    records = data['records']
    return dbc.Container([
        header,
        build_indicators(records),
        dbc.Tabs(
            [dbc.Tab(label=label, tab_id=tab_id) for tab_id, label in TABS],
            id="dashboard-tabs",
            active_tab="overview",
            className="mb-3",
        ),
        dcc.Loading(html.Div(id="tab-content"), type="default"),
    ], fluid=True, style={'backgroundColor': '#f8f9fa', 'minHeight': '100vh', 'padding': '20px'})

layout = create_dashboard_layout

# === TAB CALLBACKS ===========================================================
@callback(
    Output("tab-content", "children"),
    Input("dashboard-tabs", "active_tab"),
)
def render_active_tab(active_tab):
    data = get_data_store()
    if data['error']:
        raise PreventUpdate
    return render_tab(active_tab, data['records'])


@callback(
    Output("protein-mutation-bar", "figure"),
    Input("protein-prefix", "value"),
    prevent_initial_call=True,
)
def update_protein_mutations(prefix):
    data = get_data_store()
    if data['error'] or not prefix:
        raise PreventUpdate
    return protein_mutation_figure(data['records'], prefix)
