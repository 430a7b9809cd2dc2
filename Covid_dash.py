import os

import dash
import dash_bootstrap_components as dbc
from dash import html
from flask import Flask, redirect

from data_loader import get_data_store

APP_TITLE = "CovBoard"
NAV_ORDER = ["Dashboard"]
BOOTSTRAP_ICONS = "https://cdn.jsdelivr.net/npm/bootstrap-icons@1.10.5/font/bootstrap-icons.css"

server = Flask(__name__)
server.secret_key = os.environ.get("SECRET_KEY", "covboard-dev-key")

# Registered before Dash so it wins over the index route
@server.route("/")
def redirect_to_dashboard():
    return redirect("/dashboard", code=302)

app = dash.Dash(
    __name__,
    server=server,
    use_pages=True,
    pages_folder="pages",
    external_stylesheets=[dbc.themes.BOOTSTRAP, BOOTSTRAP_ICONS],
    suppress_callback_exceptions=True,
    title=APP_TITLE,
)

def navbar():
    paths = {page["name"]: page["path"] for page in dash.page_registry.values()}
    links = [
        dbc.NavItem(dbc.NavLink(name, href=paths[name], active="exact"))
        for name in NAV_ORDER if name in paths
    ]
    brand = dbc.NavbarBrand([html.I(className="bi bi-virus2 me-2"), APP_TITLE], className="fw-bold")
    return dbc.Navbar(
        dbc.Container([brand, dbc.Nav(links, pills=True, navbar=True)]),
        color="primary", dark=True, sticky="top", className="mb-4",
    )

app.layout = dbc.Container([navbar(), dash.page_container], fluid=True)

# Loaded once per process; pages read the same store through get_data_store()
app.server.config["DATA_STORE"] = get_data_store()

if __name__ == "__main__":
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8050")),
        debug=os.environ.get("DASH_DEBUG", "1") == "1",
    )
