import dash
import dash_bootstrap_components as dbc
import pytest

import data_loader
from surveillance_models import RecordSet


@pytest.fixture(scope="module")
def app():
    import Covid_dash

    return Covid_dash.app


def _dashboard_page():
    return next(p for p in dash.page_registry.values() if p["path"] == "/dashboard")


def _ids(component):
    found = set()
    stack = [component]
    while stack:
        node = stack.pop()
        if getattr(node, "id", None):
            found.add(node.id)
        children = getattr(node, "children", None)
        if isinstance(children, (list, tuple)):
            stack.extend(c for c in children if hasattr(c, "to_plotly_json"))
        elif hasattr(children, "to_plotly_json"):
            stack.append(children)
    return found


def test_root_redirects_to_dashboard(app) -> None:
    response = app.server.test_client().get("/")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard")


def test_data_store_is_kept_in_server_config(app) -> None:
    store = app.server.config["DATA_STORE"]

    assert store["error"] is None
    assert len(store["records"]) == 30


def test_dashboard_layout_has_tabs(app) -> None:
    layout = _dashboard_page()["layout"]()

    assert isinstance(layout, dbc.Container)
    assert {"dashboard-tabs", "tab-content"} <= _ids(layout)


def test_dashboard_layout_shows_only_the_error(app, monkeypatch) -> None:
    monkeypatch.setattr(data_loader, "data_store",
                        {"records": RecordSet(), "error": "Failed to parse CSV data: bad"})

    layout = _dashboard_page()["layout"]()

    assert "dashboard-tabs" not in _ids(layout)
    assert any(isinstance(c, dbc.Alert) for c in layout.children)
