from __future__ import annotations

from app.main import create_app


def test_app_registers_workflow_routes():
    app = create_app()
    paths = {getattr(route, "path", None) for route in app.routes}
    assert "/api/v1/health" in paths
    assert "/api/v1/catalog/statuses" in paths
    assert "/api/v1/deals" in paths
    assert "/api/v1/deals/{deal_id}" in paths
    assert "/api/v1/deals/{deal_id}/commission/pay" in paths
    assert "/api/v1/pins" in paths
    assert "/api/v1/pins/{pin_id}/convert" in paths
