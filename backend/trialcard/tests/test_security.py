import pytest
from fastapi import APIRouter

from trialcard.auth import get_current_user
from trialcard.main import PUBLIC_PATHS, ROUTERS, audit_routes, iter_api_routes
from .conftest import client


def _calls(dependant):
    for dep in dependant.dependencies:
        yield dep.call
        yield from _calls(dep)


def _api_routes():
    return [
        route
        for router in ROUTERS
        for route in iter_api_routes(router.routes)
        if route.path.startswith('/api')
    ]


def test_route_walk_sees_registered_routes():
    paths = {route.path for route in _api_routes()}
    assert len(_api_routes()) >= 30
    assert {'/api/trial', '/api/machine-shop', '/api/master-list', '/api/audit'} <= paths


def test_all_routes_protected():
    protected = 0
    for route in _api_routes():
        if route.path in PUBLIC_PATHS:
            continue
        assert get_current_user in set(_calls(route.dependant)), f"{route.path} missing authentication"
        protected += 1
    assert protected > 0


def test_audit_routes_rejects_unauthenticated_route():
    leaky = APIRouter(prefix='/api/leak')

    @leaky.post('')
    async def leak():
        return {}

    with pytest.raises(RuntimeError, match='/api/leak'):
        audit_routes([*ROUTERS, leaky])


def test_audit_routes_rejects_empty_walk():
    with pytest.raises(RuntimeError):
        audit_routes([])
    assert audit_routes(ROUTERS) == len(_api_routes())


def test_mutating_routes_reject_anonymous_callers(client):
    checked = 0
    for route in _api_routes():
        if route.path in PUBLIC_PATHS:
            continue
        for method in route.methods & {"POST", "PUT", "DELETE"}:
            path = route.path.replace("{card_id}", "1")
            resp = client.request(method, path, json={})
            assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
            checked += 1
    assert checked > 0


def test_public_reference_data(client):
    resp = client.get("/api/departments")
    assert resp.status_code == 200
    names = {d["department_id"]: d["department_name"] for d in resp.json()["data"]}
    assert names[1] == "Methods"
    assert len(names) == 9


def test_metrics_endpoint(client):
    client.get("/api/departments")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "request_count" in resp.text
