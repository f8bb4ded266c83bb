from pathlib import Path

import pytest

import main
from cars import repository as cars_repository
from conftest import auth_header, register
from core import settings


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


@pytest.mark.parametrize("method", ["get", "post", "delete"])
def test_unknown_route_is_a_json_404(client, method):
    resp = getattr(client, method)("/api/does-not-exist")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found"}


def test_unexpected_failure_is_a_500_with_the_error(client, monkeypatch):
    token = register(client)

    async def broken(*, user_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(cars_repository, "list_cars", broken)

    resp = client.get("/api/cars", headers=auth_header(token))

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Something went wrong!",
        "error": "database went away",
    }


def test_uploads_directory_is_served_verbatim(client):
    Path(settings.uploads_dir(), "hello.txt").write_text("hi there")

    resp = client.get("/uploads/hello.txt")

    assert resp.status_code == 200
    assert resp.text == "hi there"


def test_car_routes_are_registered():
    paths = {getattr(route, "path", None) for route in main.app.routes}

    assert {"/api/auth/register", "/api/auth/login", "/api/cars", "/api/cars/search", "/api/cars/{car_id}"} <= paths
