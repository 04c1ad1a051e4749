from __future__ import annotations

import inspect
from typing import cast

from fastapi import APIRouter, FastAPI, Request
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from servicelife import Container, Injected, Lifetime, container_context
from servicelife.integrations.fastapi import InjectingRoute, setup_servicelife
from servicelife.services import ScopedGuidService, SingletonGuidService


class Service:
    def __init__(self) -> None:
        self.value = "ok"


def test_setup_servicelife_wraps_registered_routes() -> None:
    app = FastAPI()
    container = Container()
    container.register(Service)

    setup_servicelife(app, container=container)

    @app.get("/hello")
    async def hello(service: Injected[Service]) -> dict[str, str]:
        return {"value": service.value}

    client = TestClient(app)
    response = client.get("/hello")

    assert response.status_code == 200
    assert response.json() == {"value": "ok"}
    assert app.state.container is container


def test_injecting_route_class_wraps_router_routes() -> None:
    container = Container()
    container.register(Service)
    container_context.set_current(container)

    router = APIRouter(route_class=InjectingRoute)

    @router.get("/hello")
    def hello(service: Injected[Service]) -> dict[str, str]:
        return {"value": service.value}

    app = FastAPI()
    app.include_router(router)

    client = TestClient(app)
    response = client.get("/hello")

    assert response.status_code == 200
    assert response.json() == {"value": "ok"}


def test_setup_servicelife_without_container_sets_route_class() -> None:
    app = FastAPI()

    setup_servicelife(app)

    assert app.router.route_class is InjectingRoute
    assert not hasattr(app.state, "container")


def test_routes_without_injected_params_are_not_wrapped() -> None:
    app = FastAPI()
    setup_servicelife(app, container=Container())

    async def plain() -> dict[str, str]:
        return {"value": "plain"}

    app.add_api_route("/plain", plain, methods=["GET"])
    route = cast("APIRoute", app.router.routes[-1])

    assert route.endpoint is plain


def test_injected_params_are_hidden_from_openapi() -> None:
    app = FastAPI()
    container = Container()
    container.register(Service)
    setup_servicelife(app, container=container)

    @app.get("/items/{item_id}")
    def read_item(item_id: int, request: Request, service: Injected[Service]) -> dict[str, object]:
        return {"item_id": item_id, "value": service.value, "path": request.url.path}

    route = cast("APIRoute", app.router.routes[-1])
    assert list(inspect.signature(route.endpoint).parameters) == ["item_id", "request"]

    response = TestClient(app).get("/items/3")

    assert response.json() == {"item_id": 3, "value": "ok", "path": "/items/3"}
    parameters = app.openapi()["paths"]["/items/{item_id}"]["get"]["parameters"]
    assert [parameter["name"] for parameter in parameters] == ["item_id"]


def test_each_request_gets_its_own_scope() -> None:
    app = FastAPI()
    container = Container()
    container.register(ScopedGuidService, lifetime=Lifetime.SCOPED)
    container.register(SingletonGuidService, lifetime=Lifetime.SINGLETON)
    setup_servicelife(app, container=container)

    @app.get("/ids")
    def ids(
        scoped1: Injected[ScopedGuidService],
        scoped2: Injected[ScopedGuidService],
        singleton: Injected[SingletonGuidService],
    ) -> dict[str, str]:
        return {
            "scoped1": scoped1.get_identifier(),
            "scoped2": scoped2.get_identifier(),
            "singleton": singleton.get_identifier(),
        }

    client = TestClient(app)
    first = client.get("/ids").json()
    second = client.get("/ids").json()

    assert first["scoped1"] == first["scoped2"]
    assert second["scoped1"] == second["scoped2"]
    assert first["scoped1"] != second["scoped1"]
    assert first["singleton"] == second["singleton"]
    assert not container._scoped_instances
