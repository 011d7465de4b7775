"""
Integration smoke test for the HAL client.

This script spins up:
1. A mock HAL service (Starlette) exposing a root document whose links lead to
   an ``orders`` collection and a templated ``order`` relation.
2. A HalClient configured against it, which discovers the root, follows the
   templated link, and creates, patches and deletes an order.

Usage:
    uv run python scripts/smoke_test.py

The script prints every step and exits with code 0 if the flow works.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from halkit import ApiError, HalClient, LoggingHandler, Resource, Settings

MOCK_SERVICE_HOST = "127.0.0.1"
MOCK_SERVICE_PORT = 9071
BASE_URL = f"http://{MOCK_SERVICE_HOST}:{MOCK_SERVICE_PORT}"
HAL_JSON = "application/hal+json"


@dataclass
class MockOrderStore:
    """In-memory state for the smoke test's pretend orders."""

    orders: dict[int, dict[str, Any]] = field(default_factory=dict)
    ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def create(self, item: str) -> dict[str, Any]:
        order_id = next(self.ids)
        self.orders[order_id] = {"id": order_id, "item": item, "status": "NEW"}
        return self.render(order_id)

    def render(self, order_id: int) -> dict[str, Any]:
        return {
            **self.orders[order_id],
            "_links": {"self": {"href": f"/orders/{order_id}"}},
        }


def hal(payload: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, media_type=HAL_JSON)


async def root_endpoint(request: Request) -> JSONResponse:
    return hal(
        {
            "_links": {
                "self": {"href": "/"},
                "orders": {"href": "/orders"},
                "order": {"href": "/orders/{id}", "templated": True},
            }
        }
    )


async def create_order(request: Request) -> JSONResponse:
    payload = await request.json()
    return hal(request.app.state.orders.create(payload["item"]), status_code=201)


async def order_endpoint(request: Request) -> Response:
    store: MockOrderStore = request.app.state.orders
    order_id = request.path_params["order_id"]
    if order_id not in store.orders:
        return hal({"error": "not found"}, status_code=404)
    if request.method == "PATCH":
        store.orders[order_id].update(await request.json())
    elif request.method == "DELETE":
        del store.orders[order_id]
        return Response(status_code=204)
    return hal(store.render(order_id))


def build_mock_service() -> Starlette:
    app = Starlette(
        routes=[
            Route("/", root_endpoint, methods=["GET"]),
            Route("/orders", create_order, methods=["POST"]),
            Route(
                "/orders/{order_id:int}",
                order_endpoint,
                methods=["GET", "PATCH", "DELETE"],
            ),
        ],
    )
    app.state.orders = MockOrderStore()
    return app


async def run_uvicorn_app(app: Starlette, host: str, port: int) -> uvicorn.Server:
    config = uvicorn.Config(app, host=host, port=port, log_level="error")
    server = uvicorn.Server(config)
    asyncio.create_task(server.serve())
    # Give the server a moment to bind the port.
    await asyncio.sleep(0.3)
    return server


async def run_smoke_flow() -> None:
    print("Starting mock HAL service...")
    mock_server = await run_uvicorn_app(build_mock_service(), MOCK_SERVICE_HOST, MOCK_SERVICE_PORT)
    settings = Settings(root_endpoint=f"{BASE_URL}/")

    try:
        async with HalClient.from_settings(settings, handlers=[LoggingHandler()]) as client:
            root = await client.get_root()
            print("root links:", sorted(root.links))

            created = await client.post(root.link("orders"), Resource, body={"item": "widget"})
            order_id = str(created.model_extra["id"])
            print("created order:", created.model_extra)

            fetched = await client.get(root.link("order"), Resource, parameters={"id": order_id})
            print("fetched order:", fetched.model_extra)

            patched = await client.patch(
                fetched.link("self"), Resource, body={"status": "SHIPPED"}
            )
            print("patched order:", patched.model_extra)

            deleted = await client.delete(patched.link("self"))
            print("delete status:", deleted.status_code)

            try:
                await client.get(root.link("order"), Resource, parameters={"id": order_id})
            except ApiError as exc:
                print("deleted order lookup:", exc.status_code, exc.text)

            print("Smoke test succeeded")
    finally:
        print("Stopping mock HAL service...")
        mock_server.should_exit = True
        await asyncio.sleep(0.2)


if __name__ == "__main__":
    try:
        asyncio.run(run_smoke_flow())
    except KeyboardInterrupt:
        print("Smoke test interrupted.")
