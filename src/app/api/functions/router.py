from collections.abc import Awaitable, Callable, Iterable

from fastapi import APIRouter, Request, Response
from fastapi.routing import APIRoute

from src.app.api.functions import invites, members
from src.app.core.cors import preflight_response

FUNCTIONS_PREFIX = "/.netlify/functions"


def _preflight_endpoint(methods: Iterable[str]) -> Callable[[Request], Awaitable[Response]]:
    allowed = sorted(methods)

    async def preflight(request: Request) -> Response:
        return preflight_response(request, allowed)

    return preflight


def add_preflight_routes(router: APIRouter) -> None:
    """Answer OPTIONS on every path with the methods that path serves."""
    methods_by_path: dict[str, set[str]] = {}
    for route in router.routes:
        if isinstance(route, APIRoute):
            methods_by_path.setdefault(route.path, set()).update(route.methods)

    for path, methods in methods_by_path.items():
        router.add_api_route(
            path,
            _preflight_endpoint(methods),
            methods=["OPTIONS"],
            include_in_schema=False,
        )


functions_router = APIRouter()
functions_router.include_router(invites.router)
functions_router.include_router(members.router)
add_preflight_routes(functions_router)
