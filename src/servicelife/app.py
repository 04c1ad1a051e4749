"""Composition root: service registrations and the FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from servicelife.container import Container
from servicelife.controllers import ErrorViewModel, HomeController, render_error_page
from servicelife.integrations.fastapi import InjectingRoute, setup_servicelife
from servicelife.services import ScopedGuidService, SingletonGuidService, TransientGuidService
from servicelife.settings import AppSettings
from servicelife.tracing import TraceContextMiddleware, get_error_request_id
from servicelife.types import Injected, Lifetime

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache",
    "Pragma": "no-cache",
    "Expires": "-1",
}

router = APIRouter(route_class=InjectingRoute)


@router.get("/", response_class=PlainTextResponse)
@router.get("/Home", response_class=PlainTextResponse)
@router.get("/Home/Index", response_class=PlainTextResponse)
def index(controller: Injected[HomeController]) -> PlainTextResponse:
    return PlainTextResponse(controller.index())


@router.get("/Home/Privacy", response_class=HTMLResponse)
def privacy(
    controller: Injected[HomeController],
    settings: Injected[AppSettings],
) -> HTMLResponse:
    return HTMLResponse(controller.privacy(settings.app_name))


@router.get("/Home/Error", response_class=HTMLResponse)
def error(
    request: Request,
    controller: Injected[HomeController],
    settings: Injected[AppSettings],
) -> HTMLResponse:
    model = controller.error(get_error_request_id(request.state))
    return HTMLResponse(render_error_page(model, settings.app_name), headers=NO_CACHE_HEADERS)


def build_container(settings: AppSettings | None = None) -> Container:
    """Register every service of the application and validate the graph.

    Raises:
        MissingDependenciesError: If a registered service cannot be built.
        ScopeMismatchError: If a singleton would capture a scoped service.

    """
    container = Container()
    container.register(
        AppSettings,
        instance=settings if settings is not None else AppSettings(),
        lifetime=Lifetime.SINGLETON,
    )
    container.register(TransientGuidService, lifetime=Lifetime.TRANSIENT)
    container.register(ScopedGuidService, lifetime=Lifetime.SCOPED)
    container.register(SingletonGuidService, lifetime=Lifetime.SINGLETON)
    container.register(HomeController, lifetime=Lifetime.TRANSIENT)
    container.validate()
    return container


def create_app(
    settings: AppSettings | None = None,
    container: Container | None = None,
) -> FastAPI:
    """Build the application.

    Composition errors surface here, before any request is served.
    """
    if container is None:
        container = build_container(settings)
    else:
        container.validate()
    settings = container.resolve(AppSettings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s", settings.app_name)
        yield
        logger.info("Stopping %s", settings.app_name)

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.add_middleware(TraceContextMiddleware)
    setup_servicelife(app, container)
    app.include_router(router)

    if not settings.debug:

        async def handle_unhandled_exception(request: Request, exc: Exception) -> HTMLResponse:
            logger.error(
                "Unhandled exception while processing %s %s",
                request.method,
                request.url.path,
                exc_info=exc,
            )
            model = ErrorViewModel(request_id=get_error_request_id(request.state))
            return HTMLResponse(
                render_error_page(model, settings.app_name),
                status_code=500,
                headers=NO_CACHE_HEADERS,
            )

        app.add_exception_handler(Exception, handle_unhandled_exception)

    return app
