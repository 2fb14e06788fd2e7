"""HTTP surface: ``GET {base_path}/circulation`` and ``GET {base_path}/all``."""

from __future__ import annotations

import asyncio
import contextlib

import aiohttp_cors
from aiohttp import web
from redis.exceptions import RedisError

from ..errors import NotFound
from ..job import RefreshJob
from ..logger import get_logger
from ..state import AppState
from .query import QueryService

logger = get_logger(__name__)

STATE_KEY = web.AppKey("state", AppState)
QUERY_KEY = web.AppKey("query", QueryService)
JOB_KEY = web.AppKey("job", RefreshJob)
JOB_TASK_KEY = web.AppKey("job_task", asyncio.Task)


def cache_control_value(max_age: int, stale_while_revalidate: int | None) -> str:
    value = f"public, max-age={max_age}"
    if stale_while_revalidate:
        value += f", stale-while-revalidate={stale_while_revalidate}"
    return value


def cache_control_middleware(header: str):
    @web.middleware
    async def middleware(request: web.Request, handler):
        response = await handler(request)
        if request.method == "GET":
            response.headers["Cache-Control"] = header
        return response

    return middleware


async def circulation_handler(request: web.Request) -> web.Response:
    query = request.app[QUERY_KEY]
    try:
        value = await query.get_circulation()
    except NotFound:
        return web.Response(status=404, text="Circulation has not been computed yet")
    except RedisError as e:
        logger.error("Cache read failed: %s", e)
        return web.Response(status=503, text="Cache unavailable")
    return web.Response(text=value, content_type="text/plain")


async def all_handler(request: web.Request) -> web.Response:
    query = request.app[QUERY_KEY]
    try:
        record = await query.get_all()
    except RedisError as e:
        logger.error("Cache read failed: %s", e)
        return web.json_response({"error": "Cache unavailable"}, status=503)
    return web.json_response(record)


async def _start_refresh_job(app: web.Application) -> None:
    job = app[JOB_KEY]
    app[JOB_TASK_KEY] = asyncio.create_task(job.run_forever())


async def _stop_refresh_job(app: web.Application) -> None:
    task = app[JOB_TASK_KEY]
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def _close_state(app: web.Application) -> None:
    await app[STATE_KEY].close()


def create_app(state: AppState, job: RefreshJob | None = None) -> web.Application:
    """Build the aiohttp application.

    Args:
        state: Shared application state
        job: When given, the refresh job runs in the background for the
            lifetime of the app.
    """
    s = state.settings
    app = web.Application(
        middlewares=[
            cache_control_middleware(
                cache_control_value(s.cache_max_age, s.stale_while_revalidate)
            )
        ]
    )
    app[STATE_KEY] = state
    app[QUERY_KEY] = QueryService(state.cache, state.keys, state.chains)

    cors = aiohttp_cors.setup(
        app,
        defaults={
            "*": aiohttp_cors.ResourceOptions(
                allow_credentials=False,
                expose_headers="*",
                allow_headers="*",
                allow_methods=["GET"],
            )
        },
    )

    routes = [
        web.get(f"{s.base_path}/circulation", circulation_handler),
        web.get(f"{s.base_path}/all", all_handler),
    ]
    for route in routes:
        cors.add(app.router.add_route(route.method, route.path, route.handler))

    if job is not None:
        app[JOB_KEY] = job
        app.on_startup.append(_start_refresh_job)
        app.on_cleanup.append(_stop_refresh_job)
    app.on_cleanup.append(_close_state)

    return app
