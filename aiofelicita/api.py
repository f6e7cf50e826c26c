"""HTTP control surface for a scale."""

from __future__ import annotations

import logging

from aiohttp import web

from .exceptions import FelicitaError
from .interfaces import Buzzer

_LOGGER = logging.getLogger(__name__)

SCALE_KEY: web.AppKey[Buzzer] = web.AppKey("scale", Buzzer)


async def handle_toggle_buzzer(request: web.Request) -> web.Response:
    """Toggle the buzzer (on user interaction) of the scale."""
    scale = request.app[SCALE_KEY]
    try:
        await scale.toggle_buzzing_on_touch()
    except FelicitaError as ex:
        _LOGGER.warning("Failed to toggle buzzer: %s", ex)
        raise web.HTTPInternalServerError(text=str(ex)) from ex
    return web.Response()


def create_app(scale: Buzzer) -> web.Application:
    """Create the web application controlling scale."""
    app = web.Application()
    app[SCALE_KEY] = scale
    app.router.add_post("/toggle_buzzer", handle_toggle_buzzer)
    return app


async def start_api(scale: Buzzer, host: str, port: int) -> web.AppRunner:
    """Serve the API in the background, returning the runner to clean it up."""
    runner = web.AppRunner(create_app(scale))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    _LOGGER.info("Listening on http://%s:%d", host, port)
    return runner
