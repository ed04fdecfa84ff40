import asyncio
import hmac
import logging
import time

import logfire
from aiogram import Bot, Dispatcher
from aiogram.dispatcher.event.bases import UNHANDLED
from aiohttp import web

from .moderation.session import ModerationSession

logger = logging.getLogger(__name__)

# Telegram webhook timeout is 60 seconds, keep some buffer
WEBHOOK_TIMEOUT = 55
SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

BOT_KEY = web.AppKey("bot", Bot)
DISPATCHER_KEY = web.AppKey("dispatcher", Dispatcher)
SESSION_KEY = web.AppKey("moderation", ModerationSession)
LOCK_KEY = web.AppKey("update_lock", asyncio.Lock)
FATAL_KEY = web.AppKey("fatal", asyncio.Event)
SECRET_KEY = web.AppKey("webhook_secret", str)

routes = web.RouteTableDef()


@routes.get("/health")
async def healthcheck(_: web.Request) -> web.Response:
    """Return plain OK response for health probes."""
    return web.Response(text="ok")


@routes.post("/")
async def handle_update(request: web.Request) -> web.Response:
    """Feed one Telegram update to the dispatcher, one update at a time"""
    app = request.app
    received = request.headers.get(SECRET_HEADER, "")
    if not hmac.compare_digest(received.encode(), app[SECRET_KEY].encode()):
        logger.info(f"Rejected webhook request from {request.remote}: bad secret")
        return web.json_response({"error": "Unauthorized"}, status=401)

    if not await request.read():
        return web.Response()

    json = await request.json()
    if not isinstance(json, dict) or "update_id" not in json:
        logger.warning(f"Received invalid update format: {json}")
        return web.json_response(
            {"error": "Invalid update format", "required_field": "update_id"},
            status=400,
        )

    start_time = time.time()

    async with app[LOCK_KEY]:
        with logfire.span("Webhook update", update_id=json["update_id"]) as span:
            try:
                result = await asyncio.wait_for(
                    app[DISPATCHER_KEY].feed_raw_update(
                        app[BOT_KEY], json, moderation=app[SESSION_KEY]
                    ),
                    timeout=WEBHOOK_TIMEOUT,
                )
            except asyncio.TimeoutError:
                elapsed = time.time() - start_time
                logger.warning(f"Update processing timed out after {elapsed:.2f} seconds")
                span.tags = ["webhook_timeout"]
                # Not redelivered: the decision may already be written
                return web.json_response({"error": "Processing timed out"})
            except SystemExit:
                span.tags = ["fatal"]
                app[FATAL_KEY].set()
                return web.json_response({"error": "Bot is stopping"}, status=503)

            if result is UNHANDLED:
                span.tags = ["unhandled"]
            elif isinstance(result, str):
                span.tags = [result]

    return web.json_response({"message": "Processed successfully"})


def create_app(
    bot: Bot, dispatcher: Dispatcher, moderation: ModerationSession, secret: str
) -> web.Application:
    app = web.Application()
    app[BOT_KEY] = bot
    app[DISPATCHER_KEY] = dispatcher
    app[SESSION_KEY] = moderation
    app[LOCK_KEY] = asyncio.Lock()
    app[FATAL_KEY] = asyncio.Event()
    app[SECRET_KEY] = secret
    app.add_routes(routes)
    return app


async def run_webhook(
    bot: Bot,
    dispatcher: Dispatcher,
    moderation: ModerationSession,
    *,
    webhook_url: str,
    secret: str,
    host: str,
    port: int,
) -> None:
    """Serve updates until a fatal error is reported, then raise SystemExit(1)"""
    app = create_app(bot, dispatcher, moderation, secret)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    try:
        logger.info(f"Setting webhook URL to: {webhook_url}")
        await bot.set_webhook(
            webhook_url, allowed_updates=["message"], secret_token=secret
        )
        logger.warning("Server started")
        await app[FATAL_KEY].wait()
    finally:
        await runner.cleanup()

    raise SystemExit(1)
