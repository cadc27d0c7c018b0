import asyncio
import logging
import signal

import structlog
import uvicorn
from redis.asyncio import Redis

from fedmarket.config import settings

_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_log_level),
)

logger = structlog.get_logger()


async def main() -> None:
    logger.info("fedmarket_starting", api_port=settings.api_port)

    # Redis backs the per-task simulation lock
    redis = Redis.from_url(settings.redis_url, decode_responses=True) if settings.redis_url else None

    from fedmarket.api.app import create_app
    from fedmarket.api.routes.simulation import set_redis

    app = create_app()
    if redis is not None:
        set_redis(redis)
    else:
        logger.warning("redis_disabled_using_local_task_locks")

    uvicorn_config = uvicorn.Config(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    uvicorn_server = uvicorn.Server(uvicorn_config)

    shutdown_event = asyncio.Event()

    def _signal_handler():
        logger.info("shutdown_signal_received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    tasks = [
        asyncio.create_task(uvicorn_server.serve(), name="uvicorn"),
        asyncio.create_task(shutdown_event.wait(), name="shutdown"),
    ]

    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

    logger.info("shutting_down")

    uvicorn_server.should_exit = True
    for task in pending:
        if task.get_name() == "uvicorn":
            await task
        else:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    if redis is not None:
        await redis.aclose()

    logger.info("shutdown_complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
