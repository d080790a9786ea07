import asyncio
import logging

import uvicorn
from fastapi import FastAPI

from payments_log.infrastructure.installer import install
from payments_log.presentation import api
from payments_log.presentation.api import router
from payments_log.presentation.container import PresentationContainer

logger = logging.getLogger(__name__)


def build_api(container: PresentationContainer):
    app = FastAPI(title="Payments log")
    app.include_router(router)
    container.wire(modules=[api])
    app.container = container
    return app


async def main():
    container = PresentationContainer()
    container.config.from_yaml("payments_log/config.yaml", required=True)

    logging.basicConfig(level=container.config.logging.level() or logging.INFO)

    infrastructure = container.application.infrastructure_container
    await install(infrastructure.async_engine())

    app = build_api(container)

    logger.info("Starting payments log service...")
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=container.config.server.host(),
            port=container.config.server.port(),
            log_level="info",
        )
    )
    try:
        await server.serve()
    finally:
        await infrastructure.order_source().aclose()
        await infrastructure.async_engine().dispose()


if __name__ == "__main__":
    asyncio.run(main())
