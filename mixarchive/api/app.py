import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mixarchive.api.routers import (
    create_archives_router,
    create_files_router,
    create_invocations_router,
    create_systems_router,
)
from mixarchive.container import ENV, Container

logger = logging.getLogger(__name__)


def create_app(container: Container = None) -> FastAPI:
    container = container or Container()
    handlers = container.invocation_handlers()
    handlers.register_with(container.invoker())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.renderer().close()
        logger.info("Renderer closed")

    app = FastAPI(title="MixArchive", lifespan=lifespan)
    app.state.container = container
    app.include_router(
        create_archives_router(
            container.archive_request_service(),
            container.completion_tracker(),
            container.archive_assembler(),
        )
    )
    app.include_router(create_invocations_router(handlers))
    app.include_router(create_files_router(container.artifact_store()))
    app.include_router(create_systems_router(ENV))
    return app
