import logging
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

load_dotenv(override=True)

from notekeeper.core import Settings, settings as default_settings, InvalidInputError
from notekeeper.api import api_router
from notekeeper.context import AppContext

logger = logging.getLogger("notekeeper")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Settings = None, context: AppContext = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle manager."""
        logger.info("Starting %s...", settings.APP_TITLE)
        app.state.context = await (context or AppContext(settings)).start()
        storage = app.state.context.storage
        logger.info("Storage backend: %s", storage.kind)

        yield

        logger.info("Shutting down...")
        await app.state.context.close()

    app = FastAPI(
        title=settings.APP_TITLE,
        lifespan=lifespan,
        debug=settings.DEBUG
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # Include API router with /api/v1 prefix
    app.include_router(api_router, prefix="/api/v1")

    # Health check endpoint
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
