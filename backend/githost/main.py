import logging
import sys

from fastapi import FastAPI, Request

from githost.config import Settings, get_settings
from githost.exceptions import GitHostError
from githost.responses import error_response
from githost.routers import git, repos
from githost.services.transport import GitTransport, TransportExecutor

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings):
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app(settings: Settings | None = None, transport: TransportExecutor | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Git smart HTTP server",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.transport = transport or GitTransport()

    @app.exception_handler(GitHostError)
    async def git_host_error_handler(request: Request, exc: GitHostError):
        return error_response(exc)

    # Management routes first so /api/... never falls through to the git routes
    app.include_router(repos.router)
    app.include_router(git.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "app": settings.app_name}

    return app


app = create_app()


def run():
    """Console entrypoint: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    logger.info(f"Listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
