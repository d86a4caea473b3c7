import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from petstore import __version__
from petstore.api.middleware import RequestContextMiddleware, get_request_id
from petstore.api.routes import router
from petstore.config import Settings, get_settings
from petstore.database import Database
from petstore.errors import BusinessError
from petstore.tracing import configure_tracing

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application. The database handle is created once here (or
    injected) and shared by every request through `app.state.database`.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        configure_tracing(settings)
        db = database or Database.from_settings(settings)
        if settings.debug:
            await db.create_all()
        app.state.database = db
        yield
        # Shutdown
        await db.dispose()

    app = FastAPI(
        title="Pet Store",
        description="Pets, favorites, reservations and notifications",
        version=__version__,
        lifespan=lifespan,
    )

    # Request id, server span and access log
    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError):
        if exc.is_public:
            return JSONResponse(
                status_code=exc.status_code,
                content={"code": exc.code, "message": exc.message("en")},
            )
        # 5xx: keep the detail in the logs only
        logger.error(f"{request.method} {request.url.path} failed request_id={get_request_id()}: {exc}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": "internal server error"},
        )

    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.service_name,
            "version": __version__,
            "env": settings.app_env,
        }

    return app


configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "petstore.main:app",
        host="0.0.0.0",
        port=8081,
        reload=get_settings().debug,
        log_level="info",
    )
