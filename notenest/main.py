"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from notenest import __version__
from notenest.api.v1 import v1_router
from notenest.core.config import Settings, get_settings
from notenest.core.database import build_engine, build_session_factory, init_db
from notenest.core.errors import NoteNestError, ValidationFailure
from notenest.core.security import PasswordHasher, TokenCodec
from notenest.services.seed import seed_demo_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db(app.state.engine)
    if app.state.settings.seed_demo_data:
        async with app.state.session_factory() as session:
            await seed_demo_data(session, app.state.password_verifier)
    yield
    await app.state.engine.dispose()


def _describe_validation_error(exc: RequestValidationError) -> str:
    missing = [str(err["loc"][-1]) for err in exc.errors() if err.get("type") == "missing"]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    first = exc.errors()[0] if exc.errors() else None
    if first is None:
        return ValidationFailure.message
    return f"Invalid value for {first['loc'][-1]}: {first['msg']}"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NoteNestError)
    async def _domain_error(_request: Request, exc: NoteNestError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        failure = ValidationFailure(_describe_validation_error(exc))
        return JSONResponse(status_code=failure.status_code, content=failure.payload())

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=NoteNestError().payload(),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="NoteNest",
        version=__version__,
        description="Multi-tenant notes API with plan-based quotas",
        lifespan=lifespan,
    )

    # Collaborators are built once here and injected through app.state
    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_verifier = PasswordHasher()
    app.state.token_codec = TokenCodec(
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(minutes=settings.jwt_expire_minutes),
    )

    # ── CORS ─────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # ── API routes ───────────────────────────────────────────
    app.include_router(v1_router)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("notenest.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
