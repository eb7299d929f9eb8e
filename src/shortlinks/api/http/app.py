"""FastAPI application factory and setup."""

import asyncio
import contextlib
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from src.shortlinks.api.http.app_data import ApplicationDependencies
from src.shortlinks.api.http.middleware.session import SessionMiddleware
from src.shortlinks.api.http.routers.files import router as files_router
from src.shortlinks.api.http.routers.health import router as health_router
from src.shortlinks.api.http.routers.me import router as me_router
from src.shortlinks.api.utils.app_startup import configure_logging
from src.shortlinks.core.errors import InvalidClaimsError
from src.shortlinks.core.services.database import connect_record_store
from src.shortlinks.core.services.identity import IdentityResolver
from src.shortlinks.core.services.jwt import (
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
)
from src.shortlinks.core.services.session import SessionManager
from src.shortlinks.core.storage.session_storage import (
    RedisSessionStorage,
    _reset_storage,
    get_session_storage,
)
from src.shortlinks.runtime.context import get_config

# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


app = FastAPI(
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

# Innermost first: the session sees request_id from the logging context
app.add_middleware(SessionMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# expose startup for tests
__all__ = ["app", "startup", "shutdown"]


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            # The cause stays in the log; the client only learns that it failed
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).opt(exception=exc).error("request.error")
            return PlainTextResponse(
                "Internal server error",
                status_code=500,
                headers={"X-Request-ID": request_id},
            )


# --- Router registration ---
app.include_router(health_router)
app.include_router(files_router)
app.include_router(me_router)


async def _warm_jwks(jwks_service: JwksService) -> None:
    """Fetch the signing keys once so a broken identity provider shows up at boot."""
    config = get_config()
    try:
        await jwks_service.fetch_jwks(config.oidc.resolved_jwks_uri)
    except InvalidClaimsError as e:
        if config.app.environment == "production":
            raise RuntimeError(f"JWKS readiness check failed: {e}") from e
        logger.warning("Could not prefetch JWKS from {}: {}", config.oidc.resolved_jwks_uri, e)


# --- Lifecycle hooks ---
async def startup(app: FastAPI) -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    # StartupError propagates: the process must not serve without a record store
    record_store = await connect_record_store(config.database)

    session_storage = await get_session_storage()
    session_manager = SessionManager(session_storage, config.session)

    jwks_service = JwksService(JWKSCacheInMemory())
    jwt_verify_service = JwtVerificationService(jwks_service)

    deps = ApplicationDependencies(
        record_store=record_store,
        session_storage=session_storage,
        session_manager=session_manager,
        jwks_service=jwks_service,
        jwt_verify_service=jwt_verify_service,
        identity_resolver=IdentityResolver(record_store),
    )
    app.state.app_dependencies = deps
    app.state.session_sweep = asyncio.create_task(session_manager.run_expiry_sweep())

    await _warm_jwks(jwks_service)


async def shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")

    sweep: asyncio.Task | None = getattr(app.state, "session_sweep", None)
    if sweep is not None:
        sweep.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep

    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is None:
        return

    await app_dependencies.identity_resolver.write_back.drain()
    await app_dependencies.session_manager.purge_expired()
    await app_dependencies.record_store.close()
    if isinstance(app_dependencies.session_storage, RedisSessionStorage):
        await app_dependencies.session_storage.close()
    _reset_storage()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # We handle access logging in middleware
    )
