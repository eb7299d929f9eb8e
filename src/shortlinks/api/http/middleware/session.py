from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from src.shortlinks.core.services.session.session_manager import SessionManager
from src.shortlinks.core.storage.session_storage import SessionStorageError


class SessionMiddleware(BaseHTTPMiddleware):
    """Attach a lazily loaded session to every request and keep its cookie alive.

    The manager is looked up on ``app.state.app_dependencies`` at request time,
    because it only exists once the lifespan has connected the stores.
    """

    async def dispatch(self, request: Request, call_next):
        app_deps = getattr(request.app.state, "app_dependencies", None)
        if app_deps is None:
            return await call_next(request)

        manager: SessionManager = app_deps.session_manager
        cfg = manager.config
        session = manager.load(request.cookies.get(cfg.cookie_name))
        request.state.session = session

        response = await call_next(request)

        try:
            await session.refresh_expiry()
        except SessionStorageError as e:
            logger.warning("Failed to refresh session expiry: {}", e)

        if session.is_loaded:
            response.set_cookie(
                cfg.cookie_name,
                session.id,
                max_age=cfg.max_age_seconds,
                httponly=True,
                secure=cfg.secure_cookies,
                samesite=cfg.same_site,
                path="/",
            )
        return response
