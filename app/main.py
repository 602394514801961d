import logging

from fastapi import FastAPI

from app.features.health.routes.health import router as health_router
from app.features.waitlist.routes.waitlist import router as waitlist_router
from app.middlewares.cors import PermissiveCORSMiddleware
from app.platform.config import settings
from app.platform.exceptions import add_exception_handlers
from app.platform.logger import LOG_FORMAT

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format=LOG_FORMAT,
)


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Waitlist signups with referral badges, backed by Loops",
        version="1.0.0",
        debug=settings.DEBUG,
    )

    app.add_middleware(PermissiveCORSMiddleware)
    add_exception_handlers(app)

    app.include_router(waitlist_router)
    app.include_router(health_router)

    return app


app = create_app()
