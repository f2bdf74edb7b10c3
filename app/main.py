from __future__ import annotations

import logging

from fastapi import FastAPI

from app.config import settings
from app.errors import register_error_handlers
from app.routers.activity_types.routes import router as activity_types_router
from app.routers.admin.routes import router as admin_router
from app.routers.auth.routes import router as auth_router
from app.routers.main.routes import router as main_router
from app.routers.submissions.routes import router as submissions_router
from app.routers.users.routes import router as users_router

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    register_error_handlers(app)

    app.include_router(main_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(activity_types_router)
    app.include_router(submissions_router)
    app.include_router(admin_router)

    return app


app = create_app()
