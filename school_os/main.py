import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from school_os.api.v1.attendance.router import router as attendance_router
from school_os.api.v1.auth.router import router as auth_router
from school_os.api.v1.classes.router import router as classes_router
from school_os.api.v1.health.router import router as health_router
from school_os.api.v1.settings.router import router as settings_router
from school_os.api.v1.students.router import router as students_router
from school_os.auth.security import TokenService
from school_os.auth.sessions import SessionSigner
from school_os.core.config import Settings, settings as default_settings
from school_os.core.logging import configure_logging
from school_os.core.responses import register_exception_handlers
from school_os.db.seed import seed_defaults
from school_os.db.session import Database

logger = logging.getLogger("school_os")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    if not settings.jwt_secret_key or not settings.session_secret_key:
        # resolved_*_secret() raises here in production
        logger.warning("JWT_SECRET_KEY / SESSION_SECRET_KEY not set; using development secrets")
    tokens = TokenService(
        settings.resolved_jwt_secret(),
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
    sessions = SessionSigner(settings.resolved_session_secret(), settings.session_max_age_seconds)
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        await seed_defaults(database, settings)
        logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
        yield
        await database.dispose()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database
    app.state.tokens = tokens
    app.state.sessions = sessions

    # CORS: allow the frontend to call this API with the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, expose_errors=not settings.is_production)

    # Routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(attendance_router)
    app.include_router(students_router)
    app.include_router(classes_router)
    app.include_router(settings_router)

    return app


app = create_app()
