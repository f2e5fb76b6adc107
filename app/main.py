import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import auth, follow, likes, posts
from app.core.config import Settings, settings
from app.core.exceptions import (
    CustomHTTPException,
    ServiceError,
    global_exception_handler,
    http_exception_handler,
    service_exception_handler,
    validation_exception_handler,
)
from app.db.database import Database
from app.services.follow import FollowService
from app.utils.file_handling import create_media_storage

logger = logging.getLogger("uvicorn.error")


def create_app(app_settings: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database.from_settings(app_settings)
        await database.init_db()
        app.state.database = database
        app.state.follow_service = FollowService(
            database,
            max_retries=app_settings.DB_MAX_RETRIES,
            retry_delay=app_settings.DB_RETRY_DELAY,
        )
        app.state.media_storage = create_media_storage(app_settings)
        logger.info("Database initialised")
        try:
            yield
        finally:
            await database.dispose()
            logger.info("Database connections closed")

    app = FastAPI(
        title=app_settings.PROJECT_TITLE,
        description=app_settings.PROJECT_DESCRIPTION,
        version=app_settings.PROJECT_VERSION,
        lifespan=lifespan
    )
    app.state.settings = app_settings

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception Handlers
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(CustomHTTPException, http_exception_handler)
    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # API Routers
    api_router = APIRouter(prefix=app_settings.API_V1_STR)
    api_router.include_router(auth.router, tags=["Authentication"])
    api_router.include_router(posts.router, tags=["Posts"])
    api_router.include_router(follow.router, tags=["follow"])
    api_router.include_router(likes.router, tags=["Likes"])
    app.include_router(api_router)

    if app_settings.MEDIA_STORAGE_BACKEND == "local":
        app.mount(
            app_settings.MEDIA_BASE_URL,
            StaticFiles(directory=app_settings.MEDIA_ROOT, check_dir=False),
            name="media",
        )

    @app.get("/", include_in_schema=False)
    async def health_check():
        return {
            "success": True,
            "message": "API is running successfully",
            "data": {
                "version": app_settings.PROJECT_VERSION,
                "docs": "/docs"
            }
        }

    return app


app = create_app()
