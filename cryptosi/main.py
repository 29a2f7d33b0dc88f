from contextlib import asynccontextmanager
import json
import logging
import traceback

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routes.form import router as form_router
from .routes.health import router as health_router
from .services.hyperbolic import hyperbolic_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not settings.hyperbolic_api_key:
        logger.warning("HYPERBOLIC_API_KEY is not set; generation requests will be rejected")
    logger.info("Image generation endpoint: %s", settings.generation_url)

    yield

    await hyperbolic_client.close()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    app = FastAPI(
        title="CryptoSI Images",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error("Request validation error: %s", json.dumps(exc.errors(), default=str))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": json.loads(json.dumps(exc.errors(), default=str))},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.detail,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        logger.error(traceback.format_exc())

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal Server Error",
                "error": {
                    "code": "internal_error",
                    "message": "An unexpected error occurred."
                }
            }
        )

    allowed_origins = [origin.strip() for origin in settings.cors_allowed_origins.split(",") if origin.strip()]

    # Only add CORS middleware if origins are configured
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health_router, tags=["Monitoring"])
    app.include_router(form_router, prefix="/v1", tags=["Image Generation"])

    return app

# Uvicorn Entry
app = create_app()
