import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.shared.entities.registry import BaseEntity
from core.logging_config import configure_logging
from core.settings import SETTINGS
from di.container import ApplicationContainer as DependencyContainer

configure_logging(SETTINGS.APP)

logger = structlog.get_logger("support")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        settings = _app.container.infrastructure.settings()
        if settings.DATABASE.AUTO_CREATE_SCHEMA:
            await db_resource.create_schema(BaseEntity)
        async with db_resource.engine.connect() as _conn:
            # Verify database connection
            await _conn.execute(text("SELECT 1"))
        logger.info(
            f"✅ Database connection established in {time.time() - db_start:.2f}s"
        )

        completion_client = _app.container.infrastructure.completion_client()
        if await completion_client.check_health():
            logger.info("✅ Completion service reachable", base_url=settings.LLM.OLLAMA_URL)
        else:
            logger.warning(
                "Completion service not reachable yet; chat requests will fail until it is up",
                base_url=settings.LLM.OLLAMA_URL,
            )

        logger.info(
            f"✅ Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"❌ Failed to initialize application: {str(e)}")
        raise

    yield

    db_resource = _app.container.infrastructure.database()
    if db_resource:
        await db_resource.shutdown()
    logger.info("Application shutdown complete")


def create_fastapi_app() -> CustomFastAPI:
    origins = {
        "*",
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8501",
    }

    _app = CustomFastAPI(
        title="ShopEase Support Chat API",
        description="Customer support chat backed by a local LLM",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.init_resources()

    # Add CORS middleware
    _app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.chat.router import router as chat_router

    _app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])

    return _app


app = create_fastapi_app()


# Health check endpoints
@app.get("/")
async def root():
    return {"message": "ShopEase Support Chat API is running", "status": "ok"}


@app.get("/health")
async def health(request: Request):
    completion_client = request.app.container.infrastructure.completion_client()
    return {"status": "ok", "llm": await completion_client.check_health()}


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"status_code": exc.status_code}
    if isinstance(exc.detail, dict):
        content.update(exc.detail)
    else:
        content["error"] = exc.detail
    if exc.status_code == 404 and "error_code" not in content:
        content["error"] = f"{exc.detail} : {request.url}"
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = [
        {"loc": list(err.get("loc", ())), "msg": _error_message(err)} for err in errors
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error": details[0]["msg"] if details else "Validation Error",
            "details": details,
            "status_code": 400,
        },
    )


def _error_message(err: dict) -> str:
    # ValueErrors raised in validators carry the plain message in ctx
    ctx_error = (err.get("ctx") or {}).get("error")
    if isinstance(ctx_error, Exception):
        return str(ctx_error)
    return str(err.get("msg", "Invalid value"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "status_code": 500,
        },
    )
