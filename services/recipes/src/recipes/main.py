"""Recipes service entrypoint."""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.errors import IngredientValidationError, RateLimitExceeded, RecipeAppError
from shared.http_client import CircuitBreaker
from shared.logging import configure_logging
from shared.middleware import RequestIdMiddleware
from shared.schemas import DependencyStatus, HealthResponse

from recipes.api.routes import router
from recipes.api.schemas import ApiError
from recipes.clients import AnthropicClient, MockRecipeClient, RecipeModelClient
from recipes.config import RecipesSettings
from recipes.repositories import Base
from recipes.service import GenerationService, RateLimitService

logger = structlog.get_logger(__name__)

INTERNAL_ERROR = "Internal server error. Please try again later."

_settings: RecipesSettings | None = None


def get_settings() -> RecipesSettings:
    global _settings
    if _settings is None:
        _settings = RecipesSettings()
    return _settings


def build_model_client(settings: RecipesSettings) -> RecipeModelClient:
    if settings.provider == "anthropic":
        return AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.model,
            base_url=settings.anthropic_base_url,
            api_version=settings.anthropic_version,
            timeout=settings.provider_timeout_seconds,
            circuit_breaker=CircuitBreaker(
                failure_threshold=settings.provider_failure_threshold,
                reset_after_seconds=settings.provider_reset_after_seconds,
            ),
        )
    return MockRecipeClient(chunk_delay=settings.mock_chunk_delay_seconds)


def _error_response(status_code: int, message: str, details: dict | None = None, headers: dict | None = None) -> JSONResponse:
    body = ApiError(error=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        reset = exc.reset_time.isoformat().replace("+00:00", "Z") if hasattr(exc.reset_time, "isoformat") else exc.reset_time
        return _error_response(
            429,
            exc.user_message,
            details={
                "retryAfter": exc.retry_after,
                "resetTime": reset,
                "limit": exc.limit,
                "remaining": exc.remaining,
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(IngredientValidationError)
    async def _invalid(request: Request, exc: IngredientValidationError) -> JSONResponse:
        details: dict = {"errors": exc.errors}
        if exc.rate_limit_info:
            details["rateLimitInfo"] = exc.rate_limit_info
        return _error_response(400, exc.user_message, details=details)

    @app.exception_handler(RecipeAppError)
    async def _app_error(request: Request, exc: RecipeAppError) -> JSONResponse:
        return _error_response(exc.status_code, exc.user_message)

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            ".".join(str(p) for p in err.get("loc", ())[1:]) + ": " + err.get("msg", "invalid")
            for err in exc.errors()
        ]
        return _error_response(400, "Invalid request data", details={"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=request.url.path)
        return _error_response(500, INTERNAL_ERROR)


def create_app(
    settings: RecipesSettings | None = None,
    model_client: RecipeModelClient | None = None,
    session_factory: async_sessionmaker | None = None,
    rate_limits: RateLimitService | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(json_logs=settings.json_logs, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = model_client or build_model_client(settings)
        engine = None
        factory = session_factory
        if factory is None:
            engine = create_async_engine(settings.database_url, echo=False)
            factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            if settings.auto_create_schema:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
        limits = rate_limits or RateLimitService.from_settings(settings)

        app.state.settings = settings
        app.state.model_client = client
        app.state.rate_limits = limits
        app.state.session_factory = factory
        app.state.engine = engine
        app.state.generation_service = GenerationService(
            client,
            limits,
            system_prompt=settings.system_prompt,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            relay_strategy=settings.relay_strategy,
            timeout_seconds=settings.provider_timeout_seconds,
        )
        logger.info(
            "recipes_started",
            provider=client.name,
            relay_strategy=settings.relay_strategy,
        )
        yield
        await client.aclose()
        if engine is not None:
            await engine.dispose()

    app = FastAPI(title="Recipes Service", version=settings.version, lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-User-ID", "X-Request-ID"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )
    register_exception_handlers(app)
    app.include_router(router)

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok", service="recipes", version=settings.version)

    @app.get("/readyz", response_model=HealthResponse)
    async def readyz(request: Request) -> JSONResponse:
        checks: dict[str, DependencyStatus] = {}
        client: RecipeModelClient = request.app.state.model_client
        checks["ai"] = (
            DependencyStatus(status="healthy", message=f"{client.name} provider configured")
            if client.is_configured()
            else DependencyStatus(status="unhealthy", message="Missing API key")
        )
        engine = request.app.state.engine
        if engine is not None:
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                checks["database"] = DependencyStatus(status="healthy", message="Connected")
            except Exception as e:
                logger.warning("readyz_database_failed", error=type(e).__name__)
                checks["database"] = DependencyStatus(status="unhealthy", message="Connection failed")
        healthy = all(c.status == "healthy" for c in checks.values())
        body = HealthResponse(
            status="ok" if healthy else "unhealthy",
            service="recipes",
            version=settings.version,
            checks=checks,
        )
        return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "recipes.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
    )
