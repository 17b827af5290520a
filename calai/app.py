from __future__ import annotations

# Standard library
import logging as _logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

# Third-party
import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Local application imports
from calai.api.analyze import error_response, router as analyze_router
from calai.domain.analysis.service import AnalysisService
from calai.domain.shared.errors import AnalysisError
from calai.infrastructure.ai.factory import create_vision_provider
from calai.infrastructure.config import (
    get_analysis_timeout_s,
    get_app_version,
    get_log_level,
    get_max_image_bytes,
    get_openai_api_key,
    mask_secret,
)
from calai.infrastructure.rate_limit.factory import create_rate_limiter
from calai.infrastructure.rate_limit.redis_limiter import RedisRateLimiter

load_dotenv()


def configure_logging(level_name: Optional[str] = None) -> None:
    """Stdlib logging plus structlog key/value events at the same level."""
    level_name = level_name or get_log_level()
    level = getattr(_logging, level_name, _logging.INFO)
    _logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


configure_logging()

APP_VERSION = get_app_version()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the provider, the limiter and the analysis service.

    STARTUP: enter the provider context (HTTP session), log masked config.
    SHUTDOWN: provider session and Redis connection are closed.
    """
    logger = structlog.get_logger("startup")
    logger.info(
        "startup.config",
        openai_key_present=bool(get_openai_api_key()),
        openai_key_masked=mask_secret(get_openai_api_key()),
        timeout_s=get_analysis_timeout_s(),
        version=APP_VERSION,
    )

    provider = create_vision_provider()
    rate_limiter = create_rate_limiter()

    async with provider as initialized_provider:
        app.state.analysis_service = AnalysisService(
            provider=initialized_provider,
            rate_limiter=rate_limiter,
            timeout_s=get_analysis_timeout_s(),
            max_image_bytes=get_max_image_bytes(),
        )
        logger.info(
            "lifespan.ready",
            provider=initialized_provider.name,
            rate_limiter=type(rate_limiter).__name__,
        )
        try:
            yield
        finally:
            logger.info("lifespan.shutdown")
            if isinstance(rate_limiter, RedisRateLimiter):
                await rate_limiter.close()
            app.state.analysis_service = None


app = FastAPI(
    title="Cal AI",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(_: Request, exc: AnalysisError) -> JSONResponse:
    return error_response(exc)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
async def version() -> dict[str, str]:
    return {"version": APP_VERSION}


app.include_router(analyze_router)


def main() -> None:  # pragma: no cover - entry point
    uvicorn.run(
        "calai.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":  # pragma: no cover
    main()
