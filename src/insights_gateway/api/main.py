"""FastAPI application exposing keyword insights from the flow-execution API."""

import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Annotated

import httpx
import logfire
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Request
from fastapi.middleware.cors import CORSMiddleware

from insights_gateway import __version__
from insights_gateway.api.error_handlers import install_error_handlers
from insights_gateway.api.middleware import (
    SlidingWindowRateLimiter,
    install_rate_limiting,
    install_request_logging,
)
from insights_gateway.core.config import GatewayConfig, load_config
from insights_gateway.core.exceptions import GENERIC_ERROR_MESSAGE
from insights_gateway.core.logging import configure_logging
from insights_gateway.models.api_models import ErrorResponse, HealthResponse, InsightsResponse
from insights_gateway.services.insights import InsightsService
from insights_gateway.services.result_cache import InMemoryResultCache, ResultCache

router = APIRouter()


def get_insights_service(request: Request) -> InsightsService:
    return request.app.state.insights_service


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness probe; has no side effects."""
    return HealthResponse(
        timestamp=datetime.now(UTC),
        uptime=time.monotonic() - request.app.state.started_at,
    )


@router.get(
    "/insights/{keyword}",
    response_model=InsightsResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_insights(
    keyword: Annotated[str, Path(min_length=1)],
    service: Annotated[InsightsService, Depends(get_insights_service)],
) -> InsightsResponse:
    """Return insights for a keyword.

    Args:
        keyword: Search keyword taken from the path

    Returns:
        Success envelope carrying the insight text
    """
    try:
        text = await service.get_insights(keyword)
    except Exception as exc:
        logfire.exception("Insights request failed", keyword=keyword, error=str(exc))
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE) from exc
    return InsightsResponse(data=text)


def create_app(
    config: GatewayConfig | None = None,
    cache: ResultCache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        config: Gateway configuration; read from the environment when omitted
        cache: Result cache shared by all requests
        http_client: Connection pool for upstream calls. When omitted the app opens
            its own at startup and closes it at shutdown
    """
    config = config or load_config()
    if cache is None:
        cache = InMemoryResultCache(ttl_seconds=config.cache_ttl_seconds)
    owns_client = http_client is None
    service = InsightsService(config, cache, http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        """Manage application lifespan - startup and shutdown."""
        if owns_client:
            service.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.request_timeout)
            )
        configure_logging(enable_console=True, min_level=config.log_level)
        logfire.info(
            "Insights gateway started",
            host=config.host,
            port=config.port,
            base_url=config.base_url,
            token_configured=config.model_token is not None,
        )
        try:
            yield
        finally:
            if owns_client and service.http_client is not None:
                await service.http_client.aclose()
                service.http_client = None
            logfire.info("Insights gateway shutdown")

    app = FastAPI(
        title="Insights Gateway",
        description="Keyword insights served from a hosted flow",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.started_at = time.monotonic()
    app.state.insights_service = service
    app.state.rate_limiter = SlidingWindowRateLimiter(
        limit=config.rate_limit_max, window_seconds=config.rate_limit_window_seconds
    )

    install_error_handlers(app)
    install_rate_limiting(app, app.state.rate_limiter)
    install_request_logging(app)

    # Added last so that it wraps everything, including rate-limit rejections
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        max_age=config.cors_max_age,
    )

    app.include_router(router)
    return app


app = create_app()


def main() -> None:
    """Run the gateway with uvicorn.

    uvicorn handles SIGTERM/SIGINT: it stops accepting connections, runs the
    lifespan shutdown and exits with status 0.
    """
    import sys

    import uvicorn

    config: GatewayConfig = app.state.config
    configure_logging(enable_console=True, min_level=config.log_level)

    try:
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level,
            access_log=False,
        )
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as exc:
        logfire.exception("Failed to start server", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
