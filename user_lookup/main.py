import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

from .auth.middleware import SessionMiddleware
from .config import get_settings
from .health import router as health_router
from .logging import configure_logging
from .observability.tracing import configure_tracing
from .routes.user import router as user_router

logger = logging.getLogger(__name__)

REQUESTS = Counter(
    "user_lookup_http_requests_total",
    "HTTP requests",
    ["method", "path", "status"],
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("user-lookup.start", extra={"env": settings.env})
    yield
    logger.info("user-lookup.stop")


app = FastAPI(lifespan=lifespan, title="User Lookup API", version="0.1.0")

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.app_url],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.add_middleware(SessionMiddleware)

configure_tracing(
    app,
    service_name="user-lookup",
    environment=settings.env,
    otlp_endpoint=settings.otel_exporter_otlp_endpoint,
    debug=settings.otel_debug,
)


@app.middleware("http")
async def metrics_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response: Response = await call_next(request)
    try:
        REQUESTS.labels(
            request.method, request.url.path, str(response.status_code)
        ).inc()
    except ValueError:
        logger.warning("Failed to update metrics", exc_info=True)
    return response


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(health_router)
app.include_router(user_router)
