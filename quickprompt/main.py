import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from quickprompt.api.v1.router import api_v1_router
from quickprompt.core.config import settings, validate_settings_for_production
from quickprompt.core.logging import setup_logging
from quickprompt.core.metrics import PrometheusMiddleware, metrics_response
from quickprompt.core.rate_limit import limiter, rate_limit_exceeded_handler
from quickprompt.core.sentry import init_sentry
from quickprompt.gateway.gateway import PromptGateway
from quickprompt.gateway.types import ClassifiedError, ErrorKind

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    init_sentry()
    logger.info(
        "Starting QuickPrompt (env=%s, providers=%d)",
        settings.app_env,
        len(app.state.gateway.profiles),
    )

    yield

    logger.info("QuickPrompt shut down")


app = FastAPI(
    title="QuickPrompt",
    description="Turns a short idea into a polished, model-ready prompt via external LLM providers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)

# No host chat bridge on the server side; sdk-call providers report it as unavailable
app.state.gateway = PromptGateway()


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    # Exception text may echo provider payloads; keep it in the logs only
    error = ClassifiedError(ErrorKind.UNKNOWN, "Internal server error. Please try again.", status_code=500)
    return JSONResponse(status_code=500, content={"error": error.to_dict()})


# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Metrics middleware
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
