import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .api.deps import get_task_store, get_user_store
from .api.errors import register_exception_handlers
from .api.router import api_router
from .config import settings
from .exceptions import StorageError
from .logging_utils import request_id_var, setup_logging
from .rate_limit import _rate_limit_exceeded_handler, limiter
from .store import CollectionStore, JsonFileStore, build_stores

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    # --- Startup ---
    setup_logging(settings.LOG_LEVEL)
    user_store, task_store = build_stores(settings)
    for store in (user_store, task_store):
        if isinstance(store, JsonFileStore):
            store.ensure()
    app.state.user_store = user_store
    app.state.task_store = task_store
    logger.info("TaskWave ready backend=%s", settings.STORAGE_BACKEND)
    yield
    # --- Shutdown ---
    logger.info("TaskWave stopped")


tags_metadata = [
    {"name": "auth", "description": "Authentication: register, login, me."},
    {"name": "tasks", "description": "Task management: list, create, update, delete, clear completed."},
]

app = FastAPI(
    title="TaskWave API",
    version="1.0.0",
    description=(
        "JSON API exposed under /api. "
        "Register or log in to obtain a Bearer token and send it as `Authorization: Bearer <token>`."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)


@app.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


app.include_router(api_router)

# Unified error handlers
register_exception_handlers(app)

# Rate limiting (global middleware + handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# Request ID + access log middleware
@app.middleware("http")
async def request_id_and_logging(request: Request, call_next):
    start = time.perf_counter()
    incoming = request.headers.get(settings.REQUEST_ID_HEADER)
    req_id = incoming or uuid.uuid4().hex
    request.state.request_id = req_id
    token = request_id_var.set(req_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logging.getLogger("taskwave.request").info(
        "method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(response, "status_code", "-"),
        duration_ms,
        req_id,
    )
    return response


# --- Security: CORS and security headers ---

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request, call_next):
    response = await call_next(request)
    # Basic hardening headers
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if settings.SECURITY_ENABLE_HSTS:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


# --- Observability: liveness, readiness, metrics ---

@app.get("/live")
def live():
    return {"status": "live"}


@app.get("/ready")
def ready(
    users: CollectionStore = Depends(get_user_store),
    tasks: CollectionStore = Depends(get_task_store),
):
    try:
        users.ping()
        tasks.ping()
        return {"status": "ready"}
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc


# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
