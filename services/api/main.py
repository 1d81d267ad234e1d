"""
Drawing Release Tracker - Backend API
FastAPI with multiple storage backends: Google Sheets, SQLite and JSON files

Install dependencies:
pip install -e .

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

import contextvars
import logging
import os
import time
import uuid

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.aggregator import DrawingAggregator
from core.blob_store import DriveBlobStore, LocalBlobStore
from core.errors import DrawingServiceError, Unauthorized
from core.release_status import ReleaseStatusGate
from core.revisions import RevisionStore
from models import Editor
from schemas import HealthCheck
from settings import get_settings

API_VERSION = "1.0"

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# BACKEND CONFIGURATION
# ============================================================================
settings = get_settings()

STORAGE_BACKEND = settings.storage_backend.lower()
BLOB_BACKEND = settings.blob_backend.lower()

logger.info(f"🔧 Storage Backend: {STORAGE_BACKEND.upper()} | Blob Backend: {BLOB_BACKEND.upper()}")

# ============================================================================
# STORAGE ADAPTER INITIALIZATION
# ============================================================================


def _build_storage_adapter(s):
    backend = s.storage_backend.lower()

    if backend == "sheets":
        from adapters.sheets import SheetsAdapter

        sa_json = s.resolved_google_sa_json()  # Uses base64 if available
        if not sa_json or not s.sheets_spreadsheet_id:
            raise ValueError("Google Sheets requires GOOGLE_SA_JSON and SHEETS_SPREADSHEET_ID")
        logger.info("Initializing Google Sheets adapter...")
        return SheetsAdapter(google_sa_json=sa_json, spreadsheet_id=s.sheets_spreadsheet_id)

    if backend == "sqlite":
        from adapters.sqlite import SqliteAdapter

        logger.info("Initializing SQLite adapter...")
        return SqliteAdapter.from_url(s.db_url)

    if backend == "json":
        from adapters.json import JsonAdapter

        logger.info(f"Initializing JSON adapter in {s.json_data_dir}...")
        return JsonAdapter(s.json_data_dir)

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def _build_blob_store(s):
    backend = s.blob_backend.lower()

    if backend == "local":
        return LocalBlobStore(s.blob_local_dir, s.blob_public_base_url)

    if backend == "drive":
        return DriveBlobStore(
            root_folder_name=s.gdrive_root_folder_name,
            root_folder_id=s.gdrive_root_folder_id,
            drawings_subfolder=s.gdrive_drawings_subfolder,
        )

    raise ValueError(f"Unknown BLOB_BACKEND: {backend}")


try:
    storage_adapter = _build_storage_adapter(settings)
    logger.info(f"✓ {STORAGE_BACKEND} adapter initialized")
except Exception as e:
    logger.error(f"✗ Failed to initialize {STORAGE_BACKEND} storage: {e}")
    raise

blob_store = _build_blob_store(settings)

# Long-lived so the project-name cache survives between requests
drawing_aggregator = DrawingAggregator(
    storage_adapter,
    project_cache_ttl=settings.project_cache_ttl_seconds,
)

# ============================================================================
# DI HELPERS (used by routers/*)
# ============================================================================


def get_storage_adapter():
    return storage_adapter


def get_blob_store():
    return blob_store


def get_drawing_aggregator(storage=Depends(get_storage_adapter)) -> DrawingAggregator:
    if storage is drawing_aggregator.storage:
        return drawing_aggregator
    return DrawingAggregator(storage, project_cache_ttl=settings.project_cache_ttl_seconds)


def get_revision_store(
    storage=Depends(get_storage_adapter),
    blobs=Depends(get_blob_store),
) -> RevisionStore:
    return RevisionStore(storage, blobs, upload_attempts=settings.blob_upload_attempts)


def get_release_gate(storage=Depends(get_storage_adapter)) -> ReleaseStatusGate:
    return ReleaseStatusGate(storage)


def get_current_editor(request: Request) -> Editor:
    """
    Identity is resolved upstream and forwarded as headers.

    name: X-Editor-Name, else X-Editor-Email, else the id itself.
    """
    s = get_settings()
    editor_id = (request.headers.get(s.editor_id_header) or "").strip()
    if not editor_id:
        raise Unauthorized()
    editor_name = (
        (request.headers.get(s.editor_name_header) or "").strip()
        or (request.headers.get(s.editor_email_header) or "").strip()
        or editor_id
    )
    return Editor(editor_id=editor_id, editor_name=editor_name)


# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Drawing Release Tracker API",
    description="Drawing aggregation, annotated revisions and release status",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)


# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    request_start_time_var.set(time.time())

    response = await call_next(request)

    latency = time.time() - request_start_time_var.get()
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
        f"({round(latency * 1000, 2)} ms)"
    )

    response.headers["X-Request-ID"] = request_id
    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========== Error Handlers ==========

@app.exception_handler(DrawingServiceError)
async def drawing_service_error_handler(request, exc: DrawingServiceError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "; ".join(parts) or "Invalid request"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"}
    )


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        storage_adapter.ping()
        return HealthCheck(
            status="healthy",
            backend=STORAGE_BACKEND,
            blob_backend=BLOB_BACKEND,
            version=API_VERSION,
        ).model_dump()
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "backend": STORAGE_BACKEND, "error": str(e)}
        )


@app.get("/healthz")
async def healthz():
    """
    Kubernetes-style liveness probe.
    Returns 200 if the application is running.
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": API_VERSION
    }


@app.get("/readyz")
async def readyz():
    """
    Kubernetes-style readiness probe.
    Checks the storage backend is reachable. 200 if ready, 503 if not.
    """
    try:
        storage_adapter.ping()
        return {
            "status": "ready",
            "backend": STORAGE_BACKEND,
            "timestamp": time.time()
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "backend": STORAGE_BACKEND,
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "service": "Drawing Release Tracker API",
        "version": API_VERSION,
        "backend": STORAGE_BACKEND,
        "docs": "/docs",
    }


# Annotated PDFs written by the local blob backend
if BLOB_BACKEND == "local":
    app.mount("/blobs", StaticFiles(directory=settings.blob_local_dir), name="blobs")


# ========== Routers ==========
from routers import drawings as drawings_router
app.include_router(drawings_router.router)

from routers import annotations as annotations_router
app.include_router(annotations_router.router)

from routers import release_status as release_status_router
app.include_router(release_status_router.router)


startup_time = time.time()


@app.on_event("startup")
async def startup_event():
    global startup_time
    startup_time = time.time()
    logger.info("Drawing Release Tracker API starting up...")
    logger.info(f"Storage Backend: {STORAGE_BACKEND.upper()}")
    if STORAGE_BACKEND == "sqlite":
        logger.info(f"Database: {settings.db_url.split('://')[0]}")
    elif STORAGE_BACKEND == "sheets":
        logger.info(f"Spreadsheet ID: {settings.sheets_spreadsheet_id}")
    logger.info(f"Blob Backend: {BLOB_BACKEND.upper()}")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Drawing Release Tracker API shutting down after {round(time.time() - startup_time)}s...")
    if STORAGE_BACKEND == "sqlite":
        storage_adapter.engine.dispose()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, log_level="info")
