"""
OJT Monitoring System - Main Application

FastAPI backend with:
- MongoDB for users, companies, time records, documents, tasks and chat
- JWT authentication with admin / coordinator / student roles
- Socket.IO for real-time messaging
- SMTP email notifications and S3-compatible file storage

Run: uvicorn ojt_monitoring.main:asgi_app --reload
"""

import time

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ojt_monitoring import __version__
from ojt_monitoring.api.routes import api_router
from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.errors import register_exception_handlers
from ojt_monitoring.core.logging_config import generate_request_id, logger, set_request_id
from ojt_monitoring.db.mongodb import init_mongo_indexes, test_mongo_connection
from ojt_monitoring.services.realtime_service import sio

settings = get_settings()

# Create FastAPI app
app = FastAPI(
    title="OJT Monitoring System",
    description="""
    Back end for tracking on-the-job training students.

    ## Features
    - **Authentication**: JWT login, refresh, password reset and email change by code
    - **Users**: Accounts, company placement and deployment status
    - **Companies**: Host companies with geofenced safe zones
    - **DTR**: Geofenced daily time in / time out
    - **Documents, Tasks, Requirements**: Uploads, review and submissions
    - **Messaging**: Direct and group chat pushed over Socket.IO
    - **Archive**: Restore, purge, export and import archived records
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Tag every request with an id and log its outcome."""
    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    set_request_id(request_id)

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    response.headers["X-Request-ID"] = request_id
    logger.log_request(request.method, request.url.path, response.status_code, duration_ms)
    return response


# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning(f"MongoDB index initialization failed: {e}")


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "version": __version__,
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
    }


# Socket.IO shares the port with the API; serve this object with uvicorn.
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
