"""
TeamChat API - Main Entry Point
Channels, direct messages, presence and typing over HTTP + WebSocket
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

# Import configuration
from teamchat.config import settings

# Import API routers
from teamchat.api import admin, auth, channels, websocket as ws_router

from teamchat.database import db
from teamchat.exceptions import ChatError
from teamchat.services import get_connection_manager, reset_services

# Initialize logger
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan (startup/shutdown)"""
    logger.info("Starting TeamChat API...")

    if not settings.is_configured:
        logger.warning("JWT_SECRET is not set; using the development signing key")

    settings.ensure_data_dir()
    await db.connect(settings.SQLITE_DB_PATH)

    logger.info("Application startup complete")
    yield

    logger.info("Application shutdown")
    get_connection_manager().close_all()
    reset_services()
    await db.close()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## 💬 TeamChat

Real-time group messaging: public channels, private groups, direct messages,
presence, typing indicators, threaded replies, edit and soft-delete.

Calls under `/api` use a bearer token from `/api/login`; the `/ws` socket
takes the same token in its handshake.
""",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    redoc_url="/redoc",
    docs_url="/docs",
    openapi_url="/openapi.json"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    """Structured response for service errors"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors (400), like missing fields"""
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())})


# Include routers
app.include_router(auth.router)  # Register/login endpoints (/api/register, /api/login)
app.include_router(channels.router)  # Channel endpoints (/api/channels/*)
app.include_router(admin.router)  # Admin endpoints (/api/admin/*)
app.include_router(ws_router.router)  # WebSocket endpoint for real-time traffic (/ws)


# Custom OpenAPI schema with enhanced documentation
def custom_openapi():
    """Generate custom OpenAPI schema with the bearer security scheme"""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter the token returned by /api/login"
        }
    }
    openapi_schema["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


# Root endpoint
@app.get("/", tags=["health"], summary="API Health Check")
def root():
    """
    Health check endpoint

    Returns basic information about the API and live connection count.
    """
    return {
        "status": "healthy",
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "connections": get_connection_manager().get_connection_count(),
        "docs": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        # WebSocket keepalive configuration
        ws_ping_interval=20.0,  # Send ping every 20 seconds
        ws_ping_timeout=60.0,   # Wait 60 seconds for pong response before closing
    )
