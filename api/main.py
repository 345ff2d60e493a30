"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import auth_routes, chat_routes, plan_routes
from api.dependencies import get_registry
from api.routes import router
from api.websocket_handler import state_stream
from config.settings import settings
from models.database import close_mongo_connection, init_mongo
from services.session_registry import SessionRegistry, session_registry
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Paths served even when the backend is not configured
OPEN_PATHS = {"/", "/health", "/docs", "/openapi.json"}

CONFIGURATION_ERROR = {
    "error": "configuration_incomplete",
    "message": (
        "The application could not connect to its essential services. "
        "This usually means the API keys are not set in the deployment environment."
    ),
    "steps": [
        "In your Supabase project open Project Settings -> API and copy the URL and the anon public key.",
        "Set SUPABASE_URL and SUPABASE_ANON_KEY (and OPENAI_API_KEY or ANTHROPIC_API_KEY for AI features) "
        "in the environment or the .env file, with these exact names.",
        "Restart or redeploy the service so the new variables are loaded.",
    ],
    "required_env": ["SUPABASE_URL", "SUPABASE_ANON_KEY"],
    "optional_env": ["OPENAI_API_KEY", "ANTHROPIC_API_KEY", "MONGODB_URL"],
}

RESET_HINT = {"method": "POST", "path": "/api/v1/session/reset"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    logger.info("Starting application...")
    if not settings.backend_configured:
        logger.error("SUPABASE_URL / SUPABASE_ANON_KEY missing; API requests will be refused")
    if not settings.ai_configured:
        logger.warning("No AI service key configured; plan generation and chat are disabled")
    await init_mongo()
    logger.info("Application started successfully")

    yield

    logger.info("Shutting down application...")
    session_registry.clear()
    await close_mongo_connection()
    logger.info("Application shut down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Diet coaching API: onboarding, check-ins, AI meal plans and chat",
    lifespan=lifespan
)

frontend_origins = [
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
] + settings.cors_origins

# Remove duplicates while preserving order
unique_origins = list(dict.fromkeys(frontend_origins))
logger.info(f"CORS configured with origins: {unique_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=unique_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.middleware("http")
async def configuration_guard(request: Request, call_next):
    """Refuse API traffic with setup instructions while the backend is unconfigured."""
    if (
        not settings.backend_configured
        and request.method != "OPTIONS"
        and request.url.path not in OPEN_PATHS
    ):
        return JSONResponse(status_code=503, content=CONFIGURATION_ERROR)
    return await call_next(request)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last-resort handler: report the fault and point at the session reset."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong. Resetting your session usually fixes it; your account is not affected.",
            "recovery": RESET_HINT,
        },
    )


app.include_router(router)
app.include_router(auth_routes.router)
app.include_router(plan_routes.router)
app.include_router(chat_routes.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Diet Coach API",
        "version": settings.app_version,
        "status": "running" if settings.backend_configured else "configuration_incomplete",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "backend_configured": settings.backend_configured,
        "ai_enabled": settings.ai_configured,
    }


@app.websocket("/ws/state")
async def state_websocket_endpoint(
    websocket: WebSocket,
    registry: SessionRegistry = Depends(get_registry),
):
    """Stream state snapshots of the caller's app session."""
    session_id = websocket.cookies.get(settings.session_cookie_name)
    if not settings.backend_configured or not session_id:
        await websocket.close(code=1008)
        return
    controller = await registry.get_or_create(session_id)
    await state_stream.stream(websocket, controller, session_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
