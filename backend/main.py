import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import LOG_LEVEL
from database import init_db
from dependencies import GardenRegistry
from errors import NotFoundError, PersistenceError, ValidationError
from routes.auth_routes import router as auth_router
from routes.focus_routes import router as focus_router
from routes.garden_routes import router as garden_router
from routes.social_routes import router as social_router
from routes.task_routes import router as task_router
from services.attestation_service import make_attestation
from services.storage_service import make_store

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)


def create_app(registry: GardenRegistry = None, init_database: bool = True) -> FastAPI:
    """Build the API around a garden registry (one from the environment by default)."""
    if init_database:
        init_db()
    if registry is None:
        registry = GardenRegistry(make_store(), attestation=make_attestation())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.gardens.shutdown()
        logger.info("Gardens saved on shutdown")

    app = FastAPI(title="Tendly Garden API", lifespan=lifespan)
    app.state.gardens = registry

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"status": "error", "detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"status": "error", "detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        logger.error("Storage unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"status": "error", "detail": "Storage unavailable"})

    @app.get("/api/v1/health-check")
    async def health():
        return {"status": "ok", "message": "Backend is alive!"}

    # Configure CORS for the web and mobile clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(task_router)
    app.include_router(focus_router)
    app.include_router(garden_router)
    app.include_router(social_router)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
