from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.database import SessionLocal, init_db
from src.exceptions import register_exception_handlers
from src.logger import logger, setup_logging
from src.auth import router as auth_router
from src.trips import router as trips_router
from src.reservations.router import router as reservations_router
from src.notifications import router as notifications_router
from src.monitoring import router as monitoring_router, ws_router as monitoring_ws_router
from src.monitoring import AdminPresenceRegistry, ConnectionManager
from src.activity import router as activity_router

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
    yield
    logger.info(f"{settings.PROJECT_NAME} stopped")

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Coach trip booking API with seat reservation and live admin monitoring",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Process-wide collaborators, reached through dependencies
app.state.presence_registry = AdminPresenceRegistry()
app.state.connection_manager = ConnectionManager()
app.state.session_factory = SessionLocal

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(
    auth_router.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    auth_router.users_router,
    prefix=f"{settings.API_PREFIX}/users",
    tags=["Users"]
)

app.include_router(
    trips_router,
    prefix=f"{settings.API_PREFIX}/trips",
    tags=["Trips"]
)

app.include_router(
    reservations_router,
    prefix=f"{settings.API_PREFIX}/reservations",
    tags=["Reservations"]
)

app.include_router(
    notifications_router,
    prefix=f"{settings.API_PREFIX}/notifications",
    tags=["Notifications"]
)

app.include_router(
    monitoring_router,
    prefix=f"{settings.API_PREFIX}/monitoring",
    tags=["Monitoring"]
)

app.include_router(
    activity_router,
    prefix=f"{settings.API_PREFIX}/logs",
    tags=["Activity log"]
)

app.include_router(monitoring_ws_router)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": settings.PROJECT_NAME,
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
