import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from bustravel import __version__
from bustravel.config import settings
from bustravel.auth import router as auth_router
from bustravel.cities import router as cities_router
from bustravel.journeys import router as journeys_router, driver_router
from bustravel.bookings import router as bookings_router
from bustravel.admin import router as admin_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    description="Bus Travel Booking System API",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    auth_router.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    cities_router,
    prefix=f"{settings.API_PREFIX}/cities",
    tags=["Cities"]
)

app.include_router(
    journeys_router,
    prefix=f"{settings.API_PREFIX}/journeys",
    tags=["Journeys"]
)

app.include_router(
    driver_router,
    prefix=f"{settings.API_PREFIX}/driver",
    tags=["Driver"]
)

app.include_router(
    bookings_router,
    prefix=f"{settings.API_PREFIX}/bookings",
    tags=["Bookings"]
)

app.include_router(
    admin_router,
    prefix=f"{settings.API_PREFIX}/admin",
    tags=["Admin System"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Bus Travel Booking System API",
        "version": __version__,
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.SERVER_PORT)
