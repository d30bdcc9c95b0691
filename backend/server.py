from fastapi import FastAPI, APIRouter
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path
from sunlight import get_engine
from sun_routes import sun_router

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Set up logging
logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper())
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]

# Create the main app
app = FastAPI(title="Sunspot Sunlight API")

# Create routers
api_router = APIRouter(prefix="/api")


@api_router.get("/health")
async def health():
    """Liveness check with engine settings summary."""
    settings = get_engine().settings
    return {
        "status": "ok",
        "step_minutes": settings.step_minutes,
        "max_forecast_days": settings.max_forecast_days,
    }


# Add CORS middleware first, before including router
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers in the main app
app.include_router(sun_router, prefix="/api")  # Sun position, sunlight & forecast
app.include_router(api_router)


@app.on_event("startup")
async def startup_engine():
    engine = get_engine()
    logger.info(
        f"[SUN] Engine ready: step={engine.settings.step_minutes}min, "
        f"max_days={engine.settings.max_forecast_days}, "
        f"position_ttl={engine.settings.position_ttl_seconds}s"
    )
