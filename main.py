import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import app_settings
from src.logging_config import setup_logging
from src.routers import nikigai as nikigai_router

# Configure logging VERY early
setup_logging(app_settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Find My Flow - Nikigai Engine API")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers ---
app.include_router(nikigai_router.router, prefix="/api/v1", tags=["nikigai"])

@app.get("/health", tags=["Health Check"])
async def health_check():
    """
    Basic liveness check.
    """
    logger.debug("Health check endpoint '/health' accessed")
    return {"status": "ok", "message": "Nikigai engine is running."}


if __name__ == "__main__":
    import uvicorn
    # Better to run with `uvicorn main:app --reload` from the project root directory
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
