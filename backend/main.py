"""
FastAPI Application Entry Point
"""
import logging
from fastapi import FastAPI
from habit_tracker.core.config import settings
from habit_tracker.routes import habits, health

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Silence noisy third-party loggers
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('hpack').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Habit Tracker API",
    version="0.1.0"
)

# Register routes
app.include_router(health.router)
app.include_router(habits.router)

logger.info(f"Habit Tracker API ready (storage backend: {settings.STORAGE_BACKEND}, day timezone: {settings.DAY_TIMEZONE})")
