"""
Configuration settings for the Users API
"""

import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment configuration
ENV = os.getenv("ENV", "PROD")  # PROD or QA
DATABASE_URL = os.getenv("DATABASE_URL")
PORT = int(os.getenv("PORT", 8080))

# Connection pool tuning
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 2))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 10))
DB_COMMAND_TIMEOUT = int(os.getenv("DB_COMMAND_TIMEOUT", 60))

# Create the users table on startup when it does not exist yet
DB_SYNCHRONIZE = os.getenv("DB_SYNCHRONIZE", "true").lower() in ("1", "true", "yes")

logger.info(f"Environment: {ENV}")

# DATABASE_URL is enforced when the pool is created, so the app can be imported without it
if not DATABASE_URL:
    logger.warning("DATABASE_URL not set - database connection will fail at startup")

# CORS settings
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")]
