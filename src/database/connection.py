"""
Database connection and pool management
"""

import asyncpg
import logging
from typing import Optional

from config.settings import (
    DATABASE_URL,
    DB_POOL_MIN_SIZE,
    DB_POOL_MAX_SIZE,
    DB_COMMAND_TIMEOUT,
    DB_SYNCHRONIZE,
)

logger = logging.getLogger(__name__)

USERS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    first_name VARCHAR NOT NULL,
    last_name VARCHAR,
    age INTEGER
)
"""


async def init_database(dsn: Optional[str] = None) -> asyncpg.Pool:
    """Create the connection pool, verify it and synchronize the schema"""
    dsn = dsn or DATABASE_URL
    if not dsn:
        raise ValueError("DATABASE_URL environment variable is required")

    db_pool = await asyncpg.create_pool(
        dsn,
        min_size=DB_POOL_MIN_SIZE,
        max_size=DB_POOL_MAX_SIZE,
        command_timeout=DB_COMMAND_TIMEOUT,
        statement_cache_size=0  # Fix for pgbouncer compatibility
    )

    # Test connection
    async with db_pool.acquire() as conn:
        await conn.fetchval("SELECT 1")

    if DB_SYNCHRONIZE:
        await synchronize_schema(db_pool)

    logger.info("Database initialized successfully")
    return db_pool


async def synchronize_schema(db_pool: asyncpg.Pool, drop: bool = False):
    """Create the users table, optionally dropping existing data first"""
    async with db_pool.acquire() as conn:
        async with conn.transaction():
            if drop:
                logger.warning("Dropping users table before synchronization")
                await conn.execute("DROP TABLE IF EXISTS users")
            await conn.execute(USERS_TABLE_DDL)

    logger.info("Database schema synchronized")


async def close_database(db_pool: Optional[asyncpg.Pool]):
    """Close database connection pool"""
    if db_pool:
        await db_pool.close()
    logger.info("Database connections closed")
