"""
Health check API route
"""

from datetime import datetime
from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get("/")
async def health_check(request: Request):
    """Health check - reports unhealthy only when the database cannot be reached"""
    db_pool = getattr(request.app.state, "db_pool", None)

    try:
        if db_pool is None:
            raise RuntimeError("Database pool not initialized")

        async with db_pool.acquire() as conn:
            await conn.fetchval("SELECT 1")

        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "database": "connected"
        }

    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Health check failed: {str(e)}")
