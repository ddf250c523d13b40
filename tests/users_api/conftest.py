"""
pytest configuration and fixtures for the users API test suite
The database is replaced by an in-memory repository; the asyncpg pool by mocks.
"""

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from app import app
from api.routes.users import get_user_repository
from database.repository import UserRepository
from services.users_service import UserService


class InMemoryUserRepository(UserRepository):
    """UserRepository keeping rows in a dict; ids are assigned like SERIAL"""

    def __init__(self):
        super().__init__(db_pool=None)
        self.rows: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    async def find_all(self) -> List[Dict[str, Any]]:
        return [dict(self.rows[key]) for key in sorted(self.rows)]

    async def find_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        row = self.rows.get(record_id)
        return dict(row) if row else None

    async def save(self, entity: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record_id = entity.get(self.pk_field)
        if record_id is None:
            record_id = self._next_id
            self._next_id += 1
            row = {"id": record_id, "first_name": None, "last_name": None, "age": None}
        elif record_id in self.rows:
            row = self.rows[record_id]
        else:
            return None

        row = {**row, **self._writable_values(entity)}
        self.rows[record_id] = row
        return dict(row)

    async def remove(self, entity: Dict[str, Any]) -> int:
        return 1 if self.rows.pop(entity[self.pk_field], None) else 0


@pytest.fixture
def repository():
    return InMemoryUserRepository()


@pytest.fixture
def users_service(repository):
    return UserService(repository)


@pytest.fixture
def client(repository):
    """Test client wired to the in-memory repository (lifespan is not run)"""
    app.dependency_overrides[get_user_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db_conn():
    """Mocked asyncpg connection"""
    conn = AsyncMock()
    conn.transaction = MagicMock()
    return conn


@pytest.fixture
def db_pool(db_conn):
    """Mocked asyncpg pool whose acquire() yields db_conn"""
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = db_conn
    pool.close = AsyncMock()
    return pool
