"""
Generic repository over a single table, backed by the asyncpg pool
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import asyncpg

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the database cannot complete a repository operation"""


class Repository:
    """
    Table-level persistence capability: find, save, merge and remove records.

    Records are plain dicts keyed by column name. Subclasses declare the
    table, its primary key and the writable columns.
    """

    table_name: str = ""
    pk_field: str = "id"
    fields: Tuple[str, ...] = ()

    def __init__(self, db_pool: Optional[asyncpg.Pool]):
        self.db_pool = db_pool

    def _get_pool(self) -> asyncpg.Pool:
        if not self.db_pool:
            raise PersistenceError("Database pool not initialized")
        return self.db_pool

    def _writable_values(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        """Only declared, non-key columns ever reach SQL"""
        return {name: entity[name] for name in self.fields if name in entity}

    async def find_all(self) -> List[Dict[str, Any]]:
        """Return every record in primary key order"""
        query = f"SELECT * FROM {self.table_name} ORDER BY {self.pk_field}"

        async with self._get_pool().acquire() as conn:
            logger.info(f"Executing READ query: {query}")
            try:
                rows = await conn.fetch(query)
            except asyncpg.PostgresError as e:
                logger.error(f"Database error: {e}")
                raise PersistenceError(f"Database query failed: {str(e)}") from e

        return [dict(row) for row in rows]

    async def find_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """Return the record with the given primary key, or None"""
        query = f"SELECT * FROM {self.table_name} WHERE {self.pk_field} = $1"

        async with self._get_pool().acquire() as conn:
            logger.info(f"Executing READ query: {query}")
            logger.info(f"Parameters: [{record_id}]")
            try:
                row = await conn.fetchrow(query, record_id)
            except asyncpg.PostgresError as e:
                logger.error(f"Database error: {e}")
                raise PersistenceError(f"Database query failed: {str(e)}") from e

        return dict(row) if row else None

    async def save(self, entity: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Persist a record

        A record without a primary key is inserted and comes back with the
        generated key. A record with one is updated in place; None is
        returned when that row no longer exists.
        """
        if entity.get(self.pk_field) is None:
            query, params = self._build_insert_query(entity)
        else:
            query, params = self._build_update_query(entity)

        async with self._get_pool().acquire() as conn:
            async with conn.transaction():
                logger.info(f"Executing SAVE: {query}")
                logger.info(f"Parameters: {params}")
                try:
                    row = await conn.fetchrow(query, *params)
                except asyncpg.PostgresError as e:
                    logger.error(f"Database error during SAVE: {e}")
                    raise PersistenceError(f"Database SAVE failed: {str(e)}") from e

        return dict(row) if row else None

    def merge(self, entity: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay changed columns onto a loaded record; the primary key is kept"""
        merged = dict(entity)
        merged.update(self._writable_values(changes))
        return merged

    async def merge_and_save(self, entity: Dict[str, Any], changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.save(self.merge(entity, changes))

    async def remove(self, entity: Dict[str, Any]) -> int:
        """Delete a loaded record, returning the number of rows removed"""
        record_id = entity[self.pk_field]
        query = f"DELETE FROM {self.table_name} WHERE {self.pk_field} = $1"

        async with self._get_pool().acquire() as conn:
            async with conn.transaction():
                logger.info(f"Executing DELETE: {query}")
                logger.info(f"Parameters: [{record_id}]")
                try:
                    result = await conn.execute(query, record_id)
                except asyncpg.PostgresError as e:
                    logger.error(f"Database error during DELETE: {e}")
                    raise PersistenceError(f"Database DELETE failed: {str(e)}") from e

        # asyncpg returns "DELETE N" where N is the number of rows
        return int(result.split()[-1]) if result else 0

    def _build_insert_query(self, entity: Dict[str, Any]) -> tuple[str, List[Any]]:
        values = self._writable_values(entity)
        if not values:
            return f"INSERT INTO {self.table_name} DEFAULT VALUES RETURNING *", []

        field_names = list(values.keys())
        placeholders = [f"${i}" for i in range(1, len(field_names) + 1)]

        query = (
            f"INSERT INTO {self.table_name} ({', '.join(field_names)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        return query, list(values.values())

    def _build_update_query(self, entity: Dict[str, Any]) -> tuple[str, List[Any]]:
        values = self._writable_values(entity)
        params = list(values.values())

        if not values:
            # Nothing to change, read the current row back
            query = f"SELECT * FROM {self.table_name} WHERE {self.pk_field} = $1"
            return query, [entity[self.pk_field]]

        set_parts = [f"{name} = ${i}" for i, name in enumerate(values.keys(), start=1)]
        params.append(entity[self.pk_field])

        query = (
            f"UPDATE {self.table_name} SET {', '.join(set_parts)} "
            f"WHERE {self.pk_field} = ${len(params)} RETURNING *"
        )
        return query, params


class UserRepository(Repository):
    """Persistence for the users table"""

    table_name = "users"
    pk_field = "id"
    fields = ("first_name", "last_name", "age")
