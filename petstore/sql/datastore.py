"""
Map-driven SQL execution against the relational backend.

Every statement is built from trusted table/column names plus named
placeholders (`:column`) and executed with a single parameter map through
SQLAlchemy `text()`. Each call runs in its own transaction unless the
store was obtained from `DataStore.transaction()`.
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from petstore.errors import ConstraintError, QueryError
from petstore.sql.params import build_named_parameters
from petstore.tracing import db_span

logger = logging.getLogger(__name__)

WHERE_SUFFIX = "_where"

Row = dict[str, Any]


def _placeholder_pattern(key: str) -> re.Pattern:
    # Whole token only: `:id` must not match inside `:id_list` or `::id`
    return re.compile(rf"(?<![:\w]):{re.escape(key)}(?!\w)")


def merge_update_parameters(
    set_values: Mapping[str, Any],
    set_params: Mapping[str, Any],
    where: str,
    where_params: Mapping[str, Any],
) -> tuple[str, dict[str, Any]]:
    """
    Merge SET and WHERE parameters into one map without name collisions.

    A WHERE key that also appears in `set_values` is renamed with the
    `_where` suffix and its placeholder rewritten in `where`, so the SET
    value is never overwritten. Returns (rewritten where, merged params).
    """
    adjusted_where = where
    adjusted_params: dict[str, Any] = {}

    for key, value in where_params.items():
        if key in set_values:
            new_key = key + WHERE_SUFFIX
            while new_key in set_values or new_key in where_params or new_key in adjusted_params:
                new_key += WHERE_SUFFIX
            adjusted_where = _placeholder_pattern(key).sub(f":{new_key}", adjusted_where)
            adjusted_params[new_key] = value
        else:
            adjusted_params[key] = value

    merged = dict(set_params)
    merged.update(adjusted_params)
    return adjusted_where, merged


class DataStore:
    """Select / count / insert / update / delete built from column maps."""

    def __init__(
        self,
        bind: Union[AsyncEngine, AsyncConnection],
        statement_timeout: Optional[float] = None,
    ):
        self.bind = bind
        self.statement_timeout = statement_timeout

    # ============ Connection handling ============

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        if isinstance(self.bind, AsyncConnection):
            yield self.bind
        else:
            async with self.bind.begin() as conn:
                yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["DataStore"]:
        """
        Yield a store whose calls share one transaction.

        Commits when the block exits cleanly, rolls back on any exception.
        Nested use reuses the enclosing transaction.
        """
        if isinstance(self.bind, AsyncConnection):
            yield self
            return

        try:
            async with self.bind.begin() as conn:
                yield type(self)(conn, statement_timeout=self.statement_timeout)
        except SQLAlchemyError as e:
            logger.warning(f"Transaction failed: {e}")
            raise QueryError(original_error=e) from e

    async def _execute(
        self,
        operation: str,
        table: str,
        statement: str,
        params: Mapping[str, Any],
        handle: Callable[[CursorResult], Any],
    ) -> Any:
        with db_span(operation, table, statement):
            logger.debug(f"{operation} {table}: {statement}")

            async def run() -> Any:
                async with self._connection() as conn:
                    result = await conn.execute(text(statement), dict(params))
                    return handle(result)

            try:
                if self.statement_timeout is None:
                    return await run()
                return await asyncio.wait_for(run(), self.statement_timeout)
            except IntegrityError as e:
                logger.warning(f"{operation} {table} violated a constraint: {e.orig}")
                raise ConstraintError(original_error=e) from e
            except SQLAlchemyError as e:
                logger.warning(f"{operation} {table} failed: {e}")
                raise QueryError(original_error=e) from e
            except asyncio.TimeoutError as e:
                logger.warning(f"{operation} {table} timed out after {self.statement_timeout}s")
                raise QueryError(original_error=e, detail="statement timed out") from e

    @staticmethod
    def _rows(result: CursorResult) -> list[Row]:
        return [dict(row) for row in result.mappings().all()]

    @staticmethod
    def _rowcount(result: CursorResult) -> int:
        return result.rowcount

    # ============ Reads ============

    async def select_all(self, table: str, order_by: str) -> list[Row]:
        """All rows of `table` ordered by the caller's ORDER BY expression."""
        statement = f"SELECT * FROM {table} ORDER BY {order_by}"
        return await self._execute("SELECT", table, statement, {}, self._rows)

    async def select_where(
        self,
        table: str,
        where: str = "",
        params: Optional[Mapping[str, Any]] = None,
    ) -> list[Row]:
        """Rows matching `where`; an empty predicate selects everything."""
        statement = f"SELECT * FROM {table}"
        if where:
            statement += f" WHERE {where}"
        return await self._execute("SELECT", table, statement, params or {}, self._rows)

    async def count(
        self,
        table: str,
        where: str = "",
        params: Optional[Mapping[str, Any]] = None,
    ) -> int:
        statement = f"SELECT COUNT(*) FROM {table}"
        if where:
            statement += f" WHERE {where}"
        return await self._execute(
            "SELECT", table, statement, params or {}, lambda result: int(result.scalar_one())
        )

    # ============ Writes ============

    async def insert(
        self,
        table: str,
        values: Mapping[str, Any],
        skip_identity: bool = True,
    ) -> None:
        """Insert one row. None values, and by default `id`, are left to the backend."""
        named = build_named_parameters(values, skip_identity=skip_identity)
        if not named.columns:
            raise QueryError(detail=f"no values to insert into {table}")

        statement = (
            f"INSERT INTO {table} ({', '.join(named.columns)}) "
            f"VALUES ({', '.join(named.placeholders)})"
        )
        await self._execute("INSERT", table, statement, named.values, self._rowcount)

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        where: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """
        UPDATE `table` SET <values> WHERE <where>.

        WHERE parameters colliding with SET columns are renamed (see
        `merge_update_parameters`). Returns the affected row count; zero
        rows is not an error.
        """
        named = build_named_parameters(values)
        if not named.columns:
            raise QueryError(detail=f"no values to update in {table}")
        if not where:
            raise QueryError(detail=f"update of {table} requires a where clause")

        set_clauses = [
            f"{column} = {placeholder}"
            for column, placeholder in zip(named.columns, named.placeholders)
        ]
        adjusted_where, merged = merge_update_parameters(values, named.values, where, params or {})

        statement = f"UPDATE {table} SET {', '.join(set_clauses)} WHERE {adjusted_where}"
        return await self._execute("UPDATE", table, statement, merged, self._rowcount)

    async def delete(self, table: str, match: Mapping[str, Any]) -> int:
        """Delete rows whose columns equal every non-None value in `match`."""
        named = build_named_parameters(match)
        if not named.columns:
            raise QueryError(detail=f"delete from {table} requires match values")

        where = " AND ".join(
            f"{column} = {placeholder}"
            for column, placeholder in zip(named.columns, named.placeholders)
        )
        statement = f"DELETE FROM {table} WHERE {where}"
        return await self._execute("DELETE", table, statement, named.values, self._rowcount)
