"""Structured-storage providers: SQLite, or an in-memory stand-in.

The stand-in keeps call sites running when the SQLite extension is missing.
Every statement is logged and discarded; queries return empty results.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from os import PathLike
from types import ModuleType, TracebackType
from typing import Any, Protocol, Self

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Mapping[str, Any]
Row = dict[str, Any]


@dataclass(frozen=True, slots=True)
class RunResult:
    last_row_id: int = 0
    changes: int = 0


class Database(Protocol):
    filename: str

    def run(self, sql: str, params: Params = ()) -> RunResult: ...

    def get(self, sql: str, params: Params = ()) -> Row | None: ...

    def all(self, sql: str, params: Params = ()) -> list[Row]: ...

    def close(self) -> None: ...


class StructuredStorage(Protocol):
    def open(self, filename: str = ":memory:") -> Database: ...


class _ClosingMixin:
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class SqliteDatabase(_ClosingMixin):
    def __init__(self, connection: Any, filename: str) -> None:
        self._connection = connection
        self.filename = filename

    def run(self, sql: str, params: Params = ()) -> RunResult:
        cursor = self._connection.execute(sql, params)
        self._connection.commit()
        return RunResult(last_row_id=cursor.lastrowid or 0, changes=max(cursor.rowcount, 0))

    def get(self, sql: str, params: Params = ()) -> Row | None:
        row = self._connection.execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    def all(self, sql: str, params: Params = ()) -> list[Row]:
        return [dict(row) for row in self._connection.execute(sql, params).fetchall()]

    def close(self) -> None:
        self._connection.close()


class SqliteStorage:
    def __init__(self, module: ModuleType) -> None:
        self._sqlite3 = module

    def open(self, filename: str = ":memory:") -> SqliteDatabase:
        connection = self._sqlite3.connect(filename)
        connection.row_factory = self._sqlite3.Row
        return SqliteDatabase(connection, filename)

    def module_api(self) -> ModuleType:
        return self._sqlite3


class MemoryDatabase(_ClosingMixin):
    """Accepts every statement and stores nothing."""

    def __init__(self, filename: str = ":memory:") -> None:
        self.filename = filename
        self.is_memory = filename == ":memory:"

    def run(self, sql: str, params: Params = ()) -> RunResult:
        logger.warning("Structured storage operation attempted in fallback mode: %s", sql)
        return RunResult()

    def get(self, sql: str, params: Params = ()) -> Row | None:
        logger.warning("Structured storage query attempted in fallback mode: %s", sql)
        return None

    def all(self, sql: str, params: Params = ()) -> list[Row]:
        logger.warning("Structured storage query attempted in fallback mode: %s", sql)
        return []

    def close(self) -> None:
        pass


class MemoryStorage:
    def open(self, filename: str = ":memory:") -> MemoryDatabase:
        return MemoryDatabase(filename)

    def module_api(self) -> FallbackSqliteModule:
        return FallbackSqliteModule()


class FallbackCursor:
    """DB-API cursor that logs and discards every statement."""

    description = None
    rowcount = -1
    lastrowid = None
    arraysize = 1

    def execute(self, sql: str, parameters: Params = ()) -> Self:
        logger.warning("Structured storage operation attempted in fallback mode: %s", sql)
        return self

    def executemany(self, sql: str, seq_of_parameters: Iterable[Params]) -> Self:
        return self.execute(sql)

    def executescript(self, sql_script: str) -> Self:
        return self.execute(sql_script)

    def fetchone(self) -> Any:
        return None

    def fetchmany(self, size: int | None = None) -> list[Any]:
        return []

    def fetchall(self) -> list[Any]:
        return []

    def close(self) -> None:
        pass

    def __iter__(self) -> Iterator[Any]:
        return iter(())


class FallbackConnection(_ClosingMixin):
    def __init__(self, database: str) -> None:
        self.database = database
        self.row_factory: Any = None
        self.isolation_level: str | None = ""
        self.total_changes = 0

    def cursor(self) -> FallbackCursor:
        return FallbackCursor()

    def execute(self, sql: str, parameters: Params = ()) -> FallbackCursor:
        return self.cursor().execute(sql, parameters)

    def executemany(self, sql: str, seq_of_parameters: Iterable[Params]) -> FallbackCursor:
        return self.cursor().executemany(sql, seq_of_parameters)

    def executescript(self, sql_script: str) -> FallbackCursor:
        return self.cursor().executescript(sql_script)

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        pass


class FallbackSqliteError(Exception):
    pass


class FallbackSqliteModule:
    """Stands in for the ``sqlite3`` module when code imports it directly."""

    Error = FallbackSqliteError
    DatabaseError = FallbackSqliteError
    OperationalError = FallbackSqliteError
    IntegrityError = FallbackSqliteError
    ProgrammingError = FallbackSqliteError
    Row = dict
    PARSE_DECLTYPES = 1
    PARSE_COLNAMES = 2
    sqlite_version = "0.0.0"

    def connect(self, database: str | PathLike[str], *args: Any, **kwargs: Any) -> FallbackConnection:
        logger.warning("sqlite3.connect(%r) in fallback mode; nothing will be stored", database)
        return FallbackConnection(str(database))


def load_native_storage() -> SqliteStorage:
    return SqliteStorage(importlib.import_module("sqlite3"))


__all__ = [
    "Database",
    "FallbackConnection",
    "FallbackCursor",
    "FallbackSqliteError",
    "FallbackSqliteModule",
    "MemoryDatabase",
    "MemoryStorage",
    "RunResult",
    "SqliteDatabase",
    "SqliteStorage",
    "StructuredStorage",
    "load_native_storage",
]
