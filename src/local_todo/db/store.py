# src/local_todo/db/store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from ..errors import DuplicateKeyError, NotFoundError, StorageError
from .schema import SCHEMA, UPGRADES, CollectionSchema, IndexSpec, Schema, Upgrade

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@contextlib.contextmanager
def _storage_errors(what: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"{what} failed: {e}") from e


@contextlib.asynccontextmanager
async def _transaction(
    conn: aiosqlite.Connection, *, immediate: bool = True
) -> AsyncIterator[aiosqlite.Connection]:
    await conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
    except BaseException:
        await conn.rollback()
        raise
    else:
        await conn.commit()


def _q(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class Collection:
    """
    One keyed record collection (tasks / categories / settings).

    Storage layout:
    - key TEXT PRIMARY KEY
    - doc TEXT: the full record as JSON
    - ix_<field>: one shadow column per secondary index, rewritten on every write
    """

    def __init__(self, db: Database, schema: CollectionSchema) -> None:
        self._db = db
        self._schema = schema
        self._table = _q(schema.name)

    @property
    def name(self) -> str:
        return self._schema.name

    @property
    def schema(self) -> CollectionSchema:
        return self._schema

    # ---- low-level helpers ----

    def _column(self, field: str) -> tuple[str, IndexSpec | None]:
        if field == self._schema.key:
            return "key", None
        ix = self._schema.index(field)
        if ix is None:
            raise StorageError(f"{self.name}: field {field!r} is not indexed")
        return _q(ix.column), ix

    def _encode(self, field: str, value: Any) -> tuple[str, Any]:
        col, ix = self._column(field)
        if ix is None:
            return col, str(value)
        return col, ix.value(value)

    def _key_of(self, record: Mapping[str, Any]) -> str:
        key = record.get(self._schema.key)
        if key is None or key == "":
            raise StorageError(f"{self.name}: record has no {self._schema.key!r}")
        return str(key)

    def _row(self, record: Mapping[str, Any]) -> tuple[Any, ...]:
        try:
            doc = json.dumps(dict(record), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"{self.name}: record is not JSON-serializable: {e}") from e
        values = [ix.value(record.get(ix.field)) for ix in self._schema.indexes]
        return (self._key_of(record), doc, *values)

    def _insert_sql(self, *, replace: bool) -> str:
        cols = ["key", "doc", *(_q(ix.column) for ix in self._schema.indexes)]
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        marks = ",".join("?" for _ in cols)
        return f"{verb} INTO {self._table} ({', '.join(cols)}) VALUES ({marks})"

    @staticmethod
    def _decode(raw: str) -> Record:
        try:
            val = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"corrupt record document: {e}") from e
        return val if isinstance(val, dict) else {}

    async def _select(self, conn: aiosqlite.Connection, sql_tail: str, params: Sequence[Any] = ()) -> list[Record]:
        cur = await conn.execute(f"SELECT doc FROM {self._table} {sql_tail}", tuple(params))
        rows = await cur.fetchall()
        return [self._decode(r["doc"]) for r in rows]

    async def _get_in(self, conn: aiosqlite.Connection, key: str) -> Record | None:
        cur = await conn.execute(f"SELECT doc FROM {self._table} WHERE key = ?", (str(key),))
        row = await cur.fetchone()
        return self._decode(row["doc"]) if row else None

    async def _insert_in(
        self, conn: aiosqlite.Connection, records: Iterable[Mapping[str, Any]], *, replace: bool
    ) -> int:
        sql = self._insert_sql(replace=replace)
        n = 0
        for record in records:
            row = self._row(record)
            try:
                await conn.execute(sql, row)
            except sqlite3.IntegrityError as e:
                raise DuplicateKeyError(self.name, row[0]) from e
            n += 1
        return n

    async def _update_in(self, conn: aiosqlite.Connection, key: str, changes: Mapping[str, Any]) -> Record:
        current = await self._get_in(conn, key)
        if current is None:
            raise NotFoundError(self.name, key)
        new_key = changes.get(self._schema.key, current.get(self._schema.key))
        if str(new_key) != str(key):
            raise StorageError(f"{self.name}: primary key {self._schema.key!r} cannot change")
        merged = {**current, **changes}
        await conn.execute(self._insert_sql(replace=True), self._row(merged))
        return merged

    async def _clear_in(self, conn: aiosqlite.Connection) -> int:
        cur = await conn.execute(f"DELETE FROM {self._table}")
        return int(cur.rowcount or 0)

    async def _fetch_all(self, conn: aiosqlite.Connection) -> list[Record]:
        return await self._select(conn, "ORDER BY rowid")

    # ---- public API: reads ----

    async def get(self, key: str) -> Record | None:
        with _storage_errors(f"{self.name}.get"):
            async with self._db.connect() as conn:
                return await self._get_in(conn, key)

    async def all(self, *, order_by: str | None = None) -> list[Record]:
        tail = "ORDER BY rowid"
        if order_by is not None:
            col, _ = self._column(order_by)
            tail = f"ORDER BY {col} ASC, rowid ASC"
        with _storage_errors(f"{self.name}.all"):
            async with self._db.connect() as conn:
                return await self._select(conn, tail)

    async def where(self, field: str, value: Any) -> list[Record]:
        col, enc = self._encode(field, value)
        with _storage_errors(f"{self.name}.where({field})"):
            async with self._db.connect() as conn:
                if enc is None:
                    return await self._select(conn, f"WHERE {col} IS NULL ORDER BY rowid")
                return await self._select(conn, f"WHERE {col} = ? ORDER BY rowid", (enc,))

    async def between(
        self,
        field: str,
        lower: Any,
        upper: Any,
        *,
        include_lower: bool = True,
        include_upper: bool = False,
    ) -> list[Record]:
        col, lo = self._encode(field, lower)
        _, hi = self._encode(field, upper)
        if lo is None or hi is None:
            raise StorageError(f"{self.name}.between({field}): bounds must not be empty")
        op_lo = ">=" if include_lower else ">"
        op_hi = "<=" if include_upper else "<"
        with _storage_errors(f"{self.name}.between({field})"):
            async with self._db.connect() as conn:
                return await self._select(
                    conn,
                    f"WHERE {col} {op_lo} ? AND {col} {op_hi} ? ORDER BY {col} ASC, rowid ASC",
                    (lo, hi),
                )

    async def below(self, field: str, upper: Any) -> list[Record]:
        col, hi = self._encode(field, upper)
        if hi is None:
            raise StorageError(f"{self.name}.below({field}): bound must not be empty")
        with _storage_errors(f"{self.name}.below({field})"):
            async with self._db.connect() as conn:
                return await self._select(conn, f"WHERE {col} < ? ORDER BY {col} ASC, rowid ASC", (hi,))

    async def count(self, field: str | None = None, value: Any = None) -> int:
        sql = f"SELECT COUNT(*) FROM {self._table}"
        params: tuple[Any, ...] = ()
        if field is not None:
            col, enc = self._encode(field, value)
            if enc is None:
                sql += f" WHERE {col} IS NULL"
            else:
                sql += f" WHERE {col} = ?"
                params = (enc,)
        with _storage_errors(f"{self.name}.count"):
            async with self._db.connect() as conn:
                cur = await conn.execute(sql, params)
                (n,) = await cur.fetchone()
                return int(n)

    # ---- public API: writes ----

    async def add(self, record: Mapping[str, Any]) -> Record:
        """Insert; DuplicateKeyError if the key exists."""
        with _storage_errors(f"{self.name}.add"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    await self._insert_in(conn, [record], replace=False)
        logger.debug("%s: added key=%s", self.name, self._key_of(record))
        return dict(record)

    async def bulk_add(self, records: Iterable[Mapping[str, Any]]) -> int:
        with _storage_errors(f"{self.name}.bulk_add"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    return await self._insert_in(conn, records, replace=False)

    async def put(self, record: Mapping[str, Any]) -> Record:
        """Upsert."""
        with _storage_errors(f"{self.name}.put"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    await self._insert_in(conn, [record], replace=True)
        return dict(record)

    async def bulk_put(self, records: Iterable[Mapping[str, Any]]) -> int:
        with _storage_errors(f"{self.name}.bulk_put"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    return await self._insert_in(conn, records, replace=True)

    async def update(self, key: str, changes: Mapping[str, Any]) -> Record:
        """Merge `changes` into the stored record; NotFoundError if absent."""
        with _storage_errors(f"{self.name}.update"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    return await self._update_in(conn, str(key), changes)

    async def bulk_update(self, items: Iterable[tuple[str, Mapping[str, Any]]]) -> int:
        """All-or-nothing: one missing key rolls back every change."""
        n = 0
        with _storage_errors(f"{self.name}.bulk_update"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    for key, changes in items:
                        await self._update_in(conn, str(key), changes)
                        n += 1
        return n

    async def delete(self, key: str) -> bool:
        with _storage_errors(f"{self.name}.delete"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    cur = await conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (str(key),))
                    return cur.rowcount == 1

    async def bulk_delete(self, keys: Iterable[str]) -> int:
        ks = [str(k) for k in keys]
        if not ks:
            return 0
        ph = ",".join("?" for _ in ks)
        with _storage_errors(f"{self.name}.bulk_delete"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    cur = await conn.execute(f"DELETE FROM {self._table} WHERE key IN ({ph})", ks)
                    return int(cur.rowcount or 0)

    async def clear(self) -> int:
        with _storage_errors(f"{self.name}.clear"):
            async with self._db.connect() as conn:
                async with _transaction(conn):
                    return await self._clear_in(conn)


class Database:
    """
    SQLite-backed structured store.

    Schema evolution:
    - the version lives in PRAGMA user_version
    - open() creates missing tables, adds + backfills missing index columns,
      creates/drops SQL indexes, then runs upgrade hooks for (stored, target]
    - a file written by a newer schema is refused

    Connections:
    - each operation opens its own connection (no shared cursors)
    """

    def __init__(
        self,
        db_path: str | Path = "todo.sqlite3",
        *,
        schema: Schema = SCHEMA,
        upgrades: Mapping[int, Upgrade] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._db_path = Path(db_path)
        self._schema = schema
        self._upgrades = dict(UPGRADES if upgrades is None else upgrades)
        self._timeout = float(timeout)
        self._collections = {c.name: Collection(self, c) for c in schema.collections}
        self._opened = False

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def version(self) -> int:
        return self._schema.version

    @property
    def tasks(self) -> Collection:
        return self.collection("tasks")

    @property
    def categories(self) -> Collection:
        return self.collection("categories")

    @property
    def settings(self) -> Collection:
        return self.collection("settings")

    def collection(self, name: str) -> Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise StorageError(f"unknown collection {name!r}") from None

    # ---- lifecycle ----

    async def open(self) -> None:
        if self._opened:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        await self._ensure_schema()
        self._opened = True
        try:
            totals = {name: await c.count() for name, c in self._collections.items()}
        except StorageError:
            totals = {}
        logger.info("Database ready db=%s version=%s totals=%s", self._db_path, self.version, totals)

    async def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        self._opened = False

    async def __aenter__(self) -> Database:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @contextlib.asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await aiosqlite.connect(str(self._db_path), timeout=self._timeout)
        try:
            conn.row_factory = aiosqlite.Row
            with contextlib.suppress(sqlite3.Error):
                async with conn.execute("PRAGMA journal_mode=WAL"):
                    pass
            yield conn
        finally:
            await conn.close()

    # ---- schema ----

    async def _ensure_schema(self) -> None:
        target = self._schema.version
        with _storage_errors("open"):
            async with self.connect() as conn:
                async with _transaction(conn):
                    cur = await conn.execute("PRAGMA user_version")
                    (stored,) = await cur.fetchone()
                    stored = int(stored)
                    if stored > target:
                        raise StorageError(
                            f"database {self._db_path} has version {stored}, newer than supported {target}"
                        )

                    for coll in self._collections.values():
                        await self._ensure_collection(conn, coll)

                    for v in range(stored + 1, target + 1):
                        hook = self._upgrades.get(v)
                        if hook is None:
                            continue
                        await hook(conn)
                        logger.info("Database migration: applied upgrade to version %s", v)

                    if stored != target:
                        await conn.execute(f"PRAGMA user_version = {int(target)}")
                        logger.info("Database schema version %s -> %s", stored, target)

    async def _ensure_collection(self, conn: aiosqlite.Connection, coll: Collection) -> None:
        schema = coll.schema
        table = _q(schema.name)
        await conn.execute(f"CREATE TABLE IF NOT EXISTS {table} (key TEXT PRIMARY KEY, doc TEXT NOT NULL)")

        cur = await conn.execute(f"PRAGMA table_info({table})")
        cols = {row["name"] for row in await cur.fetchall()}

        added: list[IndexSpec] = []
        for ix in schema.indexes:
            if ix.column in cols:
                continue
            await conn.execute(f"ALTER TABLE {table} ADD COLUMN {_q(ix.column)}")
            added.append(ix)
            logger.info("Database migration: %s added index column %s", schema.name, ix.column)

        if added:
            cur = await conn.execute(f"SELECT key, doc FROM {table}")
            rows = await cur.fetchall()
            sets = ", ".join(f"{_q(ix.column)} = ?" for ix in added)
            for row in rows:
                doc = Collection._decode(row["doc"])
                values = [ix.value(doc.get(ix.field)) for ix in added]
                await conn.execute(f"UPDATE {table} SET {sets} WHERE key = ?", (*values, row["key"]))

        prefix = f"idx_{schema.name}_"
        cur = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = ?", (schema.name,)
        )
        existing = {row["name"] for row in await cur.fetchall() if str(row["name"]).startswith(prefix)}
        wanted = {f"{prefix}{ix.field}": ix for ix in schema.indexes}

        for idx_name, ix in wanted.items():
            await conn.execute(f"CREATE INDEX IF NOT EXISTS {_q(idx_name)} ON {table}({_q(ix.column)})")
        for stale in sorted(existing - wanted.keys()):
            await conn.execute(f"DROP INDEX IF EXISTS {_q(stale)}")
            logger.info("Database migration: dropped index %s", stale)

    # ---- multi-collection operations ----

    async def snapshot(self) -> dict[str, list[Record]]:
        """Read every collection in one read transaction."""
        out: dict[str, list[Record]] = {}
        with _storage_errors("snapshot"):
            async with self.connect() as conn:
                async with _transaction(conn, immediate=False):
                    for name, coll in self._collections.items():
                        out[name] = await coll._fetch_all(conn)
        return out

    async def replace_all(
        self,
        replacements: Mapping[str, Sequence[Mapping[str, Any]]],
        *,
        upserts: Mapping[str, Sequence[Mapping[str, Any]]] | None = None,
    ) -> None:
        """
        Atomic swap: clear + insert each replaced collection and upsert the rest,
        all in one transaction. Any failure rolls back to the previous contents.
        """
        colls = [(self.collection(n), recs) for n, recs in replacements.items()]
        ups = [(self.collection(n), recs) for n, recs in (upserts or {}).items()]
        with _storage_errors("replace_all"):
            async with self.connect() as conn:
                async with _transaction(conn):
                    for coll, records in colls:
                        await coll._clear_in(conn)
                        await coll._insert_in(conn, records, replace=False)
                    for coll, records in ups:
                        await coll._insert_in(conn, records, replace=True)
        logger.info(
            "Database replace_all: %s",
            {c.name: len(r) for c, r in colls} | {f"{c.name}(upsert)": len(r) for c, r in ups},
        )
