import itertools

import pytest

from app.core.rate_limit import rate_limiter
from app.services.providers.data_store import DataStoreError, RecordNotFound


class FakeStore:
    """In-memory stand-in for DataStoreClient with the same call surface."""

    def __init__(self, defaults=None):
        self.tables = {}
        self.defaults = defaults or {}
        self.rpcs = {}
        self.calls = []
        self.fail_writes = False
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def seed(self, table, *rows):
        for row in rows:
            self.tables.setdefault(table, []).append(dict(row))

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def _matches(self, row, filters):
        return all(row.get(column) == value for column, value in (filters or {}).items())

    async def select(
        self, table, columns="*", filters=None, order=None, descending=False, limit=None, offset=None, single=False
    ):
        self.calls.append(("select", table, filters))
        found = [dict(row) for row in self.rows(table) if self._matches(row, filters)]
        if order:
            found.sort(key=lambda row: row.get(order), reverse=descending)
        if offset:
            found = found[offset:]
        if limit is not None:
            found = found[:limit]
        if single:
            if len(found) != 1:
                raise RecordNotFound()
            return found[0]
        return found

    def _check_write(self, op, table):
        self.calls.append((op, table))
        if self.fail_writes:
            raise DataStoreError("write rejected", status_code=500, code="XX000")

    def _stamp(self, table, row):
        stored = dict(self.defaults.get(table, {}))
        stored.update(row)
        stored.setdefault("id", f"{table}-{next(self._ids)}")
        stored.setdefault("created_at", f"2025-01-01T00:00:{next(self._clock):02d}")
        return stored

    async def insert(self, table, row):
        self._check_write("insert", table)
        stored = self._stamp(table, row)
        self.rows(table).append(stored)
        return [dict(stored)]

    async def upsert(self, table, row, on_conflict):
        self._check_write("upsert", table)
        keys = on_conflict.split(",")
        for existing in self.rows(table):
            if all(existing.get(key) == row.get(key) for key in keys):
                existing.update(row)
                return [dict(existing)]
        stored = self._stamp(table, row)
        self.rows(table).append(stored)
        return [dict(stored)]

    async def update(self, table, values, filters):
        self._check_write("update", table)
        changed = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(values)
                changed.append(dict(row))
        return changed

    async def delete(self, table, filters):
        self._check_write("delete", table)
        kept, removed = [], []
        for row in self.rows(table):
            (removed if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return removed

    async def rpc(self, function, params=None, read_only=True):
        self.calls.append(("rpc", function, params))
        handler = self.rpcs.get(function)
        if handler is None:
            raise DataStoreError(f"unknown function {function}", status_code=404, code="PGRST202")
        return handler(params or {})


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()
