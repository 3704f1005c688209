"""Shared fixtures: an in-memory destination store with failure injection."""

from typing import Any, Callable

import pytest

from tenant_import.adapters.base import StoreUnavailableError


class FakeStore:
    """In-memory ``DatabaseClient``.

    Assigns ids ``"<table>-<n>"``.  ``reject`` decides per row whether the
    store refuses it; a batch containing a refused row is refused whole,
    like a single multi-row INSERT.  Tables in ``unavailable`` raise
    ``StoreUnavailableError`` on every call.
    """

    def __init__(
        self,
        reject: Callable[[str, dict], bool] | None = None,
        unavailable: set[str] | None = None,
    ) -> None:
        self.rows: dict[str, list[dict]] = {}
        self.issued: dict[str, list[str]] = {}
        self.calls: list[tuple[str, str, int]] = []
        self._reject = reject or (lambda table, record: False)
        self._unavailable = unavailable or set()
        self._counter = 0
        self.closed = False

    def _store(self, table: str, record: dict) -> str:
        self._counter += 1
        new_id = f"{table}-{self._counter}"
        self.rows.setdefault(table, []).append({**record, "id": new_id})
        self.issued.setdefault(table, []).append(new_id)
        return new_id

    async def insert_many(self, table: str, records: list[dict]) -> list[Any]:
        self.calls.append(("insert_many", table, len(records)))
        if table in self._unavailable:
            raise StoreUnavailableError("connection refused")
        for record in records:
            if self._reject(table, record):
                raise ValueError(f"constraint violation in {table}")
        return [self._store(table, record) for record in records]

    async def insert_one(self, table: str, record: dict) -> Any:
        self.calls.append(("insert_one", table, 1))
        if table in self._unavailable:
            raise StoreUnavailableError("connection refused")
        if self._reject(table, record):
            raise ValueError(f"constraint violation in {table}")
        return self._store(table, record)

    async def close(self) -> None:
        self.closed = True

    @property
    def all_issued(self) -> set[str]:
        return {i for ids in self.issued.values() for i in ids}

    @property
    def write_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def example_payload() -> dict:
    """Employer + patient snapshot exported from another clinic."""
    return {
        "version": "1.0",
        "clinic_name": "Clinica Origem",
        "backup_date": "2026-01-15T10:00:00Z",
        "record_counts": {"employers": 1, "patients": 1},
        "data": {
            "employers": [{"id": "E1", "name": "Acme"}],
            "patients": [
                {"id": "P1", "employer_id": "E1", "name": "Joe", "phone": "555-0100"},
            ],
        },
    }
