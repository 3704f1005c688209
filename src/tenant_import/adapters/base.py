"""Destination store protocol definition.

Defines the ``DatabaseClient`` Protocol that every destination adapter
must implement.  The import engine needs nothing beyond multi-row and
single-row inserts that report back the identifiers the store assigned.
All methods are ``async def``.

Usage:
    from tenant_import.adapters.base import DatabaseClient

    async def copy_rows(client: DatabaseClient) -> None:
        new_ids = await client.insert_many("patients", [{"name": "Joe"}])
        new_id = await client.insert_one("patients", {"name": "Ann"})
        await client.close()
"""

from typing import Any, Protocol


class StoreUnavailableError(Exception):
    """Raised by adapters when the destination store cannot be reached.

    Any other exception raised by ``insert_many``/``insert_one`` is treated
    by the importer as a rejection of the rows it was given.
    """

    pass


class DatabaseClient(Protocol):
    """Destination store interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def insert_many(self, table: str, records: list[dict]) -> list[Any]:
        """Insert several rows in one statement.

        Args:
            table: Table name.
            records: Row dicts to insert.  Rows may carry different keys.

        Returns:
            Newly assigned primary keys, in insertion order.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
            Exception: If any row is rejected (constraint violation, bad
                column, ...).  No row of the batch is kept.

        Example:
            ids = await client.insert_many("employers", [
                {"name": "Acme", "clinic_id": "t2"},
                {"name": "Globex", "clinic_id": "t2"},
            ])
        """
        ...

    async def insert_one(self, table: str, record: dict) -> Any:
        """Insert a single row and return its new primary key.

        Args:
            table: Table name.
            record: Row dict to insert.

        Returns:
            Newly assigned primary key.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
            Exception: If the row is rejected.
        """
        ...

    async def close(self) -> None:
        """Close the connection and release resources."""
        ...
