"""Table-by-table insertion with batch-then-row fallback.

Rows of one table are written in batches of ``settings.batch_size``.  A
batch is tried as a single ``insert_many``; if the store rejects it, the
same rows are retried one ``insert_one`` at a time so a single bad row
only costs itself.  Both tiers are plain methods so batch size and
fallback granularity can be tuned and tested separately.

``StoreUnavailableError`` is never treated as a row rejection: it ends the
table, and every row of the table not yet counted becomes an error.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

from tenant_import.adapters.base import DatabaseClient, StoreUnavailableError
from tenant_import.config.models import ImportSettings
from tenant_import.engine.id_map import IdentifierMapper
from tenant_import.engine.models import ImportCatalog, MappingStats, TableDescriptor, TableSummary
from tenant_import.engine.resolver import resolve_references
from tenant_import.engine.sanitizer import sanitize_record

logger = logging.getLogger(__name__)


@dataclass
class PreparedRow:
    """A sanitized, remapped row plus the ids it carried in the export."""

    data: dict[str, Any]
    old_id: Any = None
    legacy_id: Any = None


class BatchImporter:
    """Writes tables into one destination tenant for one import run.

    Args:
        adapter: Destination store.
        catalog: Table catalog (tenant field, FK maps).
        clinic_id: Destination tenant id.
        mapper: Identifier maps of the run, filled in as rows are inserted.
        stats: Mapping counters of the run.
        settings: Batch size and warning cap.
        warnings: Run-level warning list; row and table failures are
            appended here.
    """

    def __init__(
        self,
        adapter: DatabaseClient,
        catalog: ImportCatalog,
        clinic_id: str,
        mapper: IdentifierMapper,
        stats: MappingStats,
        settings: ImportSettings,
        warnings: list[str],
    ) -> None:
        self._adapter = adapter
        self._catalog = catalog
        self._clinic_id = clinic_id
        self._mapper = mapper
        self._stats = stats
        self._settings = settings
        self._warnings = warnings
        self._row_failures = 0
        self._unresolved: Counter[str] = Counter()

    async def import_table(
        self, descriptor: TableDescriptor, records: list[Any]
    ) -> TableSummary:
        """Import every record of one table.

        Never raises for store errors: they are counted in the returned
        summary and reported in the run warnings.
        """
        table = descriptor.name
        summary = TableSummary(total=len(records))
        self._row_failures = 0
        self._unresolved = Counter()
        batch_size = self._settings.batch_size

        logger.info("Processing %s: %d records", table, len(records))

        try:
            for start in range(0, len(records), batch_size):
                batch = records[start:start + batch_size]
                rows = self._prepare_batch(descriptor, batch, summary)
                if rows:
                    await self._write(table, rows, summary)
        except Exception as e:
            remaining = summary.pending
            summary.errors += remaining
            logger.error("Exception processing %s: %s", table, e)
            self._warnings.append(
                f"{table}: import aborted, {remaining} records not imported - {e}"
            )

        # One line per field, however many rows it affected
        for field, count in self._unresolved.items():
            self._warnings.append(
                f"{table}: {count} references in {table}.{field} not mapped, set to null"
            )

        hidden = self._row_failures - self._settings.max_row_warnings
        if hidden > 0:
            self._warnings.append(f"{table}: {hidden} more row errors not shown")

        logger.info(
            "%s: imported=%d, skipped=%d, errors=%d",
            table, summary.imported, summary.skipped, summary.errors,
        )
        return summary

    def _prepare_batch(
        self,
        descriptor: TableDescriptor,
        batch: list[Any],
        summary: TableSummary,
    ) -> list[PreparedRow]:
        rows: list[PreparedRow] = []
        for record in batch:
            if not isinstance(record, dict):
                summary.skipped += 1
                continue
            cleaned = sanitize_record(record, descriptor.name, self._clinic_id, self._catalog)
            cleaned = resolve_references(
                cleaned, descriptor, self._mapper, self._stats, self._unresolved
            )
            rows.append(
                PreparedRow(
                    data=cleaned,
                    old_id=record.get("id"),
                    legacy_id=record.get("legacy_id"),
                )
            )
        return rows

    async def _write(self, table: str, rows: list[PreparedRow], summary: TableSummary) -> None:
        """Batch tier first, row tier only if the batch was rejected."""
        new_ids = await self._insert_batch(table, rows)
        if new_ids is None:
            await self._insert_rows(table, rows, summary)
            return

        for row, new_id in zip(rows, new_ids):
            self._mapper.record(table, new_id, old_id=row.old_id, legacy_id=row.legacy_id)
        accepted = min(len(rows), len(new_ids))
        summary.imported += accepted
        if accepted < len(rows):
            missing = len(rows) - accepted
            summary.errors += missing
            self._warnings.append(
                f"{table}: store returned {len(new_ids)} ids for {len(rows)} rows, "
                f"{missing} rows not mapped"
            )

    async def _insert_batch(self, table: str, rows: list[PreparedRow]) -> list[Any] | None:
        """One ``insert_many`` for the whole batch; ``None`` when rejected."""
        try:
            return await self._adapter.insert_many(table, [r.data for r in rows])
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.warning(
                "Batch of %d rows rejected by %s, retrying row by row: %s",
                len(rows), table, e,
            )
            return None

    async def _insert_rows(self, table: str, rows: list[PreparedRow], summary: TableSummary) -> None:
        for row in rows:
            try:
                new_id = await self._adapter.insert_one(table, row.data)
            except StoreUnavailableError:
                raise
            except Exception as e:
                summary.errors += 1
                self._row_failures += 1
                logger.warning("Row rejected by %s (id=%r): %s", table, row.old_id, e)
                if self._row_failures <= self._settings.max_row_warnings:
                    self._warnings.append(
                        f"{table}: failed to insert record {row.old_id!r} - {e}"
                    )
                continue
            self._mapper.record(table, new_id, old_id=row.old_id, legacy_id=row.legacy_id)
            summary.imported += 1
