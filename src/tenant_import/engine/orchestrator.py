"""Drive one import run from validation to the aggregated result.

States::

    VALIDATING -> ABORTED            envelope errors, nothing written
               -> DRY_RUN_COMPLETE   mode == dry_run, nothing written
               -> IMPORTING -> COMPLETED

Tables are imported strictly in catalog order: a table's foreign keys can
only resolve against tables whose inserts have already finished.

Usage:
    from tenant_import.engine.orchestrator import import_payload

    result = await import_payload(adapter, "clinic-2", payload, mode="import")
    print(result.summary["patients"].imported)
"""

import logging
from enum import Enum
from typing import Any

from tenant_import.adapters.base import DatabaseClient
from tenant_import.config.models import ImportSettings
from tenant_import.engine.batch import BatchImporter
from tenant_import.engine.catalog import CLINIC_CATALOG
from tenant_import.engine.id_map import IdentifierMapper
from tenant_import.engine.models import (
    ImportCatalog,
    ImportDetail,
    ImportMode,
    ImportResult,
    TableSummary,
)
from tenant_import.engine.validator import table_records, validate_payload

logger = logging.getLogger(__name__)


class ImportState(str, Enum):
    VALIDATING = "validating"
    ABORTED = "aborted"
    DRY_RUN_COMPLETE = "dry_run_complete"
    IMPORTING = "importing"
    COMPLETED = "completed"


def is_successful(result: ImportResult, policy: str) -> bool:
    """Apply the configured success policy to a finished import.

    ``lenient``: fewer errored rows than imported rows overall.
    ``strict``: no errored rows and at least one imported row.
    """
    imported = result.total_imported
    errors = result.total_errors
    if policy == "strict":
        return errors == 0 and imported > 0
    return errors < imported


def _transition(state: ImportState, clinic_id: str) -> None:
    logger.info("[import %s] -> %s", clinic_id, state.value)


async def import_payload(
    adapter: DatabaseClient | None,
    clinic_id: str,
    payload: Any,
    mode: ImportMode | str = ImportMode.DRY_RUN,
    catalog: ImportCatalog | None = None,
    settings: ImportSettings | None = None,
) -> ImportResult:
    """Validate a payload and, in import mode, write it into ``clinic_id``.

    Store failures never escape: they end up counted in ``summary`` and
    described in ``validation.warnings``.

    Args:
        adapter: Destination store.  May be ``None`` for a dry run.
        clinic_id: Destination tenant id written into tenant-scoped rows.
        payload: Parsed export snapshot.
        mode: ``"dry_run"`` or ``"import"``.
        catalog: Table catalog.  Defaults to ``CLINIC_CATALOG``.
        settings: Import settings.  Defaults to ``ImportSettings()``.

    Returns:
        ``ImportResult``.

    Raises:
        ValueError: If ``mode`` is unknown, or ``mode`` is import and no
            adapter was given.
    """
    mode = ImportMode(mode)
    catalog = catalog or CLINIC_CATALOG
    settings = settings or ImportSettings()

    if mode is ImportMode.IMPORT and adapter is None:
        raise ValueError("An adapter is required for mode 'import'")

    logger.info("Starting %s for clinic %s", mode.value, clinic_id)
    _transition(ImportState.VALIDATING, clinic_id)

    result = ImportResult(mode=mode)
    result.validation = validate_payload(payload, catalog, settings)

    if not result.validation.valid:
        _transition(ImportState.ABORTED, clinic_id)
        result.success = False
        return result

    data: dict[str, Any] = payload["data"]
    tables = [
        (descriptor, table_records(data, descriptor.name))
        for descriptor in catalog.ordered_tables()
    ]
    tables = [(d, records) for d, records in tables if records]

    total_records = sum(len(records) for _, records in tables)
    logger.info("Found %d records across %d tables", total_records, len(tables))

    if mode is ImportMode.DRY_RUN:
        for descriptor, records in tables:
            result.summary[descriptor.name] = TableSummary(
                total=len(records), skipped=len(records)
            )
        result.details.append(
            ImportDetail(table="validation", action="dry_run", count=total_records)
        )
        result.success = result.validation.valid and not result.validation.errors
        _transition(ImportState.DRY_RUN_COMPLETE, clinic_id)
        return result

    _transition(ImportState.IMPORTING, clinic_id)
    importer = BatchImporter(
        adapter=adapter,
        catalog=catalog,
        clinic_id=clinic_id,
        mapper=IdentifierMapper(),
        stats=result.mapping_stats,
        settings=settings,
        warnings=result.validation.warnings,
    )

    for descriptor, records in tables:
        summary = await importer.import_table(descriptor, records)
        result.summary[descriptor.name] = summary
        result.details.append(
            ImportDetail(table=descriptor.name, action="import", count=summary.imported)
        )

    result.success = is_successful(result, settings.success_policy)
    _transition(ImportState.COMPLETED, clinic_id)
    logger.info(
        "Import for clinic %s complete: %d imported, %d errors, success=%s",
        clinic_id, result.total_imported, result.total_errors, result.success,
    )
    return result
