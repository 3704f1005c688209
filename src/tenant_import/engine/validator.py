"""Read-only validation of an exported tenant snapshot.

Envelope problems (wrong ``version``, missing or malformed ``data``) are
errors and stop the run before any write.  Everything row-level is a
warning: the row is still attempted at import time.

The foreign-key check is advisory.  It looks for the referenced id among
the payload's own rows, not in the destination, and only inspects the
first ``validation_sample_limit`` rows of each referencing table, so it
can under-report broken references in large payloads.

Usage:
    from tenant_import.engine.validator import load_payload, validate_payload

    payload = load_payload("backups/clinic-2026-01-15.json")
    report = validate_payload(payload)
    if not report.valid:
        raise SystemExit("; ".join(report.errors))
"""

import json
from pathlib import Path
from typing import Any

from tenant_import.config.models import ImportSettings
from tenant_import.engine.catalog import CLINIC_CATALOG
from tenant_import.engine.models import ImportCatalog, ValidationReport


class PayloadError(Exception):
    """Raised when a payload file cannot be read as JSON."""

    pass


def load_payload(path: str | Path) -> Any:
    """Read a payload JSON file.

    Raises:
        PayloadError: If the file is missing or is not valid JSON.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise PayloadError(f"Payload file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise PayloadError(f"Invalid JSON in {path}: {e}") from e


def is_blank(value: Any) -> bool:
    """None, empty and whitespace-only strings count as blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def table_records(data: dict[str, Any], table: str) -> list[Any]:
    """Rows of ``table``; absent or non-list tables read as empty."""
    records = data.get(table)
    if not isinstance(records, list):
        return []
    return records


def validate_envelope(payload: Any, settings: ImportSettings) -> ValidationReport:
    """Check the payload's top-level shape and metadata."""
    report = ValidationReport()

    if not isinstance(payload, dict):
        report.add_error("Payload must be a JSON object")
        return report

    version = payload.get("version")
    if version != settings.supported_version:
        report.add_error(
            f"Unsupported payload version '{version}' "
            f"(expected '{settings.supported_version}')"
        )

    if not isinstance(payload.get("data"), dict):
        report.add_error("Field 'data' is required and must be an object")

    if not payload.get("clinic_name"):
        report.warnings.append("Field 'clinic_name' not found in backup")

    if not payload.get("backup_date"):
        report.warnings.append("Field 'backup_date' not found in backup")

    return report


def _referenceable_ids(records: list[Any]) -> set[str]:
    ids: set[str] = set()
    for r in records:
        if not isinstance(r, dict):
            continue
        for key in ("id", "legacy_id"):
            if r.get(key) is not None:
                ids.add(str(r[key]))
    return ids


def validate_payload(
    payload: Any,
    catalog: ImportCatalog | None = None,
    settings: ImportSettings | None = None,
) -> ValidationReport:
    """Validate a payload without touching any store.

    Args:
        payload: Parsed payload (normally a dict).
        catalog: Table catalog.  Defaults to ``CLINIC_CATALOG``.
        settings: Import settings.  Defaults to ``ImportSettings()``.

    Returns:
        ``ValidationReport``.  ``valid`` is False only for envelope errors.
    """
    catalog = catalog or CLINIC_CATALOG
    settings = settings or ImportSettings()

    report = validate_envelope(payload, settings)
    if not report.valid:
        return report

    data: dict[str, Any] = payload["data"]

    known = set(catalog.table_names)
    for table in data:
        if table not in known:
            report.warnings.append(f"Table '{table}' is not importable and will be ignored")

    record_counts = payload.get("record_counts")
    if not isinstance(record_counts, dict):
        record_counts = {}

    ids_cache: dict[str, set[str]] = {}

    for descriptor in catalog.ordered_tables():
        table = descriptor.name
        if table in data and not isinstance(data[table], list):
            report.warnings.append(f"{table}: expected a list of records, table ignored")
            continue

        records = table_records(data, table)

        declared = record_counts.get(table)
        if isinstance(declared, int) and declared != len(records):
            report.warnings.append(
                f"{table}: record_counts declares {declared} records, found {len(records)}"
            )

        for i, record in enumerate(records):
            if not isinstance(record, dict):
                report.warnings.append(f"{table}[{i}]: record is not an object, will be skipped")
                continue
            for field in descriptor.required_fields:
                if is_blank(record.get(field)):
                    report.warnings.append(
                        f"{table}[{i}]: required field '{field}' is empty or missing"
                    )

        if not descriptor.foreign_keys:
            continue

        for i, record in enumerate(records[: settings.validation_sample_limit]):
            if not isinstance(record, dict):
                continue
            for field, ref_table in descriptor.foreign_keys.items():
                ref_id = record.get(field)
                if is_blank(ref_id):
                    continue
                if ref_table not in ids_cache:
                    ids_cache[ref_table] = _referenceable_ids(table_records(data, ref_table))
                if str(ref_id) not in ids_cache[ref_table]:
                    report.warnings.append(
                        f"{table}[{i}]: FK '{field}' references '{ref_id}' "
                        f"not found in '{ref_table}'"
                    )

    return report
