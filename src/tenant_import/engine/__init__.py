"""Cross-tenant import engine with declarative table catalog.

Takes an exported tenant snapshot and re-inserts it into a destination
tenant, remapping every id and foreign key along the way.

Usage:
    from tenant_import.engine import CLINIC_CATALOG, import_payload, validate_payload
"""

from tenant_import.engine.batch import BatchImporter
from tenant_import.engine.catalog import CLINIC_CATALOG, find_order_violations
from tenant_import.engine.id_map import IdentifierMapper, TableIdMap
from tenant_import.engine.models import (
    ImportCatalog,
    ImportMode,
    ImportResult,
    MappingStats,
    TableDescriptor,
    TableSummary,
    ValidationReport,
)
from tenant_import.engine.orchestrator import import_payload, is_successful
from tenant_import.engine.resolver import resolve_references
from tenant_import.engine.sanitizer import STRIPPED_FIELDS, sanitize_record
from tenant_import.engine.validator import PayloadError, load_payload, validate_payload

__all__ = [
    "CLINIC_CATALOG",
    "find_order_violations",
    "ImportCatalog",
    "TableDescriptor",
    "ImportMode",
    "ImportResult",
    "TableSummary",
    "MappingStats",
    "ValidationReport",
    "IdentifierMapper",
    "TableIdMap",
    "STRIPPED_FIELDS",
    "sanitize_record",
    "resolve_references",
    "PayloadError",
    "load_payload",
    "validate_payload",
    "BatchImporter",
    "import_payload",
    "is_successful",
]
