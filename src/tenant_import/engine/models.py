"""Catalog and result models for the tenant import engine.

The catalog declares every importable table, its foreign keys and whether
rows are tenant-scoped; the engine derives all remapping from it.

Usage:
    from tenant_import.engine.models import ImportCatalog, TableDescriptor

    catalog = ImportCatalog(tables=[
        TableDescriptor(name="employers", required_fields=["name"]),
        TableDescriptor(name="patients",
                        foreign_keys={"employer_id": "employers"}),
    ])
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ImportMode(str, Enum):
    """Invocation mode of an import run."""

    DRY_RUN = "dry_run"
    IMPORT = "import"


class TableDescriptor(BaseModel):
    """Definition of one importable table."""

    name: str
    required_fields: list[str] = Field(default_factory=list)
    foreign_keys: dict[str, str] = Field(default_factory=dict)  # field -> referenced table
    tenant_scoped: bool = True                                   # overwrite tenant field on import


class ImportCatalog(BaseModel):
    """Declarative table catalog.  Tables ordered by dependency (referenced first).

    Order is checked by tests, never re-sorted at runtime.
    """

    tables: list[TableDescriptor]
    tenant_field: str = "clinic_id"

    @model_validator(mode="after")
    def _check_references(self) -> "ImportCatalog":
        names = [t.name for t in self.tables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tables in catalog: {', '.join(duplicates)}")
        known = set(names)
        for table in self.tables:
            for field, target in table.foreign_keys.items():
                if target not in known:
                    raise ValueError(
                        f"{table.name}.{field} references unknown table '{target}'"
                    )
        return self

    @property
    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def ordered_tables(self) -> list[TableDescriptor]:
        """Tables in import order."""
        return list(self.tables)

    def get(self, name: str) -> TableDescriptor | None:
        """Find a TableDescriptor by name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None


# ============================================================================
# Result Models
# ============================================================================


class ValidationReport(BaseModel):
    """Outcome of the validation pass."""

    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False


class TableSummary(BaseModel):
    """Per-table row accounting.  ``imported + skipped + errors == total``."""

    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def pending(self) -> int:
        """Rows not yet counted as imported, skipped or errored."""
        return self.total - self.imported - self.skipped - self.errors


class MappingStats(BaseModel):
    """Foreign-key resolution counters for one run."""

    by_old_id: int = 0
    by_legacy_id: int = 0
    nulled: int = 0


class ImportDetail(BaseModel):
    """One line of the run log returned to the caller."""

    table: str
    action: str
    count: int


class ImportResult(BaseModel):
    """Structured result of ``import_payload``."""

    success: bool = False
    mode: ImportMode
    validation: ValidationReport = Field(default_factory=ValidationReport)
    summary: dict[str, TableSummary] = Field(default_factory=dict)
    mapping_stats: MappingStats = Field(default_factory=MappingStats)
    details: list[ImportDetail] = Field(default_factory=list)

    @property
    def total_imported(self) -> int:
        return sum(s.imported for s in self.summary.values())

    @property
    def total_errors(self) -> int:
        return sum(s.errors for s in self.summary.values())

    def to_json_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible dict (enum values as strings)."""
        return self.model_dump(mode="json")
