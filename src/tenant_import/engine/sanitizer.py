"""Strip server-owned fields from exported rows and re-home them to a tenant."""

from typing import Any

from tenant_import.engine.models import ImportCatalog

# Never copied verbatim: server-assigned keys and timestamps, tenant and
# user linkage, access secrets and approval/audit actors of the source
# tenant.
STRIPPED_FIELDS: frozenset[str] = frozenset({
    "id",
    "created_at",
    "updated_at",
    "clinic_id",
    "user_id",
    "created_by",
    "updated_by",
    "qr_code_token",
    "access_code",
    "access_code_expires_at",
    "portal_last_access_at",
    "approved_by",
    "approved_at",
    "reviewed_by",
    "reviewed_at",
})


def sanitize_record(
    record: dict[str, Any],
    table: str,
    clinic_id: str,
    catalog: ImportCatalog,
) -> dict[str, Any]:
    """Return a copy of ``record`` ready for insertion into ``clinic_id``.

    Fields the importer does not know pass through unchanged.  When the
    table is tenant-scoped (or unknown to the catalog) the tenant field is
    set to ``clinic_id``.
    """
    cleaned = {k: v for k, v in record.items() if k not in STRIPPED_FIELDS}

    descriptor = catalog.get(table)
    if descriptor is None or descriptor.tenant_scoped:
        cleaned[catalog.tenant_field] = clinic_id

    return cleaned
