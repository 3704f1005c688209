"""tenant-import: cross-tenant backup import for the clinic platform.

Re-inserts an exported clinic snapshot into a destination clinic,
remapping ids and foreign keys, with a read-only dry-run mode and
partial-failure accounting.

Usage:
    from tenant_import import import_payload, load_payload, get_adapter

    payload = load_payload("backup.json")
    adapter = await get_adapter(profile_name="staging")
    try:
        result = await import_payload(adapter, "clinic-2", payload, mode="import")
    finally:
        await adapter.close()
"""

__version__ = "0.1.0"

# Adapters
from tenant_import.adapters.base import DatabaseClient, StoreUnavailableError
from tenant_import.adapters.postgres import AsyncPostgresAdapter

# Config
from tenant_import.config.loader import load_db_config
from tenant_import.config.models import DatabaseConfig, DatabaseProfile, ImportSettings

# Factory
from tenant_import.factory import ProfileNotFoundError, get_adapter, resolve_url

# Engine
from tenant_import.engine.catalog import CLINIC_CATALOG
from tenant_import.engine.models import (
    ImportCatalog,
    ImportMode,
    ImportResult,
    TableDescriptor,
)
from tenant_import.engine.orchestrator import import_payload
from tenant_import.engine.validator import PayloadError, load_payload, validate_payload

__all__ = [
    # Adapters
    "DatabaseClient",
    "StoreUnavailableError",
    "AsyncPostgresAdapter",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    "ImportSettings",
    # Factory
    "get_adapter",
    "resolve_url",
    "ProfileNotFoundError",
    # Engine
    "CLINIC_CATALOG",
    "ImportCatalog",
    "TableDescriptor",
    "ImportMode",
    "ImportResult",
    "import_payload",
    "validate_payload",
    "load_payload",
    "PayloadError",
]

# Optional: AsyncSupabaseAdapter (only available with supabase extra)
try:
    from tenant_import.adapters.supabase import AsyncSupabaseAdapter

    __all__.append("AsyncSupabaseAdapter")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseAdapter unavailable
    pass
