"""Destination store adapters package.

Provides the ``DatabaseClient`` Protocol and concrete async adapter
implementations for PostgreSQL and (optionally) Supabase.

``AsyncSupabaseAdapter`` is only available when the ``supabase`` extra
is installed.  A missing ``supabase`` dependency does not prevent
importing the rest of the package.

Usage:
    from tenant_import.adapters import DatabaseClient, AsyncPostgresAdapter

    # With supabase extra installed:
    from tenant_import.adapters import AsyncSupabaseAdapter
"""

from tenant_import.adapters.base import DatabaseClient, StoreUnavailableError
from tenant_import.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "StoreUnavailableError",
    "AsyncPostgresAdapter",
]

try:
    from tenant_import.adapters.supabase import AsyncSupabaseAdapter

    __all__.append("AsyncSupabaseAdapter")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseAdapter unavailable
    pass
