"""Destination adapter factory.

Resolves a connection profile from db.toml and builds the matching
``DatabaseClient`` adapter.

Profile resolution priority:
1. Explicit ``profile_name`` argument (``--profile`` on the CLI)
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ``ProfileNotFoundError``

Usage:
    from tenant_import.factory import get_adapter

    adapter = await get_adapter(profile_name="staging")
    adapter = await get_adapter(database_url="postgresql://localhost/clinic")
"""

import os
from pathlib import Path
from urllib.parse import quote

from tenant_import.adapters.base import DatabaseClient
from tenant_import.adapters.postgres import AsyncPostgresAdapter
from tenant_import.config.loader import load_db_config
from tenant_import.config.models import DatabaseProfile


class ProfileNotFoundError(Exception):
    """Raised when no usable database profile is configured."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the env var lookup (``"APP_"`` reads
            ``APP_DB_PROFILE``).

    Returns:
        Profile name.

    Raises:
        ProfileNotFoundError: If the env var is not set.
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: tenant-import import --profile <name> ... or set {env_var}"
    )


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    The password is URL-encoded before substitution so special characters
    survive inside the connection URL.

    Args:
        profile: Database profile from config.

    Returns:
        Connection URL with password substituted.
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def build_adapter(profile: DatabaseProfile) -> DatabaseClient:
    """Construct the adapter named by ``profile.provider``.

    Raises:
        ProfileNotFoundError: If a supabase profile has no ``api_key``.
        ImportError: If the supabase extra is not installed.
    """
    if profile.provider == "supabase":
        if not profile.api_key:
            raise ProfileNotFoundError(
                "Supabase profile requires 'api_key' (service role key)"
            )
        from tenant_import.adapters.supabase import AsyncSupabaseAdapter

        return AsyncSupabaseAdapter(url=profile.url, key=profile.api_key)

    return AsyncPostgresAdapter(
        database_url=resolve_url(profile),
        jsonb_columns=profile.jsonb_columns,
    )


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
) -> DatabaseClient:
    """Create a destination adapter.  Adapters are never cached.

    Args:
        profile_name: Profile in db.toml.  Falls back to
            ``{env_prefix}DB_PROFILE`` when ``None``.
        env_prefix: Prefix for environment variable lookup.
        database_url: Direct PostgreSQL URL; bypasses db.toml entirely.
        config_path: Optional explicit db.toml path.

    Returns:
        A ``DatabaseClient`` implementation.  The caller owns it and must
        ``await adapter.close()``.

    Raises:
        ProfileNotFoundError: If no profile is configured or it is unknown.
        FileNotFoundError: If db.toml does not exist.
    """
    if database_url:
        return AsyncPostgresAdapter(database_url=database_url)

    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    config = load_db_config(config_path)
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml. "
            f"Available: {available}"
        )

    return build_adapter(config.profiles[profile_name])
