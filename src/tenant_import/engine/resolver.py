"""Foreign-key rewriting against the identifier maps built so far."""

import logging
from collections import Counter
from typing import Any

from tenant_import.engine.id_map import IdentifierMapper, MatchSource
from tenant_import.engine.models import MappingStats, TableDescriptor

logger = logging.getLogger(__name__)


def resolve_references(
    record: dict[str, Any],
    descriptor: TableDescriptor,
    mapper: IdentifierMapper,
    stats: MappingStats,
    unresolved: Counter[str] | None = None,
) -> dict[str, Any]:
    """Rewrite every foreign key of ``record`` to the destination's ids.

    Lookup goes by old id first, legacy id second.  A reference that
    cannot be resolved is set to ``None``: the referenced row may have been
    absent from the payload or rejected on insert, and the referencing row
    is still imported.

    Args:
        record: Sanitized row.  Not mutated.
        descriptor: Catalog entry for the row's table.
        mapper: Identifier maps of the current run.
        stats: Counters updated in place.
        unresolved: Optional per-field count of references set to null,
            updated in place.

    Returns:
        New row dict with foreign keys rewritten.
    """
    if not descriptor.foreign_keys:
        return record

    remapped = dict(record)
    for field, ref_table in descriptor.foreign_keys.items():
        old_ref = record.get(field)
        if old_ref is None:
            continue
        if old_ref == "":
            remapped[field] = None
            continue

        match = mapper.lookup(ref_table, old_ref)
        if match is None:
            remapped[field] = None
            stats.nulled += 1
            if unresolved is not None:
                unresolved[field] += 1
            logger.debug(
                "%s.%s = %r not mapped in %s, set to null",
                descriptor.name, field, old_ref, ref_table,
            )
            continue

        new_id, source = match
        remapped[field] = new_id
        if source is MatchSource.OLD_ID:
            stats.by_old_id += 1
        else:
            stats.by_legacy_id += 1

    return remapped
