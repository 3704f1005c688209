"""Per-run identifier maps from exported ids to newly assigned ids.

One ``IdentifierMapper`` lives for exactly one import call.  Entries are
only ever added: once an old id is mapped, later inserts cannot remap it.
Keys are compared by ``str()`` so ``7`` and ``"7"`` resolve alike.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MatchSource(str, Enum):
    """Which map resolved a reference."""

    OLD_ID = "old_id"
    LEGACY_ID = "legacy_id"


def _key(value: Any) -> str:
    return str(value)


@dataclass
class TableIdMap:
    by_old_id: dict[str, Any] = field(default_factory=dict)
    by_legacy_id: dict[str, Any] = field(default_factory=dict)

    def add(self, new_id: Any, old_id: Any = None, legacy_id: Any = None) -> None:
        if old_id is not None and old_id != "":
            self.by_old_id.setdefault(_key(old_id), new_id)
        if legacy_id is not None and legacy_id != "":
            self.by_legacy_id.setdefault(_key(legacy_id), new_id)

    def lookup(self, value: Any) -> tuple[Any, MatchSource] | None:
        """Old-id map first, legacy map second."""
        key = _key(value)
        if key in self.by_old_id:
            return self.by_old_id[key], MatchSource.OLD_ID
        if key in self.by_legacy_id:
            return self.by_legacy_id[key], MatchSource.LEGACY_ID
        return None


@dataclass
class IdentifierMapper:
    tables: dict[str, TableIdMap] = field(default_factory=dict)

    def for_table(self, table: str) -> TableIdMap:
        if table not in self.tables:
            self.tables[table] = TableIdMap()
        return self.tables[table]

    def record(
        self,
        table: str,
        new_id: Any,
        old_id: Any = None,
        legacy_id: Any = None,
    ) -> None:
        """Register the id the store assigned to one exported row."""
        self.for_table(table).add(new_id, old_id=old_id, legacy_id=legacy_id)

    def lookup(self, table: str, value: Any) -> tuple[Any, MatchSource] | None:
        if table not in self.tables:
            return None
        return self.tables[table].lookup(value)
