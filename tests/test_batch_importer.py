"""Tests for BatchImporter: batching, row fallback and failure accounting."""

from tenant_import.config.models import ImportSettings
from tenant_import.engine.batch import BatchImporter
from tenant_import.engine.catalog import CLINIC_CATALOG
from tenant_import.engine.id_map import IdentifierMapper, MatchSource
from tenant_import.engine.models import MappingStats

from conftest import FakeStore


def _employers(n: int) -> list[dict]:
    return [{"id": f"E{i}", "name": f"Employer {i}"} for i in range(n)]


def _importer(store, settings=None, mapper=None):
    warnings: list[str] = []
    importer = BatchImporter(
        adapter=store,
        catalog=CLINIC_CATALOG,
        clinic_id="T2",
        mapper=mapper or IdentifierMapper(),
        stats=MappingStats(),
        settings=settings or ImportSettings(),
        warnings=warnings,
    )
    return importer, warnings


class TestBatching:

    async def test_batches_of_fifty(self, store):
        importer, warnings = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(120))

        assert store.calls == [
            ("insert_many", "employers", 50),
            ("insert_many", "employers", 50),
            ("insert_many", "employers", 20),
        ]
        assert (summary.total, summary.imported, summary.skipped, summary.errors) == (120, 120, 0, 0)
        assert warnings == []

    async def test_batch_size_configurable(self, store):
        importer, _ = _importer(store, settings=ImportSettings(batch_size=7))
        await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(15))
        assert [n for _, _, n in store.calls] == [7, 7, 1]

    async def test_rows_sanitized_and_rehomed(self, store):
        importer, _ = _importer(store)
        await importer.import_table(
            CLINIC_CATALOG.get("employers"),
            [{"id": "E1", "clinic_id": "T1", "created_at": "x", "name": "Acme"}],
        )
        assert store.rows["employers"] == [
            {"name": "Acme", "clinic_id": "T2", "id": "employers-1"}
        ]

    async def test_ids_recorded_in_mapper(self, store):
        mapper = IdentifierMapper()
        importer, _ = _importer(store, mapper=mapper)
        await importer.import_table(
            CLINIC_CATALOG.get("employers"),
            [{"id": "E1", "legacy_id": 77, "name": "Acme"}],
        )
        assert mapper.lookup("employers", "E1") == ("employers-1", MatchSource.OLD_ID)
        assert mapper.lookup("employers", "77") == ("employers-1", MatchSource.LEGACY_ID)

    async def test_empty_table(self, store):
        importer, _ = _importer(store)
        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), [])
        assert summary.total == 0
        assert store.write_count == 0


class TestRowFallback:

    async def test_one_bad_row_costs_only_itself(self):
        store = FakeStore(reject=lambda table, r: r.get("name") == "Employer 17")
        importer, warnings = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(50))

        assert summary.imported == 49
        assert summary.errors == 1
        assert summary.skipped == 0
        assert store.calls[0] == ("insert_many", "employers", 50)
        assert sum(1 for c in store.calls if c[0] == "insert_one") == 50
        assert len(warnings) == 1
        assert warnings[0].startswith("employers: failed to insert record 'E17'")

    async def test_failed_row_not_mapped(self):
        store = FakeStore(reject=lambda table, r: r.get("name") == "Employer 1")
        mapper = IdentifierMapper()
        importer, _ = _importer(store, mapper=mapper)

        await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(3))

        assert mapper.lookup("employers", "E1") is None
        assert mapper.lookup("employers", "E0") is not None
        assert mapper.lookup("employers", "E2") is not None

    async def test_only_rejected_batch_falls_back(self):
        store = FakeStore(reject=lambda table, r: r.get("name") == "Employer 60")
        importer, _ = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(100))

        assert summary.imported == 99
        assert summary.errors == 1
        assert store.calls[0] == ("insert_many", "employers", 50)
        assert store.calls[1] == ("insert_many", "employers", 50)
        assert all(c[0] == "insert_one" for c in store.calls[2:])
        assert len(store.calls) == 52

    async def test_row_warnings_capped(self):
        store = FakeStore(reject=lambda table, r: True)
        importer, warnings = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(12))

        assert summary.errors == 12
        assert summary.imported == 0
        row_warnings = [w for w in warnings if "failed to insert record" in w]
        assert len(row_warnings) == 5
        assert warnings[-1] == "employers: 7 more row errors not shown"

    async def test_warning_cap_is_per_table(self):
        store = FakeStore(reject=lambda table, r: True)
        importer, warnings = _importer(store)

        await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(6))
        await importer.import_table(
            CLINIC_CATALOG.get("specialties"), [{"id": "S1", "name": "Cardio"}]
        )

        assert len([w for w in warnings if w.startswith("employers: failed")]) == 5
        assert len([w for w in warnings if w.startswith("specialties: failed")]) == 1


class TestTableFailures:

    async def test_store_unavailable_counts_table_as_errors(self):
        store = FakeStore(unavailable={"employers"})
        importer, warnings = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(120))

        assert summary.errors == 120
        assert summary.imported == 0
        assert store.calls == [("insert_many", "employers", 50)]
        assert warnings == [
            "employers: import aborted, 120 records not imported - connection refused"
        ]

    async def test_unavailable_mid_table_keeps_earlier_batches(self):
        class FlakyStore(FakeStore):
            async def insert_many(self, table, records):
                if len(self.calls) == 1:
                    self._unavailable.add(table)
                return await super().insert_many(table, records)

        store = FlakyStore()
        importer, _ = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(120))

        assert summary.imported == 50
        assert summary.errors == 70
        assert summary.imported + summary.skipped + summary.errors == summary.total

    async def test_next_table_still_attempted(self):
        store = FakeStore(unavailable={"employers"})
        importer, _ = _importer(store)

        await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(2))
        summary = await importer.import_table(
            CLINIC_CATALOG.get("specialties"), [{"id": "S1", "name": "Cardio"}]
        )

        assert summary.imported == 1

    async def test_non_object_rows_skipped(self, store):
        importer, _ = _importer(store)

        summary = await importer.import_table(
            CLINIC_CATALOG.get("employers"),
            [{"id": "E1", "name": "Acme"}, "junk", None],
        )

        assert (summary.imported, summary.skipped, summary.errors) == (1, 2, 0)

    async def test_short_id_list_counted_as_errors(self):
        class ShortStore(FakeStore):
            async def insert_many(self, table, records):
                ids = await super().insert_many(table, records)
                return ids[:-1]

        store = ShortStore()
        importer, warnings = _importer(store)

        summary = await importer.import_table(CLINIC_CATALOG.get("employers"), _employers(3))

        assert summary.imported == 2
        assert summary.errors == 1
        assert warnings == ["employers: store returned 2 ids for 3 rows, 1 rows not mapped"]


class TestUnmappedReferences:

    async def test_one_warning_per_field(self, store):
        mapper = IdentifierMapper()
        mapper.record("employers", "new-E1", old_id="E1")
        importer, warnings = _importer(
            store, settings=ImportSettings(batch_size=7), mapper=mapper
        )
        patients = [
            {"id": f"P{i}", "name": "Joe", "phone": "1", "employer_id": f"E-gone-{i}"}
            for i in range(30)
        ]
        patients.append(
            {"id": "P30", "name": "Ann", "phone": "2", "employer_id": "E1",
             "insurance_plan_id": "I-gone"}
        )

        summary = await importer.import_table(CLINIC_CATALOG.get("patients"), patients)

        assert summary.imported == 31
        assert warnings == [
            "patients: 30 references in patients.employer_id not mapped, set to null",
            "patients: 1 references in patients.insurance_plan_id not mapped, set to null",
        ]
        assert store.rows["patients"][-1]["employer_id"] == "new-E1"

    async def test_counts_reset_per_table(self, store):
        importer, warnings = _importer(store)
        descriptor = CLINIC_CATALOG.get("patient_dependents")

        await importer.import_table(descriptor, [{"id": "D1", "patient_id": "P404"}])
        await importer.import_table(descriptor, [{"id": "D2", "patient_id": "P405"}])

        assert warnings == [
            "patient_dependents: 1 references in patient_dependents.patient_id not mapped, set to null",
            "patient_dependents: 1 references in patient_dependents.patient_id not mapped, set to null",
        ]

    async def test_mapped_references_emit_nothing(self, store):
        mapper = IdentifierMapper()
        mapper.record("patients", "new-P1", old_id="P1")
        importer, warnings = _importer(store, mapper=mapper)

        await importer.import_table(
            CLINIC_CATALOG.get("patient_dependents"), [{"id": "D1", "patient_id": "P1"}]
        )

        assert warnings == []
