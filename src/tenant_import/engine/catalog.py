"""Static catalog of the clinic tables an import run can write.

Order matters: every table appears after the tables its foreign keys
reference.  ``find_order_violations`` reports breaches; tests keep it
empty for ``CLINIC_CATALOG``.
"""

from tenant_import.engine.models import ImportCatalog, TableDescriptor


CLINIC_CATALOG = ImportCatalog(
    tenant_field="clinic_id",
    tables=[
        # Base configuration and lookup tables
        TableDescriptor(name="specialties"),
        TableDescriptor(name="employer_categories"),
        TableDescriptor(name="insurance_plans"),
        TableDescriptor(name="procedures"),
        TableDescriptor(name="contribution_types"),
        TableDescriptor(name="anamnese_templates"),
        TableDescriptor(name="access_groups"),
        # Main entities
        TableDescriptor(name="accounting_offices", required_fields=["name", "email"]),
        TableDescriptor(name="employers", required_fields=["name"]),
        TableDescriptor(
            name="professionals",
            foreign_keys={"specialty_id": "specialties"},
        ),
        TableDescriptor(
            name="patients",
            required_fields=["name", "phone"],
            foreign_keys={
                "employer_id": "employers",
                "insurance_plan_id": "insurance_plans",
            },
        ),
        # Entities hanging off patients, professionals and employers
        TableDescriptor(
            name="patient_dependents",
            foreign_keys={"patient_id": "patients"},
        ),
        TableDescriptor(
            name="patient_cards",
            foreign_keys={"patient_id": "patients"},
        ),
        TableDescriptor(
            name="professional_schedules",
            foreign_keys={"professional_id": "professionals"},
        ),
        TableDescriptor(
            name="accounting_office_employers",
            foreign_keys={
                "accounting_office_id": "accounting_offices",
                "employer_id": "employers",
            },
        ),
        # Transactions and records
        TableDescriptor(
            name="appointments",
            foreign_keys={
                "patient_id": "patients",
                "professional_id": "professionals",
                "procedure_id": "procedures",
                "dependent_id": "patient_dependents",
            },
        ),
        TableDescriptor(
            name="medical_records",
            foreign_keys={
                "patient_id": "patients",
                "professional_id": "professionals",
                "appointment_id": "appointments",
                "dependent_id": "patient_dependents",
            },
        ),
        TableDescriptor(
            name="employer_contributions",
            foreign_keys={
                "employer_id": "employers",
                "contribution_type_id": "contribution_types",
            },
        ),
        TableDescriptor(
            name="anamnesis",
            foreign_keys={"patient_id": "patients"},
        ),
        # Anamnesis forms
        TableDescriptor(
            name="anamnese_questions",
            foreign_keys={"template_id": "anamnese_templates"},
        ),
        TableDescriptor(
            name="anamnese_question_options",
            foreign_keys={"question_id": "anamnese_questions"},
            tenant_scoped=False,
        ),
        TableDescriptor(
            name="anamnese_responses",
            foreign_keys={
                "template_id": "anamnese_templates",
                "patient_id": "patients",
                "professional_id": "professionals",
            },
        ),
        TableDescriptor(
            name="anamnese_answers",
            foreign_keys={
                "response_id": "anamnese_responses",
                "question_id": "anamnese_questions",
            },
            tenant_scoped=False,
        ),
        # Financial
        TableDescriptor(name="financial_categories"),
        TableDescriptor(name="cash_registers"),
        TableDescriptor(
            name="financial_transactions",
            foreign_keys={
                "category_id": "financial_categories",
                "patient_id": "patients",
                "appointment_id": "appointments",
            },
        ),
        TableDescriptor(
            name="cash_transfers",
            foreign_keys={
                "from_register_id": "cash_registers",
                "to_register_id": "cash_registers",
            },
        ),
        # Settings and permissions
        TableDescriptor(name="clinic_holidays"),
        TableDescriptor(name="document_settings"),
        TableDescriptor(
            name="access_group_permissions",
            foreign_keys={"access_group_id": "access_groups"},
            tenant_scoped=False,
        ),
    ],
)


def find_order_violations(catalog: ImportCatalog) -> list[str]:
    """List foreign keys that point at a table not yet imported.

    Self-references are allowed: earlier rows of the same table resolve,
    later ones are nulled.
    """
    seen: set[str] = set()
    violations: list[str] = []
    for table in catalog.ordered_tables():
        for field, target in table.foreign_keys.items():
            if target != table.name and target not in seen:
                violations.append(f"{table.name}.{field} -> {target}")
        seen.add(table.name)
    return violations
