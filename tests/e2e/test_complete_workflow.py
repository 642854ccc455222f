from src.application.dtos.evolution_dto import MigrationRequest
from src.infrastructure.di_container import DIContainer
from tests.fixtures.test_data import TestDataFactory


def _orchestrator(dialect="postgresql"):
    container = DIContainer()
    container.configure(dialect=dialect)
    return container, container.get_orchestrator()


def test_complete_evolution_workflow():
    """Diagram -> V1 -> edited diagram -> V2, the way a caller drives it."""
    # Arrange
    container, orchestrator = _orchestrator()
    diagram = TestDataFactory.create_shop_diagram()

    # Act: bootstrap
    first = orchestrator.process(MigrationRequest(logical_model_json=diagram))

    # Assert
    assert first.success, first.errors
    assert first.migration.file_name == "V1__initial_schema.sql"
    assert first.change_set.new_tables == ["customer", "order", "order_line"]
    assert "ON DELETE CASCADE" in first.migration.sql

    # Act: add a Product class linked to OrderLine, drop the phone attribute
    diagram["elements"]["c4"] = {
        "id": "c4",
        "name": "Product",
        "kind": "class",
        "attributes": ["id: Long {id}", "sku: String {required, unique}"],
    }
    diagram["relationships"]["r3"] = {
        "id": "r3",
        "kind": "association",
        "sourceId": "c4",
        "targetId": "c3",
        "sourceMultiplicity": "0..1",
        "targetMultiplicity": "*",
    }
    diagram["elements"]["c1"]["attributes"].remove("+phone: String")

    previous = container.get_physical_repository().to_dict(first.physical_model)
    second = orchestrator.process(MigrationRequest(
        logical_model_json=diagram,
        previous_physical_model=previous,
        existing_migrations=[first.migration.file_name],
    ))

    # Assert
    assert second.success, second.errors
    assert second.migration.version == 2
    assert second.migration.file_name == "V2__add_1_tables_and_modify_2_tables.sql"
    sql = second.migration.sql
    assert sql.index("CREATE TABLE IF NOT EXISTS product") < sql.index("ADD COLUMN IF NOT EXISTS product_id")
    assert "CONSTRAINT uq_product_sku UNIQUE (sku)" in sql
    assert "-- ALTER TABLE customer DROP COLUMN IF EXISTS phone;" in sql
    assert second.plan.risk_level == "medium"


def test_bootstrap_twice_is_identical():
    """Same diagram, no previous model: two independent, identical V1 migrations."""
    _, orchestrator = _orchestrator()
    diagram = TestDataFactory.create_shop_diagram()

    first = orchestrator.process(MigrationRequest(logical_model_json=diagram))
    second = orchestrator.process(MigrationRequest(logical_model_json=diagram))

    assert first.migration.version == second.migration.version == 1
    assert first.migration.sql == second.migration.sql


def test_legacy_diagram_with_previous_diagram():
    _, orchestrator = _orchestrator("mysql")
    previous = TestDataFactory.create_legacy_diagram()
    current = TestDataFactory.create_legacy_diagram()
    current["elements"][1]["attributes"].append("title: String {required}")

    response = orchestrator.process(MigrationRequest(
        logical_model_json=current,
        previous_logical_model_json=previous,
        existing_migrations=["V1__initial_schema.sql", "V4__manual_fix.sql"],
    ))

    assert response.success, response.errors
    assert response.migration.file_name == "V5__modify_1_tables.sql"
    assert "ALTER TABLE book ADD COLUMN title VARCHAR(255) NOT NULL;" in response.migration.sql
    assert any("without DEFAULT" in w for w in response.warnings)


def test_invalid_diagram_produces_no_migration():
    _, orchestrator = _orchestrator()
    diagram = {"elements": {"c": {"name": "Orphan", "attributes": ["label: String"]}}, "relationships": {}}

    response = orchestrator.process(MigrationRequest(logical_model_json=diagram))

    assert not response.success
    assert response.migration is None
    assert any("Orphan" in e for e in response.errors)


def test_request_without_previous_schema_is_bootstrap():
    diagram = TestDataFactory.create_shop_diagram()

    assert MigrationRequest(logical_model_json=diagram).is_bootstrap
    assert not MigrationRequest(logical_model_json=diagram, previous_logical_model_json=diagram).is_bootstrap

    # Existing files do not turn a bootstrap request into an incremental one
    _, orchestrator = _orchestrator()
    response = orchestrator.process(MigrationRequest(
        logical_model_json=diagram,
        existing_migrations=["V1__initial_schema.sql"],
    ))
    assert response.migration.file_name == "V1__initial_schema.sql"
    assert any("migration(s) exist" in w for w in response.warnings)
