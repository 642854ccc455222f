"""CLI commands using Click framework."""

import click
import json
import logging

from src.application.dtos.evolution_dto import MigrationRequest
from src.infrastructure.di_container import DIContainer

DIALECTS = ['postgresql', 'mysql']


def _load_json(path):
    with open(path, 'r') as f:
        return json.load(f)


def _echo_messages(errors, warnings):
    for warning in warnings:
        click.echo(f"   ⚠️  {warning}")
    for error in errors:
        click.echo(f"   ❌ {error}", err=True)


@click.group()
@click.version_option(version="1.0.0")
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """Schema Migrator - class diagrams to relational schemas and versioned migrations."""
    container = DIContainer()
    level = logging.DEBUG if verbose else getattr(logging, container.log_level, logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(message)s')
    ctx.obj = container


@cli.command()
@click.argument('diagram', type=click.Path(exists=True))
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Write the physical model JSON to this file')
@click.pass_obj
def transform(container, diagram, output):
    """Transform a class diagram into a physical model."""

    click.echo("🚀 Logical to physical transformation")
    click.echo("=" * 50)

    result = container.get_transform_use_case().execute(_load_json(diagram))
    model = result.physical_model

    click.echo(f"\n📊 Tables: {len(model.tables)}")
    for table in model.tables.values():
        click.echo(f"   - {table.name} ({len(table.columns)} columns, PK: {', '.join(table.primary_keys) or '-'})")
        for fk in table.foreign_keys:
            on_delete = f" ON DELETE {fk.on_delete}" if fk.on_delete else ""
            click.echo(
                f"       FK {', '.join(fk.columns)} -> {fk.referenced_table}"
                f"({', '.join(fk.referenced_columns)}){on_delete}"
            )

    _echo_messages(result.errors, result.warnings)

    if output:
        container.get_physical_repository().save(model, output)
        click.echo(f"\n💾 Physical model saved to: {output}")

    if not result.success:
        click.echo("\n❌ Transformation failed", err=True)
        raise click.Abort()

    click.echo("\n✅ Transformation complete!")


@cli.command()
@click.argument('previous', type=click.Path(exists=True))
@click.argument('current', type=click.Path(exists=True))
@click.option('--physical', is_flag=True,
              help='Inputs are physical model JSON files instead of diagrams')
@click.pass_obj
def diff(container, previous, current, physical):
    """Show structural differences between two schema versions."""

    if physical:
        repository = container.get_physical_repository()
        previous_model = repository.load(previous)
        current_model = repository.load(current)
    else:
        use_case = container.get_transform_use_case()
        models = []
        for path in (previous, current):
            result = use_case.execute(_load_json(path))
            if not result.success:
                _echo_messages(result.errors, [])
                click.echo(f"\n❌ Cannot transform {path}", err=True)
                raise click.Abort()
            models.append(result.physical_model)
        previous_model, current_model = models

    diff_engine = container.get_diff_engine()
    changes = diff_engine.compute_diff(previous_model, current_model)

    if not changes.has_changes:
        click.echo("✅ No changes")
        return

    for table in changes.new_tables:
        click.echo(f"   + {table}")
    for table in changes.deleted_tables:
        click.echo(f"   - {table}")
    for table_change in changes.modified_tables:
        click.echo(f"   ~ {table_change.table}")
        for column in table_change.new_columns:
            click.echo(f"       + {column}")
        for column in table_change.deleted_columns:
            click.echo(f"       - {column}")
        for column in table_change.modified_columns:
            click.echo(f"       ~ {column}")

    click.echo(json.dumps(changes.to_dict(), indent=2))


@cli.command()
@click.argument('diagram', type=click.Path(exists=True))
@click.option('--previous-model', type=click.Path(exists=True), default=None,
              help='Physical model JSON of the schema the last migration produced')
@click.option('--previous-diagram', type=click.Path(exists=True), default=None,
              help='Previous class diagram (alternative to --previous-model)')
@click.option('--migrations-dir', '-d', type=click.Path(), default=None,
              help='Migration directory (default: $MIGRATIONS_DIR or db/migration)')
@click.option('--dialect', type=click.Choice(DIALECTS), default=None,
              help='Target database dialect (default: $SCHEMA_DIALECT or postgresql)')
@click.option('--model-out', type=click.Path(), default=None,
              help='Save the new physical model for the next run')
@click.option('--dry-run/--write', default=False,
              help='Print the migration instead of writing it')
@click.pass_obj
def migrate(container, diagram, previous_model, previous_diagram, migrations_dir, dialect, model_out, dry_run):
    """Generate the next versioned migration for a class diagram."""

    click.echo("🚀 Schema Migrator")
    click.echo("=" * 50)

    container.configure(dialect=dialect, migrations_dir=migrations_dir)
    migrations = container.get_migration_repository()

    request = MigrationRequest(
        logical_model_json=_load_json(diagram),
        previous_physical_model=_load_json(previous_model) if previous_model else None,
        previous_logical_model_json=_load_json(previous_diagram) if previous_diagram else None,
        existing_migrations=migrations.list_file_names(),
    )

    response = container.get_orchestrator().process(request)
    _echo_messages(response.errors, response.warnings)

    if not response.success:
        click.echo("\n❌ Migration generation failed", err=True)
        raise click.Abort()

    if response.migration is None:
        click.echo("\n✅ Schema unchanged - no migration needed")
        return

    migration = response.migration
    click.echo(f"\n📊 Migration {migration.file_name}")
    click.echo(f"   Statements: {len(migration.statements)}")
    click.echo(f"   Risk Level: {response.plan.risk_level}")
    click.echo(f"   Backward Compatible: {response.plan.backward_compatible}")

    if dry_run:
        click.echo(f"\n💾 Generated SQL:\n")
        click.echo(migration.sql)
    else:
        try:
            path = migrations.save(migration)
        except FileExistsError as e:
            click.echo(f"\n❌ Error: {str(e)}", err=True)
            raise click.Abort()
        click.echo(f"\n💾 Migration written to: {path}")

    if model_out:
        container.get_physical_repository().save(response.physical_model, model_out)
        click.echo(f"💾 Physical model saved to: {model_out}")

    click.echo("\n✅ Migration complete!")


@cli.command()
@click.option('--port', '-p', default=8000, help='Port to run API server')
@click.option('--host', '-h', default='0.0.0.0', help='Host to bind')
def serve(port, host):
    """Start the REST API server."""

    click.echo(f"🌐 Starting API server on {host}:{port}")

    from src.presentation.api.app import create_app
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


if __name__ == '__main__':
    cli()
