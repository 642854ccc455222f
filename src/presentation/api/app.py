"""FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from src.application.dtos.evolution_dto import MigrationRequest
from src.infrastructure.di_container import DIContainer


# Pydantic models for API
class DiagramInput(BaseModel):
    """Input model for a class diagram."""
    diagram: Dict[str, Any] = Field(..., description="Serialized diagram: elements and relationships")


class MigrationInput(BaseModel):
    """Input model for migration generation."""
    diagram: Dict[str, Any] = Field(..., description="Current class diagram")
    previous_model: Optional[Dict[str, Any]] = Field(None, description="Physical model of the last migration")
    previous_diagram: Optional[Dict[str, Any]] = Field(None, description="Previous class diagram")
    existing_migrations: List[str] = Field(default_factory=list, description="Existing migration file names")
    dialect: str = Field("postgresql", pattern="^(postgresql|mysql)$")


class TransformationOutput(BaseModel):
    """Output model for a transformation."""
    success: bool
    physical_model: Dict[str, Any]
    errors: List[str]
    warnings: List[str]
    steps: List[str]


class MigrationOutput(BaseModel):
    """Output model for migration generation."""
    success: bool
    physical_model: Optional[Dict[str, Any]] = None
    changes: Optional[Dict[str, Any]] = None
    migration: Optional[Dict[str, Any]] = None
    risk_level: Optional[str] = None
    errors: List[str]
    warnings: List[str]


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title="Schema Migrator",
        description="Class diagrams to relational schemas and versioned migrations",
        version="1.0.0"
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "name": "Schema Migrator",
            "version": "1.0.0",
            "endpoints": {
                "transform": "/api/v1/transform",
                "migrations": "/api/v1/migrations",
            }
        }

    @app.post("/api/v1/transform", response_model=TransformationOutput)
    def transform(input_data: DiagramInput):
        """
        Transform a class diagram into a physical model.
        """
        container = DIContainer()
        result = container.get_transform_use_case().execute(input_data.diagram)

        return TransformationOutput(
            success=result.success,
            physical_model=container.get_physical_repository().to_dict(result.physical_model),
            errors=result.errors,
            warnings=result.warnings,
            steps=result.steps,
        )

    @app.post("/api/v1/migrations", response_model=MigrationOutput)
    def generate_migration(input_data: MigrationInput):
        """
        Generate the next migration. Nothing is written or executed.
        """
        container = DIContainer()
        container.configure(dialect=input_data.dialect)

        request = MigrationRequest(
            logical_model_json=input_data.diagram,
            previous_physical_model=input_data.previous_model,
            previous_logical_model_json=input_data.previous_diagram,
            existing_migrations=input_data.existing_migrations,
        )
        response = container.get_orchestrator().process(request)

        physical_model = None
        if response.physical_model is not None:
            physical_model = container.get_physical_repository().to_dict(response.physical_model)

        return MigrationOutput(
            success=response.success,
            physical_model=physical_model,
            changes=response.change_set.to_dict() if response.change_set else None,
            migration=response.migration.to_record() if response.migration else None,
            risk_level=response.plan.risk_level if response.plan else None,
            errors=response.errors,
            warnings=response.warnings,
        )

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
