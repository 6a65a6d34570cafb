"""Public fabricator API.

Build a Graph from a SchemaDefinition, then populate it with
generate_graph_rows() or drive Entity/Relationship directly.
"""

from __future__ import annotations

from fabricator.cardinality_warnings import CardinalityWarning, detect_cardinality_imbalances
from fabricator.config import AppConfig
from fabricator.errors import (
    CircularDependencyError,
    FabricatorError,
    GraphStructureError,
    RowValidationError,
    SchemaValidationError,
    TargetSelectionError,
)
from fabricator.generator_graph import GenerationResult, generate_graph_rows
from fabricator.graph_statistics import GraphStatistics, build_graph_statistics
from fabricator.model_attribute import Attribute
from fabricator.model_entity import CSVData, Entity
from fabricator.model_graph import Graph
from fabricator.model_relationship import Relationship
from fabricator.model_row import Row
from fabricator.schema_definition import (
    AttributeDefinition,
    EntityDefinition,
    RelationshipDefinition,
    RelationshipPathStep,
    SchemaDefinition,
)

__all__ = [
    "AppConfig",
    "Attribute",
    "AttributeDefinition",
    "CSVData",
    "CardinalityWarning",
    "CircularDependencyError",
    "Entity",
    "EntityDefinition",
    "FabricatorError",
    "GenerationResult",
    "Graph",
    "GraphStatistics",
    "GraphStructureError",
    "Relationship",
    "RelationshipDefinition",
    "RelationshipPathStep",
    "Row",
    "RowValidationError",
    "SchemaDefinition",
    "SchemaValidationError",
    "TargetSelectionError",
    "build_graph_statistics",
    "detect_cardinality_imbalances",
    "generate_graph_rows",
]
