from __future__ import annotations

import logging

from fabricator.dependency_graph import build_entity_dependency_graph, topological_order
from fabricator.errors import SchemaValidationError
from fabricator.model_attribute import Attribute
from fabricator.model_entity import Entity
from fabricator.model_relationship import Relationship
from fabricator.schema_definition import (
    EntityDefinition,
    RelationshipDefinition,
    SchemaDefinition,
    attribute_references,
)

logger = logging.getLogger("model_graph")

_MAX_LISTED_ENTITIES = 5
_MAX_LISTED_REFERENCES = 3


class Graph:
    """
    Entities and relationships built from a SchemaDefinition.

    Construction is all-or-nothing and runs in four steps:
      1. allocate empty indexes
      2. reject a missing or entity-less definition
      3. create entities (indexing attribute references), then relationships
      4. build the derived lists used by callers
    The topology is fixed afterwards; only row data inside entities changes.
    """

    def __init__(self, definition: SchemaDefinition | None) -> None:
        self._definition = definition
        self._entities: dict[str, Entity] = {}
        self._entities_list: list[Entity] = []
        self._relationships: dict[str, Relationship] = {}
        self._relationships_list: list[Relationship] = []
        self._entity_relationships: dict[str, list[Relationship]] = {}
        self._attribute_to_entity: dict[str, Entity] = {}

        if definition is None:
            raise SchemaValidationError(
                "Schema definition",
                "definition cannot be None",
                "pass a parsed SchemaDefinition",
            )
        if not definition.entities:
            raise SchemaValidationError(
                f"Schema '{definition.display_name}'",
                "definition must contain at least one entity",
                "declare one or more entities",
            )

        self._create_entities(definition.entities)
        self._create_relationships(definition.relationships)
        self._build_indexes()

        logger.info(
            "Built graph '%s': entities=%d, relationships=%d",
            definition.display_name,
            len(self._entities),
            len(self._relationships),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def definition(self) -> SchemaDefinition:
        return self._definition

    def get_entity(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def get_all_entities(self) -> dict[str, Entity]:
        return dict(self._entities)

    def get_entities_list(self) -> list[Entity]:
        return list(self._entities_list)

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        return self._relationships.get(relationship_id)

    def get_all_relationships(self) -> list[Relationship]:
        return list(self._relationships_list)

    def get_relationships_for_entity(self, entity_id: str) -> list[Relationship]:
        return list(self._entity_relationships.get(entity_id, []))

    def get_topological_order(self) -> list[str]:
        """Entity ids ordered so every referenced entity precedes the entities referencing it."""
        return topological_order(build_entity_dependency_graph(self._definition))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _create_entities(self, entity_defs: list[EntityDefinition]) -> None:
        for ed in entity_defs:
            if ed.entity_id in self._entities:
                raise SchemaValidationError(
                    f"Entity '{ed.entity_id}'",
                    "duplicate entity id",
                    "give every entity in the schema a distinct id",
                    entity_id=ed.entity_id,
                )

            attributes = [
                Attribute(
                    a.name,
                    a.external_id,
                    alias=a.alias,
                    data_type=a.data_type,
                    is_unique=a.unique_id,
                    description=a.description,
                )
                for a in ed.attributes
            ]
            entity = Entity(ed.entity_id, ed.external_id, ed.display_name, ed.description, attributes, self)
            self._entities[ed.entity_id] = entity

            for ref, _attr in attribute_references(ed):
                owner = self._attribute_to_entity.get(ref)
                if owner is not None and owner is not entity:
                    raise SchemaValidationError(
                        f"Entity '{ed.entity_id}'",
                        f"attribute reference '{ref}' is already used by entity '{owner.id}'",
                        "make attribute aliases and entity external ids unique across the schema",
                        entity_id=ed.entity_id,
                        reference=ref,
                    )
                self._attribute_to_entity[ref] = entity

    def _create_relationships(self, relationship_defs: list[RelationshipDefinition]) -> None:
        seen: set[str] = set()
        for rd in relationship_defs:
            location = f"Relationship '{rd.relationship_id}'"
            if rd.relationship_id in seen:
                raise SchemaValidationError(
                    location,
                    "duplicate relationship id",
                    "give every relationship in the schema a distinct id",
                    relationship_id=rd.relationship_id,
                )
            seen.add(rd.relationship_id)

            if rd.is_path_based:
                logger.debug("Skipping path-based relationship '%s'", rd.relationship_id)
                continue

            source = self._attribute_to_entity.get(rd.from_attribute)
            if source is None:
                raise SchemaValidationError(
                    location,
                    f"source entity not found (attribute: {rd.from_attribute})\n"
                    + self._available_references_message(rd.from_attribute),
                    "reference an attribute alias or EntityExternalId.AttributeExternalId",
                    relationship_id=rd.relationship_id,
                    reference=rd.from_attribute,
                )
            target = self._attribute_to_entity.get(rd.to_attribute)
            if target is None:
                raise SchemaValidationError(
                    location,
                    f"target entity not found (attribute: {rd.to_attribute})\n"
                    + self._available_references_message(rd.to_attribute),
                    "reference an attribute alias or EntityExternalId.AttributeExternalId",
                    relationship_id=rd.relationship_id,
                    reference=rd.to_attribute,
                )

            relationship = source.add_relationship(
                rd.relationship_id,
                rd.name,
                target,
                rd.from_attribute,
                rd.to_attribute,
            )
            self._relationships[rd.relationship_id] = relationship

    def _available_references_message(self, attr_ref: str) -> str:
        by_entity: dict[str, list[str]] = {}
        for ref in self._attribute_to_entity:
            if "." in ref:
                prefix = ref.rsplit(".", 1)[0]
                by_entity.setdefault(prefix, []).append(ref)

        lines = ["    Available attribute references:"]
        for count, (prefix, refs) in enumerate(sorted(by_entity.items())):
            if count >= _MAX_LISTED_ENTITIES:
                lines.append(f"    ... and {len(by_entity) - _MAX_LISTED_ENTITIES} more entities")
                break
            lines.append(f"    Entity: {prefix}")
            for i, ref in enumerate(sorted(refs)):
                if i >= _MAX_LISTED_REFERENCES:
                    lines.append(f"      ... and {len(refs) - _MAX_LISTED_REFERENCES} more attributes")
                    break
                lines.append(f"      - {ref}")

        if "." in attr_ref:
            prefix = attr_ref.rsplit(".", 1)[0]
            external_ids = {e.external_id for e in self._definition.entities}
            display_names = {e.display_name for e in self._definition.entities}
            if prefix in display_names and prefix not in external_ids:
                lines.append(f"    Note: '{prefix}' is an entity display name; references use the entity external id")

        return "\n".join(lines)

    def _build_indexes(self) -> None:
        self._entities_list = [self._entities[ed.entity_id] for ed in self._definition.entities]
        self._relationships_list = list(self._relationships.values())
        self._entity_relationships = {e.id: [] for e in self._entities_list}

        for rel in self._relationships_list:
            source_id = rel.source_entity.id
            target_id = rel.target_entity.id
            self._entity_relationships[source_id].append(rel)
            if target_id != source_id:
                self._entity_relationships[target_id].append(rel)
