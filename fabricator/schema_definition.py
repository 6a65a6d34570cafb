from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AttributeDefinition:
    name: str
    external_id: str
    data_type: str = "String"
    unique_id: bool = False
    # optional stable reference used by relationships instead of dotted notation
    alias: str = ""
    description: str = ""
    indexed: bool = False
    is_list: bool = False


@dataclass(frozen=True)
class EntityDefinition:
    entity_id: str
    external_id: str
    display_name: str
    description: str = ""
    attributes: list[AttributeDefinition] = field(default_factory=list)


@dataclass(frozen=True)
class RelationshipPathStep:
    relationship: str
    direction: str = "Direct"


@dataclass(frozen=True)
class RelationshipDefinition:
    relationship_id: str
    name: str
    display_name: str = ""
    # alias or "EntityExternalId.AttributeExternalId"
    from_attribute: str = ""
    to_attribute: str = ""
    # multi-hop relationships are carried but never modeled
    path: list[RelationshipPathStep] = field(default_factory=list)

    @property
    def is_path_based(self) -> bool:
        return len(self.path) > 0


@dataclass(frozen=True)
class SchemaDefinition:
    display_name: str
    description: str = ""
    entities: list[EntityDefinition] = field(default_factory=list)
    relationships: list[RelationshipDefinition] = field(default_factory=list)


def attribute_references(entity: EntityDefinition) -> list[tuple[str, AttributeDefinition]]:
    """
    Every reference token a relationship may use for the entity's attributes,
    alias first, then "EntityExternalId.AttributeExternalId".
    """
    refs: list[tuple[str, AttributeDefinition]] = []
    for attr in entity.attributes:
        if attr.alias:
            refs.append((attr.alias, attr))
        refs.append((f"{entity.external_id}.{attr.external_id}", attr))
    return refs


def direct_relationships(definition: SchemaDefinition) -> list[RelationshipDefinition]:
    return [r for r in definition.relationships if not r.is_path_based]
