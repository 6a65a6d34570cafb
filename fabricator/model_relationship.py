from __future__ import annotations

import math
from typing import TYPE_CHECKING

from fabricator.errors import SchemaValidationError, TargetSelectionError
from fabricator.model_attribute import Attribute

if TYPE_CHECKING:
    from fabricator.model_entity import Entity

ONE_TO_ONE = "1:1"
ONE_TO_MANY = "1:N"
MANY_TO_ONE = "N:1"

# Power-law exponent: base plus a small per-relationship offset so relationships
# sharing a target do not cluster on identical rows.
BASE_ALPHA = 1.3
ALPHA_STEP = 0.05


class Relationship:
    """
    A link between one attribute of the source entity and one of the target entity.

    Cardinality is fixed at construction from attribute uniqueness:
        source unique + target unique -> 1:1
        source unique + target plain  -> 1:N
        source plain  + target unique -> N:1
    Two non-unique endpoints are rejected.
    """

    def __init__(
        self,
        relationship_id: str,
        name: str,
        source_entity: Entity | None,
        target_entity: Entity | None,
        source_attribute_name: str,
        target_attribute_name: str,
    ) -> None:
        location = f"Relationship '{relationship_id or '<unknown>'}'"
        if not relationship_id:
            raise SchemaValidationError(location, "relationship ID cannot be empty", "set a relationship id")
        if not name:
            raise SchemaValidationError(
                location,
                "relationship name cannot be empty",
                "set a relationship name",
                relationship_id=relationship_id,
            )
        if source_entity is None:
            raise SchemaValidationError(
                location, "source entity cannot be None", "pass an existing source entity",
                relationship_id=relationship_id,
            )
        if target_entity is None:
            raise SchemaValidationError(
                location, "target entity cannot be None", "pass an existing target entity",
                relationship_id=relationship_id,
            )

        source_attr = source_entity.get_attribute(source_attribute_name)
        if source_attr is None:
            raise SchemaValidationError(
                location,
                f"source attribute '{source_attribute_name}' not found in entity '{source_entity.name}'",
                "use an attribute name declared on the source entity",
                relationship_id=relationship_id,
                attribute=source_attribute_name,
            )
        target_attr = target_entity.get_attribute(target_attribute_name)
        if target_attr is None:
            raise SchemaValidationError(
                location,
                f"target attribute '{target_attribute_name}' not found in entity '{target_entity.name}'",
                "use an attribute name declared on the target entity",
                relationship_id=relationship_id,
                attribute=target_attribute_name,
            )
        if not source_attr.is_unique and not target_attr.is_unique:
            raise SchemaValidationError(
                location,
                "at least one attribute in a relationship must be unique "
                f"('{source_entity.id}.{source_attr.name}' and '{target_entity.id}.{target_attr.name}' are not)",
                "point one side of the relationship at the related entity's unique id",
                relationship_id=relationship_id,
            )

        self._id = relationship_id
        self._name = name
        self._source_entity = source_entity
        self._target_entity = target_entity
        self._source_attr = source_attr
        self._target_attr = target_attr
        self._cardinality = _determine_cardinality(source_attr, target_attr)

    def __repr__(self) -> str:
        return (
            f"Relationship(id={self._id!r}, {self._source_entity.id}.{self._source_attr.name} "
            f"-> {self._target_entity.id}.{self._target_attr.name}, {self._cardinality})"
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def source_entity(self) -> Entity:
        return self._source_entity

    @property
    def target_entity(self) -> Entity:
        return self._target_entity

    @property
    def source_attribute(self) -> Attribute:
        return self._source_attr

    @property
    def target_attribute(self) -> Attribute:
        return self._target_attr

    @property
    def cardinality(self) -> str:
        return self._cardinality

    def is_one_to_one(self) -> bool:
        return self._cardinality == ONE_TO_ONE

    def is_one_to_many(self) -> bool:
        return self._cardinality == ONE_TO_MANY

    def is_many_to_one(self) -> bool:
        return self._cardinality == MANY_TO_ONE

    # The foreign key lives on the target only for 1:N.
    @property
    def foreign_key_entity(self) -> Entity:
        return self._target_entity if self.is_one_to_many() else self._source_entity

    @property
    def foreign_key_attribute(self) -> Attribute:
        return self._target_attr if self.is_one_to_many() else self._source_attr

    @property
    def referenced_entity(self) -> Entity:
        return self._source_entity if self.is_one_to_many() else self._target_entity

    @property
    def referenced_attribute(self) -> Attribute:
        return self._source_attr if self.is_one_to_many() else self._target_attr

    @property
    def alpha(self) -> float:
        return BASE_ALPHA + (len(self._id) % 10) * ALPHA_STEP

    # ------------------------------------------------------------------
    # Target selection
    # ------------------------------------------------------------------
    def get_target_value_for_source_row(self, source_row_index: int, auto_cardinality_enabled: bool) -> str:
        """
        Return the target attribute value that source row `source_row_index` should reference.

        Round robin (index mod target rows) unless auto cardinality is enabled for a
        1:N / N:1 relationship, which uses the power-law mapping instead.
        """
        return self._pick_value(
            row_index=source_row_index,
            referencing=self._source_entity,
            referenced=self._target_entity,
            referenced_attr=self._target_attr,
            auto_cardinality_enabled=auto_cardinality_enabled,
        )

    def get_source_value_for_target_row(self, target_row_index: int, auto_cardinality_enabled: bool) -> str:
        """Mirror of get_target_value_for_source_row, for a foreign key held by the target (1:N)."""
        return self._pick_value(
            row_index=target_row_index,
            referencing=self._target_entity,
            referenced=self._source_entity,
            referenced_attr=self._source_attr,
            auto_cardinality_enabled=auto_cardinality_enabled,
        )

    def _pick_value(
        self,
        *,
        row_index: int,
        referencing: Entity,
        referenced: Entity,
        referenced_attr: Attribute,
        auto_cardinality_enabled: bool,
    ) -> str:
        location = f"Relationship '{self._id}'"
        if referenced.row_count == 0:
            raise TargetSelectionError(
                location,
                f"entity '{referenced.name}' has no rows to reference",
                f"generate rows for '{referenced.id}' before linking (follow the topological order)",
                relationship_id=self._id,
                entity_id=referenced.id,
            )
        if referencing.row_count == 0:
            raise TargetSelectionError(
                location,
                f"entity '{referencing.name}' has no rows to link",
                f"generate rows for '{referencing.id}' before requesting foreign key values",
                relationship_id=self._id,
                entity_id=referencing.id,
            )
        if row_index < 0:
            raise TargetSelectionError(
                location,
                f"row index {row_index} cannot be negative",
                "pass the zero-based position of the referencing row",
                relationship_id=self._id,
                row_index=row_index,
            )

        index = self.select_target_index(
            row_index,
            referencing.row_count,
            referenced.row_count,
            auto_cardinality_enabled,
        )
        row = referenced.get_row_by_index(index)
        if row is None:
            raise TargetSelectionError(
                location,
                f"unable to get row {index} of entity '{referenced.name}'",
                "avoid removing rows while foreign keys are being assigned",
                relationship_id=self._id,
                row_index=index,
            )
        return row.get_value(referenced_attr.name)

    def select_target_index(
        self,
        row_index: int,
        referencing_count: int,
        referenced_count: int,
        auto_cardinality_enabled: bool,
    ) -> int:
        if not auto_cardinality_enabled or self.is_one_to_one():
            return row_index % referenced_count
        return self.power_law_index(row_index, referencing_count, referenced_count)

    def power_law_index(self, row_index: int, referencing_count: int, referenced_count: int) -> int:
        """
        Deterministic skew toward low indices: floor((i / (n-1)) ** alpha * (T-1)).
        """
        if referenced_count <= 1 or referencing_count <= 1:
            return 0
        normalized = min(row_index / (referencing_count - 1), 1.0)
        index = int(math.pow(normalized, self.alpha) * (referenced_count - 1))
        return min(index, referenced_count - 1)


def _determine_cardinality(source_attr: Attribute, target_attr: Attribute) -> str:
    if source_attr.is_unique and target_attr.is_unique:
        return ONE_TO_ONE
    if source_attr.is_unique:
        return ONE_TO_MANY
    return MANY_TO_ONE
