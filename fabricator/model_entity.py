from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fabricator.errors import RowValidationError, SchemaValidationError
from fabricator.model_attribute import Attribute
from fabricator.model_relationship import Relationship
from fabricator.model_row import Row

if TYPE_CHECKING:
    from fabricator.model_graph import Graph

logger = logging.getLogger("model_entity")

RowVisitor = Callable[[Row, int], None]


@dataclass(frozen=True)
class CSVData:
    external_id: str
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    entity_name: str = ""
    description: str = ""


class Entity:
    """
    An entity owns its attributes and rows and enforces row-level invariants:
      - the primary key (the single unique attribute) is present and unique
      - populated relationship attributes reference an existing related row

    Foreign keys are checked when a row is inserted, so related entities must be
    populated first (see Graph.get_topological_order). validate_all_foreign_keys()
    re-checks every row later, e.g. after related rows were removed or rewritten.
    """

    def __init__(
        self,
        entity_id: str,
        external_id: str,
        name: str,
        description: str,
        attributes: list[Attribute],
        graph: Graph | None = None,
    ) -> None:
        self._id = entity_id
        self._external_id = external_id
        self._name = name
        self._description = description
        self._graph = graph
        self._attributes: dict[str, Attribute] = {}
        self._attributes_by_ref: dict[str, Attribute] = {}
        self._attr_list: list[Attribute] = []
        self._rows: list[Row] = []
        self._pk_values: set[str] = set()

        self._validate_identity()
        self._primary_key = self._register_attributes(attributes)

    def __repr__(self) -> str:
        return f"Entity(id={self._id!r}, external_id={self._external_id!r}, rows={len(self._rows)})"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _error_location(self) -> str:
        return f"Entity '{self._id or '<unknown>'}'"

    def _validate_identity(self) -> None:
        for label, value in (("id", self._id), ("external id", self._external_id), ("name", self._name)):
            if not isinstance(value, str) or value.strip() == "":
                raise SchemaValidationError(
                    self._error_location(),
                    f"entity {label} cannot be empty",
                    f"set a non-empty entity {label} in the schema definition",
                    entity_id=self._id,
                )

    def _register_attributes(self, attributes: list[Attribute]) -> Attribute:
        location = self._error_location()
        for attr in attributes:
            if attr is None:
                raise SchemaValidationError(
                    location,
                    "attribute cannot be None",
                    "remove empty entries from the entity attribute list",
                    entity_id=self._id,
                )
            if attr.name in self._attributes:
                raise SchemaValidationError(
                    location,
                    f"duplicate attribute name '{attr.name}'",
                    "give every attribute of an entity a distinct name",
                    entity_id=self._id,
                    attribute=attr.name,
                )
            for ref in (attr.external_id, attr.alias):
                if not ref:
                    continue
                existing = self._attributes_by_ref.get(ref)
                if existing is not None and existing is not attr:
                    raise SchemaValidationError(
                        location,
                        f"attribute reference '{ref}' is used by both '{existing.name}' and '{attr.name}'",
                        "make attribute external ids and aliases unique within the entity",
                        entity_id=self._id,
                        reference=ref,
                    )
                self._attributes_by_ref[ref] = attr

            attr.set_parent_entity(self)
            self._attributes[attr.name] = attr
            self._attr_list.append(attr)

        unique_attrs = [a for a in self._attr_list if a.is_unique]
        if len(unique_attrs) != 1:
            raise SchemaValidationError(
                location,
                f"entity must have exactly one unique attribute, found {len(unique_attrs)}",
                "mark exactly one attribute as the unique id (primary key)",
                entity_id=self._id,
                unique_attributes=[a.name for a in unique_attrs],
            )
        return unique_attrs[0]

    # ------------------------------------------------------------------
    # Identity and attributes
    # ------------------------------------------------------------------
    @property
    def id(self) -> str:
        return self._id

    @property
    def external_id(self) -> str:
        return self._external_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def graph(self) -> Graph | None:
        return self._graph

    @property
    def primary_key(self) -> Attribute:
        return self._primary_key

    def get_attributes(self) -> list[Attribute]:
        return list(self._attr_list)

    def get_attribute(self, name: str) -> Attribute | None:
        return self._attributes.get(name)

    def get_attribute_by_external_id(self, external_id: str) -> Attribute | None:
        # "EntityExternalId.attr" is accepted as well as the bare "attr"
        if external_id.find(".") > 0:
            prefix = f"{self._external_id}."
            if external_id.startswith(prefix):
                external_id = external_id[len(prefix):]
        return self._attributes_by_ref.get(external_id)

    def find_attribute_by_reference(self, reference: str) -> Attribute | None:
        """Resolve a relationship endpoint: alias, then dotted suffix, then bare external id."""
        for attr in self._attr_list:
            if attr.alias and attr.alias == reference:
                return attr
        if "." in reference:
            return self.get_attribute_by_external_id(reference.rsplit(".", 1)[-1])
        return self.get_attribute_by_external_id(reference)

    def get_non_unique_attributes(self) -> list[Attribute]:
        return [a for a in self._attr_list if not a.is_unique]

    def get_relationship_attributes(self) -> list[Attribute]:
        return [a for a in self._attr_list if a.is_relationship]

    def get_non_relationship_attributes(self) -> list[Attribute]:
        return [a for a in self._attr_list if not a.is_relationship]

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    @property
    def row_count(self) -> int:
        return len(self._rows)

    def get_rows(self) -> list[Row]:
        return list(self._rows)

    def get_row_by_index(self, index: int) -> Row | None:
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    def has_primary_key_value(self, value: str) -> bool:
        return value in self._pk_values

    def iter_values(self, attribute_name: str) -> Iterator[str]:
        for row in self._rows:
            yield row.get_value(attribute_name)

    def add_row(self, row: Row) -> None:
        self._validate_row(row, location=self._error_location())
        self._rows.append(row)
        self._pk_values.add(row.get_value(self._primary_key.name))

    def remove_row(self, index: int) -> Row:
        if not 0 <= index < len(self._rows):
            raise RowValidationError(
                self._error_location(),
                f"row index {index} is out of range (rows={len(self._rows)})",
                "pass an index between 0 and row_count - 1",
                entity_id=self._id,
                row_index=index,
            )
        row = self._rows.pop(index)
        self._pk_values.discard(row.get_value(self._primary_key.name))
        return row

    def for_each_row(self, visitor: RowVisitor) -> None:
        """
        Call visitor(row, index) for every row, in order, allowing in-place edits.

        Each visited row is taken out of the primary key index and re-validated like
        add_row() afterwards. The pass is not transactional: when the visitor raises,
        or the edited row fails validation, that row is dropped, iteration stops, and
        rows visited earlier keep their edits. Treat the entity as indeterminate then.
        """
        pk_name = self._primary_key.name
        index = 0
        while index < len(self._rows):
            row = self._rows[index]
            self._pk_values.discard(row.get_value(pk_name))
            location = f"Entity '{self._name}', row {index}"
            try:
                visitor(row, index)
            except Exception as exc:
                del self._rows[index]
                raise RowValidationError(
                    location,
                    f"error processing row: {exc}",
                    "fix the row visitor; the entity rows are now partially processed",
                    entity_id=self._id,
                    row_index=index,
                ) from exc
            try:
                self._validate_row(row, location=location)
            except RowValidationError:
                del self._rows[index]
                raise
            self._pk_values.add(row.get_value(pk_name))
            index += 1

    def _validate_row(self, row: Row, *, location: str) -> None:
        pk_name = self._primary_key.name
        pk_value = row.get_value(pk_name)
        if pk_value == "":
            raise RowValidationError(
                location,
                f"missing required primary key value for attribute '{pk_name}'",
                "populate the primary key before adding the row",
                entity_id=self._id,
                attribute=pk_name,
            )
        if pk_value in self._pk_values:
            raise RowValidationError(
                location,
                f"duplicate value '{pk_value}' for unique attribute '{pk_name}'",
                "generate a primary key value not used by another row",
                entity_id=self._id,
                attribute=pk_name,
                value=pk_value,
            )

        # Foreign keys are optional until populated
        for attr in self.get_relationship_attributes():
            value = row.get_value(attr.name)
            if value == "":
                continue
            issue = self._foreign_key_issue(attr, value)
            if issue is not None:
                raise RowValidationError(
                    location,
                    issue,
                    "populate the related entity first and reference one of its existing values",
                    entity_id=self._id,
                    attribute=attr.name,
                    value=value,
                )

    def _foreign_key_issue(self, attr: Attribute, value: str) -> str | None:
        related_entity_id = attr.related_entity_id
        related_attr_name = attr.related_attribute_name
        if self._graph is None:
            return f"cannot validate foreign key '{attr.name}': entity is not attached to a graph"

        related = self._graph.get_entity(related_entity_id)
        if related is None:
            return f"related entity '{related_entity_id}' not found for foreign key validation"
        if related.get_attribute(related_attr_name) is None:
            return f"related attribute '{related_attr_name}' not found in entity '{related_entity_id}'"

        if related.primary_key.name == related_attr_name:
            found = related.has_primary_key_value(value)
        else:
            found = any(v == value for v in related.iter_values(related_attr_name))
        if not found:
            return (
                f"foreign key value '{value}' does not exist in related entity "
                f"'{related_entity_id}.{related_attr_name}'"
            )
        return None

    def validate_all_foreign_keys(self) -> list[str]:
        """Return every foreign key violation across all rows; never mutates."""
        violations: list[str] = []
        fk_attrs = self.get_relationship_attributes()
        for index, row in enumerate(self._rows):
            for attr in fk_attrs:
                value = row.get_value(attr.name)
                if value == "":
                    continue
                issue = self._foreign_key_issue(attr, value)
                if issue is not None:
                    violations.append(f"Entity '{self._id}', row {index}, attribute '{attr.name}': {issue}")
        if violations:
            logger.debug("Entity '%s' has %d foreign key violations", self._id, len(violations))
        return violations

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def to_csv(self) -> CSVData:
        headers = [a.name for a in self._attr_list]
        rows = [[row.get_value(h) for h in headers] for row in self._rows]
        return CSVData(
            external_id=self._external_id,
            headers=headers,
            rows=rows,
            entity_name=self._name,
            description=self._description,
        )

    # ------------------------------------------------------------------
    # Relationships (called by Graph during construction)
    # ------------------------------------------------------------------
    def add_relationship(
        self,
        relationship_id: str,
        relationship_name: str,
        target_entity: Entity,
        source_reference: str,
        target_reference: str,
    ) -> Relationship:
        """
        Link this entity (source) to target_entity and mark the foreign key side.

        The non-unique endpoint carries the foreign key (source for N:1, target for
        1:N). A 1:1 relationship has two unique endpoints; there the source attribute
        is marked, so the source's unique key must reference an existing target key.
        """
        location = f"Relationship '{relationship_id}'"
        source_attr = self.find_attribute_by_reference(source_reference)
        if source_attr is None:
            raise SchemaValidationError(
                location,
                f"source attribute '{source_reference}' not found in entity '{self._name}'",
                "reference an attribute alias or EntityExternalId.AttributeExternalId of the source entity",
                relationship_id=relationship_id,
                reference=source_reference,
            )
        target_attr = target_entity.find_attribute_by_reference(target_reference)
        if target_attr is None:
            raise SchemaValidationError(
                location,
                f"target attribute '{target_reference}' not found in entity '{target_entity.name}'",
                "reference an attribute alias or EntityExternalId.AttributeExternalId of the target entity",
                relationship_id=relationship_id,
                reference=target_reference,
            )

        relationship = Relationship(
            relationship_id,
            relationship_name,
            self,
            target_entity,
            source_attr.name,
            target_attr.name,
        )
        relationship.foreign_key_attribute.mark_as_relationship(
            relationship.referenced_entity.id,
            relationship.referenced_attribute.name,
        )
        logger.debug(
            "Relationship '%s' (%s): %s.%s -> %s.%s",
            relationship_id,
            relationship.cardinality,
            relationship.foreign_key_entity.id,
            relationship.foreign_key_attribute.name,
            relationship.referenced_entity.id,
            relationship.referenced_attribute.name,
        )
        return relationship
