from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fabricator.model_entity import Entity


class Attribute:
    """
    One column of an entity.

    Only the owning Entity (parent link) and Entity.add_relationship (FK link)
    mutate an attribute; neither mutator validates its input.
    """

    def __init__(
        self,
        name: str,
        external_id: str,
        *,
        alias: str = "",
        data_type: str = "String",
        is_unique: bool = False,
        description: str = "",
    ) -> None:
        self._name = name
        self._external_id = external_id
        self._alias = alias
        self._data_type = data_type
        self._is_unique = is_unique
        self._description = description
        self._is_relationship = False
        self._related_entity_id = ""
        self._related_attribute_name = ""
        self._parent_entity: Entity | None = None

    def __repr__(self) -> str:
        return f"Attribute(name={self._name!r}, external_id={self._external_id!r}, unique={self._is_unique})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def external_id(self) -> str:
        return self._external_id

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def data_type(self) -> str:
        return self._data_type

    @property
    def description(self) -> str:
        return self._description

    @property
    def is_unique(self) -> bool:
        return self._is_unique

    @property
    def is_relationship(self) -> bool:
        return self._is_relationship

    @property
    def related_entity_id(self) -> str:
        return self._related_entity_id

    @property
    def related_attribute_name(self) -> str:
        return self._related_attribute_name

    @property
    def parent_entity(self) -> Entity | None:
        return self._parent_entity

    def mark_as_relationship(self, related_entity_id: str, related_attribute_name: str) -> None:
        self._is_relationship = True
        self._related_entity_id = related_entity_id
        self._related_attribute_name = related_attribute_name

    def set_parent_entity(self, entity: Entity) -> None:
        self._parent_entity = entity
