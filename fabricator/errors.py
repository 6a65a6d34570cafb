"""Error taxonomy for graph construction, row mutation and FK target selection.

Every error renders as an actionable message ("<location>: <issue>. Fix: <hint>.")
and keeps the identifiers it was raised with in ``context`` so callers can
inspect them without parsing text.
"""

from __future__ import annotations

from fabricator.error_contract import format_actionable_error


class FabricatorError(ValueError):
    def __init__(self, location: str, issue: str, hint: str, **context: object) -> None:
        self.location = location
        self.issue = issue
        self.hint = hint
        self.context: dict[str, object] = dict(context)
        super().__init__(format_actionable_error(location, issue, hint))


class SchemaValidationError(FabricatorError):
    """The schema definition cannot be turned into a valid graph."""


class RowValidationError(FabricatorError):
    """A single row insertion or mutation violated an entity constraint."""


class GraphStructureError(FabricatorError):
    """The relationship structure prevents ordering entities for generation."""


class CircularDependencyError(GraphStructureError):
    def __init__(self, entity_ids: list[str]) -> None:
        self.entity_ids = sorted(entity_ids)
        super().__init__(
            "Entity relationships",
            "circular dependency detected in entity relationships "
            f"(entities involved: {', '.join(self.entity_ids)})",
            "remove or reverse one foreign key relationship in the cycle",
            entity_ids=self.entity_ids,
        )


class TargetSelectionError(FabricatorError, LookupError):
    """A foreign key value was requested before both related entities had rows."""
