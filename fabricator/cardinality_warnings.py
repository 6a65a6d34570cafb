from __future__ import annotations

from dataclasses import dataclass

from fabricator.schema_definition import SchemaDefinition


@dataclass(frozen=True)
class CardinalityWarning:
    relationship_name: str
    source_entity: str
    source_count: int
    target_entity: str
    target_count: int
    cardinality: str
    shortfall: str

    def __str__(self) -> str:
        return (
            f"Cardinality warning: Relationship '{self.relationship_name}' ({self.cardinality}) - "
            f"{self.source_entity} has {self.source_count} rows but {self.target_entity} has "
            f"{self.target_count} rows. {self.shortfall}"
        )


def detect_cardinality_imbalances(
    definition: SchemaDefinition,
    row_counts: dict[str, int],
    ratio: int = 10,
) -> list[CardinalityWarning]:
    """
    Best-effort heuristic: warn for every entity pair whose configured row counts
    differ by more than `ratio` times. Entities missing from row_counts count as 0.
    This inspects configured counts only; it is not a referential integrity check.
    """
    if ratio <= 0:
        raise ValueError(
            f"Cardinality diagnostic: ratio must be > 0 (got {ratio}). "
            "Fix: pass a positive imbalance ratio such as 10."
        )

    entity_ids = [e.entity_id for e in definition.entities]
    warnings: list[CardinalityWarning] = []

    for i, first in enumerate(entity_ids):
        for second in entity_ids[i + 1:]:
            first_count = row_counts.get(first, 0)
            second_count = row_counts.get(second, 0)

            if first_count > second_count * ratio:
                big, big_count, small, small_count = first, first_count, second, second_count
            elif second_count > first_count * ratio:
                big, big_count, small, small_count = second, second_count, first, first_count
            else:
                continue

            warnings.append(
                CardinalityWarning(
                    relationship_name=f"{big}-{small}",
                    source_entity=big,
                    source_count=big_count,
                    target_entity=small,
                    target_count=small_count,
                    cardinality="potential",
                    shortfall=(
                        f"Significant imbalance: {big_count} {big} rows vs {small_count} {small} rows "
                        f"(ratio >{ratio}x) may affect relationship quality"
                    ),
                )
            )

    return warnings
