from __future__ import annotations

import hashlib
import logging
import random
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from fabricator.cardinality_warnings import CardinalityWarning, detect_cardinality_imbalances
from fabricator.config import AppConfig
from fabricator.error_contract import format_actionable_error
from fabricator.model_entity import CSVData, Entity
from fabricator.model_graph import Graph
from fabricator.model_relationship import Relationship
from fabricator.model_row import Row

logger = logging.getLogger("generator_graph")

FieldFiller = Callable[[Entity, Row, int], None]


@dataclass(frozen=True)
class GenerationResult:
    order: list[str]
    row_counts: dict[str, int]
    violations: list[str] = field(default_factory=list)
    warnings: list[CardinalityWarning] = field(default_factory=list)
    csv: dict[str, CSVData] = field(default_factory=dict)


def _stable_subseed(base_seed: int, name: str) -> int:
    """
    Deterministically derive a per-entity seed from base_seed and a string name.
    Avoids Python's built-in hash() which is randomized between runs.
    """
    h = hashlib.sha256(f"{base_seed}:{name}".encode("utf-8")).hexdigest()
    return int(h[:8], 16)


def _resolve_row_counts(graph: Graph, row_counts: dict[str, int] | None, default_rows: int) -> dict[str, int]:
    counts = {e.id: default_rows for e in graph.get_entities_list()}
    for entity_id, raw in (row_counts or {}).items():
        if entity_id not in counts:
            raise ValueError(
                format_actionable_error(
                    f"Row counts / entity '{entity_id}'",
                    "entity not found in graph",
                    "use entity ids declared in the schema definition",
                )
            )
        if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
            raise ValueError(
                format_actionable_error(
                    f"Row counts / entity '{entity_id}'",
                    f"row count must be a positive integer (got {raw!r})",
                    "set a whole number greater than 0",
                )
            )
        counts[entity_id] = raw
    return counts


def _primary_key_relationship(graph: Graph, entity: Entity) -> Relationship | None:
    # a 1:1 relationship whose foreign key is this entity's own primary key
    for rel in graph.get_relationships_for_entity(entity.id):
        if rel.foreign_key_entity is entity and rel.foreign_key_attribute is entity.primary_key:
            return rel
    return None


def _outgoing_links(graph: Graph, entity: Entity) -> list[Relationship]:
    out: list[Relationship] = []
    for rel in graph.get_relationships_for_entity(entity.id):
        if rel.foreign_key_entity is not entity:
            continue
        if rel.foreign_key_attribute is entity.primary_key:
            continue  # keys copied during id generation
        if rel.referenced_entity is entity:
            logger.info("Leaving self-referencing relationship '%s' unpopulated", rel.id)
            continue
        out.append(rel)
    return out


def _generate_ids(graph: Graph, entity: Entity, count: int, seed: int) -> None:
    pk_name = entity.primary_key.name
    pk_rel = _primary_key_relationship(graph, entity)

    if pk_rel is None:
        rng = random.Random(_stable_subseed(seed, f"entity:{entity.id}"))
        for _ in range(count):
            key = str(uuid.UUID(int=rng.getrandbits(128), version=4))
            entity.add_row(Row({pk_name: key}))
        logger.info("Generated ids for entity '%s' rows=%d", entity.id, entity.row_count)
        return

    referenced = pk_rel.referenced_entity
    if referenced is entity:
        raise ValueError(
            format_actionable_error(
                f"Relationship '{pk_rel.id}'",
                f"primary key of entity '{entity.id}' references itself",
                "point the 1:1 relationship at another entity",
            )
        )
    # referenced entity is earlier in the order, so its rows are already linked and pruned
    ref_name = pk_rel.referenced_attribute.name
    n = min(count, referenced.row_count)
    if n < count:
        logger.warning(
            "Entity '%s' shares its primary key with '%s' (1:1); rows capped %d -> %d",
            entity.id, referenced.id, count, n,
        )
    for i in range(n):
        entity.add_row(Row({pk_name: referenced.get_row_by_index(i).get_value(ref_name)}))
    logger.info("Copied ids for entity '%s' from '%s' rows=%d", entity.id, referenced.id, n)


def _link_relationship(entity: Entity, rel: Relationship, auto_cardinality: bool) -> None:
    fk_name = rel.foreign_key_attribute.name
    if rel.foreign_key_entity is rel.source_entity:
        pick = rel.get_target_value_for_source_row
    else:
        pick = rel.get_source_value_for_target_row

    def _assign(row: Row, index: int) -> None:
        row.set_value(fk_name, pick(index, auto_cardinality))

    entity.for_each_row(_assign)
    logger.debug(
        "Linked '%s'.%s via relationship '%s' (%s, auto_cardinality=%s)",
        entity.id, fk_name, rel.id, rel.cardinality, auto_cardinality,
    )


def _drop_duplicate_link_rows(entity: Entity, fk_names: list[str]) -> int:
    """Junction entities keep one row per foreign key combination."""
    seen: set[tuple[str, ...]] = set()
    duplicates: list[int] = []
    for index, row in enumerate(entity.get_rows()):
        key = tuple(row.get_value(n) for n in fk_names)
        if key in seen:
            duplicates.append(index)
        else:
            seen.add(key)
    for index in reversed(duplicates):
        entity.remove_row(index)
    return len(duplicates)


def _link_entity(graph: Graph, entity: Entity, auto_cardinality: bool) -> None:
    links = _outgoing_links(graph, entity)
    for rel in links:
        _link_relationship(entity, rel, auto_cardinality)

    if len(links) > 1:
        removed = _drop_duplicate_link_rows(entity, [rel.foreign_key_attribute.name for rel in links])
        if removed:
            logger.info(
                "Removed %d duplicate junction rows from entity '%s' (rows=%d)",
                removed, entity.id, entity.row_count,
            )


def generate_graph_rows(
    graph: Graph,
    *,
    row_counts: dict[str, int] | None = None,
    config: AppConfig | None = None,
    field_filler: FieldFiller | None = None,
) -> GenerationResult:
    """
    Populate every entity of the graph in dependency order. Each entity is
    finished before the next one starts:
      1. primary keys (deterministic UUIDs, or keys copied through a 1:1 relationship)
      2. foreign keys via Relationship target selection; junction rows repeating
         a foreign key combination are dropped
    Then, for all entities:
      3. remaining fields through the optional field_filler(entity, row, index)
      4. a full foreign key sweep; violations are reported, not raised

    The graph's entities must be empty. Returns the order, final row counts,
    violations, cardinality warnings and the CSV projection of each entity.
    """
    cfg = config or AppConfig()
    order = graph.get_topological_order()

    for entity in graph.get_entities_list():
        if entity.row_count:
            raise ValueError(
                format_actionable_error(
                    f"Entity '{entity.id}'",
                    f"entity already holds {entity.row_count} rows",
                    "generate into a freshly built graph",
                )
            )

    counts = _resolve_row_counts(graph, row_counts, cfg.default_rows)
    warnings = detect_cardinality_imbalances(graph.definition, counts, cfg.imbalance_ratio)
    for w in warnings:
        logger.warning("%s", w)

    for entity_id in order:
        entity = graph.get_entity(entity_id)
        _generate_ids(graph, entity, counts[entity_id], cfg.seed)
        _link_entity(graph, entity, cfg.auto_cardinality)

    if field_filler is not None:
        for entity_id in order:
            entity = graph.get_entity(entity_id)
            entity.for_each_row(lambda row, index, e=entity: field_filler(e, row, index))

    violations: list[str] = []
    for entity_id in order:
        violations.extend(graph.get_entity(entity_id).validate_all_foreign_keys())
    if violations:
        logger.warning("Found %d foreign key violations after generation", len(violations))
        for v in violations:
            logger.warning("- %s", v)

    final_counts = {entity_id: graph.get_entity(entity_id).row_count for entity_id in order}
    logger.info(
        "Generated graph '%s': entities=%d, rows=%d (auto_cardinality=%s, seed=%d)",
        graph.definition.display_name,
        len(order),
        sum(final_counts.values()),
        cfg.auto_cardinality,
        cfg.seed,
    )

    return GenerationResult(
        order=order,
        row_counts=final_counts,
        violations=violations,
        warnings=warnings,
        csv={entity_id: graph.get_entity(entity_id).to_csv() for entity_id in order},
    )
