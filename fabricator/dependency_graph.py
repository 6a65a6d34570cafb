from __future__ import annotations

import logging
from dataclasses import dataclass

from fabricator.errors import CircularDependencyError
from fabricator.schema_definition import SchemaDefinition, attribute_references, direct_relationships

logger = logging.getLogger("dependency_graph")


@dataclass(frozen=True)
class AttributeRef:
    entity_id: str
    attribute_name: str
    unique: bool


def build_reference_index(definition: SchemaDefinition) -> dict[str, AttributeRef]:
    """
    Map every relationship reference token (alias or "EntityExternalId.AttributeExternalId")
    to the attribute it names. Aliases win over dotted tokens on collision.
    """
    aliases: dict[str, AttributeRef] = {}
    dotted: dict[str, AttributeRef] = {}
    for entity in definition.entities:
        for ref, attr in attribute_references(entity):
            target = aliases if ref == attr.alias else dotted
            target[ref] = AttributeRef(entity.entity_id, attr.name, attr.unique_id)
    return {**dotted, **aliases}


def build_entity_dependency_graph(definition: SchemaDefinition) -> dict[str, set[str]]:
    """
    Return entity_id -> ids of the entities it depends on (must be generated first).

    The entity holding the foreign key depends on the referenced entity:
      N:1 and 1:1 -> source depends on target
      1:N         -> target depends on source
    Self references and unresolvable endpoints add no edge.
    """
    deps: dict[str, set[str]] = {e.entity_id: set() for e in definition.entities}
    refs = build_reference_index(definition)

    for rel in direct_relationships(definition):
        src = refs.get(rel.from_attribute)
        dst = refs.get(rel.to_attribute)
        if src is None or dst is None:
            logger.debug("Skipping unresolved relationship '%s' in dependency graph", rel.relationship_id)
            continue
        if src.entity_id == dst.entity_id:
            continue

        if src.unique and not dst.unique:
            dependent, dependency = dst.entity_id, src.entity_id
        else:
            dependent, dependency = src.entity_id, dst.entity_id
        deps[dependent].add(dependency)

    return deps


def topological_order(deps: dict[str, set[str]]) -> list[str]:
    """
    Return entity ids in dependency->dependent order using Kahn's algorithm.
    Ties are broken alphabetically so the order is stable across runs.
    """
    remaining = {n: set(d) for n, d in deps.items()}
    rev: dict[str, set[str]] = {n: set() for n in deps}  # these depend on n
    for node, dependencies in deps.items():
        for dep in dependencies:
            rev.setdefault(dep, set()).add(node)
            remaining.setdefault(dep, set())

    ready = sorted(n for n, d in remaining.items() if len(d) == 0)
    out: list[str] = []

    while ready:
        n = ready.pop(0)
        out.append(n)
        for child in sorted(rev.get(n, ())):
            remaining[child].discard(n)
            if len(remaining[child]) == 0:
                ready.append(child)
                ready.sort()

    if len(out) != len(remaining):
        done = set(out)
        stuck = {n: d for n, d in remaining.items() if n not in done}
        members = _cycle_members(stuck)
        blocked = sorted(set(stuck) - set(members))
        if blocked:
            logger.debug("Entities waiting on a dependency cycle: %s", ", ".join(blocked))
        raise CircularDependencyError(members)

    return out


def _cycle_members(stuck: dict[str, set[str]]) -> list[str]:
    """Entities that reach themselves through unresolved dependencies."""
    members: list[str] = []
    for start in stuck:
        seen: set[str] = set()
        todo = list(stuck[start])
        while todo:
            n = todo.pop()
            if n == start:
                members.append(start)
                break
            if n not in seen:
                seen.add(n)
                todo.extend(stuck.get(n, ()))
    return members
