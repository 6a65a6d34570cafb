from __future__ import annotations

from dataclasses import dataclass, field

from fabricator.model_graph import Graph

NO_NAMESPACE = "(no namespace)"


@dataclass(frozen=True)
class GraphStatistics:
    schema_name: str
    description: str
    entity_count: int = 0
    total_attributes: int = 0
    unique_attributes: int = 0
    indexed_attributes: int = 0
    list_attributes: int = 0
    relationship_count: int = 0
    direct_relationships: int = 0
    path_based_relationships: int = 0
    namespace_formats: dict[str, int] = field(default_factory=dict)


def _namespace(external_id: str) -> str:
    # "namespace/entity" -> "namespace"
    if "/" in external_id:
        return external_id.split("/", 1)[0]
    return NO_NAMESPACE


def build_graph_statistics(graph: Graph) -> GraphStatistics:
    definition = graph.definition

    namespaces: dict[str, int] = {}
    total = unique = 0
    for entity in graph.get_entities_list():
        ns = _namespace(entity.external_id)
        namespaces[ns] = namespaces.get(ns, 0) + 1
        for attr in entity.get_attributes():
            total += 1
            if attr.is_unique:
                unique += 1

    # indexed/list flags only exist on the definition
    indexed = sum(1 for e in definition.entities for a in e.attributes if a.indexed)
    listed = sum(1 for e in definition.entities for a in e.attributes if a.is_list)
    path_based = sum(1 for r in definition.relationships if r.is_path_based)

    return GraphStatistics(
        schema_name=definition.display_name,
        description=definition.description,
        entity_count=len(graph.get_entities_list()),
        total_attributes=total,
        unique_attributes=unique,
        indexed_attributes=indexed,
        list_attributes=listed,
        relationship_count=len(graph.get_all_relationships()),
        direct_relationships=len(definition.relationships) - path_based,
        path_based_relationships=path_based,
        namespace_formats=namespaces,
    )


def format_graph_statistics(stats: GraphStatistics) -> list[str]:
    lines = [
        f"Schema: {stats.schema_name}",
        f"Entities: {stats.entity_count}",
        f"Attributes: {stats.total_attributes} (unique={stats.unique_attributes}, "
        f"indexed={stats.indexed_attributes}, list={stats.list_attributes})",
        f"Relationships: {stats.relationship_count} modeled "
        f"(direct={stats.direct_relationships}, path-based={stats.path_based_relationships})",
    ]
    for ns, count in sorted(stats.namespace_formats.items()):
        lines.append(f"Namespace {ns}: {count} entities")
    return lines
