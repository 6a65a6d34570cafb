import unittest

from fabricator.dependency_graph import (
    AttributeRef,
    build_entity_dependency_graph,
    build_reference_index,
    topological_order,
)
from fabricator.errors import CircularDependencyError
from fabricator.schema_definition import (
    AttributeDefinition,
    EntityDefinition,
    RelationshipDefinition,
    RelationshipPathStep,
    SchemaDefinition,
)


class TestDependencyGraph(unittest.TestCase):
    def _schema(self, relationships: list[RelationshipDefinition]) -> SchemaDefinition:
        return SchemaDefinition(
            display_name="deps",
            entities=[
                EntityDefinition(
                    "dept",
                    "Dept",
                    "Department",
                    attributes=[AttributeDefinition("dept_id", "deptId", unique_id=True, alias="dept_key")],
                ),
                EntityDefinition(
                    "employee",
                    "Employee",
                    "Employee",
                    attributes=[
                        AttributeDefinition("emp_id", "empId", unique_id=True),
                        AttributeDefinition("dept_id", "deptId"),
                        AttributeDefinition("manager_id", "managerId"),
                    ],
                ),
            ],
            relationships=relationships,
        )

    def test_reference_index_covers_aliases_and_dotted_references(self):
        refs = build_reference_index(self._schema([]))
        self.assertEqual(refs["dept_key"], AttributeRef("dept", "dept_id", True))
        self.assertEqual(refs["Dept.deptId"], AttributeRef("dept", "dept_id", True))
        self.assertEqual(refs["Employee.managerId"], AttributeRef("employee", "manager_id", False))

    def test_foreign_key_holder_depends_on_referenced_entity(self):
        many_to_one = self._schema(
            [RelationshipDefinition("r", "r", from_attribute="Employee.deptId", to_attribute="dept_key")]
        )
        one_to_many = self._schema(
            [RelationshipDefinition("r", "r", from_attribute="Dept.deptId", to_attribute="Employee.deptId")]
        )
        for schema in (many_to_one, one_to_many):
            with self.subTest(relationship=schema.relationships[0].from_attribute):
                deps = build_entity_dependency_graph(schema)
                self.assertEqual(deps, {"dept": set(), "employee": {"dept"}})

    def test_self_reference_unresolved_and_path_relationships_add_no_edge(self):
        schema = self._schema(
            [
                RelationshipDefinition("self", "reports to", from_attribute="Employee.managerId", to_attribute="Employee.empId"),
                RelationshipDefinition("broken", "broken", from_attribute="Employee.deptId", to_attribute="Nope.id"),
                RelationshipDefinition("path", "path", path=[RelationshipPathStep("self")]),
            ]
        )
        self.assertEqual(build_entity_dependency_graph(schema), {"dept": set(), "employee": set()})

    def test_topological_order_breaks_ties_alphabetically(self):
        self.assertEqual(topological_order({"z": set(), "m": set(), "a": {"z"}}), ["m", "z", "a"])
        self.assertEqual(topological_order({"b": {"a"}, "c": {"a"}, "a": set()}), ["a", "b", "c"])

    def test_topological_order_includes_dependencies_without_own_entry(self):
        self.assertEqual(topological_order({"a": {"x"}}), ["x", "a"])

    def test_cycle_reports_only_stuck_entities(self):
        with self.assertRaises(CircularDependencyError) as ctx:
            topological_order({"a": {"b"}, "b": {"a"}, "c": set()})
        self.assertEqual(ctx.exception.entity_ids, ["a", "b"])
        self.assertIn("entities involved: a, b", str(ctx.exception))
        self.assertIn("Fix:", str(ctx.exception))

    def test_cycle_excludes_entities_only_waiting_on_it(self):
        deps = {"a": {"b"}, "b": {"a"}, "c": {"a"}, "d": {"c"}, "e": set()}
        with self.assertRaises(CircularDependencyError) as ctx:
            topological_order(deps)
        self.assertEqual(
            ctx.exception.entity_ids,
            ["a", "b"],
            "Entities downstream of a cycle are blocked, not part of it. "
            "Fix: report only entities that reach themselves through their dependencies.",
        )
        self.assertIn("(entities involved: a, b)", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
