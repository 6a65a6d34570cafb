import unittest

from fabricator.config import AppConfig
from fabricator.errors import FabricatorError, RowValidationError, SchemaValidationError
from fabricator.error_contract import is_actionable_message
from fabricator.generator_graph import generate_graph_rows
from fabricator.main import build_demo_schema, demo_field_filler
from fabricator.model_graph import Graph
from fabricator.model_row import Row
from fabricator.schema_definition import RelationshipDefinition, SchemaDefinition

ROW_COUNTS = {"department": 3, "role": 4, "user": 12, "project": 5, "membership": 40}


class TestInvariants(unittest.TestCase):
    def _generate(self, seed: int = 42, auto: bool = False):
        graph = Graph(build_demo_schema())
        result = generate_graph_rows(
            graph,
            row_counts=ROW_COUNTS,
            config=AppConfig(seed=seed, auto_cardinality=auto),
            field_filler=demo_field_filler,
        )
        return graph, result

    def test_seed_is_deterministic_for_same_schema(self):
        _, a = self._generate(seed=77)
        _, b = self._generate(seed=77)
        self.assertEqual(a.csv, b.csv)

    def test_different_seed_changes_output(self):
        _, a = self._generate(seed=77)
        _, b = self._generate(seed=78)
        self.assertNotEqual(a.csv, b.csv)

    def test_primary_keys_never_empty_and_unique(self):
        for auto in (False, True):
            graph, _ = self._generate(seed=13, auto=auto)
            for entity in graph.get_entities_list():
                values = list(entity.iter_values(entity.primary_key.name))
                self.assertTrue(
                    all(v != "" for v in values),
                    f"Invariant failed: empty primary key in entity '{entity.id}'. "
                    "Fix: generate a key for every row before adding it.",
                )
                self.assertEqual(
                    len(values),
                    len(set(values)),
                    f"Invariant failed: duplicate primary keys in entity '{entity.id}'. "
                    "Fix: keep primary key generation unique per entity.",
                )

    def test_foreign_keys_always_exist_in_referenced_entity(self):
        for auto in (False, True):
            graph, result = self._generate(seed=21, auto=auto)
            self.assertEqual(result.violations, [])
            for rel in graph.get_all_relationships():
                referenced = set(rel.referenced_entity.iter_values(rel.referenced_attribute.name))
                for value in rel.foreign_key_entity.iter_values(rel.foreign_key_attribute.name):
                    self.assertIn(
                        value,
                        referenced,
                        f"Invariant failed: relationship '{rel.id}' references a missing row. "
                        "Fix: populate referenced entities first and select values from their rows.",
                    )

    def test_generation_order_respects_foreign_keys(self):
        graph, result = self._generate()
        self.assertEqual(sorted(result.order), sorted(ROW_COUNTS))
        for rel in graph.get_all_relationships():
            self.assertLess(
                result.order.index(rel.referenced_entity.id),
                result.order.index(rel.foreign_key_entity.id),
                f"Relationship '{rel.id}' is linked before its referenced entity exists.",
            )

    def test_every_filled_value_is_set(self):
        graph, _ = self._generate()
        user = graph.get_entity("user")
        self.assertEqual(user.get_row_by_index(0).get_value("email"), "user_email_1")
        self.assertTrue(all(v != "" for v in user.iter_values("dept_id")))

    def test_validation_errors_include_location_and_hint(self):
        broken = SchemaDefinition(
            display_name="broken",
            entities=build_demo_schema().entities,
            relationships=[RelationshipDefinition("r", "r", from_attribute="Nope.id", to_attribute="department_id")],
        )
        with self.assertRaises(SchemaValidationError) as ctx:
            Graph(broken)
        msg = str(ctx.exception)
        self.assertTrue(is_actionable_message(msg), f"Not actionable: {msg}")
        self.assertIn("Relationship 'r'", msg)
        self.assertIn("Fix:", msg)

    def test_row_errors_include_location_and_hint(self):
        graph, _ = self._generate()
        user = graph.get_entity("user")
        with self.assertRaises(RowValidationError) as ctx:
            user.add_row(Row({"user_id": "new", "dept_id": "missing"}))
        self.assertIsInstance(ctx.exception, FabricatorError)
        self.assertTrue(is_actionable_message(str(ctx.exception)))
        self.assertEqual(ctx.exception.location, "Entity 'user'")


if __name__ == "__main__":
    unittest.main()
