# To run:
# python -m fabricator.main


import logging
import traceback

from fabricator.config import AppConfig
from fabricator.generator_graph import generate_graph_rows
from fabricator.graph_statistics import build_graph_statistics, format_graph_statistics
from fabricator.logging_setup import setup_logging
from fabricator.model_entity import Entity
from fabricator.model_graph import Graph
from fabricator.model_row import Row
from fabricator.schema_definition import (
    AttributeDefinition,
    EntityDefinition,
    RelationshipDefinition,
    SchemaDefinition,
)

logger = logging.getLogger("main")


def build_demo_schema() -> SchemaDefinition:
    """Users belong to a department and hold a role; memberships link users to projects."""
    department = EntityDefinition(
        "department", "org/Department", "Department",
        attributes=[
            AttributeDefinition("dept_id", "deptId", unique_id=True, alias="department_id"),
            AttributeDefinition("name", "name", indexed=True),
        ],
    )
    role = EntityDefinition(
        "role", "org/Role", "Role",
        attributes=[
            AttributeDefinition("role_id", "roleId", unique_id=True),
            AttributeDefinition("title", "title"),
        ],
    )
    user = EntityDefinition(
        "user", "iam/User", "User",
        attributes=[
            AttributeDefinition("user_id", "userId", unique_id=True),
            AttributeDefinition("email", "email", indexed=True),
            AttributeDefinition("dept_id", "deptId"),
            AttributeDefinition("role_id", "roleId"),
        ],
    )
    project = EntityDefinition(
        "project", "Project", "Project",
        attributes=[
            AttributeDefinition("project_id", "projectId", unique_id=True),
            AttributeDefinition("tags", "tags", is_list=True),
        ],
    )
    membership = EntityDefinition(
        "membership", "iam/Membership", "Membership",
        attributes=[
            AttributeDefinition("membership_id", "membershipId", unique_id=True),
            AttributeDefinition("user_id", "userId"),
            AttributeDefinition("project_id", "projectId"),
        ],
    )
    return SchemaDefinition(
        display_name="Demo Organisation",
        description="Departments, roles, users and project memberships",
        entities=[department, role, user, project, membership],
        relationships=[
            RelationshipDefinition("user_department", "works in", from_attribute="iam/User.deptId",
                                   to_attribute="department_id"),
            RelationshipDefinition("user_role", "holds", from_attribute="iam/User.roleId",
                                   to_attribute="org/Role.roleId"),
            RelationshipDefinition("membership_user", "member", from_attribute="iam/Membership.userId",
                                   to_attribute="iam/User.userId"),
            RelationshipDefinition("project_membership", "has members", from_attribute="Project.projectId",
                                   to_attribute="iam/Membership.projectId"),
        ],
    )


def demo_field_filler(entity: Entity, row: Row, index: int) -> None:
    # plain placeholder values; foreign keys and primary keys are already set
    for attr in entity.get_non_relationship_attributes():
        if attr.is_unique:
            continue
        row.set_value(attr.name, f"{entity.name.lower()}_{attr.name}_{index + 1}")


def main() -> int:
    cfg = AppConfig()

    setup_logging(cfg.log_level)
    logger.info("Fabricator booting (demo schema)...")

    try:
        graph = Graph(build_demo_schema())
        for line in format_graph_statistics(build_graph_statistics(graph)):
            logger.info("%s", line)

        result = generate_graph_rows(
            graph,
            row_counts={"department": 3, "role": 4, "user": 12, "project": 5, "membership": 40},
            config=cfg,
            field_filler=demo_field_filler,
        )
        for entity_id in result.order:
            csv = result.csv[entity_id]
            logger.info("%s: %d rows, columns=%s", csv.entity_name, len(csv.rows), ", ".join(csv.headers))
        return 0 if not result.violations else 1
    except Exception as exc:
        logger.error("Unhandled error: %s", exc)
        if cfg.debug:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
