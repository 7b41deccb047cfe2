from taskplanner.db.base import Base
from taskplanner.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    assert {"goals", "tasks"}.issubset(set(Base.metadata.tables.keys()))


def test_tasks_cascade_with_goal() -> None:
    tasks = Base.metadata.tables["tasks"]
    (foreign_key,) = tasks.c.goal_id.foreign_keys

    assert foreign_key.column.table.name == "goals"
    assert foreign_key.ondelete == "CASCADE"
    assert tasks.c.goal_id.nullable is False
    assert "delete-orphan" in models.Goal.tasks.property.cascade
