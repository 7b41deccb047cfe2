"""Database utilities and models."""

from taskplanner.db.base import Base
from taskplanner.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
