"""ORM Models — SQLAlchemy declarative models for the local resource store.

Invariants:
    - All models inherit from Base (db/base.py)
    - StoreVersion is the aggregate root; resources are scoped by store_name

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from payflow.models.store_version import StoreVersionModel  # noqa: F401
from payflow.models.cached_resource import CachedResourceModel  # noqa: F401
