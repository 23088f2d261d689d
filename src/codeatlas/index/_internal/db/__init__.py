"""Database layer for the index."""

from codeatlas.index._internal.db.database import Database, storage_operation
from codeatlas.index._internal.db.schema import apply_schema, schema_counts, seed_components

__all__ = [
    "Database",
    "storage_operation",
    "apply_schema",
    "schema_counts",
    "seed_components",
]
