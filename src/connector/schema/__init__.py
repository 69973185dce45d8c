"""Schema discovery for Twenty -- fetch, cache, merge and reshape the data model.

Exports the discovered-schema models, the cache and merger services, and the
flat <-> nested composite transform.
"""

from src.connector.schema.cache import SchemaCache
from src.connector.schema.fetcher import SchemaFetcher
from src.connector.schema.merger import SchemaMerger
from src.connector.schema.models import (
    CachedSchema,
    FieldIntent,
    FieldKind,
    FieldOption,
    FieldSchema,
    FieldSource,
    ObjectSchema,
)
from src.connector.schema.transform import flatten, unflatten

__all__ = [
    "CachedSchema",
    "FieldIntent",
    "FieldKind",
    "FieldOption",
    "FieldSchema",
    "FieldSource",
    "ObjectSchema",
    "SchemaCache",
    "SchemaFetcher",
    "SchemaMerger",
    "flatten",
    "unflatten",
]
