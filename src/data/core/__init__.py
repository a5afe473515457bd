"""Core dataset and storage primitives for feature selection."""

from .dataset import (
    ColumnType,
    Record,
    Dataset,
    infer_column_type,
    to_number
)
from .storage import (
    StoredMap,
    KeyValueStore,
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    StorageConfig,
    create_store
)

__all__ = [
    'ColumnType',
    'Record',
    'Dataset',
    'infer_column_type',
    'to_number',
    'StoredMap',
    'KeyValueStore',
    'InMemoryKeyValueStore',
    'RedisKeyValueStore',
    'StorageConfig',
    'create_store'
]
