"""
Pytest configuration and fixtures for categorical feature selection tests.

This module provides shared datasets, stores and a minimal in-process
stand-in for the Redis client used by RedisKeyValueStore.
"""

import logging
from typing import Dict, Optional

import pytest

from src.data.core.dataset import ColumnType, Dataset, Record
from src.data.core.storage import InMemoryKeyValueStore, RedisKeyValueStore

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


class FakeRedis:
    """Hash-command subset of redis.Redis with decode_responses=True."""

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}

    def hincrby(self, name: str, key: str, amount: int = 1) -> int:
        h = self.hashes.setdefault(name, {})
        value = int(h.get(key, '0')) + amount
        h[key] = str(value)
        return value

    def hincrbyfloat(self, name: str, key: str, amount: float = 1.0) -> float:
        h = self.hashes.setdefault(name, {})
        value = float(h.get(key, '0')) + amount
        h[key] = repr(value)
        return value

    def hget(self, name: str, key: str) -> Optional[str]:
        return self.hashes.get(name, {}).get(key)

    def hset(self, name: str, key: str, value: str) -> int:
        h = self.hashes.setdefault(name, {})
        is_new = key not in h
        h[key] = value
        return int(is_new)

    def hdel(self, name: str, *keys: str) -> int:
        h = self.hashes.get(name, {})
        removed = 0
        for key in keys:
            if key in h:
                del h[key]
                removed += 1
        if name in self.hashes and not h:
            del self.hashes[name]
        return removed

    def hexists(self, name: str, key: str) -> bool:
        return key in self.hashes.get(name, {})

    def hlen(self, name: str) -> int:
        return len(self.hashes.get(name, {}))

    def hscan_iter(self, name: str):
        for item in list(self.hashes.get(name, {}).items()):
            yield item

    def delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self.hashes.pop(name, None) is not None:
                removed += 1
        return removed


@pytest.fixture
def fake_redis():
    """Fresh fake Redis client."""
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis):
    """Redis-backed store over the fake client."""
    return RedisKeyValueStore(key_prefix='test', client=fake_redis)


@pytest.fixture
def memory_store():
    """Empty in-memory store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def binary_dataset():
    """
    Four records over binary features a, b, c.

    a is present in 3 records (2 pos, 1 neg), b in 1 record (pos),
    c in none.
    """
    column_types = {
        'a': ColumnType.DUMMY,
        'b': ColumnType.DUMMY,
        'c': ColumnType.DUMMY
    }
    records = [
        Record('pos', {'a': 1, 'b': 1, 'c': 0}),
        Record('pos', {'a': 1, 'b': 0, 'c': 0}),
        Record('neg', {'a': 1, 'b': 0, 'c': 0}),
        Record('neg', {'a': 0, 'b': 0, 'c': 0}),
    ]
    return Dataset(records, column_types)


@pytest.fixture
def mixed_dataset():
    """Binary categorical features plus a numerical 'price' column."""
    column_types = {
        'word_good': ColumnType.DUMMY,
        'word_bad': ColumnType.DUMMY,
        'word_rare': ColumnType.DUMMY,
        'price': ColumnType.NUMERICAL
    }
    records = [
        Record('pos', {'word_good': 1, 'price': 10.5}),
        Record('pos', {'word_good': 1, 'word_rare': 1, 'price': 3.0}),
        Record('pos', {'word_good': 1, 'price': 0.0}),
        Record('neg', {'word_bad': 1, 'price': 7.25}),
        Record('neg', {'word_bad': 1, 'word_good': 1, 'price': 1.0}),
        Record('neg', {'word_bad': 1, 'price': 2.0}),
    ]
    return Dataset(records, column_types)


@pytest.fixture
def separable_dataset():
    """
    Twenty records: 'signal' is present in every pos record and no neg record,
    'noise' is present in half of each class.
    """
    column_types = {'signal': ColumnType.DUMMY, 'noise': ColumnType.DUMMY}
    records = []
    for i in range(10):
        records.append(Record('pos', {'signal': 1, 'noise': int(i % 2 == 0)}))
    for i in range(10):
        records.append(Record('neg', {'signal': 0, 'noise': int(i % 2 == 0)}))
    return Dataset(records, column_types)
