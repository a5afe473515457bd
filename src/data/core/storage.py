"""
Key-value storage for feature selection statistics.

Count maps can grow with the number of distinct features and labels, so the
selection engine acquires them from a store instead of allocating dicts
directly. The store may keep them in process memory or in Redis; callers only
see the MutableMapping interface plus an atomic increment.
"""

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import redis

logger = logging.getLogger(__name__)

Number = Union[int, float]


class StoredMap(MutableMapping):
    """A named mapping acquired from a KeyValueStore."""

    def __init__(self, name: str, ephemeral: bool):
        self.name = name
        self.ephemeral = ephemeral

    @abstractmethod
    def increment(self, key: Any, amount: Number = 1) -> Number:
        """Add amount to the value stored under key (0 if absent) and return it."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, ephemeral={self.ephemeral}, size={len(self)})"


class KeyValueStore(ABC):
    """Abstract base class for stores handing out named maps."""

    @abstractmethod
    def acquire_map(self, name: str, ephemeral: bool = True) -> StoredMap:
        """
        Acquire a named map.

        Ephemeral maps always start empty and are private to the caller.
        Persistent maps with the same name share their contents.
        """
        pass

    @abstractmethod
    def release_map(self, stored_map: StoredMap) -> None:
        """Drop a map and reclaim its storage."""
        pass

    @contextmanager
    def ephemeral_map(self, name: str) -> Iterator[StoredMap]:
        """Acquire an ephemeral map that is released on every exit path."""
        stored_map = self.acquire_map(name, ephemeral=True)
        try:
            yield stored_map
        finally:
            self.release_map(stored_map)


class InMemoryStoredMap(StoredMap):
    """Dict-backed stored map."""

    def __init__(self, name: str, ephemeral: bool, handle: Optional[str] = None):
        super().__init__(name, ephemeral)
        self.handle = handle or name
        self._data: Dict[Any, Any] = {}

    def increment(self, key: Any, amount: Number = 1) -> Number:
        value = self._data.get(key, 0) + amount
        self._data[key] = value
        return value

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: Any) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)


class InMemoryKeyValueStore(KeyValueStore):
    """In-process implementation for development, testing and small datasets."""

    def __init__(self):
        self._maps: Dict[str, InMemoryStoredMap] = {}
        self._counter = 0

    def acquire_map(self, name: str, ephemeral: bool = True) -> StoredMap:
        if ephemeral:
            self._counter += 1
            handle = f"tmp:{name}:{self._counter}"
        else:
            handle = name

        if handle not in self._maps:
            self._maps[handle] = InMemoryStoredMap(name, ephemeral, handle)
        stored_map = self._maps[handle]
        logger.debug(f"Acquired in-memory map {handle}")
        return stored_map

    def release_map(self, stored_map: StoredMap) -> None:
        if not isinstance(stored_map, InMemoryStoredMap):
            raise TypeError(f"Cannot release {type(stored_map).__name__} from an in-memory store")
        handle = stored_map.handle
        dropped = self._maps.pop(handle, None)
        if dropped is not None:
            dropped.clear()
        logger.debug(f"Released in-memory map {handle}")

    @property
    def active_maps(self) -> Dict[str, StoredMap]:
        """Maps acquired and not yet released."""
        return dict(self._maps)


def _plain(obj: Any) -> Any:
    # numpy scalars become the equal builtin value so ids survive the round trip
    if isinstance(obj, np.generic):
        return obj.item()
    raise TypeError(f"Key of type {type(obj).__name__} is not JSON serializable")


def _encode(obj: Any) -> str:
    return json.dumps(obj, default=_plain)


def _decode(raw: str) -> Any:
    return _as_hashable(json.loads(raw))


def _as_hashable(obj: Any) -> Any:
    # JSON has no tuples; composite keys come back as lists
    if isinstance(obj, list):
        return tuple(_as_hashable(item) for item in obj)
    return obj


class RedisStoredMap(StoredMap):
    """
    Stored map kept in a single Redis hash.

    Keys and values are JSON encoded, so keys must be JSON-serializable
    scalars (numpy scalars included) or tuples of them. Other keys raise
    TypeError. Increments are server-side HINCRBY calls.
    """

    def __init__(self, client: 'redis.Redis', redis_key: str, name: str, ephemeral: bool):
        super().__init__(name, ephemeral)
        self.client = client
        self.redis_key = redis_key

    def increment(self, key: Any, amount: Number = 1) -> Number:
        field_name = _encode(key)
        if isinstance(amount, int):
            return int(self.client.hincrby(self.redis_key, field_name, amount))
        return float(self.client.hincrbyfloat(self.redis_key, field_name, amount))

    def __getitem__(self, key: Any) -> Any:
        raw = self.client.hget(self.redis_key, _encode(key))
        if raw is None:
            raise KeyError(key)
        return _decode(raw)

    def __setitem__(self, key: Any, value: Any) -> None:
        self.client.hset(self.redis_key, _encode(key), _encode(value))

    def __delitem__(self, key: Any) -> None:
        if not self.client.hdel(self.redis_key, _encode(key)):
            raise KeyError(key)

    def __contains__(self, key: Any) -> bool:
        return bool(self.client.hexists(self.redis_key, _encode(key)))

    def __iter__(self) -> Iterator[Any]:
        for field_name, _ in self.client.hscan_iter(self.redis_key):
            yield _decode(field_name)

    def __len__(self) -> int:
        return int(self.client.hlen(self.redis_key))

    def clear(self) -> None:
        self.client.delete(self.redis_key)


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store for statistics that do not fit in process memory."""

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 6379,
        db: int = 0,
        key_prefix: str = 'catfs',
        client: Optional['redis.Redis'] = None
    ):
        """
        Initialize Redis store.

        Args:
            host: Redis host
            port: Redis port
            db: Redis database number
            key_prefix: Namespace for all hashes created by this store
            client: Pre-built client; host/port/db are ignored when given
        """
        self.key_prefix = key_prefix
        self.client = client if client is not None else redis.Redis(
            host=host,
            port=port,
            db=db,
            decode_responses=True
        )

    def acquire_map(self, name: str, ephemeral: bool = True) -> StoredMap:
        if ephemeral:
            redis_key = f"{self.key_prefix}:tmp:{name}:{uuid.uuid4().hex}"
        else:
            redis_key = f"{self.key_prefix}:{name}"

        logger.debug(f"Acquired Redis map {redis_key}")
        return RedisStoredMap(self.client, redis_key, name, ephemeral)

    def release_map(self, stored_map: StoredMap) -> None:
        if not isinstance(stored_map, RedisStoredMap):
            raise TypeError(f"Cannot release {type(stored_map).__name__} from a Redis store")
        self.client.delete(stored_map.redis_key)
        logger.debug(f"Released Redis map {stored_map.redis_key}")


@dataclass
class StorageConfig:
    """Configuration selecting and parameterizing the key-value store."""

    backend: str = 'memory'  # 'memory' or 'redis'

    # Redis connection
    redis_host: str = 'localhost'
    redis_port: int = 6379
    redis_db: int = 0
    key_prefix: str = 'catfs'

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Read storage settings from CATFS_* environment variables."""
        return cls(
            backend=os.getenv('CATFS_STORAGE_BACKEND', 'memory'),
            redis_host=os.getenv('CATFS_REDIS_HOST', 'localhost'),
            redis_port=int(os.getenv('CATFS_REDIS_PORT', '6379')),
            redis_db=int(os.getenv('CATFS_REDIS_DB', '0')),
            key_prefix=os.getenv('CATFS_KEY_PREFIX', 'catfs')
        )


def create_store(config: Optional[StorageConfig] = None) -> KeyValueStore:
    """Create the key-value store selected by the configuration."""
    config = config or StorageConfig()

    if config.backend == 'memory':
        return InMemoryKeyValueStore()
    elif config.backend == 'redis':
        logger.info(f"Using Redis store at {config.redis_host}:{config.redis_port}/{config.redis_db}")
        return RedisKeyValueStore(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            key_prefix=config.key_prefix
        )
    else:
        raise ValueError(f"Unknown storage backend: {config.backend}")
