"""Redis 레코드 캐시 읽기 + 인덱싱된 id 목록 저장"""

from __future__ import annotations

import json
from typing import Any, Protocol, Union

import redis.asyncio as redis

from .config import CACHE_TTL, Config
from .content import ContentType, content_types
from .log import get_logger

logger = get_logger("source")

# 레코드 값: 스칼라 / 중첩 레코드 / 리스트
Value = Union[str, int, float, bool, None, list["Value"], dict[str, "Value"]]
Record = dict[str, Value]


def source_ids_key(content: ContentType) -> str:
    return f"ids_{content.name}"


def indexed_ids_key(content: ContentType) -> str:
    return f"ids_{content.name}_es"


def record_key(content: ContentType, content_id: int) -> str:
    return f"xiv_{content.name}_{content_id}"


class CatalogSource(Protocol):
    """동기화 대상 레코드 + id 목록 제공자."""

    def list_content_types(self) -> list[ContentType]: ...

    async def get_source_ids(self, content: ContentType) -> list[int]: ...

    async def get_indexed_ids(self, content: ContentType) -> set[int]: ...

    async def get_record(self, content: ContentType, content_id: int) -> Record | None: ...

    async def save_indexed_ids(self, content: ContentType, ids: set[int]) -> None: ...


class RedisCatalogSource:
    """
    Redis 캐시 기반 CatalogSource.

    키:
      ids_{Content}          : 캐시에 있는 id 목록 (JSON 배열)
      ids_{Content}_es       : ES에 인덱싱된 id 목록 (JSON 배열)
      xiv_{Content}_{id}     : 레코드 (JSON 오브젝트)

    읽기 연산은 캐시 상태를 변경하지 않으며, 쓰기는 save_indexed_ids 뿐.
    """

    def __init__(
        self,
        client: redis.Redis,
        only_content: str | None = None,
        ttl: int = CACHE_TTL,
    ):
        self.client = client
        self.only_content = only_content
        self.ttl = ttl

    @classmethod
    def from_config(cls, config: Config) -> RedisCatalogSource:
        client = redis.from_url(config.redis_url, decode_responses=True)
        return cls(client, only_content=config.content, ttl=config.cache_ttl)

    def list_content_types(self) -> list[ContentType]:
        return content_types(self.only_content)

    async def _get_json(self, key: str) -> Any:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def get_source_ids(self, content: ContentType) -> list[int]:
        ids = await self._get_json(source_ids_key(content))
        if not ids:
            return []
        return [int(i) for i in ids]

    async def get_indexed_ids(self, content: ContentType) -> set[int]:
        ids = await self._get_json(indexed_ids_key(content))
        if not ids:
            return set()
        return {int(i) for i in ids}

    async def get_record(self, content: ContentType, content_id: int) -> Record | None:
        record = await self._get_json(record_key(content, content_id))
        if not isinstance(record, dict):
            return None
        return record

    async def save_indexed_ids(self, content: ContentType, ids: set[int]) -> None:
        key = indexed_ids_key(content)
        await self.client.set(key, json.dumps(sorted(ids)), ex=self.ttl)
        logger.debug(f"Saved {len(ids):,} indexed ids → {key}")

    async def close(self):
        await self.client.aclose()
