#!/usr/bin/env python3
"""RedisCatalogSource: Mock Redis 클라이언트로 키/직렬화 검증"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

from search_sync import CONTENT_LIST, ContentType, RedisCatalogSource, content_types


def _source(store: dict, **kwargs) -> RedisCatalogSource:
    client = MagicMock()
    client.get = AsyncMock(side_effect=lambda key: store.get(key))
    client.set = AsyncMock()
    return RedisCatalogSource(client, **kwargs)


def test_content_catalog():
    assert [c.name for c in content_types()] == list(CONTENT_LIST)
    assert [c.name for c in content_types("Quest")] == ["Quest"]
    assert content_types("Unknown") == []
    assert ContentType("BNpcName").index_name == "bnpcname"


def test_list_content_types_filter():
    assert len(_source({}).list_content_types()) == len(CONTENT_LIST)
    assert _source({}, only_content="Item").list_content_types() == [ContentType("Item")]


def test_reads():
    item = ContentType("Item")
    source = _source({
        "ids_Item": json.dumps([1, "2", 3]),
        "ids_Item_es": json.dumps([1]),
        "xiv_Item_2": json.dumps({"ID": 2, "Name_en": "Potion"}),
    })

    assert asyncio.run(source.get_source_ids(item)) == [1, 2, 3]
    assert asyncio.run(source.get_indexed_ids(item)) == {1}
    assert asyncio.run(source.get_record(item, 2)) == {"ID": 2, "Name_en": "Potion"}
    assert asyncio.run(source.get_record(item, 3)) is None
    source.client.set.assert_not_awaited()
    print("  읽기 연산: OK")


def test_missing_keys_are_empty():
    quest = ContentType("Quest")
    source = _source({"ids_Quest": "null"})
    assert asyncio.run(source.get_source_ids(quest)) == []
    assert asyncio.run(source.get_indexed_ids(quest)) == set()


def test_save_indexed_ids():
    source = _source({}, ttl=60)
    asyncio.run(source.save_indexed_ids(ContentType("Title"), {3, 1, 2}))
    source.client.set.assert_awaited_once_with("ids_Title_es", "[1, 2, 3]", ex=60)
    print("  인덱싱 id 저장 (정렬 + TTL): OK")
