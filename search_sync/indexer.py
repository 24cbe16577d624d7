"""Elasticsearch 인덱스 관리 + 벌크 인덱싱"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from elasticsearch import ApiError, AsyncElasticsearch, NotFoundError, TransportError
from elasticsearch.helpers import async_bulk

from .config import GAME_DATA_SCHEMA, Config
from .log import get_logger

logger = get_logger("indexer")

REFRESH_DISABLED = "-1"


class SubmissionError(RuntimeError):
    """bulk 요청 자체가 실패 (네트워크/서버 오류). 실행 전체를 중단한다."""


@dataclass
class BulkResult:
    """bulk 응답 요약. failed: 문서별로 거부된 id → 에러 메시지."""

    indexed: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)


def build_es_client(config: Config) -> AsyncElasticsearch:
    """Config 기반으로 AsyncElasticsearch 클라이언트를 생성.

    - 단일 노드 (HTTP): environment → ELASTIC_SERVER_PROD / ELASTIC_SERVER_LOCAL
      (es_url 지정 시 우선)
    - 클러스터 (HTTPS): es_nodes 사용: fingerprint + 인증 필수

    Examples:
        config = Config(environment="dev")
        config = Config(
            es_nodes=["https://es01:9200", "https://es02:9200"],
            es_fingerprint="B1:2A:...:CF",
            es_username="elastic",
            es_password="changeme",
        )
    """
    hosts = config.es_nodes or [config.resolved_es_url]
    is_cluster = config.es_nodes is not None

    if is_cluster:
        if not config.es_fingerprint:
            raise ValueError(
                "--es_fingerprint 필수: ES 9 클러스터 연결에는 "
                "TLS 인증서 fingerprint가 필요합니다."
            )
        if not config.es_api_key and not (config.es_username and config.es_password):
            raise ValueError(
                "인증 정보 필수: --es_api_key 또는 "
                "--es_username + --es_password를 지정하세요."
            )

    kwargs: dict = {"hosts": hosts}

    if config.es_api_key:
        kwargs["api_key"] = config.es_api_key
    elif config.es_username and config.es_password:
        kwargs["basic_auth"] = (config.es_username, config.es_password)

    if config.es_fingerprint:
        kwargs["ssl_assert_fingerprint"] = config.es_fingerprint
        kwargs["verify_certs"] = False

    return AsyncElasticsearch(**kwargs)


def _item_id(item: dict[str, Any]) -> tuple[int, str]:
    """async_bulk 에러 항목 {"index": {"_id": "12", "error": {...}}} → (12, 메시지)"""
    op = next(iter(item.values()))
    error = op.get("error", {})
    if isinstance(error, dict):
        message = f"{error.get('type', 'error')}: {error.get('reason', '')}"
    else:
        message = str(error)
    return int(op["_id"]), message


class ESIndexer:
    """
    Elasticsearch 클라이언트 래퍼. 인덱스 이름은 호출마다 지정 (콘텐츠 타입별 인덱스).

      - 인덱스 관리: delete_index / create_index / put_settings
      - 적재: bulk_documents (메인 경로) / add_document (거부 문서 단건 재시도)
    """

    def __init__(self, es: AsyncElasticsearch):
        self.es = es

    @classmethod
    def from_config(cls, config: Config) -> ESIndexer:
        return cls(build_es_client(config))

    # ================================================================
    # 인덱스 관리
    # ================================================================

    async def delete_index(self, index: str) -> bool:
        """인덱스 삭제. 존재하지 않으면 False."""
        try:
            await self.es.indices.delete(index=index)
        except NotFoundError:
            return False
        logger.info(f"Deleted index '{index}'")
        return True

    async def create_index(self, index: str, schema: dict | None = None):
        schema = schema or GAME_DATA_SCHEMA
        await self.es.indices.create(
            index=index,
            settings=schema.get("settings", {}),
            mappings=schema.get("mappings", {}),
        )
        logger.info(f"Created index '{index}'")

    async def put_settings(self, index: str, settings: dict[str, Any]):
        await self.es.indices.put_settings(index=index, settings=settings)

    # ================================================================
    # Bulk 인덱싱
    # ================================================================

    async def bulk_documents(self, index: str, docs: dict[int, dict]) -> BulkResult:
        """{id: 도큐먼트} → bulk upsert.

        요청 자체가 실패하면 SubmissionError, 문서별 거부는 BulkResult.failed로 반환.
        """
        actions = [
            {"_index": index, "_id": str(doc_id), "_source": doc}
            for doc_id, doc in docs.items()
        ]
        try:
            _, errors = await async_bulk(
                self.es, actions, chunk_size=len(actions), raise_on_error=False
            )
        except (ApiError, TransportError) as e:
            raise SubmissionError(f"Bulk index to '{index}' failed: {e}") from e

        failed = dict(_item_id(item) for item in errors)
        indexed = [doc_id for doc_id in docs if doc_id not in failed]
        return BulkResult(indexed=indexed, failed=failed)

    async def add_document(self, index: str, doc_id: int, doc: dict):
        """단일 문서 인덱싱 (upsert)."""
        await self.es.index(index=index, id=str(doc_id), document=doc)

    async def close(self):
        await self.es.close()


class IndexSettingsController:
    """
    벌크 적재 구간의 인덱스 설정 제어.

    prepare_for_bulk_load → (bulk 요청들) → restore_after_bulk_load
    refresh를 끄면 적재 중 검색 반영이 멈추는 대신 쓰기 처리량이 올라간다.
    """

    def __init__(self, indexer: ESIndexer, refresh_interval: str = "1s"):
        self.indexer = indexer
        self.refresh_interval = refresh_interval

    async def rebuild_index(self, index: str, schema: dict | None = None):
        """full run: 기존 인덱스 삭제 후 스키마로 재생성."""
        await self.indexer.delete_index(index)
        await self.indexer.create_index(index, schema)

    async def prepare_for_bulk_load(self, index: str):
        await self.indexer.put_settings(index, {"refresh_interval": REFRESH_DISABLED})

    async def restore_after_bulk_load(self, index: str):
        await self.indexer.put_settings(index, {"refresh_interval": self.refresh_interval})
