"""
search_sync: Redis 게임 데이터 캐시 → Elasticsearch 검색 인덱스 동기화

Incremental (기본, 신규 id만):
    from search_sync import Config, run_sync
    run_sync(Config(environment="dev"))

Full (인덱스 재생성 + 전체 적재):
    run_sync(Config(environment="prod", full=True, content="Item"))

개별 컴포넌트 (async):
    from search_sync import DocumentTransformer, ContentType
    doc = DocumentTransformer(ContentType("Title")).transform(record)
"""

from .buffer import BatchBuffer
from .config import GAME_DATA_SCHEMA, MAX_BULK_DOCUMENTS, Config
from .content import CONTENT_LIST, LANGUAGES, ContentType, content_types
from .indexer import (
    BulkResult,
    ESIndexer,
    IndexSettingsController,
    SubmissionError,
    build_es_client,
)
from .log import get_logger, setup_logging
from .pipeline import IndexSynchronizer, SyncResult, SyncState, run_sync
from .retry import AsyncFailureLogger, RetryConfig, async_with_retry
from .source import CatalogSource, RedisCatalogSource
from .transformer import DocumentTransformer

__all__ = [
    "Config", "GAME_DATA_SCHEMA", "MAX_BULK_DOCUMENTS",
    "CONTENT_LIST", "LANGUAGES", "ContentType", "content_types",
    "CatalogSource", "RedisCatalogSource",
    "DocumentTransformer", "BatchBuffer",
    "ESIndexer", "IndexSettingsController", "BulkResult", "SubmissionError",
    "build_es_client",
    "IndexSynchronizer", "SyncResult", "SyncState", "run_sync",
    "RetryConfig", "AsyncFailureLogger", "async_with_retry",
    "setup_logging", "get_logger",
]
