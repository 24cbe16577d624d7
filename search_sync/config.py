"""검색 동기화 설정"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .content import LANGUAGES

# ES bulk 1회에 보낼 최대 도큐먼트 수
MAX_BULK_DOCUMENTS = 250

# Redis 캐시 보존 기간 (초): 게임 데이터 import와 동일하게 1년
CACHE_TTL = 60 * 60 * 24 * 365

# 이 환경들은 production ES 서버로 배포, 나머지는 로컬 서버
PROD_ENVIRONMENTS = ("prod", "staging")

# ── 게임 데이터 인덱스 공통 스키마 (full run 시 재생성에 사용) ──
GAME_DATA_SCHEMA = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
        "max_result_window": 100000,
        "index.mapping.total_fields.limit": 50000,
        "analysis": {
            "normalizer": {
                "lowercase_normalizer": {
                    "type": "custom",
                    "filter": ["lowercase"],
                }
            }
        },
    },
    "mappings": {
        "dynamic_templates": [
            {
                "strings": {
                    "match_mapping_type": "string",
                    "mapping": {
                        "type": "text",
                        "analyzer": "standard",
                        "fields": {
                            "raw": {
                                "type": "keyword",
                                "normalizer": "lowercase_normalizer",
                                "ignore_above": 512,
                            }
                        },
                    },
                }
            }
        ],
        "properties": {
            "ID": {"type": "long"},
            "NameLocale": {"type": "text", "analyzer": "standard"},
            **{
                f"NameCombined_{lang}": {
                    "type": "text",
                    "analyzer": "standard",
                    "fields": {"raw": {"type": "keyword", "ignore_above": 512}},
                }
                for lang in LANGUAGES
            },
        },
    },
}


def resolve_es_url(environment: str) -> str:
    """배포 환경 → ES 엔드포인트. prod/staging은 ELASTIC_SERVER_PROD, 그 외는 ELASTIC_SERVER_LOCAL."""
    if environment in PROD_ENVIRONMENTS:
        return os.environ.get("ELASTIC_SERVER_PROD", "http://localhost:9200")
    return os.environ.get("ELASTIC_SERVER_LOCAL", "http://localhost:9200")


@dataclass
class Config:
    # 실행 모드
    environment: str = "prod"
    full: bool = False                 # True = 인덱스 재생성 + 전체 id 재인덱싱
    content: str | None = None         # 특정 콘텐츠만 (예: "Item")
    content_id: int | None = None      # 특정 id만

    # Redis 캐시
    redis_url: str = field(
        default_factory=lambda: os.environ.get("REDIS_URL", "redis://localhost:6379")
    )
    cache_ttl: int = CACHE_TTL

    # Elasticsearch 연결
    es_url: str | None = None               # 지정 시 environment 기반 해석 무시
    es_nodes: list[str] | None = None       # 클러스터 노드 목록 (설정 시 es_url 무시)
    es_fingerprint: str | None = None       # ES 9 TLS 인증서 SHA-256 fingerprint (클러스터 시 필수)
    es_username: str | None = None
    es_password: str | None = None
    es_api_key: str | None = None

    # 인덱스
    schema: dict | None = None         # None → GAME_DATA_SCHEMA
    refresh_interval: str = "1s"       # 벌크 완료 후 복원할 값

    # 처리
    max_bulk_documents: int = MAX_BULK_DOCUMENTS
    languages: tuple[str, ...] = LANGUAGES

    # 재시도 / 실패 처리
    max_retries: int = 1               # bulk 요청 시도 횟수 (1 = 재시도 없음, fail-fast)
    retry_backoff: float = 1.0
    retry_exponential: bool = True
    retry_max_backoff: float = 60.0
    retry_failed_items: bool = True    # bulk 응답 중 거부된 문서를 단건으로 재시도
    fail_fast: bool = True             # False면 제출 실패한 콘텐츠만 ABORTED 처리 후 계속

    # 로깅
    log_dir: Path = Path("logs")
    log_failures: bool = True
    failure_log_path: Path | None = None  # None → log_dir/failures_<ts>.jsonl

    @property
    def resolved_es_url(self) -> str:
        return self.es_url or resolve_es_url(self.environment)
