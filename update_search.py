#!/usr/bin/env python3
# update_search.py
"""
Redis 게임 데이터 캐시 → Elasticsearch 검색 인덱스 배포 (CLI 엔트리포인트)

사전 조건:
  Redis (ids_{Content}, xiv_{Content}_{id} 적재 완료), Elasticsearch
  ELASTIC_SERVER_PROD / ELASTIC_SERVER_LOCAL / REDIS_URL 환경변수

실행:
  # Incremental (신규 id만)
  python update_search.py --environment dev

  # Full (인덱스 재생성)
  python update_search.py --environment prod --full

  # 특정 콘텐츠 / 특정 id
  python update_search.py --content Item
  python update_search.py --content Quest --id 65575 --full
"""

import argparse
import sys
from pathlib import Path

from search_sync import (
    CONTENT_LIST,
    MAX_BULK_DOCUMENTS,
    Config,
    SyncState,
    get_logger,
    run_sync,
)

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy all search data to live!")
    parser.add_argument(
        "--environment", default="prod",
        help="prod/staging → ELASTIC_SERVER_PROD, 그 외 → ELASTIC_SERVER_LOCAL",
    )
    parser.add_argument(
        "--full", action="store_true",
        help="인덱스 재생성 후 기존 인덱싱 여부와 무관하게 전체 적재",
    )
    parser.add_argument("--content", choices=CONTENT_LIST, default=None, help="특정 콘텐츠만")
    parser.add_argument("--id", type=int, default=None, dest="content_id", help="특정 id만")

    parser.add_argument("--max_bulk_documents", type=int, default=MAX_BULK_DOCUMENTS)
    parser.add_argument("--redis_url", default=None, help="미지정 시 REDIS_URL 환경변수")
    parser.add_argument("--es_url", default=None, help="지정 시 --environment 기반 해석 무시")

    # ── 재시도 / 실패 처리 ──
    retry = parser.add_argument_group("재시도 / 실패 처리")
    retry.add_argument(
        "--max_retries", type=int, default=1,
        help="bulk 요청 시도 횟수 (1=재시도 없음, default: 1)",
    )
    retry.add_argument("--retry_backoff", type=float, default=1.0)
    retry.add_argument(
        "--continue_on_error", action="store_true",
        help="bulk 실패 시 해당 콘텐츠만 중단하고 다음 콘텐츠 진행",
    )
    retry.add_argument(
        "--failure_log", type=Path, default=None,
        help="거부 문서 JSONL 경로 (미지정 시 logs/ 에 자동 생성)",
    )
    parser.add_argument("--log_dir", type=Path, default=Path("logs"))
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    config_kwargs = {
        "environment": args.environment,
        "full": args.full,
        "content": args.content,
        "content_id": args.content_id,
        "max_bulk_documents": args.max_bulk_documents,
        "es_url": args.es_url,
        "max_retries": args.max_retries,
        "retry_backoff": args.retry_backoff,
        "fail_fast": not args.continue_on_error,
        "failure_log_path": args.failure_log,
        "log_dir": args.log_dir,
    }
    if args.redis_url:
        config_kwargs["redis_url"] = args.redis_url
    return Config(**config_kwargs)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    try:
        results = run_sync(config)
    except Exception as e:
        logger.error(f"[bold red]동기화 실패[/bold red]: {e}")
        return 1

    aborted = [r for r in results if r.state == SyncState.ABORTED]
    return 1 if aborted else 0


if __name__ == "__main__":
    sys.exit(main())
