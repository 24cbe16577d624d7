"""캐시 → 검색 인덱스 동기화 파이프라인: Rich 로깅 + Progress Bar + 실패 로깅

콘텐츠 타입별 순서:
    id 목록 로드 → (full) 인덱스 재생성 → refresh 비활성
    → id 순회 (fetch → transform → buffer → bulk) → 나머지 flush
    → refresh 복원 → 인덱싱된 id 목록 저장

Incremental: 이미 인덱싱된 id는 건너뜀
Full:        인덱스를 새로 만들고 모든 id를 다시 적재

bulk 요청 실패는 실행 전체를 중단 (fail_fast=False면 해당 콘텐츠만 ABORTED).
bulk 응답 내 문서별 거부는 단건 재시도 후 JSONL에 기록.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

from elasticsearch import ApiError, TransportError
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from .buffer import BatchBuffer
from .config import Config
from .content import ContentType
from .indexer import ESIndexer, IndexSettingsController, SubmissionError
from .log import get_logger, setup_logging
from .retry import AsyncFailureLogger, RetryConfig, async_with_retry
from .source import CatalogSource, RedisCatalogSource
from .transformer import DocumentTransformer

console = Console()
logger = get_logger("pipeline")


class SyncState(str, Enum):
    SKIPPED = "skipped"
    PERSISTED = "persisted"
    ABORTED = "aborted"


@dataclass
class SyncResult:
    """콘텐츠 타입 1개의 동기화 결과"""

    content: ContentType
    state: SyncState
    total: int = 0
    already_indexed: int = 0
    missing: int = 0
    rejected: int = 0
    submitted: int = 0
    failed: int = 0
    bulk_requests: int = 0
    retries: int = 0
    error: str | None = None


class IndexSynchronizer:
    """
    캐시(CatalogSource)와 ES(ESIndexer)를 주입받아 콘텐츠 타입을 순차 동기화.

    사용 예:
        sync = IndexSynchronizer(source, indexer, Config(full=True))
        results = await sync.run()
    """

    def __init__(
        self,
        source: CatalogSource,
        indexer: ESIndexer,
        config: Config,
        failure_logger: AsyncFailureLogger | None = None,
        progress: Progress | None = None,
    ):
        self.source = source
        self.indexer = indexer
        self.config = config
        self.failure_logger = failure_logger
        self.settings = IndexSettingsController(indexer, config.refresh_interval)
        self.retry_config = RetryConfig(
            max_retries=config.max_retries,
            initial_backoff=config.retry_backoff,
            exponential=config.retry_exponential,
            max_backoff=config.retry_max_backoff,
        )
        self._progress = progress

    async def run(self) -> list[SyncResult]:
        """모든 콘텐츠 타입 동기화. fail_fast면 첫 SubmissionError에서 중단."""
        results = []
        for content in self.source.list_content_types():
            if self.config.content and content.name != self.config.content:
                continue
            results.append(await self.sync_content(content))
        return results

    async def sync_content(self, content: ContentType) -> SyncResult:
        index = content.index_name
        source_ids = await self.source.get_source_ids(content)
        indexed_ids = await self.source.get_indexed_ids(content)

        if not source_ids:
            logger.error(f"No IDs for content: {content}")
            return SyncResult(content, SyncState.SKIPPED)

        result = SyncResult(content, SyncState.PERSISTED, total=len(source_ids))
        mode = "full" if self.config.full else "incremental"
        logger.info(
            f"[bold]{content}[/bold] → '{index}': {len(source_ids):,} ids "
            f"({len(indexed_ids):,} indexed, {mode})"
        )

        try:
            if self.config.full:
                await self.settings.rebuild_index(index, self.config.schema)
            await self.settings.prepare_for_bulk_load(index)
            try:
                submitted = await self._stream(content, source_ids, indexed_ids, result)
            finally:
                await self.settings.restore_after_bulk_load(index)
        except SubmissionError as e:
            result.state = SyncState.ABORTED
            result.error = str(e)
            logger.error(f"[bold red]{content} 중단[/bold red]: {e}")
            if self.config.fail_fast:
                raise
            return result

        result.submitted = len(submitted)
        await self.source.save_indexed_ids(content, indexed_ids | submitted)
        logger.info(
            f"{content}: submitted={result.submitted:,}  skipped={result.already_indexed:,}  "
            f"rejected={result.rejected:,}  missing={result.missing:,}  failed={result.failed:,}"
        )
        return result

    async def _stream(
        self,
        content: ContentType,
        source_ids: list[int],
        indexed_ids: set[int],
        result: SyncResult,
    ) -> set[int]:
        """id 순회 + 배치 flush. 이번 실행에서 인덱싱에 성공한 id 집합 반환."""
        transformer = DocumentTransformer(content, self.config.languages)
        buffer = BatchBuffer(self.indexer, content.index_name, self.config.max_bulk_documents)
        submitted: set[int] = set()
        task_id = self._start_task(content, len(source_ids))

        def _on_retry(attempt: int, error: Exception):
            result.retries += 1

        flush = async_with_retry(self.retry_config, on_retry=_on_retry)(buffer.flush)

        for content_id in source_ids:
            self._advance(task_id)

            if self.config.content_id is not None and content_id != self.config.content_id:
                continue

            if not self.config.full and content_id in indexed_ids:
                result.already_indexed += 1
                continue

            record = await self.source.get_record(content, content_id)
            if record is None:
                result.missing += 1
                continue

            doc = transformer.transform(record)
            if doc is None:
                result.rejected += 1
                continue

            if buffer.add(content_id, doc):
                await self._flush(buffer, flush, result, submitted)

        if buffer:
            await self._flush(buffer, flush, result, submitted)

        return submitted

    async def _flush(self, buffer: BatchBuffer, flush, result: SyncResult, submitted: set[int]):
        docs = buffer.pending()
        bulk = await flush()
        result.bulk_requests += 1
        submitted.update(bulk.indexed)

        for doc_id, error in bulk.failed.items():
            if self.config.retry_failed_items:
                try:
                    await self.indexer.add_document(buffer.index, doc_id, docs[doc_id])
                    submitted.add(doc_id)
                    continue
                except ApiError as e:
                    error = str(e)
                except TransportError as e:
                    raise SubmissionError(
                        f"Index to '{buffer.index}' failed at id {doc_id}: {e}"
                    ) from e

            result.failed += 1
            logger.warning(f"{buffer.index}/{doc_id} 인덱싱 거부: {error}")
            if self.failure_logger:
                await self.failure_logger.log_failure(
                    buffer.index, doc_id, error,
                    {"name": docs[doc_id].get(f"Name_{self.config.languages[0]}"),
                     "item_retried": self.config.retry_failed_items},
                )

    def _start_task(self, content: ContentType, total: int):
        if self._progress is None:
            return None
        return self._progress.add_task(content.name, total=total)

    def _advance(self, task_id):
        if self._progress is not None and task_id is not None:
            self._progress.update(task_id, advance=1)


# ============================================================
# Rich Progress bar + 요약
# ============================================================
def _create_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        "[progress.description]{task.description}",
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )


def _summary_table(title: str, results: list[SyncResult]) -> Table:
    table = Table(title=title, border_style="dim")
    table.add_column("콘텐츠", style="bold")
    table.add_column("상태")
    for col in ("ids", "submitted", "skipped", "rejected", "missing", "failed", "bulk"):
        table.add_column(col, justify="right", style="cyan")
    for r in results:
        state = r.state.value if r.state != SyncState.ABORTED else f"[red]{r.state.value}[/]"
        table.add_row(
            r.content.name, state,
            f"{r.total:,}", f"{r.submitted:,}", f"{r.already_indexed:,}",
            f"{r.rejected:,}", f"{r.missing:,}", f"{r.failed:,}", f"{r.bulk_requests:,}",
        )
    return table


def _resolve_failure_log_path(config: Config):
    if config.failure_log_path:
        return config.failure_log_path
    return config.log_dir / f"failures_{time.strftime('%Y%m%d_%H%M%S')}.jsonl"


async def _run(config: Config) -> list[SyncResult]:
    log_file = setup_logging(config.log_dir, console=console)
    logger.info(f"Log → {log_file}")
    logger.info(f"config: environment={config.environment} full={config.full} "
                f"content={config.content} id={config.content_id} "
                f"max_bulk={config.max_bulk_documents}")

    source = RedisCatalogSource.from_config(config)
    indexer = ESIndexer.from_config(config)
    failure_logger = AsyncFailureLogger(
        _resolve_failure_log_path(config), enabled=config.log_failures
    )

    started = time.perf_counter()
    results: list[SyncResult] = []
    try:
        progress = _create_progress()
        with progress:
            sync = IndexSynchronizer(source, indexer, config, failure_logger, progress)
            results = await sync.run()
    finally:
        await indexer.close()
        await source.close()

    console.print(_summary_table("결과 요약", results))
    if failure_logger.count:
        logger.warning(f"실패 문서 {failure_logger.count:,}건 → {failure_logger.log_path}")
    logger.info(f"완료 ({time.perf_counter() - started:.1f}초)")
    return results


# ============================================================
# Public API: 동기 래퍼
# ============================================================
def run_sync(config: Config) -> list[SyncResult]:
    """캐시 → ES 동기화 실행. 제출 실패는 SubmissionError로 전파."""
    if config.environment == "prod":
        console.print(Panel.fit("[bold]DEPLOYING TO PRODUCTION[/]", border_style="red"))
    mode = "Full 모드: 인덱스 재생성 + 전체 적재" if config.full else "Incremental 모드: 신규 id만 적재"
    console.print(Panel.fit(f"[bold]{mode}[/]", border_style="green"))
    return asyncio.run(_run(config))
