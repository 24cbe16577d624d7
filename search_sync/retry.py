"""bulk 재시도 + 실패 문서 JSONL 기록"""

import asyncio
import json
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable

from .log import get_logger

logger = get_logger("retry")


class RetryConfig:
    """재시도 설정. max_retries는 총 시도 횟수 (1 = 재시도 없음)."""

    def __init__(
        self,
        max_retries: int = 1,
        initial_backoff: float = 1.0,
        exponential: bool = True,
        max_backoff: float = 60.0,
    ):
        self.max_retries = max(1, max_retries)
        self.initial_backoff = initial_backoff
        self.exponential = exponential
        self.max_backoff = max_backoff

    def backoff(self, attempt: int) -> float:
        if self.exponential:
            return min(self.initial_backoff * (2 ** (attempt - 1)), self.max_backoff)
        return self.initial_backoff


class AsyncFailureLogger:
    """
    실패 문서 로거 (JSONL).

    파일 형식 (1줄 = 1 실패 문서):
        {"index": "item", "doc_id": 12, "error_type": "...", "error_message": "...", "timestamp": "..."}
    """

    def __init__(self, log_path: Path, enabled: bool = True):
        self.log_path = log_path
        self.enabled = enabled
        self._lock = asyncio.Lock()
        self._count = 0
        if enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    async def log_failure(
        self,
        index: str,
        doc_id: int,
        error: Exception | str,
        data_info: dict[str, Any] | None = None,
    ):
        """실패 문서를 JSONL에 기록."""
        if not self.enabled:
            return

        error_type = type(error).__name__ if isinstance(error, Exception) else "str"
        error_msg = str(error)

        record = {
            "index": index,
            "doc_id": doc_id,
            "error_type": error_type,
            "error_message": error_msg,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S"),
            **(data_info or {}),
        }
        async with self._lock:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
            self._count += 1

        logger.warning(f"[red]실패 기록[/red] {index}/{doc_id}: {error_msg}")

    @property
    def count(self) -> int:
        return self._count


def async_with_retry(
    retry_config: RetryConfig,
    on_retry: Callable[[int, Exception], None] | None = None,
):
    """
    비동기 재시도 데코레이터.

    마지막 시도까지 실패하면 예외를 그대로 전파한다.

    사용 예:
        @async_with_retry(RetryConfig(max_retries=3))
        async def flush():
            await buffer.flush()
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, retry_config.max_retries + 1):
                try:
                    return await func(*args, **kwargs)

                except Exception as e:
                    if attempt >= retry_config.max_retries:
                        if retry_config.max_retries > 1:
                            logger.error(
                                f"[bold red]최종 실패[/bold red] "
                                f"(시도 {attempt}/{retry_config.max_retries}): {e}"
                            )
                        raise

                    backoff = retry_config.backoff(attempt)
                    if on_retry:
                        on_retry(attempt, e)
                    logger.warning(
                        f"[yellow]재시도 대기[/yellow] "
                        f"({attempt}/{retry_config.max_retries}) "
                        f"{backoff:.1f}초 후 재시도... error: {e}"
                    )
                    await asyncio.sleep(backoff)

        return wrapper

    return decorator
