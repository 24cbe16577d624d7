"""
동기화 실행 로깅: Rich 콘솔 + 실행별 plain-text 로그 파일

  - 콘솔: Progress bar와 같은 Console을 공유하는 RichHandler (markup 지원)
  - 파일: {log_dir}/search_sync_{YYYYmmdd_HHMMSS}.log, markup 제거
  - ES / Redis 클라이언트 로거는 WARNING 이상만 (요청마다 INFO가 찍힘)

사용법:
    logger = get_logger("pipeline")     # search_sync.pipeline
    log_file = setup_logging(Path("logs"), console=console)
    logger.info("[bold]Item[/bold] → 'item'")
"""

import logging
import os
import time
from pathlib import Path

from rich.console import Console
from rich.errors import MarkupError
from rich.logging import RichHandler
from rich.text import Text

PKG = "search_sync"

# 요청 단위로 INFO를 남기는 클라이언트 라이브러리 로거
CLIENT_LOGGERS = ("elastic_transport", "elasticsearch", "redis")


def strip_markup(message: str) -> str:
    """"[red]실패[/red] item/3" → "실패 item/3". 파싱 불가한 대괄호는 그대로."""
    try:
        return Text.from_markup(message).plain
    except MarkupError:
        return message


class _PlainFormatter(logging.Formatter):
    """파일용: 인자 치환이 끝난 메시지에서 markup 제거. 원본 record는 건드리지 않음."""

    def format(self, record: logging.LogRecord) -> str:
        plain = logging.makeLogRecord(record.__dict__)
        plain.msg = strip_markup(record.getMessage())
        plain.args = None
        return super().format(plain)


def run_log_path(log_dir: Path) -> Path:
    return log_dir / f"search_sync_{time.strftime('%Y%m%d_%H%M%S')}.log"


def setup_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: Console | None = None,
) -> Path | None:
    """
    패키지 루트 로거 설정. 실행 로그 파일 경로를 반환 (log_dir 없으면 None).

    RichHandler는 1회만 추가되고, 같은 경로의 FileHandler도 중복 추가하지 않는다.
    """
    root = logging.getLogger(PKG)
    root.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        rh = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
            log_time_format="[%H:%M:%S]",
        )
        rh.setLevel(level)
        root.addHandler(rh)

    for name in CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if log_dir is None:
        return None

    log_file = run_log_path(log_dir)
    attached = {h.baseFilename for h in root.handlers if isinstance(h, logging.FileHandler)}
    if os.path.abspath(log_file) not in attached:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(_PlainFormatter("%(asctime)s  %(levelname)-7s  %(name)s  %(message)s"))
        fh.setLevel(level)
        root.addHandler(fh)
    return log_file


def get_logger(name: str) -> logging.Logger:
    """get_logger("indexer") → search_sync.indexer"""
    return logging.getLogger(f"{PKG}.{name}")
