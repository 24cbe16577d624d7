"""bulk 배치 버퍼: max_bulk_documents 도달 시 flush"""

from __future__ import annotations

from .indexer import BulkResult, ESIndexer
from .source import Value


class BatchBuffer:
    """
    인덱스 하나에 대한 {id: 도큐먼트} 누적 버퍼.

    사용 예:
        buffer = BatchBuffer(indexer, "item", capacity=250)
        if buffer.add(12, doc):
            await buffer.flush()
        ...
        if buffer:
            await buffer.flush()   # 나머지
    """

    def __init__(self, indexer: ESIndexer, index: str, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.indexer = indexer
        self.index = index
        self.capacity = capacity
        self._docs: dict[int, dict[str, Value]] = {}

    def add(self, doc_id: int, doc: dict[str, Value]) -> bool:
        """도큐먼트 추가. 버퍼가 가득 차면 True (호출자가 flush)."""
        self._docs[doc_id] = doc
        return self.is_full

    def size(self) -> int:
        return len(self._docs)

    def __len__(self) -> int:
        return len(self._docs)

    @property
    def is_full(self) -> bool:
        return len(self._docs) >= self.capacity

    def pending(self) -> dict[int, dict[str, Value]]:
        return dict(self._docs)

    async def flush(self) -> BulkResult | None:
        """bulk 1회 전송 후 비움. 실패 시 예외 전파 (버퍼 유지)."""
        if not self._docs:
            return None
        result = await self.indexer.bulk_documents(self.index, self._docs)
        self._docs = {}
        return result
