"""인덱싱 아웃박스 트래커.

index_queue 행을 pending → success / failed로 기록합니다.

모든 쓰기는 best-effort입니다. 저장소 오류는 로그만 남기고 삼키므로
호출자는 원래의 인덱싱 결과를 그대로 받습니다.
"""

from datetime import UTC, datetime, timedelta
from typing import Optional

from ..config import OutboxSettings
from ..logging_config import Loggers
from ..models import IndexingOutboxEntry, IndexingStatus
from ..storage import Storage

logger = Loggers.outbox()

DEFAULT_BACKOFF_SECONDS = 600
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BATCH_SIZE = 50


class OutboxTracker:
    """게시글별 인덱싱 상태 기록기.

    Attributes:
        backoff: 실패 후 다음 재시도까지 대기 시간.
        max_attempts: 이 횟수에 도달한 항목은 더 이상 재시도하지 않음.
        batch_size: due_entries 한 번에 반환할 최대 항목 수.
    """

    def __init__(
        self,
        storage: Storage,
        backoff_seconds: int = DEFAULT_BACKOFF_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.storage = storage
        self.backoff = timedelta(seconds=backoff_seconds)
        self.max_attempts = max_attempts
        self.batch_size = batch_size

    @classmethod
    def from_settings(cls, storage: Storage, settings: OutboxSettings) -> "OutboxTracker":
        """설정으로 트래커를 생성합니다."""
        return cls(
            storage=storage,
            backoff_seconds=settings.backoff_seconds,
            max_attempts=settings.max_attempts,
            batch_size=settings.batch_size,
        )

    def mark_pending(self, post_id: int, attempts: int = 1) -> Optional[IndexingOutboxEntry]:
        """인덱싱 시도 직전에 pending으로 기록합니다.

        Returns:
            기록된 항목, 저장 실패 시 None.
        """
        entry = self._current(post_id)
        entry.mark_pending(attempts)
        return self._write(entry, "pending")

    def mark_success(
        self,
        post_id: int,
        attempts: int = 1,
        chunk_count: Optional[int] = None,
    ) -> Optional[IndexingOutboxEntry]:
        """인덱싱 성공으로 기록합니다. next_retry_at과 last_error를 비웁니다.

        chunk_count를 주면 RAG 인덱스에 남은 청크 키 수로 기록합니다.
        """
        entry = self._current(post_id)
        entry.mark_success(attempts, chunk_count)
        return self._write(entry, "success")

    def mark_failed(
        self,
        post_id: int,
        message: str,
        attempts: int = 1,
        now: Optional[datetime] = None,
        chunk_count: Optional[int] = None,
    ) -> Optional[IndexingOutboxEntry]:
        """인덱싱 실패로 기록합니다.

        Args:
            post_id: 게시글 ID.
            message: 실패 메시지.
            attempts: 이번 시도까지의 시도 횟수.
            now: 기준 시각. next_retry_at = now + backoff.
            chunk_count: 업로드를 시도한 청크 수 (일부가 인덱스에 남았을 수 있음).
        """
        entry = self._current(post_id)
        entry.mark_failed(
            message, self.backoff, attempts=attempts, now=now, chunk_count=chunk_count
        )
        return self._write(entry, "failed")

    def due_entries(self, now: Optional[datetime] = None) -> list[IndexingOutboxEntry]:
        """재시도 시각이 지난 failed 항목을 반환합니다.

        next_retry_at 오름차순으로 정렬하고 batch_size만큼만 반환합니다.
        attempts가 max_attempts 이상인 항목은 제외합니다.
        """
        now = now or datetime.now(UTC)
        try:
            failed = self.storage.list_queue_entries(status=IndexingStatus.FAILED)
        except Exception as e:
            logger.warning("아웃박스 조회 실패", error=str(e))
            return []

        due = [
            entry
            for entry in failed
            if entry.is_due(now) and entry.attempts < self.max_attempts
        ]
        due.sort(key=lambda entry: entry.next_retry_at)
        return due[: self.batch_size]

    def get(self, post_id: int) -> Optional[IndexingOutboxEntry]:
        """게시글의 현재 아웃박스 항목을 반환합니다."""
        return self.storage.get_queue_entry(post_id)

    def indexed_chunk_count(self, post_id: int) -> int:
        """RAG 인덱스에 남아 있을 수 있는 청크 키 수를 반환합니다. 조회 실패 시 0."""
        return self._current(post_id).chunk_count

    def _current(self, post_id: int) -> IndexingOutboxEntry:
        try:
            existing = self.storage.get_queue_entry(post_id)
        except Exception as e:
            logger.warning("아웃박스 항목 조회 실패", post_id=post_id, error=str(e))
            existing = None
        return existing or IndexingOutboxEntry(post_id=post_id)

    def _write(self, entry: IndexingOutboxEntry, label: str) -> Optional[IndexingOutboxEntry]:
        try:
            self.storage.upsert_queue_entry(entry)
        except Exception as e:
            # 인덱싱 결과를 덮지 않도록 삼킴
            logger.error(
                "아웃박스 기록 실패",
                post_id=entry.post_id,
                status=label,
                error=str(e),
            )
            return None

        logger.debug(
            "아웃박스 기록",
            post_id=entry.post_id,
            status=label,
            attempts=entry.attempts,
        )
        return entry
