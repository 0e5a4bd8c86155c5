"""인덱싱 아웃박스(index_queue) 모델 정의.

게시글별 검색 인덱싱 상태를 기록합니다. 게시글 하나당 한 행입니다.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IndexingStatus(str, Enum):
    """인덱싱 상태.

    Attributes:
        PENDING: 게시글 저장 직후, 인덱싱 시도 전
        SUCCESS: 블로그/RAG 인덱스 업로드 모두 성공
        FAILED: 인덱싱 실패 (next_retry_at 이후 재시도 대상)
    """

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class IndexingOutboxEntry(BaseModel):
    """게시글 인덱싱 아웃박스 항목.

    상태 전이: pending → success, pending → failed.
    failed 항목은 재시도 스윕이 다시 pending으로 되돌린 뒤 재실행합니다.

    Attributes:
        post_id: 게시글 ID
        status: 현재 인덱싱 상태
        attempts: 시도 횟수 (1부터 시작)
        next_retry_at: 다음 재시도 가능 시각 (failed일 때만)
        last_error: 마지막 실패 메시지
        chunk_count: RAG 인덱스에 남아 있을 수 있는 청크 키 수 ("{post_id}_0"부터)
        updated_at: 마지막 기록 시각
    """

    post_id: int = Field(..., description="게시글 ID")
    status: IndexingStatus = Field(
        default=IndexingStatus.PENDING,
        description="현재 인덱싱 상태",
    )
    attempts: int = Field(default=1, ge=1, description="시도 횟수")
    next_retry_at: Optional[datetime] = Field(
        default=None,
        description="다음 재시도 가능 시각",
    )
    last_error: Optional[str] = Field(default=None, description="마지막 실패 메시지")
    chunk_count: int = Field(default=0, ge=0, description="RAG 인덱스 청크 키 수")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="마지막 기록 시각",
    )

    def mark_pending(self, attempts: int = 1) -> None:
        """인덱싱 시도 시작 전 상태로 표시."""
        self.status = IndexingStatus.PENDING
        self.attempts = attempts
        self.updated_at = datetime.now(UTC)

    def mark_success(self, attempts: int = 1, chunk_count: Optional[int] = None) -> None:
        """인덱싱 성공으로 표시. next_retry_at과 last_error를 비웁니다."""
        self.status = IndexingStatus.SUCCESS
        self.attempts = attempts
        if chunk_count is not None:
            self.chunk_count = chunk_count
        self.next_retry_at = None
        self.last_error = None
        self.updated_at = datetime.now(UTC)

    def mark_failed(
        self,
        message: str,
        backoff: timedelta,
        attempts: int = 1,
        now: Optional[datetime] = None,
        chunk_count: Optional[int] = None,
    ) -> None:
        """인덱싱 실패로 표시.

        Args:
            message: 실패 메시지.
            backoff: 다음 재시도까지 대기 시간.
            attempts: 이번 시도까지의 시도 횟수.
            now: 기준 시각 (테스트용). 기본값은 현재 시각.
            chunk_count: 이번 시도에서 업로드를 시도한 청크 수. 기록된 값보다 클 때만 반영.
        """
        now = now or datetime.now(UTC)
        if chunk_count is not None:
            self.chunk_count = max(self.chunk_count, chunk_count)
        self.status = IndexingStatus.FAILED
        self.attempts = attempts
        self.next_retry_at = now + backoff
        self.last_error = message
        self.updated_at = now

    def is_due(self, now: Optional[datetime] = None) -> bool:
        """재시도 시각이 지났는지 확인합니다.

        Returns:
            failed 상태이고 next_retry_at <= now이면 True.
        """
        if self.status != IndexingStatus.FAILED or self.next_retry_at is None:
            return False
        return self.next_retry_at <= (now or datetime.now(UTC))

    def model_dump_json_safe(self) -> dict:
        """JSON 직렬화 가능한 딕셔너리로 변환합니다."""
        return self.model_dump(mode="json")

    @classmethod
    def from_json_safe(cls, data: dict) -> "IndexingOutboxEntry":
        """JSON-safe 딕셔너리에서 항목을 생성합니다.

        pydantic이 ISO 문자열을 datetime으로 파싱합니다.
        """
        return cls.model_validate(data)
