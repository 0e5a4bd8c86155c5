"""청크(Chunk) 모델 정의.

RAG 인덱스에 올라가는 본문 조각을 나타냅니다.
"""

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """게시글 평문에서 잘라낸 텍스트 청크.

    청크는 인덱싱 시도마다 새로 만들어지며 캐시되지 않습니다.

    Attributes:
        source_post_id: 원본 게시글 ID
        sequence_number: 같은 평문에서 나온 청크 중 위치 (0부터 시작)
        text: 청크 텍스트
        full_text: 원본 평문 전체
        created_at: 원본 게시글 생성 시각 (없으면 청크 생성 시각)
        embedding: 청크 임베딩 벡터
    """

    source_post_id: int = Field(..., description="원본 게시글 ID")
    sequence_number: int = Field(..., ge=0, description="청크 위치 (0부터 시작)")
    text: str = Field(..., description="청크 텍스트")
    full_text: str = Field(default="", description="원본 평문 전체")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="생성 타임스탬프",
    )
    embedding: Optional[list[float]] = Field(default=None, description="임베딩 벡터")

    @property
    def doc_id(self) -> str:
        """RAG 인덱스 문서 키 ("{post_id}_{n}")."""
        return f"{self.source_post_id}_{self.sequence_number}"
