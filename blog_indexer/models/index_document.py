"""검색 인덱스 문서 모델 정의.

블로그 인덱스(게시글 1건 = 문서 1건)와 RAG 인덱스(청크 1건 = 문서 1건)의
업로드 페이로드를 나타냅니다.
"""

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel, Field

from .chunk import Chunk
from .post import Post

UPLOAD_ACTION = "upload"
RAG_SOURCE = "blog"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    """UTC 오프셋이 붙은 ISO 문자열로 변환합니다. 시간대가 없는 값은 UTC로 간주합니다."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


class IndexDocument(BaseModel):
    """블로그 인덱스 문서.

    id는 게시글 숫자 ID의 문자열 형태이며 (인덱스 키는 문자열),
    categories/tags는 외래 키가 아닌 표시 이름입니다.
    """

    id: str
    title: str = ""
    intro: str = ""
    content: str = ""
    cover_image_url: str = ""
    user_id: str = ""
    view_count: int = 0
    like_count: int = 0
    bookmark: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    content_vector: list[float] = Field(default_factory=list)

    @classmethod
    def from_post(cls, post: Post, content_text: str, vector: list[float]) -> "IndexDocument":
        """게시글과 추출된 평문, 임베딩으로 인덱스 문서를 만듭니다.

        Args:
            post: 원본 게시글.
            content_text: 본문에서 추출한 평문.
            vector: 평문 전체의 임베딩.

        Returns:
            IndexDocument 인스턴스.
        """
        return cls(
            id=post.key,
            title=post.title or "",
            intro=post.intro or "",
            content=content_text,
            cover_image_url=post.cover_image_url or "",
            user_id=post.user_id or "",
            view_count=post.view_count,
            like_count=post.like_count,
            bookmark=post.bookmarked,
            created_at=_isoformat(post.created_at),
            updated_at=_isoformat(post.updated_at),
            categories=list(post.categories),
            tags=list(post.tags),
            content_vector=vector,
        )

    @property
    def key(self) -> str:
        return self.id

    def to_upload_action(self) -> dict:
        """업로드 배치 항목으로 변환합니다.

        값이 없는 타임스탬프는 인덱스의 기존 값을 null로 덮지 않도록 제외합니다.
        """
        data = self.model_dump(exclude_none=True)
        data["@search.action"] = UPLOAD_ACTION
        return data


class RagDocument(BaseModel):
    """RAG 인덱스 청크 문서."""

    doc_id: str
    chunk: str
    full_text: str
    source: str = RAG_SOURCE
    section: str = ""
    created_at: str
    content_vector: list[float] = Field(default_factory=list)

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "RagDocument":
        """임베딩이 채워진 청크로 RAG 문서를 만듭니다.

        Raises:
            ValueError: 청크에 임베딩이 없는 경우.
        """
        if chunk.embedding is None:
            raise ValueError("청크에 임베딩이 없습니다")
        return cls(
            doc_id=chunk.doc_id,
            chunk=chunk.text,
            full_text=chunk.full_text,
            created_at=_isoformat(chunk.created_at),
            content_vector=chunk.embedding,
        )

    @property
    def key(self) -> str:
        return self.doc_id

    def to_upload_action(self) -> dict:
        data = self.model_dump()
        data["@search.action"] = UPLOAD_ACTION
        return data
