"""게시글(Post) 모델 정의.

관계형 저장소의 posts 행과, 조인된 카테고리/태그를 평탄화한 형태를 나타냅니다.
"""

from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def _relation_name(item: Any, key: str) -> Optional[str]:
    """관계 행에서 표시 이름을 꺼냅니다.

    지원 형태:
        - "name" (이미 평탄화된 문자열)
        - {"name": "..."}
        - {"category_id": {"id": 1, "name": "..."}} / {"tag_id": {...}}
    """
    if isinstance(item, str):
        return item or None
    if not isinstance(item, dict):
        return None
    nested = item.get(key)
    if isinstance(nested, dict):
        item = nested
    name = item.get("name")
    return name if isinstance(name, str) and name else None


class Post(BaseModel):
    """인덱싱 대상 게시글.

    Attributes:
        id: 게시글 숫자 ID
        title: 제목
        intro: 요약/도입부
        content: 본문 (리치 텍스트 JSON 문자열 또는 평문)
        cover_image_url: 커버 이미지 URL
        user_id: 작성자 ID
        view_count: 조회수
        like_count: 좋아요 수
        bookmarked: 북마크 여부
        categories: 카테고리 표시 이름 목록
        tags: 태그 표시 이름 목록
        created_at: 생성 타임스탬프
        updated_at: 마지막 수정 타임스탬프
    """

    id: int = Field(..., description="게시글 숫자 ID")
    title: str = Field(default="", description="제목")
    intro: str = Field(default="", description="요약/도입부")
    content: Any = Field(default="", description="본문 (리치 텍스트 JSON 또는 평문)")
    cover_image_url: Optional[str] = Field(default=None, description="커버 이미지 URL")
    user_id: Optional[str] = Field(default=None, description="작성자 ID")
    view_count: int = Field(default=0, description="조회수")
    like_count: int = Field(default=0, description="좋아요 수")
    bookmarked: bool = Field(default=False, description="북마크 여부")
    categories: list[str] = Field(default_factory=list, description="카테고리 표시 이름")
    tags: list[str] = Field(default_factory=list, description="태그 표시 이름")
    created_at: Optional[datetime] = Field(default=None, description="생성 타임스탬프")
    updated_at: Optional[datetime] = Field(default=None, description="수정 타임스탬프")

    model_config = {"extra": "ignore"}

    @field_validator("categories", mode="before")
    @classmethod
    def _flatten_categories(cls, value: Any) -> list[str]:
        if not value:
            return []
        names = (_relation_name(item, "category_id") for item in value)
        return [name for name in names if name]

    @field_validator("tags", mode="before")
    @classmethod
    def _flatten_tags(cls, value: Any) -> list[str]:
        if not value:
            return []
        names = (_relation_name(item, "tag_id") for item in value)
        return [name for name in names if name]

    @field_validator("view_count", "like_count", mode="before")
    @classmethod
    def _null_count(cls, value: Any) -> int:
        return value if isinstance(value, int) else 0

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_user(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        # 목록 API는 없는 타임스탬프를 ""로 내려줌
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def key(self) -> str:
        """인덱스 문서 키 (숫자 ID의 문자열 형태)."""
        return str(self.id)

    def created_or_now(self) -> datetime:
        """생성 시각이 없으면 현재 시각을 반환합니다."""
        return self.created_at or datetime.now(UTC)

    def model_dump_json_safe(self) -> dict:
        """JSON 직렬화 가능한 딕셔너리로 변환합니다."""
        return self.model_dump(mode="json")
