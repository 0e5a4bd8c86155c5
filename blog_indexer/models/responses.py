"""외부 서비스 응답 스키마.

임베딩/검색 서비스 응답을 경계에서 명시적으로 검증합니다.
필수 필드가 없으면 기본값으로 채우지 않고 ValidationError로 거부합니다.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingItem(BaseModel):
    """임베딩 응답의 단일 항목."""

    embedding: list[float] = Field(..., min_length=1)
    index: int = 0

    model_config = ConfigDict(extra="ignore")


class EmbeddingResponse(BaseModel):
    """임베딩 엔드포인트 응답 ({"data": [{"embedding": [...]}]})."""

    data: list[EmbeddingItem] = Field(..., min_length=1)
    model: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def vector(self) -> list[float]:
        return self.data[0].embedding


class IndexingResult(BaseModel):
    """업로드 배치 내 문서 하나의 처리 결과."""

    key: str
    status: bool
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    status_code: int = Field(..., alias="statusCode")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IndexUploadResponse(BaseModel):
    """docs/index 업로드 응답 ({"value": [IndexingResult, ...]})."""

    value: list[IndexingResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def failed(self) -> list[IndexingResult]:
        return [result for result in self.value if not result.status]

    @property
    def succeeded_keys(self) -> list[str]:
        return [result.key for result in self.value if result.status]


class FacetValue(BaseModel):
    """패싯 값과 문서 수."""

    value: Any
    count: int

    model_config = ConfigDict(extra="ignore")


class SearchResponse(BaseModel):
    """docs/search 응답."""

    count: Optional[int] = Field(default=None, alias="@odata.count")
    value: list[dict[str, Any]] = Field(default_factory=list)
    facets: dict[str, list[FacetValue]] = Field(
        default_factory=dict,
        alias="@search.facets",
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FacetSummary(BaseModel):
    """태그/카테고리 패싯 요약."""

    tags: list[FacetValue] = Field(default_factory=list)
    categories: list[FacetValue] = Field(default_factory=list)
