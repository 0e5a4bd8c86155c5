"""검색 인덱스 퍼블리셔.

블로그 인덱스(게시글 단위)와 RAG 인덱스(청크 단위)에 문서를 업로드하고,
블로그 인덱스에 대한 검색/패싯 조회를 제공합니다.

업로드:  POST {endpoint}/indexes/{index}/docs/index?api-version=...
         {"value": [{..., "@search.action": "upload"}]}

"upload" 액션은 키 기준 upsert이므로 같은 게시글을 다시 업로드해도 최신 내용만 남습니다.
한 번의 호출은 하나의 배치이며, 일부 문서만 거부되어도(HTTP 207) 전체를 하나의
IndexUploadError로 보고합니다.
"""

from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..config import SearchSettings
from ..errors import IndexUploadError, SearchQueryError
from ..logging_config import Loggers
from ..models import (
    FacetSummary,
    IndexDocument,
    IndexUploadResponse,
    RagDocument,
    SearchResponse,
)
from ..utils import http_retry

logger = Loggers.publisher()

PAGE_SIZE = 20
FACET_LIMIT = 100

SORT_ORDERS = {
    "views": "view_count desc",
    "likes": "like_count desc",
    "relevance": None,
    "updated": "created_at desc",
}

DELETE_ACTION = "delete"


def _quote(value: str) -> str:
    """OData 문자열 리터럴 이스케이프 (작은따옴표 중복)."""
    return value.replace("'", "''")


def build_filter(tag: Optional[str] = None, category: Optional[str] = None) -> Optional[str]:
    """태그/카테고리 필터식을 만듭니다.

    Returns:
        "tags/any(t: t eq '...') and categories/any(c: c eq '...')" 형식, 조건이 없으면 None.
    """
    clauses = []
    if tag:
        clauses.append(f"tags/any(t: t eq '{_quote(tag)}')")
    if category:
        clauses.append(f"categories/any(c: c eq '{_quote(category)}')")
    return " and ".join(clauses) or None


class IndexPublisher:
    """검색 서비스 업로드/조회 클라이언트.

    httpx.Client를 주입받아 재사용합니다.

    Attributes:
        endpoint: 검색 서비스 엔드포인트.
        index_name: 블로그 인덱스 이름.
        rag_index_name: RAG 인덱스 이름.
        api_version: REST API 버전.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        index_name: str = "blog-index",
        rag_index_name: str = "rag-index",
        api_version: str = "2020-06-30",
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.index_name = index_name
        self.rag_index_name = rag_index_name
        self.api_version = api_version
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: SearchSettings,
        http_client: Optional[httpx.Client] = None,
    ) -> "IndexPublisher":
        """설정으로 퍼블리셔를 생성합니다."""
        return cls(
            endpoint=settings.endpoint,
            api_key=settings.api_key,
            index_name=settings.index_name,
            rag_index_name=settings.rag_index_name,
            api_version=settings.api_version,
            timeout=settings.timeout,
            http_client=http_client,
        )

    # ==================== 업로드 ====================

    def publish_primary(self, doc: IndexDocument) -> IndexUploadResponse:
        """게시글 문서 하나를 블로그 인덱스에 업로드합니다.

        Raises:
            IndexUploadError: 업로드 실패 또는 문서 거부.
        """
        return self._upload(self.index_name, [doc.to_upload_action()], [doc.key])

    def publish_chunks(self, docs: Sequence[RagDocument]) -> IndexUploadResponse:
        """게시글의 모든 청크 문서를 한 배치로 RAG 인덱스에 업로드합니다.

        빈 배치는 요청 없이 빈 응답을 반환합니다.

        Raises:
            IndexUploadError: 업로드 실패 또는 일부/전체 청크 거부.
        """
        if not docs:
            return IndexUploadResponse()
        return self._upload(
            self.rag_index_name,
            [doc.to_upload_action() for doc in docs],
            [doc.key for doc in docs],
        )

    def delete_chunks(self, doc_ids: Sequence[str]) -> IndexUploadResponse:
        """RAG 인덱스에서 청크 문서를 삭제합니다.

        본문이 줄어 더 이상 만들어지지 않는 청크 키를 정리할 때 씁니다.
        빈 목록은 요청 없이 빈 응답을 반환합니다.

        Raises:
            IndexUploadError: 삭제 요청 실패 또는 일부 키 거부.
        """
        if not doc_ids:
            return IndexUploadResponse()
        actions = [{"@search.action": DELETE_ACTION, "doc_id": key} for key in doc_ids]
        return self._upload(self.rag_index_name, actions, list(doc_ids))

    def _upload(self, index_name: str, actions: list[dict], keys: list[str]) -> IndexUploadResponse:
        url = self._docs_url(index_name, "index")
        body = {"value": actions}

        try:
            response = self._http_client.post(
                url,
                params={"api-version": self.api_version},
                headers=self._headers(),
                json=body,
            )
        except httpx.HTTPError as e:
            logger.warning("인덱스 업로드 전송 실패", index=index_name, error=str(e))
            raise IndexUploadError(
                f"upload to {index_name} failed: {e}",
                index_name=index_name,
            ) from e

        payload = self._payload(response)
        if not response.is_success:
            logger.warning(
                "인덱스 업로드 오류 응답",
                index=index_name,
                status_code=response.status_code,
            )
            raise IndexUploadError(
                self._describe(payload, index_name),
                index_name=index_name,
                status_code=response.status_code,
                payload=payload,
                failed_keys=list(keys),
            )

        try:
            result = IndexUploadResponse.model_validate(payload)
        except ValidationError as e:
            raise IndexUploadError(
                f"invalid upload response from {index_name}: {e}",
                index_name=index_name,
                status_code=response.status_code,
                payload=payload,
            ) from e

        failed = result.failed
        if failed:
            # 부분 성공도 전체 실패로 보고 (청크별 성공 기록은 하지 않음)
            failed_keys = [item.key for item in failed]
            logger.warning(
                "인덱스 업로드 일부 거부",
                index=index_name,
                failed=len(failed),
                total=len(keys),
            )
            raise IndexUploadError(
                f"{len(failed)}/{len(keys)} documents rejected by {index_name}: "
                + "; ".join(f"{item.key}: {item.error_message}" for item in failed),
                index_name=index_name,
                status_code=response.status_code,
                payload=payload,
                failed_keys=failed_keys,
            )

        logger.info("인덱스 업로드 완료", index=index_name, count=len(keys))
        return result

    # ==================== 조회 ====================

    def search(
        self,
        query: str = "",
        sort: str = "updated",
        page: int = 1,
        tag: Optional[str] = None,
        category: Optional[str] = None,
    ) -> SearchResponse:
        """블로그 인덱스를 검색합니다.

        Args:
            query: 검색어. 비어 있으면 전체("*").
            sort: "views", "likes", "relevance", 그 외는 최신순.
            page: 1부터 시작하는 페이지 번호 (페이지당 20건).
            tag: 태그 이름 필터.
            category: 카테고리 이름 필터.

        Returns:
            SearchResponse (총 개수 포함).

        Raises:
            SearchQueryError: 재시도 후에도 조회에 실패한 경우.
        """
        page = max(page, 1)
        body: dict[str, Any] = {
            "search": query or "*",
            "count": True,
            "skip": (page - 1) * PAGE_SIZE,
            "top": PAGE_SIZE,
        }
        orderby = SORT_ORDERS.get(sort, SORT_ORDERS["updated"])
        if orderby:
            body["orderby"] = orderby
        search_filter = build_filter(tag, category)
        if search_filter:
            body["filter"] = search_filter

        return SearchResponse.model_validate(self._query(body))

    def facets(self) -> FacetSummary:
        """블로그 인덱스 전체의 태그/카테고리 패싯을 조회합니다.

        Raises:
            SearchQueryError: 재시도 후에도 조회에 실패한 경우.
        """
        body = {
            "search": "*",
            "facets": [f"tags,count:{FACET_LIMIT}", f"categories,count:{FACET_LIMIT}"],
            "top": 0,
        }
        result = SearchResponse.model_validate(self._query(body))
        return FacetSummary(
            tags=result.facets.get("tags", []),
            categories=result.facets.get("categories", []),
        )

    def _query(self, body: dict) -> Any:
        try:
            return self._post_search(body)
        except httpx.HTTPStatusError as e:
            raise SearchQueryError(
                f"search on {self.index_name} failed: {e.response.text}",
                index_name=self.index_name,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise SearchQueryError(
                f"search on {self.index_name} failed: {e}",
                index_name=self.index_name,
            ) from e

    @http_retry
    def _post_search(self, body: dict) -> Any:
        response = self._http_client.post(
            self._docs_url(self.index_name, "search"),
            params={"api-version": self.api_version},
            headers=self._headers(),
            json=body,
        )
        response.raise_for_status()
        return response.json()

    # ==================== 내부 메서드 ====================

    def _docs_url(self, index_name: str, operation: str) -> str:
        return f"{self.endpoint}/indexes/{index_name}/docs/{operation}"

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "api-key": self._api_key}

    @staticmethod
    def _payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _describe(payload: Any, index_name: str) -> str:
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        if payload:
            return str(payload)
        return f"upload to {index_name} failed"

    def close(self) -> None:
        """직접 생성한 HTTP 클라이언트를 닫습니다."""
        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "IndexPublisher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
