"""인덱싱 파이프라인 예외 정의.

모든 예외는 BlogIndexerError를 상속하며 error_code와 details를 가집니다.

예외 분류:
    ConfigError: 잘못된 설정 (호출자 버그, 치명적)
    InvalidInputError: 빈 입력 등 잘못된 입력 (호출자 버그, 치명적)
    EmbeddingProviderError: 임베딩 API 실패 (아웃박스 재시도로 복구 가능)
    IndexUploadError: 검색 인덱스 업로드 실패 (아웃박스 재시도로 복구 가능)
    SearchQueryError: 검색/패싯 조회 실패
    ExtractionError: 문서 구조 손상 (현재는 빈 문자열로 대체되어 발생하지 않음)
    StorageError: 상태 저장소 읽기/쓰기 실패
"""

from typing import Any, Dict, Optional


class BlogIndexerError(Exception):
    """blog-indexer 모든 예외의 기본 클래스."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigError(BlogIndexerError):
    """잘못된 설정값 (예: overlap >= chunk size)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="CONFIG_ERROR",
            details=details,
        )


class InvalidInputError(BlogIndexerError):
    """비어 있거나 누락된 입력."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            details=details,
        )


class EmbeddingProviderError(BlogIndexerError):
    """임베딩 엔드포인트 호출 실패.

    Attributes:
        status_code: 업스트림 HTTP 상태 코드 (전송 오류면 None).
        payload: 업스트림 응답 본문 (JSON 파싱 가능하면 dict).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.payload = payload
        super().__init__(
            message=message,
            error_code="EMBEDDING_PROVIDER_ERROR",
            details={"status_code": status_code, "payload": payload},
        )


class IndexUploadError(BlogIndexerError):
    """검색 인덱스 업로드 실패.

    부분 실패(일부 문서만 거부)도 하나의 집계 오류로 보고합니다.

    Attributes:
        index_name: 대상 인덱스 이름.
        status_code: 업스트림 HTTP 상태 코드 (전송 오류면 None).
        payload: 업스트림 응답 본문 (가공 없이 그대로).
        failed_keys: 거부된 문서 키 목록.
    """

    def __init__(
        self,
        message: str,
        index_name: str,
        status_code: Optional[int] = None,
        payload: Any = None,
        failed_keys: Optional[list[str]] = None,
    ):
        self.index_name = index_name
        self.status_code = status_code
        self.payload = payload
        self.failed_keys = failed_keys or []
        super().__init__(
            message=message,
            error_code="INDEX_UPLOAD_ERROR",
            details={
                "index_name": index_name,
                "status_code": status_code,
                "payload": payload,
                "failed_keys": self.failed_keys,
            },
        )


class ExtractionError(BlogIndexerError):
    """구조화 문서 파싱 실패."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="EXTRACTION_ERROR",
            details=details,
        )


class SearchQueryError(BlogIndexerError):
    """검색/패싯 조회 실패."""

    def __init__(
        self,
        message: str,
        index_name: str,
        status_code: Optional[int] = None,
    ):
        self.index_name = index_name
        self.status_code = status_code
        super().__init__(
            message=message,
            error_code="SEARCH_QUERY_ERROR",
            details={"index_name": index_name, "status_code": status_code},
        )


class StorageError(BlogIndexerError):
    """상태 저장소 읽기/쓰기 실패."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            details=details,
        )


def is_retryable(exc: BaseException) -> bool:
    """아웃박스 재시도로 복구 가능한 오류인지 확인합니다.

    Args:
        exc: 확인할 예외.

    Returns:
        업스트림 임베딩/인덱스 오류이면 True.
    """
    return isinstance(exc, (EmbeddingProviderError, IndexUploadError))
