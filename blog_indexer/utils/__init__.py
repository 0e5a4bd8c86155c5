"""blog-indexer 유틸리티 모듈.

Retry:
    - RetryConfig: 재시도 설정
    - create_retry_decorator: 커스텀 재시도 데코레이터 생성
    - http_retry: HTTP 조회 전용 재시도 데코레이터
    - is_retryable_http_error: 429/5xx/네트워크 오류 판별
"""

from .retry import (
    HTTP_CONFIG,
    NETWORK_EXCEPTIONS,
    RetryConfig,
    create_retry_decorator,
    http_retry,
    is_retryable_http_error,
)

__all__ = [
    "RetryConfig",
    "HTTP_CONFIG",
    "NETWORK_EXCEPTIONS",
    "create_retry_decorator",
    "http_retry",
    "is_retryable_http_error",
]
