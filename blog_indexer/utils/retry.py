"""재시도 유틸리티 (tenacity 기반).

검색 조회처럼 멱등인 읽기 요청에만 전송 수준 재시도를 적용합니다.
인덱싱 파이프라인(임베딩, 업로드)은 여기서 재시도하지 않고 아웃박스 재시도 스윕에 맡깁니다.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_random_exponential,
)

logger = structlog.get_logger(__name__)


@dataclass
class RetryConfig:
    """재시도 동작 설정.

    Attributes:
        max_attempts: 최대 시도 횟수.
        min_wait: 최소 대기 시간 (초).
        max_wait: 최대 대기 시간 (초).
        exponential_base: 지수 백오프 베이스.
        max_delay: 전체 최대 지연 시간 (초). 설정 시 max_attempts와 함께 적용.
        jitter: 무작위 지터 사용 여부.
    """

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 60.0
    exponential_base: float = 2.0
    max_delay: Optional[float] = None
    jitter: bool = True

    def to_tenacity_kwargs(self) -> dict[str, Any]:
        """tenacity.retry에 전달할 kwargs로 변환합니다."""
        kwargs: dict[str, Any] = {
            "stop": stop_after_attempt(self.max_attempts),
            # 마지막 예외를 RetryError로 감싸지 않고 그대로 전달
            "reraise": True,
        }

        if self.max_delay:
            kwargs["stop"] = kwargs["stop"] | stop_after_delay(self.max_delay)

        if self.jitter:
            kwargs["wait"] = wait_random_exponential(
                multiplier=self.min_wait,
                max=self.max_wait,
            )
        else:
            kwargs["wait"] = wait_exponential(
                multiplier=self.min_wait,
                max=self.max_wait,
                exp_base=self.exponential_base,
            )

        return kwargs


HTTP_CONFIG = RetryConfig(
    max_attempts=3,
    min_wait=0.5,
    max_wait=10.0,
    jitter=True,
)


NETWORK_EXCEPTIONS: tuple[Type[Exception], ...] = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
    ConnectionError,
    TimeoutError,
)


def is_retryable_http_error(exception: BaseException) -> bool:
    """HTTP 오류가 재시도 가능한지 확인합니다.

    429, 5xx 상태 코드와 네트워크/타임아웃 오류를 재시도합니다.
    """
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        return status == 429 or status >= 500
    return isinstance(exception, NETWORK_EXCEPTIONS)


def create_retry_decorator(
    config: RetryConfig = HTTP_CONFIG,
    retry_if: Callable[[BaseException], bool] = is_retryable_http_error,
    log_retries: bool = True,
) -> Callable:
    """설정으로 재시도 데코레이터를 생성합니다.

    Args:
        config: RetryConfig 인스턴스.
        retry_if: 예외 재시도 여부를 결정하는 콜러블.
        log_retries: 재시도 대기 전에 로그를 남길지 여부.

    Returns:
        설정된 재시도 데코레이터.
    """
    kwargs = config.to_tenacity_kwargs()
    kwargs["retry"] = retry_if_exception(retry_if)

    if log_retries:
        kwargs["before_sleep"] = before_sleep_log(logger, log_level=20)  # INFO

    return retry(**kwargs)


def http_retry(func: Optional[Callable] = None) -> Callable:
    """HTTP 조회용 재시도 데코레이터.

    괄호 있이/없이 모두 사용 가능합니다.

    Example:
        >>> @http_retry
        ... def fetch(url):
        ...     return httpx.get(url)
    """
    decorator = create_retry_decorator()

    if func is not None:
        return decorator(func)
    return decorator
