"""structlog 기반 로깅 설정.

개발 환경에서는 컬러 콘솔 출력을, 프로덕션에서는 JSON 한 줄 로그를 사용합니다.
인덱싱 한 건의 로그를 post_id로 묶을 수 있도록 contextvars 병합을 켭니다.

사용 예:
    >>> from .logging_config import configure_logging, Loggers
    >>> configure_logging(level="DEBUG")
    >>> logger = Loggers.pipeline()
    >>> logger.info("인덱싱 완료", post_id=42, chunks=3)
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """structlog을 설정합니다.

    Args:
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR). 기본값 "INFO".
        json_format: JSON 포맷 사용 여부 (프로덕션용). 기본값 False.
        log_file: 로그 파일 경로. 지정 시 파일에도 기록합니다.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    # CLI 콜백에서 재설정될 수 있으므로 기존 핸들러를 교체
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=handlers,
        force=True,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,  # bind_contextvars로 묶은 post_id 등
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """구조화된 로거 인스턴스를 반환합니다.

    Args:
        name: 로거 이름. 보통 __name__ 사용.

    Returns:
        설정된 structlog 로거.
    """
    return structlog.get_logger(name)


class Loggers:
    """모듈별 사전 구성된 로거.

    Usage:
        >>> logger = Loggers.publisher()
        >>> logger.info("업로드 완료", index="blog-index", count=1)
    """

    @staticmethod
    def pipeline() -> structlog.stdlib.BoundLogger:
        """인덱싱 파이프라인 로거 ("blog_indexer.pipeline")."""
        return get_logger("blog_indexer.pipeline")

    @staticmethod
    def embedder() -> structlog.stdlib.BoundLogger:
        """임베딩 클라이언트 로거 ("blog_indexer.embedder")."""
        return get_logger("blog_indexer.embedder")

    @staticmethod
    def publisher() -> structlog.stdlib.BoundLogger:
        """인덱스 퍼블리셔 로거 ("blog_indexer.publisher")."""
        return get_logger("blog_indexer.publisher")

    @staticmethod
    def outbox() -> structlog.stdlib.BoundLogger:
        """아웃박스 트래커 로거 ("blog_indexer.outbox")."""
        return get_logger("blog_indexer.outbox")

    @staticmethod
    def scheduler() -> structlog.stdlib.BoundLogger:
        """재시도 스케줄러 로거 ("blog_indexer.scheduler")."""
        return get_logger("blog_indexer.scheduler")

    @staticmethod
    def cli() -> structlog.stdlib.BoundLogger:
        """CLI 로거 ("blog_indexer.cli")."""
        return get_logger("blog_indexer.cli")


# 모듈 임포트 시 기본 설정으로 초기화
configure_logging()
