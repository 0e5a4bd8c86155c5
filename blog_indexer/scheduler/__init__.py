"""blog-indexer 스케줄러 모듈.

Exports:
    RetryScheduler: 아웃박스 failed 항목 재시도 스케줄러.
    SweepReport: 스윕 1회 결과.
    get_scheduler: 설정 기반 스케줄러 싱글톤.
"""

from .retry_scheduler import RetryScheduler, SweepReport, get_scheduler

__all__ = [
    "RetryScheduler",
    "SweepReport",
    "get_scheduler",
]
