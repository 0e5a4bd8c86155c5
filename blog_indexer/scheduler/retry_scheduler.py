"""APScheduler 기반 인덱싱 재시도 스케줄러.

아웃박스에서 재시도 시각이 지난 failed 항목을 주기적으로 다시 인덱싱합니다.

주요 기능:
    - IntervalTrigger 기반 주기적 스윕 (기본 60초)
    - 수동 1회 스윕 (sweep)
    - 누락된 실행 병합, 스윕 중복 실행 방지
"""

from datetime import UTC, datetime
from typing import Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import BaseModel

from ..config import get_settings
from ..logging_config import Loggers
from ..services.pipeline import PostIndexingService, build_pipeline

logger = Loggers.scheduler()

SWEEP_JOB_ID = "retry_failed_indexing"


class SweepReport(BaseModel):
    """재시도 스윕 1회 결과.

    Attributes:
        retried: 재실행한 항목 수
        succeeded: 재실행 후 성공한 항목 수
        failed: 재실행 후 다시 실패한 항목 수
        skipped: 조회 이후 더 이상 재시도 대상이 아니어서 건너뛴 항목 수
        started_at: 스윕 시작 시각
        finished_at: 스윕 종료 시각
    """

    retried: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class RetryScheduler:
    """인덱싱 재시도 스케줄러.

    Attributes:
        interval_seconds: 스윕 실행 간격 (초).
        max_workers: 스케줄러 스레드풀 크기.
        timezone: 스케줄러 시간대.
    """

    def __init__(
        self,
        service: PostIndexingService,
        interval_seconds: int = 60,
        max_workers: int = 1,
        timezone: str = "UTC",
    ):
        self.service = service
        self.interval_seconds = interval_seconds
        self.max_workers = max_workers
        self.timezone = timezone
        self._scheduler: Optional[BackgroundScheduler] = None
        self._running = False

    @property
    def scheduler(self) -> BackgroundScheduler:
        """스케줄러를 지연 초기화합니다.

        설정:
            - coalesce: 누락된 여러 실행을 하나로 병합
            - max_instances: 스윕은 한 번에 하나만
        """
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(
                jobstores={"default": MemoryJobStore()},
                executors={"default": ThreadPoolExecutor(self.max_workers)},
                job_defaults={
                    "coalesce": True,
                    "max_instances": 1,
                    "misfire_grace_time": self.interval_seconds,
                },
                timezone=self.timezone,
            )
        return self._scheduler

    def start(self) -> None:
        """스케줄러를 시작합니다. 이미 실행 중이면 경고만 남깁니다."""
        if self._running:
            logger.warning("스케줄러가 이미 실행 중입니다")
            return

        self.scheduler.add_job(
            func=self._run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            name="Retry Failed Indexing",
            replace_existing=True,
        )

        self.scheduler.start()
        self._running = True
        logger.info(
            "스케줄러 시작됨",
            interval_seconds=self.interval_seconds,
            max_workers=self.max_workers,
        )

    def stop(self) -> None:
        """스케줄러를 중지합니다. 실행 중인 스윕이 끝날 때까지 기다립니다."""
        if not self._running:
            return

        self.scheduler.shutdown(wait=True)
        self._running = False
        logger.info("스케줄러 중지됨")

    def get_next_run(self) -> Optional[datetime]:
        """다음 예정된 스윕 시각을 반환합니다. 실행 중이 아니면 None."""
        if not self._running:
            return None

        job = self.scheduler.get_job(SWEEP_JOB_ID)
        if job and job.next_run_time:
            return job.next_run_time
        return None

    def is_running(self) -> bool:
        return self._running

    def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """재시도 시각이 지난 failed 항목을 한 번 재인덱싱합니다.

        Args:
            now: 기준 시각 (테스트용). 기본값은 현재 시각.

        Returns:
            SweepReport.
        """
        now = now or datetime.now(UTC)
        outbox = self.service.outbox
        report = SweepReport(started_at=datetime.now(UTC))

        for entry in outbox.due_entries(now):
            # 조회 이후 다른 경로에서 재인덱싱되었을 수 있음
            current = outbox.get(entry.post_id)
            if current is None or not current.is_due(now):
                report.skipped += 1
                continue

            report.retried += 1
            try:
                outcome = self.service.retry(entry.post_id)
            except Exception as e:
                report.failed += 1
                message = str(e) or type(e).__name__
                logger.error("재시도 실패", post_id=entry.post_id, error=message)
                # 다음 스윕까지 백오프하고 시도 횟수를 올림
                outbox.mark_failed(entry.post_id, message, current.attempts + 1)
                continue

            if outcome.succeeded:
                report.succeeded += 1
            else:
                report.failed += 1

        report.finished_at = datetime.now(UTC)
        logger.info(
            "재시도 스윕 완료",
            retried=report.retried,
            succeeded=report.succeeded,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    # ==================== 내부 메서드 ====================

    def _run_sweep(self) -> None:
        """스케줄된 스윕. 예외가 스케줄러 스레드로 새지 않게 로그로 남깁니다."""
        try:
            self.sweep()
        except Exception as e:
            logger.error("재시도 스윕 실패", error=str(e))


# 모듈 레벨 싱글톤 인스턴스
_scheduler: Optional[RetryScheduler] = None


def get_scheduler(interval_seconds: Optional[int] = None) -> RetryScheduler:
    """스케줄러 인스턴스를 반환합니다.

    첫 호출 시 설정으로 인덱싱 서비스와 스케줄러를 만듭니다.

    Args:
        interval_seconds: 스윕 간격 오버라이드. None이면 설정값.
    """
    global _scheduler

    if _scheduler is None:
        settings = get_settings()
        _scheduler = RetryScheduler(
            service=build_pipeline(settings),
            interval_seconds=interval_seconds or settings.scheduler.interval_seconds,
            max_workers=settings.scheduler.max_workers,
            timezone=settings.scheduler.timezone,
        )

    return _scheduler
