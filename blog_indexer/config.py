"""blog-indexer 설정 관리.

환경 변수에서 설정을 로드하고 적절한 기본값을 제공합니다.

설정 그룹:
    SearchSettings: 검색 서비스(블로그 인덱스 / RAG 인덱스) 연결 설정
    EmbeddingSettings: 임베딩 엔드포인트 설정
    ChunkingSettings: 텍스트 청킹 파라미터
    OutboxSettings: 인덱싱 아웃박스 백오프 및 재시도 한도
    SchedulerSettings: 재시도 스윕 스케줄러 설정
    Settings: 메인 애플리케이션 설정 (모든 하위 설정 포함)

환경 변수:
    SEARCH_ENDPOINT, SEARCH_API_KEY, SEARCH_INDEX_NAME, RAG_INDEX_NAME,
    SEARCH_API_VERSION, SEARCH_TIMEOUT
    AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY, AZURE_OPENAI_EMBEDDING_DEPLOYMENT,
    AZURE_OPENAI_API_VERSION, EMBEDDING_URL, EMBEDDING_DIMENSION,
    EMBEDDING_TIMEOUT, EMBEDDING_MAX_WORKERS
    CHUNK_SIZE, CHUNK_OVERLAP, CHUNK_STRATEGY
    OUTBOX_BACKOFF_SECONDS, OUTBOX_MAX_ATTEMPTS, OUTBOX_BATCH_SIZE
    SCHEDULER_ENABLED, SCHEDULER_INTERVAL_SECONDS, SCHEDULER_TIMEZONE, SCHEDULER_MAX_WORKERS
    DEBUG, LOG_LEVEL, DATA_DIR
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class SearchSettings(BaseSettings):
    """검색 서비스 설정.

    블로그 인덱스(전문 + 벡터)와 RAG 인덱스(청크)에 대한 연결 정보입니다.

    Attributes:
        endpoint: 검색 서비스 엔드포인트 (예: https://xxx.search.windows.net).
        api_key: 관리자 API 키.
        index_name: 블로그 인덱스 이름. 기본값 "blog-index".
        rag_index_name: RAG 청크 인덱스 이름. 기본값 "rag-index".
        api_version: REST API 버전. 기본값 "2020-06-30".
        timeout: 요청 타임아웃 (초). 기본값 30.0.
    """

    endpoint: str = Field(default="", alias="SEARCH_ENDPOINT")
    api_key: str = Field(default="", alias="SEARCH_API_KEY")
    index_name: str = Field(default="blog-index", alias="SEARCH_INDEX_NAME")
    rag_index_name: str = Field(default="rag-index", alias="RAG_INDEX_NAME")
    api_version: str = Field(default="2020-06-30", alias="SEARCH_API_VERSION")
    timeout: float = Field(default=30.0, alias="SEARCH_TIMEOUT")

    model_config = {"env_prefix": "", "extra": "ignore"}

    @property
    def is_configured(self) -> bool:
        """엔드포인트와 API 키가 모두 설정되었는지 확인합니다."""
        return bool(self.endpoint and self.api_key)


class EmbeddingSettings(BaseSettings):
    """임베딩 엔드포인트 설정.

    Azure OpenAI 배포 형식의 URL을 조합하거나,
    embedding_url로 완전한 URL을 직접 지정할 수 있습니다.

    Attributes:
        endpoint: Azure OpenAI 리소스 엔드포인트.
        api_key: Azure OpenAI API 키.
        deployment: 임베딩 모델 배포 이름.
        api_version: API 버전. 기본값 "2023-05-15".
        embedding_url: 완전한 임베딩 URL (지정 시 endpoint/deployment 무시).
        dimension: 기대 벡터 차원. None이면 검사하지 않음.
        timeout: 요청 타임아웃 (초). 기본값 30.0.
        max_workers: 청크 임베딩 병렬 처리 워커 수. 기본값 4.
    """

    endpoint: str = Field(default="", alias="AZURE_OPENAI_ENDPOINT")
    api_key: str = Field(default="", alias="AZURE_OPENAI_API_KEY")
    deployment: str = Field(default="", alias="AZURE_OPENAI_EMBEDDING_DEPLOYMENT")
    api_version: str = Field(default="2023-05-15", alias="AZURE_OPENAI_API_VERSION")
    embedding_url: Optional[str] = Field(default=None, alias="EMBEDDING_URL")
    dimension: Optional[int] = Field(default=None, alias="EMBEDDING_DIMENSION")
    timeout: float = Field(default=30.0, alias="EMBEDDING_TIMEOUT")
    max_workers: int = Field(default=4, alias="EMBEDDING_MAX_WORKERS")

    model_config = {"env_prefix": "", "extra": "ignore"}

    @property
    def url(self) -> str:
        """임베딩 요청 URL을 반환합니다.

        Returns:
            embedding_url이 있으면 그대로, 없으면
            {endpoint}/openai/deployments/{deployment}/embeddings 형식의 URL.
            api-version은 쿼리 파라미터로 별도 전달됩니다.
        """
        if self.embedding_url:
            return self.embedding_url
        base = self.endpoint.rstrip("/")
        return f"{base}/openai/deployments/{self.deployment}/embeddings"


class ChunkingSettings(BaseSettings):
    """텍스트 청킹 설정.

    Attributes:
        chunk_size: 청크 최대 크기 (문자 수). 기본값 1200.
        chunk_overlap: 청크 간 오버랩 크기. 기본값 200.
        strategy: "window" (고정 슬라이딩 윈도우) 또는
            "recursive" (구분자 인식 재귀 분할). 기본값 "window".
    """

    chunk_size: int = Field(default=1200, alias="CHUNK_SIZE")
    chunk_overlap: int = Field(default=200, alias="CHUNK_OVERLAP")
    strategy: str = Field(default="window", alias="CHUNK_STRATEGY")

    model_config = {"env_prefix": "", "extra": "ignore"}


class OutboxSettings(BaseSettings):
    """인덱싱 아웃박스 설정.

    Attributes:
        backoff_seconds: 실패 후 다음 재시도까지 대기 시간 (초). 기본값 600 (10분).
        max_attempts: 재시도 스윕이 포기하는 시도 횟수. 기본값 5.
        batch_size: 스윕 1회당 처리할 최대 항목 수. 기본값 50.
    """

    backoff_seconds: int = Field(default=600, alias="OUTBOX_BACKOFF_SECONDS")
    max_attempts: int = Field(default=5, alias="OUTBOX_MAX_ATTEMPTS")
    batch_size: int = Field(default=50, alias="OUTBOX_BATCH_SIZE")

    model_config = {"env_prefix": "", "extra": "ignore"}


class SchedulerSettings(BaseSettings):
    """재시도 스윕 스케줄러 설정.

    Attributes:
        enabled: 스케줄러 활성화 여부. 기본값 False.
        interval_seconds: 스윕 실행 간격 (초). 기본값 60.
        timezone: 시간대. 기본값 "Asia/Seoul".
        max_workers: 최대 동시 작업 수. 기본값 1.
    """

    enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")
    interval_seconds: int = Field(default=60, alias="SCHEDULER_INTERVAL_SECONDS")
    timezone: str = Field(default="Asia/Seoul", alias="SCHEDULER_TIMEZONE")
    max_workers: int = Field(default=1, alias="SCHEDULER_MAX_WORKERS")

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """메인 애플리케이션 설정.

    Attributes:
        app_name: 애플리케이션 이름. 기본값 "blog-indexer".
        debug: 디버그 모드 활성화 여부. 기본값 False.
        log_level: 로그 레벨. 기본값 "INFO".
        data_dir: 상태 파일(posts.json, index_queue.json) 디렉토리. 기본값 "data".
        search: 검색 서비스 설정.
        embedding: 임베딩 엔드포인트 설정.
        chunking: 텍스트 청킹 설정.
        outbox: 아웃박스 설정.
        scheduler: 스케줄러 설정.
    """

    # 애플리케이션 기본 설정
    app_name: str = Field(default="blog-indexer")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    data_dir: Path = Field(default=Path("data"), alias="DATA_DIR")

    # 하위 설정 그룹
    search: SearchSettings = Field(default_factory=SearchSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    outbox: OutboxSettings = Field(default_factory=OutboxSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}

    def ensure_data_dir(self) -> Path:
        """데이터 디렉토리가 존재하는지 확인하고 경로를 반환합니다.

        Returns:
            데이터 디렉토리 Path 객체.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir


def get_settings() -> Settings:
    """애플리케이션 설정을 반환합니다.

    매 호출마다 새 인스턴스를 생성합니다.

    Returns:
        Settings 인스턴스.
    """
    return Settings()
