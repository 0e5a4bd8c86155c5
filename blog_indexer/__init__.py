"""blog-indexer - 블로그 게시글 검색 인덱싱 파이프라인.

게시글이 저장될 때 본문을 블로그 인덱스(게시글 단위)와 RAG 인덱스(청크 단위)에 반영합니다.

주요 기능:
    - 리치 텍스트 JSON 본문에서 평문 추출
    - 오버랩 윈도우 청킹
    - 외부 임베딩 엔드포인트 호출
    - 검색 인덱스 업로드 및 검색/패싯 조회
    - 인덱싱 아웃박스 기록과 주기적 재시도
    - CLI 인터페이스

모듈 구성:
    config: 환경 변수 기반 설정 관리
    models: 데이터 모델 (Post, Chunk, IndexDocument, RagDocument, IndexingOutboxEntry)
    services: 핵심 서비스 (Extractor, Chunker, EmbeddingClient, IndexPublisher, Outbox, Pipeline)
    scheduler: APScheduler 기반 재시도 스윕
    storage: JSON 파일 기반 상태 저장소
    cli: Typer 기반 CLI 인터페이스
"""

from .config import Settings, get_settings
from .errors import (
    BlogIndexerError,
    ConfigError,
    EmbeddingProviderError,
    IndexUploadError,
    InvalidInputError,
)
from .models import (
    Chunk,
    IndexDocument,
    IndexingOutboxEntry,
    IndexingStatus,
    Post,
    RagDocument,
)
from .scheduler import RetryScheduler, SweepReport, get_scheduler
from .services import (
    Chunker,
    ContentExtractor,
    EmbeddingClient,
    IndexingOutcome,
    IndexingPipeline,
    IndexPublisher,
    OutboxTracker,
    PostIndexingService,
    build_pipeline,
    chunk,
    extract,
)
from .storage import Storage, get_storage

__version__ = "0.1.0"

__all__ = [
    # 설정
    "Settings",
    "get_settings",
    # 예외
    "BlogIndexerError",
    "ConfigError",
    "InvalidInputError",
    "EmbeddingProviderError",
    "IndexUploadError",
    # 모델
    "Post",
    "Chunk",
    "IndexDocument",
    "RagDocument",
    "IndexingOutboxEntry",
    "IndexingStatus",
    # 서비스
    "ContentExtractor",
    "extract",
    "Chunker",
    "chunk",
    "EmbeddingClient",
    "IndexPublisher",
    "OutboxTracker",
    "IndexingPipeline",
    "IndexingOutcome",
    "PostIndexingService",
    "build_pipeline",
    # 스케줄러
    "RetryScheduler",
    "SweepReport",
    "get_scheduler",
    # 저장소
    "Storage",
    "get_storage",
]
