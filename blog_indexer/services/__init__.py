"""blog-indexer 서비스 모듈.

서비스 구성:
    - ContentExtractor: 리치 텍스트 JSON에서 평문 추출
    - Chunker: 평문을 오버랩 윈도우로 분할
    - EmbeddingClient: 외부 임베딩 엔드포인트 호출
    - IndexPublisher: 블로그/RAG 인덱스 업로드 및 검색
    - OutboxTracker: 게시글별 인덱싱 상태 기록
    - IndexingPipeline / PostIndexingService: 인덱싱 오케스트레이션
"""

from .chunker import Chunker, chunk, get_chunker
from .embedder import EmbeddingClient
from .extractor import ContentExtractor, extract
from .outbox import OutboxTracker
from .pipeline import IndexingOutcome, IndexingPipeline, PostIndexingService, build_pipeline
from .publisher import IndexPublisher, build_filter

__all__ = [
    # 추출
    "ContentExtractor",
    "extract",
    # 청킹
    "Chunker",
    "chunk",
    "get_chunker",
    # 임베딩
    "EmbeddingClient",
    # 퍼블리셔
    "IndexPublisher",
    "build_filter",
    # 아웃박스
    "OutboxTracker",
    # 파이프라인
    "IndexingOutcome",
    "IndexingPipeline",
    "PostIndexingService",
    "build_pipeline",
]
