"""blog-indexer 데이터 모델.

모델 구성:
    - Post: 인덱싱 대상 게시글
    - Chunk: RAG 인덱스용 텍스트 청크
    - IndexDocument / RagDocument: 검색 인덱스 업로드 페이로드
    - IndexingOutboxEntry: 게시글별 인덱싱 상태 (index_queue)
    - 응답 스키마: 임베딩/검색 서비스 응답 검증
"""

from .chunk import Chunk
from .index_document import IndexDocument, RagDocument
from .outbox import IndexingOutboxEntry, IndexingStatus
from .post import Post
from .responses import (
    EmbeddingResponse,
    FacetSummary,
    FacetValue,
    IndexingResult,
    IndexUploadResponse,
    SearchResponse,
)

__all__ = [
    # 게시글
    "Post",
    # 청크
    "Chunk",
    # 인덱스 문서
    "IndexDocument",
    "RagDocument",
    # 아웃박스
    "IndexingOutboxEntry",
    "IndexingStatus",
    # 응답 스키마
    "EmbeddingResponse",
    "IndexingResult",
    "IndexUploadResponse",
    "SearchResponse",
    "FacetSummary",
    "FacetValue",
]
