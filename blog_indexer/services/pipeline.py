"""게시글 인덱싱 파이프라인.

게시글 하나를 검색 인덱스에 반영합니다:
    pending 기록 → 평문 추출 → 전문 임베딩 → 블로그 인덱스 업로드
    → 청킹 → 청크 임베딩 → RAG 인덱스 업로드 → success 기록

어느 단계에서 실패하든 예외를 올리지 않고 failed 결과와 아웃박스 failed 행으로 보고합니다.
재시도는 아웃박스 재시도 스윕이 담당합니다.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ..config import Settings, get_settings
from ..errors import BlogIndexerError, InvalidInputError
from ..logging_config import Loggers
from ..models import (
    IndexDocument,
    IndexingStatus,
    IndexUploadResponse,
    Post,
    RagDocument,
)
from ..storage import Storage, get_storage
from .chunker import Chunker
from .embedder import EmbeddingClient
from .extractor import ContentExtractor
from .outbox import OutboxTracker
from .publisher import IndexPublisher

logger = Loggers.pipeline()

POST_NOT_FOUND = "post not found"


class IndexingOutcome(BaseModel):
    """게시글 한 건의 인덱싱 결과.

    status는 게시글 저장 응답의 검색 인덱싱 상태 필드로 그대로 노출됩니다.

    Attributes:
        post_id: 게시글 ID
        status: success 또는 failed
        error: 실패 메시지 (성공 시 None)
        attempts: 이번 시도까지의 시도 횟수
        primary: 블로그 인덱스 업로드 응답
        rag: RAG 인덱스 업로드 응답
        chunk_count: 업로드한 청크 수
    """

    post_id: int
    status: IndexingStatus
    error: Optional[str] = None
    attempts: int = Field(default=1, ge=1)
    primary: Optional[IndexUploadResponse] = None
    rag: Optional[IndexUploadResponse] = None
    chunk_count: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == IndexingStatus.SUCCESS


class IndexingPipeline:
    """게시글 인덱싱 파이프라인.

    협력 객체는 모두 주입받습니다. build_pipeline()이 설정으로 조립합니다.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        publisher: IndexPublisher,
        chunker: Chunker,
        outbox: OutboxTracker,
        extractor: Optional[ContentExtractor] = None,
    ):
        self.embedder = embedder
        self.publisher = publisher
        self.chunker = chunker
        self.outbox = outbox
        self.extractor = extractor or ContentExtractor()

    def index_post(self, post: Post, attempts: int = 1) -> IndexingOutcome:
        """게시글 하나를 두 인덱스에 업로드하고 아웃박스에 결과를 기록합니다.

        Args:
            post: 인덱싱할 게시글.
            attempts: 이번 시도 번호 (첫 시도 1, 재시도마다 +1).

        Returns:
            IndexingOutcome. 이 메서드는 예외를 올리지 않습니다.
        """
        self.outbox.mark_pending(post.id, attempts)
        log = logger.bind(post_id=post.id, attempts=attempts)

        primary: Optional[IndexUploadResponse] = None
        rag: Optional[IndexUploadResponse] = None
        chunk_count = 0
        attempted_chunks: Optional[int] = None

        try:
            text = self.extractor.extract(post.content)
            if not text.strip():
                raise InvalidInputError(
                    "게시글 본문에서 추출한 텍스트가 비어 있습니다",
                    details={"post_id": post.id},
                )

            vector = self.embedder.embed(text)
            primary = self.publisher.publish_primary(
                IndexDocument.from_post(post, text, vector)
            )

            chunks = self.chunker.chunk_post(post.id, text, post.created_or_now())
            vectors = self.embedder.embed_many([c.text for c in chunks])
            for c, embedding in zip(chunks, vectors):
                c.embedding = embedding

            attempted_chunks = len(chunks)
            rag = self.publisher.publish_chunks([RagDocument.from_chunk(c) for c in chunks])
            chunk_count = len(chunks)
            self._delete_stale_chunks(post.id, chunk_count)

        except BlogIndexerError as e:
            log.warning("인덱싱 실패", error_code=e.error_code, error=e.message)
            return self._failed(post.id, e.message, attempts, primary, attempted_chunks)
        except Exception as e:
            log.exception("인덱싱 중 예상치 못한 오류")
            return self._failed(
                post.id, str(e) or type(e).__name__, attempts, primary, attempted_chunks
            )

        self.outbox.mark_success(post.id, attempts, chunk_count=chunk_count)
        log.info("인덱싱 완료", chunks=chunk_count)
        return IndexingOutcome(
            post_id=post.id,
            status=IndexingStatus.SUCCESS,
            attempts=attempts,
            primary=primary,
            rag=rag,
            chunk_count=chunk_count,
        )

    def _delete_stale_chunks(self, post_id: int, chunk_count: int) -> None:
        """이전 인덱싱이 남긴 "{post_id}_{n}" (n >= chunk_count) 청크를 RAG 인덱스에서 지웁니다."""
        previous = self.outbox.indexed_chunk_count(post_id)
        stale = [f"{post_id}_{n}" for n in range(chunk_count, previous)]
        if stale:
            self.publisher.delete_chunks(stale)
            logger.info("오래된 청크 삭제", post_id=post_id, deleted=len(stale))

    def _failed(
        self,
        post_id: int,
        message: str,
        attempts: int,
        primary: Optional[IndexUploadResponse] = None,
        attempted_chunks: Optional[int] = None,
    ) -> IndexingOutcome:
        if attempted_chunks is None:
            self.outbox.mark_failed(post_id, message, attempts)
        else:
            # 일부 청크가 인덱스에 남았을 수 있음
            self.outbox.mark_failed(post_id, message, attempts, chunk_count=attempted_chunks)
        return IndexingOutcome(
            post_id=post_id,
            status=IndexingStatus.FAILED,
            error=message,
            attempts=attempts,
            primary=primary,
        )

    def close(self) -> None:
        """HTTP 클라이언트를 닫습니다."""
        self.embedder.close()
        self.publisher.close()


class PostIndexingService:
    """게시글 저장 흐름에서 호출하는 인덱싱 진입점.

    게시글 스냅샷 저장은 인덱싱 결과와 무관하게 먼저 이루어집니다.
    """

    def __init__(self, pipeline: IndexingPipeline, storage: Storage):
        self.pipeline = pipeline
        self.storage = storage

    @property
    def outbox(self) -> OutboxTracker:
        return self.pipeline.outbox

    def on_post_saved(self, post: Post) -> IndexingOutcome:
        """게시글 저장 직후 호출합니다.

        Raises:
            StorageError: 게시글 스냅샷을 저장하지 못한 경우.
        """
        self.storage.upsert_post(post)
        return self.pipeline.index_post(post)

    def retry(self, post_id: int) -> IndexingOutcome:
        """저장된 게시글을 다시 읽어 attempts + 1로 재인덱싱합니다.

        게시글이 없으면 "post not found"로 failed 기록합니다.
        """
        entry = self.outbox.get(post_id)
        attempts = (entry.attempts if entry else 0) + 1

        post = self.storage.get_post(post_id)
        if post is None:
            logger.warning("재시도 대상 게시글 없음", post_id=post_id)
            self.outbox.mark_failed(post_id, POST_NOT_FOUND, attempts)
            return IndexingOutcome(
                post_id=post_id,
                status=IndexingStatus.FAILED,
                error=POST_NOT_FOUND,
                attempts=attempts,
            )

        return self.pipeline.index_post(post, attempts)

    def close(self) -> None:
        self.pipeline.close()

    def __enter__(self) -> "PostIndexingService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def build_pipeline(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    http_client: Optional[httpx.Client] = None,
) -> PostIndexingService:
    """설정으로 인덱싱 서비스를 조립합니다.

    Args:
        settings: 애플리케이션 설정. 기본값은 환경 변수에서 로드.
        storage: 상태 저장소. 기본값은 settings.data_dir 저장소.
        http_client: 임베딩/검색 요청에 공유할 httpx.Client (선택적).

    Raises:
        ConfigError: 잘못된 청크 파라미터.
    """
    settings = settings or get_settings()
    storage = storage or get_storage(settings.ensure_data_dir())

    pipeline = IndexingPipeline(
        embedder=EmbeddingClient.from_settings(settings.embedding, http_client=http_client),
        publisher=IndexPublisher.from_settings(settings.search, http_client=http_client),
        chunker=Chunker(
            chunk_size=settings.chunking.chunk_size,
            chunk_overlap=settings.chunking.chunk_overlap,
            strategy=settings.chunking.strategy,
        ),
        outbox=OutboxTracker.from_settings(storage, settings.outbox),
    )
    return PostIndexingService(pipeline, storage)
