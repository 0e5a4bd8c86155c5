"""텍스트 청킹 서비스.

RAG 인덱스용으로 긴 평문을 겹치는 고정 크기 윈도우로 분할합니다.

전략:
    - window (기본): 정확한 슬라이딩 윈도우. 윈도우 i는 i * (size - overlap)에서 시작하며,
      재인덱싱 시 청크 경계가 항상 동일합니다.
    - recursive: RecursiveCharacterTextSplitter 기반 구분자 인식 분할.
      문단/문장 경계를 우선하지만 경계 위치는 텍스트 내용에 따라 달라집니다.
"""

import math
from datetime import datetime
from typing import Iterator, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..errors import ConfigError
from ..models import Chunk

DEFAULT_CHUNK_SIZE = 1200
DEFAULT_CHUNK_OVERLAP = 200

WINDOW = "window"
RECURSIVE = "recursive"
STRATEGIES = (WINDOW, RECURSIVE)


def validate_chunk_params(size: int, overlap: int) -> None:
    """청크 파라미터를 검증합니다.

    Raises:
        ConfigError: size <= 0, overlap < 0, 또는 overlap >= size인 경우.
    """
    if size <= 0:
        raise ConfigError(
            f"chunk size는 양수여야 합니다: {size}",
            details={"size": size, "overlap": overlap},
        )
    if overlap < 0:
        raise ConfigError(
            f"chunk overlap은 음수일 수 없습니다: {overlap}",
            details={"size": size, "overlap": overlap},
        )
    if overlap >= size:
        raise ConfigError(
            f"chunk overlap({overlap})은 chunk size({size})보다 작아야 합니다",
            details={"size": size, "overlap": overlap},
        )


class ChunkWindows:
    """텍스트의 슬라이딩 윈도우 시퀀스.

    지연 평가되며 재시작 가능합니다: __iter__를 호출할 때마다 처음부터 다시 생성합니다.
    len()은 청크를 만들지 않고 개수만 계산합니다.
    """

    def __init__(self, text: str, size: int, overlap: int):
        validate_chunk_params(size, overlap)
        self.text = text or ""
        self.size = size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.size - self.overlap

    def spans(self) -> Iterator[tuple[int, int]]:
        """각 청크의 [start, end) 범위를 생성합니다."""
        length = len(self.text)
        start = 0
        while start < length:
            end = min(start + self.size, length)
            yield start, end
            if end == length:
                return
            start += self.step

    def __iter__(self) -> Iterator[str]:
        for start, end in self.spans():
            yield self.text[start:end]

    def __len__(self) -> int:
        length = len(self.text)
        if length == 0:
            return 0
        return max(1, math.ceil(max(length - self.overlap, 0) / self.step))

    def __repr__(self) -> str:
        return f"ChunkWindows(len={len(self.text)}, size={self.size}, overlap={self.overlap})"


def chunk(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> ChunkWindows:
    """텍스트를 겹치는 고정 크기 윈도우로 분할합니다.

    Args:
        text: 분할할 평문.
        size: 청크당 최대 문자 수 (기본값: 1200).
        overlap: 인접 청크 간 겹치는 문자 수 (기본값: 200).

    Returns:
        재시작 가능한 ChunkWindows 시퀀스.

    Raises:
        ConfigError: overlap >= size 등 잘못된 파라미터.
    """
    return ChunkWindows(text, size, overlap)


class Chunker:
    """게시글 평문 청킹 서비스.

    Attributes:
        chunk_size: 청크당 최대 문자 수.
        chunk_overlap: 청크 간 오버랩 문자 수.
        strategy: "window" 또는 "recursive".
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        strategy: str = WINDOW,
    ):
        """청커를 초기화합니다.

        Raises:
            ConfigError: 잘못된 청크 파라미터 또는 알 수 없는 전략.
        """
        validate_chunk_params(chunk_size, chunk_overlap)
        if strategy not in STRATEGIES:
            raise ConfigError(
                f"지원하지 않는 청킹 전략: {strategy}",
                details={"strategy": strategy, "supported": list(STRATEGIES)},
            )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.strategy = strategy
        self._splitter: Optional[RecursiveCharacterTextSplitter] = None

        if strategy == RECURSIVE:
            self._splitter = RecursiveCharacterTextSplitter(
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
                length_function=len,
                is_separator_regex=False,
            )

    def chunk_text(self, text: str) -> list[str]:
        """텍스트를 청크 문자열 리스트로 분할합니다.

        Returns:
            청크 리스트. 빈 텍스트는 빈 리스트.
        """
        if not text:
            return []
        if self._splitter is not None:
            return self._splitter.split_text(text)
        return list(chunk(text, self.chunk_size, self.chunk_overlap))

    def chunk_post(
        self,
        post_id: int,
        text: str,
        created_at: datetime,
    ) -> list[Chunk]:
        """게시글 평문을 Chunk 객체 리스트로 분할합니다.

        Args:
            post_id: 원본 게시글 ID.
            text: 게시글 평문 전체.
            created_at: 청크에 기록할 생성 시각.

        Returns:
            sequence_number가 0부터 매겨진 Chunk 리스트.
        """
        return [
            Chunk(
                source_post_id=post_id,
                sequence_number=idx,
                text=piece,
                full_text=text,
                created_at=created_at,
            )
            for idx, piece in enumerate(self.chunk_text(text))
        ]


def get_chunker(
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    strategy: str = WINDOW,
) -> Chunker:
    """설정값으로 청커를 생성합니다.

    Chunker는 상태가 없으므로 매번 새로 만들어도 비용이 작습니다.
    """
    return Chunker(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        strategy=strategy,
    )
