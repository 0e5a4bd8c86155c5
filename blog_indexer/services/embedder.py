"""임베딩 클라이언트.

외부 임베딩 엔드포인트(Azure OpenAI 배포 형식)에 동기 요청을 보내
고정 차원의 벡터를 받아옵니다.

요청:  POST {url}?api-version=...  {"input": text}
응답:  {"data": [{"embedding": [float, ...]}]}

클라이언트 내부에는 캐시나 재시도가 없습니다. 재시도 정책은 아웃박스 재시도 스윕이
담당합니다.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..config import EmbeddingSettings
from ..errors import EmbeddingProviderError, InvalidInputError
from ..logging_config import Loggers
from ..models import EmbeddingResponse

logger = Loggers.embedder()

DEFAULT_ERROR_MESSAGE = "embedding API error"


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    """실패 응답에서 오류 메시지와 페이로드를 꺼냅니다.

    Returns:
        (메시지, 페이로드) 튜플. JSON이면 error.message를 우선합니다.
    """
    try:
        payload = response.json()
    except ValueError:
        text = response.text
        return (text or DEFAULT_ERROR_MESSAGE), text

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"]), payload
        if isinstance(error, str) and error:
            return error, payload
    return DEFAULT_ERROR_MESSAGE, payload


class EmbeddingClient:
    """외부 임베딩 엔드포인트 클라이언트.

    httpx.Client를 주입받아 재사용합니다. 주입하지 않으면 내부에서 만들고,
    close() 또는 컨텍스트 매니저 종료 시 닫습니다.

    Attributes:
        url: 임베딩 요청 URL (api-version 제외).
        api_version: api-version 쿼리 파라미터.
        dimension: 기대 벡터 차원. None이면 검사하지 않음.
        max_workers: embed_many 병렬 처리 워커 수.
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        api_version: Optional[str] = "2023-05-15",
        dimension: Optional[int] = None,
        timeout: float = 30.0,
        max_workers: int = 4,
        http_client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.api_version = api_version
        self.dimension = dimension
        self.max_workers = max(1, max_workers)
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: EmbeddingSettings,
        http_client: Optional[httpx.Client] = None,
    ) -> "EmbeddingClient":
        """설정으로 클라이언트를 생성합니다."""
        return cls(
            url=settings.url,
            api_key=settings.api_key,
            api_version=settings.api_version,
            dimension=settings.dimension,
            timeout=settings.timeout,
            max_workers=settings.max_workers,
            http_client=http_client,
        )

    def embed(self, text: str) -> list[float]:
        """텍스트 하나의 임베딩 벡터를 반환합니다.

        Args:
            text: 임베딩할 텍스트.

        Returns:
            고정 차원 float 리스트.

        Raises:
            InvalidInputError: 텍스트가 비어 있는 경우. 요청을 보내지 않습니다.
            EmbeddingProviderError: 전송 실패, 비 2xx 응답, 또는 응답 스키마 불일치.
        """
        if text is None or not str(text).strip():
            raise InvalidInputError("임베딩할 텍스트가 비어 있습니다")

        params = {"api-version": self.api_version} if self.api_version else None
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key

        try:
            response = self._http_client.post(
                self.url,
                params=params,
                headers=headers,
                json={"input": text},
            )
        except httpx.HTTPError as e:
            logger.warning("임베딩 요청 전송 실패", url=self.url, error=str(e))
            raise EmbeddingProviderError(f"embedding request failed: {e}") from e

        if not response.is_success:
            message, payload = _error_message(response)
            logger.warning(
                "임베딩 API 오류 응답",
                status_code=response.status_code,
                error=message,
            )
            raise EmbeddingProviderError(
                message,
                status_code=response.status_code,
                payload=payload,
            )

        try:
            parsed = EmbeddingResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise EmbeddingProviderError(
                f"invalid embedding response: {e}",
                status_code=response.status_code,
                payload=response.text,
            ) from e

        vector = parsed.vector
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingProviderError(
                f"embedding dimension mismatch: expected {self.dimension}, got {len(vector)}",
                status_code=response.status_code,
            )

        logger.debug("임베딩 생성", chars=len(text), dimension=len(vector))
        return vector

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """여러 텍스트를 병렬로 임베딩합니다.

        청크끼리는 공유 상태가 없으므로 스레드풀로 동시에 요청하되,
        결과는 입력 순서를 유지합니다. 하나라도 실패하면 전체가 실패합니다.

        Args:
            texts: 임베딩할 텍스트 리스트.

        Returns:
            입력 순서와 같은 임베딩 리스트.
        """
        if not texts:
            return []
        if self.max_workers == 1 or len(texts) == 1:
            return [self.embed(text) for text in texts]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(texts))) as pool:
            return list(pool.map(self.embed, texts))

    def close(self) -> None:
        """직접 생성한 HTTP 클라이언트를 닫습니다."""
        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "EmbeddingClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
