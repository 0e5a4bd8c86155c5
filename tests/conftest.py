"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from blog_indexer.models import Post
from blog_indexer.services.chunker import Chunker
from blog_indexer.services.embedder import EmbeddingClient
from blog_indexer.services.outbox import OutboxTracker
from blog_indexer.services.pipeline import IndexingPipeline, PostIndexingService
from blog_indexer.services.publisher import IndexPublisher
from blog_indexer.storage import Storage

EMBEDDING_URL = "https://openai.example.com/openai/deployments/embed/embeddings"
SEARCH_ENDPOINT = "https://search.example.com"
DIMENSION = 8


# ==================== Rich Text Helpers ====================


def rich_text(*paragraphs: str) -> str:
    """Build a serialized editor document with one text node per paragraph."""
    return json.dumps(
        {
            "root": {
                "type": "root",
                "children": [
                    {"type": "paragraph", "children": [{"type": "text", "text": p}]}
                    for p in paragraphs
                ],
            }
        }
    )


# ==================== Fake HTTP Services ====================


class FakeEmbeddingService:
    """MockTransport handler for the embedding endpoint.

    Returns a fixed-dimension vector derived from the input length unless
    `error` is set, in which case every request gets that status and body.
    """

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.requests: list[dict] = []
        self.error: tuple[int, dict] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(
            {
                "url": str(request.url),
                "headers": dict(request.headers),
                "body": body,
            }
        )
        if self.error is not None:
            status, payload = self.error
            return httpx.Response(status, json=payload)
        seed = float(len(body["input"]))
        return httpx.Response(
            200,
            json={"data": [{"embedding": [seed] * self.dimension, "index": 0}]},
        )

    @property
    def inputs(self) -> list[str]:
        return [r["body"]["input"] for r in self.requests]


class FakeSearchService:
    """MockTransport handler keeping an in-memory copy of each index.

    Upload actions upsert by key, so re-indexing the same post replaces its
    documents, and delete actions drop the key. Keys listed in `reject_keys`
    come back with status false.
    """

    KEY_FIELDS = {"blog-index": "id", "rag-index": "doc_id"}

    def __init__(self):
        self.indexes: dict[str, dict[str, dict]] = {"blog-index": {}, "rag-index": {}}
        self.requests: list[dict] = []
        self.reject_keys: set[str] = set()
        self.error: tuple[int, dict] | None = None
        self.search_result: dict = {"@odata.count": 0, "value": []}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        path = request.url.path
        index_name = path.split("/")[2]
        self.requests.append(
            {
                "path": path,
                "params": dict(request.url.params),
                "headers": dict(request.headers),
                "body": body,
            }
        )
        if self.error is not None:
            status, payload = self.error
            return httpx.Response(status, json=payload)

        if path.endswith("/docs/search"):
            return httpx.Response(200, json=self.search_result)

        key_field = self.KEY_FIELDS[index_name]
        results = []
        for action in body["value"]:
            key = action[key_field]
            if key in self.reject_keys:
                results.append(
                    {"key": key, "status": False, "errorMessage": "rejected", "statusCode": 400}
                )
                continue
            index = self.indexes.setdefault(index_name, {})
            if action["@search.action"] == "delete":
                index.pop(key, None)
            else:
                index[key] = {k: v for k, v in action.items() if k != "@search.action"}
            results.append({"key": key, "status": True, "errorMessage": None, "statusCode": 201})

        status = 207 if any(not r["status"] for r in results) else 200
        return httpx.Response(status, json={"value": results})

    def uploads(self, index_name: str) -> list[dict]:
        return [
            r for r in self.requests if r["path"] == f"/indexes/{index_name}/docs/index"
        ]


# ==================== Service Fixtures ====================


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def search_service():
    return FakeSearchService()


@pytest.fixture
def embedder(embedding_service):
    """EmbeddingClient wired to the fake embedding endpoint."""
    client = httpx.Client(transport=httpx.MockTransport(embedding_service))
    embedding = EmbeddingClient(
        url=EMBEDDING_URL,
        api_key="embed-key",
        dimension=DIMENSION,
        max_workers=1,
        http_client=client,
    )
    yield embedding
    client.close()


@pytest.fixture
def publisher(search_service):
    """IndexPublisher wired to the fake search service."""
    client = httpx.Client(transport=httpx.MockTransport(search_service))
    pub = IndexPublisher(
        endpoint=SEARCH_ENDPOINT,
        api_key="search-key",
        http_client=client,
    )
    yield pub
    client.close()


@pytest.fixture
def storage(tmp_path):
    """Create a temporary storage instance."""
    return Storage(tmp_path / "data")


@pytest.fixture
def outbox(storage):
    return OutboxTracker(storage)


@pytest.fixture
def pipeline(embedder, publisher, outbox):
    return IndexingPipeline(
        embedder=embedder,
        publisher=publisher,
        chunker=Chunker(chunk_size=1200, chunk_overlap=200),
        outbox=outbox,
    )


@pytest.fixture
def indexing_service(pipeline, storage):
    return PostIndexingService(pipeline, storage)


# ==================== Post Fixtures ====================


@pytest.fixture
def sample_post():
    """Create a sample post for testing."""
    return Post(
        id=42,
        title="Hello",
        intro="First post",
        content=rich_text("Hello", " world"),
        cover_image_url="https://cdn.example.com/cover.png",
        user_id=7,
        view_count=10,
        like_count=3,
        categories=[{"category_id": {"id": 1, "name": "Dev"}}],
        tags=[{"tag_id": {"id": 2, "name": "python"}}],
        created_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
        updated_at=datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def long_post():
    """Create a post whose plain text is 1300 characters long."""
    return Post(
        id=43,
        title="Long",
        content=rich_text("a" * 700, "b" * 600),
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def make_rich_text():
    """Factory fixture building serialized editor documents."""
    return rich_text
