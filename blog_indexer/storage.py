"""JSON 파일 기반 상태 저장소.

관계형 저장소의 두 테이블을 JSON 파일로 관리합니다:
    - posts.json: 인덱싱 대상 게시글 스냅샷
    - index_queue.json: 게시글별 인덱싱 아웃박스 (게시글 하나당 한 행)

재시도 스케줄러 워커 스레드에서도 호출되므로 읽기-수정-쓰기는 하나의 락으로 보호합니다.
"""

import json
import threading
from pathlib import Path

from .errors import StorageError
from .models import IndexingOutboxEntry, IndexingStatus, Post


class Storage:
    """게시글/인덱싱 큐를 위한 JSON 파일 기반 저장소.

    Attributes:
        POSTS_FILE: 게시글 파일명.
        QUEUE_FILE: 인덱싱 큐 파일명.
    """

    POSTS_FILE = "posts.json"
    QUEUE_FILE = "index_queue.json"

    def __init__(self, data_dir: Path | str):
        """저장소를 초기화합니다.

        Args:
            data_dir: JSON 상태 파일을 저장할 디렉토리.
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._posts_path = self.data_dir / self.POSTS_FILE
        self._queue_path = self.data_dir / self.QUEUE_FILE
        self._lock = threading.RLock()

    # ==================== 게시글 ====================

    def get_posts(self) -> list[Post]:
        """저장된 모든 게시글을 조회합니다."""
        data = self._load_json(self._posts_path, {"posts": []})
        return [Post.model_validate(p) for p in data.get("posts", [])]

    def get_post(self, post_id: int) -> Post | None:
        """ID로 게시글을 조회합니다.

        Returns:
            찾은 경우 Post, 없으면 None.
        """
        for post in self.get_posts():
            if post.id == post_id:
                return post
        return None

    def upsert_post(self, post: Post) -> Post:
        """게시글 스냅샷을 삽입하거나 교체합니다."""
        with self._lock:
            posts = [p for p in self.get_posts() if p.id != post.id]
            posts.append(post)
            self._save_json(
                self._posts_path,
                {"posts": [p.model_dump_json_safe() for p in posts]},
            )
        return post

    # ==================== 인덱싱 큐 ====================

    def list_queue_entries(
        self, status: IndexingStatus | None = None
    ) -> list[IndexingOutboxEntry]:
        """인덱싱 큐 항목을 조회합니다. 상태별 필터링 가능.

        Args:
            status: 필터링할 상태 (선택적).

        Returns:
            post_id 오름차순 항목 목록.
        """
        data = self._load_json(self._queue_path, {"entries": []})
        entries = [
            IndexingOutboxEntry.from_json_safe(e) for e in data.get("entries", [])
        ]
        if status is not None:
            entries = [e for e in entries if e.status == status]
        entries.sort(key=lambda e: e.post_id)
        return entries

    def get_queue_entry(self, post_id: int) -> IndexingOutboxEntry | None:
        """게시글의 인덱싱 큐 항목을 조회합니다."""
        for entry in self.list_queue_entries():
            if entry.post_id == post_id:
                return entry
        return None

    def upsert_queue_entry(self, entry: IndexingOutboxEntry) -> IndexingOutboxEntry:
        """인덱싱 큐 항목을 삽입하거나 교체합니다.

        같은 게시글을 동시에 기록하면 마지막 기록이 남습니다.
        """
        with self._lock:
            entries = [e for e in self.list_queue_entries() if e.post_id != entry.post_id]
            entries.append(entry)
            entries.sort(key=lambda e: e.post_id)
            self._save_json(
                self._queue_path,
                {"entries": [e.model_dump_json_safe() for e in entries]},
            )
        return entry

    # ==================== 유틸리티 ====================

    def _load_json(self, path: Path, default: dict) -> dict:
        """JSON 파일을 로드하거나 기본값을 반환합니다.

        Raises:
            StorageError: 파일이 손상되었거나 읽을 수 없는 경우.
        """
        with self._lock:
            if not path.exists():
                return default

            try:
                with open(path, encoding="utf-8") as f:
                    return json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                raise StorageError(
                    f"failed to read {path.name}: {e}",
                    details={"path": str(path)},
                ) from e

    def _save_json(self, path: Path, data: dict) -> None:
        """데이터를 JSON 파일에 저장합니다.

        Raises:
            StorageError: 파일을 쓸 수 없는 경우.
        """
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(
                f"failed to write {path.name}: {e}",
                details={"path": str(path)},
            ) from e


# 전역 스토리지 인스턴스 (지연 초기화)
_storage: Storage | None = None


def get_storage(data_dir: Path | str | None = None) -> Storage:
    """스토리지 인스턴스를 반환합니다.

    Args:
        data_dir: 데이터 디렉토리 (선택적). 지정하면 새 인스턴스를 반환합니다.
            미지정 시 설정의 DATA_DIR를 쓰는 전역 인스턴스를 반환합니다.
    """
    global _storage

    if data_dir is not None:
        return Storage(data_dir)

    if _storage is None:
        from .config import get_settings

        _storage = Storage(get_settings().data_dir)

    return _storage
