"""pytest 공용 fixture.

서비스 테스트는 메모리 안에서 동작하는 가짜 레코드/블롭 저장소를 쓴다.
- records / blobs: 호출 기록 + 실패 주입(fail_next)이 되는 가짜 저장소
- sleeps: 재시도 대기 시간 기록 (실제로 기다리지 않음)
- uploader: 가짜 저장소를 주입한 ImageUploader
- png_file / jpeg_file / gif_file: Pillow로 만든 실제 이미지 파일
- client: 의존성을 가짜 인스턴스로 오버라이드한 TestClient
"""

import os
import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

# main/core.config import 전에 설정: local 백엔드 + in-memory SQLite
os.environ["STORAGE_BACKEND"] = "local"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCAL_STORAGE_DIR"] = str(Path(tempfile.gettempdir()) / "genimage-relay-test")
os.environ["TWITTER_DRY_RUN"] = "false"

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

import httpx
import tweepy
from fastapi.testclient import TestClient
from PIL import Image

from core.config import Settings
from core.exceptions import BackendError
from service.upload_service import ImageUploader
from social.image_post import ImagePostService
from social.twitter_poster import TwitterImagePoster

PUBLIC_BASE = "https://cdn.test/generated-images"


class FakeRecordStore:
    """generated_images 테이블 흉내. fail_next[op] 횟수만큼 BackendError를 낸다."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.fail_next = {"insert": 0, "update": 0, "select": 0}
        self._seq = 0
        self._base_time = datetime(2024, 1, 1, tzinfo=UTC)

    def _check(self, op: str, *args):
        self.calls.append((op, args))
        if self.fail_next[op] > 0:
            self.fail_next[op] -= 1
            raise BackendError(f"{op} failed")

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    async def insert(self, row):
        self._check("insert", row)
        self._seq += 1
        stored = {
            "id": f"rec-{self._seq}",
            "created_at": self._base_time + timedelta(seconds=self._seq),
            "error_message": None,
            **row,
        }
        self.rows[stored["id"]] = stored
        return dict(stored)

    async def update(self, record_id, patch):
        self._check("update", record_id, patch)
        if record_id not in self.rows:
            raise BackendError(f"Record not found: {record_id}")
        self.rows[record_id].update(patch)
        return dict(self.rows[record_id])

    async def select(self, filters, order_by=None, descending=False, limit=None):
        self._check("select", filters)
        rows = [r for r in self.rows.values() if all(r.get(k) == v for k, v in filters.items())]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]


class FakeBlobStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.calls: list[str] = []
        self.fail_next = 0

    async def upload(self, key, data, *, content_type, upsert=True):
        self.calls.append(key)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise BackendError("storage upload failed")
        self.objects[key] = (data, content_type)

    async def get_public_url(self, key):
        return f"{PUBLIC_BASE}/{key}"


class FakeTwitterApi:
    """tweepy.API 대체. media_upload 호출만 기록한다."""

    def __init__(self, media_id=1001):
        self.media_id = media_id
        self.uploads: list[tuple[str, bytes]] = []

    def media_upload(self, filename, file=None, **kwargs):
        self.uploads.append((filename, file.read()))
        return SimpleNamespace(media_id=self.media_id)


class FakeTwitterClient:
    """tweepy.Client 대체. errors를 주면 API 오류 응답을 돌려준다."""

    def __init__(self, errors=None, raise_error=None):
        self.errors = errors or []
        self.raise_error = raise_error
        self.tweets: list[dict] = []

    def create_tweet(self, text=None, media_ids=None, **kwargs):
        if self.raise_error:
            raise self.raise_error
        self.tweets.append({"text": text, "media_ids": media_ids})
        return tweepy.Response(
            data={"id": "1800000000000000000", "text": text},
            includes={},
            errors=self.errors,
            meta={},
        )


def _save_image(path: Path, fmt: str) -> Path:
    Image.new("RGB", (64, 64), color="orange").save(path, format=fmt)
    return path


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        STORAGE_BACKEND="local",
        RETRY_MAX_ATTEMPTS=3,
        RETRY_INITIAL_DELAY=1.0,
        STORAGE_PREFIX="",
        GENERATED_IMAGES_PATH=str(tmp_path / "generatedImages"),
        TWITTER_DRY_RUN=False,
        _env_file=None,
    )


@pytest.fixture()
def records():
    return FakeRecordStore()


@pytest.fixture()
def blobs():
    return FakeBlobStorage()


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture()
def head_handler():
    """mock HTTP 응답 (verify_access의 HEAD, URL 이미지 GET). 테스트에서 교체할 수 있게 dict로 감싼다."""
    return {"status": 200, "content_type": "image/png", "body": b"\x89PNG\r\n\x1a\nfake"}


@pytest.fixture()
def http_client(head_handler):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            head_handler["status"],
            headers={"content-type": head_handler["content_type"]},
            content=head_handler["body"] if request.method == "GET" else b"",
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture()
def uploader(records, blobs, test_settings, http_client, fake_sleep):
    return ImageUploader(records, blobs, test_settings, http_client=http_client, sleep=fake_sleep)


@pytest.fixture()
def png_file(tmp_path):
    return _save_image(tmp_path / "sunset.png", "PNG")


@pytest.fixture()
def jpeg_file(tmp_path):
    return _save_image(tmp_path / "mountain.jpg", "JPEG")


@pytest.fixture()
def gif_file(tmp_path):
    return _save_image(tmp_path / "loop.gif", "GIF")


@pytest.fixture()
def twitter_api():
    return FakeTwitterApi()


@pytest.fixture()
def twitter_client():
    return FakeTwitterClient()


@pytest.fixture()
def poster(test_settings, twitter_api, twitter_client, http_client):
    return TwitterImagePoster(
        test_settings, api=twitter_api, client=twitter_client, http_client=http_client
    )


@pytest.fixture()
def post_service(poster, uploader, test_settings):
    return ImagePostService(poster, uploader, test_settings)


@pytest.fixture()
def client(uploader, post_service):
    """get_uploader / get_post_service를 가짜 저장소 기반 인스턴스로 오버라이드한 TestClient."""
    from core.dependencies import get_post_service, get_uploader
    from main import app

    app.dependency_overrides[get_uploader] = lambda: uploader
    app.dependency_overrides[get_post_service] = lambda: post_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

