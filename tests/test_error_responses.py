"""커스텀 에러 응답 형식 검증 테스트.

모든 에러가 {"error_code": "...", "message": "..."} 형식인지 확인한다.
"""

import pytest

from core.exceptions import (
    AppException,
    EmptyTweet,
    ImageNotFound,
    MissingCredentials,
    NoImageAvailable,
    TweetFailed,
    UploadFailed,
)


def test_error_has_error_code_and_message(client):
    """에러 응답에 error_code + message 필드가 존재한다."""
    resp = client.get("/api/images/does-not-exist")
    data = resp.json()
    assert "error_code" in data, f"error_code 필드 없음: {data}"
    assert "message" in data, f"message 필드 없음: {data}"
    assert isinstance(data["error_code"], str)
    assert isinstance(data["message"], str)


def test_upload_failed_error_format(client, tmp_path):
    resp = client.post(
        "/api/images/upload",
        json={"filepath": str(tmp_path / "nothing.png"), "prompt": "x"},
    )
    assert resp.status_code == 502
    data = resp.json()
    assert data["error_code"] == "UPLOAD_FAILED"
    assert len(data["message"]) > 0


def test_latest_custom_message(client):
    """ImageNotFound에 넘긴 메시지가 기본 메시지를 대체한다."""
    data = client.get("/api/images/latest").json()
    assert data == {"error_code": "IMAGE_NOT_FOUND", "message": "완료된 이미지가 없습니다"}


def test_validation_error_is_not_custom_format(client):
    """요청 본문 검증 실패는 FastAPI 기본 422 응답을 유지한다."""
    resp = client.post("/api/images/upload", json={"prompt": "no filepath"})
    assert resp.status_code == 422
    assert "detail" in resp.json()


def test_response_has_process_time_header(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert "X-Process-Time" in resp.headers


def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert data["backend"] == "local"


@pytest.mark.parametrize(
    "exc_class, status_code, error_code",
    [
        (ImageNotFound, 404, "IMAGE_NOT_FOUND"),
        (UploadFailed, 502, "UPLOAD_FAILED"),
        (NoImageAvailable, 404, "NO_IMAGE_AVAILABLE"),
        (EmptyTweet, 400, "EMPTY_TWEET"),
        (TweetFailed, 502, "TWEET_FAILED"),
        (MissingCredentials, 500, "MISSING_CREDENTIALS"),
    ],
)
def test_exception_class_attributes(exc_class, status_code, error_code):
    exc = exc_class()
    assert isinstance(exc, AppException)
    assert exc.status_code == status_code
    assert exc.error_code == error_code
    assert str(exc) == exc.message
