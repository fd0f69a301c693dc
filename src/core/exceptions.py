"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error_code": "...", "message": "..."} 형식의 JSON 응답을 생성한다.

업로드 파이프라인 내부에서만 쓰는 예외(ImageValidationError, BackendError)는
HTTP 응답으로 나가지 않는다. 파이프라인이 잡아서 로그를 남기고 None을 반환한다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 설정 관련 ---


class MissingCredentials(AppException):
    status_code = 500
    error_code = "MISSING_CREDENTIALS"
    message = "Missing Supabase credentials in environment variables"


class UnknownBackend(AppException):
    status_code = 500
    error_code = "UNKNOWN_BACKEND"
    message = "지원하지 않는 저장소 백엔드입니다"


# --- 이미지 관련 ---


class ImageNotFound(AppException):
    status_code = 404
    error_code = "IMAGE_NOT_FOUND"
    message = "이미지를 찾을 수 없습니다"


class UploadFailed(AppException):
    status_code = 502
    error_code = "UPLOAD_FAILED"
    message = "이미지 업로드에 실패했습니다. 서버 로그를 확인하세요"


# --- 트윗 관련 ---


class NoImageAvailable(AppException):
    status_code = 404
    error_code = "NO_IMAGE_AVAILABLE"
    message = "게시할 이미지가 없습니다"


class EmptyTweet(AppException):
    status_code = 400
    error_code = "EMPTY_TWEET"
    message = "트윗 본문이 비어 있습니다"


class TweetFailed(AppException):
    status_code = 502
    error_code = "TWEET_FAILED"
    message = "이미지 트윗 게시에 실패했습니다"


# --- 파이프라인 내부 ---


class ImageValidationError(Exception):
    """로컬 검증 실패. 재시도하지 않고 네트워크 호출 전에 중단한다."""


class BackendError(Exception):
    """레코드 저장소/블롭 저장소 호출 실패. 재시도 대상이다."""
