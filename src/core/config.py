from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "genimage-relay"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "DEBUG"

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # 백엔드 선택: "supabase" (기본) | "local" (SQLite + 로컬 디렉토리)
    STORAGE_BACKEND: str = "supabase"

    # Supabase 설정 (supabase 백엔드에서는 둘 다 필수)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    RECORD_TABLE: str = "generated_images"
    STORAGE_BUCKET: str = "generated-images"
    STORAGE_PREFIX: str = ""

    # local 백엔드 설정
    DATABASE_URL: str = "sqlite:///./genimage_relay.db"
    LOCAL_STORAGE_DIR: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # 업로드 파이프라인
    MAX_IMAGE_SIZE_BYTES: int = 5 * 1024 * 1024
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_DELAY: float = 1.0  # 초, 시도마다 2배
    VERIFY_TIMEOUT: float = 10.0

    # 생성 이미지 디렉토리 / 생성 대기
    GENERATED_IMAGES_PATH: str = "generatedImages"
    IMAGE_GENERATION_TIMEOUT: float = 30.0

    # Twitter 설정
    TWITTER_API_KEY: str = ""
    TWITTER_API_SECRET: str = ""
    TWITTER_ACCESS_TOKEN: str = ""
    TWITTER_ACCESS_TOKEN_SECRET: str = ""
    TWITTER_DRY_RUN: bool = False

    @property
    def has_supabase_credentials(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
