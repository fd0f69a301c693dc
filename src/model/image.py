from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ImageStatus(str, Enum):
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class GeneratedImageRecord(BaseModel):
    """업로드 한 건의 추적 레코드.

    uploading → completed 또는 uploading → error 로만 한 번 전이한다.
    storage_path는 completed일 때만, error_message는 error일 때만 채워진다.
    """

    id: str
    created_at: datetime | None = None
    storage_path: str = ""
    original_filepath: str
    prompt: str
    status: ImageStatus = ImageStatus.UPLOADING
    error_message: str | None = None
    metadata: dict[str, Any] = {}


class GeneratedImageRow(SQLModel, table=True):
    """local 백엔드용 테이블. Supabase의 generated_images 테이블과 컬럼이 같다.

    SQLModel 클래스에는 이미 metadata 속성이 있어서 컬럼명만 metadata로 두고
    속성명은 meta로 쓴다.
    """

    __tablename__ = "generated_images"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    storage_path: str = ""
    original_filepath: str
    prompt: str
    status: str = Field(default=ImageStatus.UPLOADING.value, index=True)
    error_message: str | None = None
    meta: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON))
