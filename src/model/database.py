from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from core.config import settings


def build_engine(url: str):
    """SQLite URL이면 스레드 체크를 끈다.

    in-memory SQLite("sqlite://")는 StaticPool을 써야 모든 커넥션이 같은 DB를 본다.
    """
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None) -> None:
    import model.image  # noqa: F401  테이블 등록

    SQLModel.metadata.create_all(bind or engine)
