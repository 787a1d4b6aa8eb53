from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase, declared_attr

from .config import settings


class Base(DeclarativeBase):
    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    # FK enforce + WAL 모드
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def make_engine(url: str) -> Engine:
    """URL로 엔진 생성. SQLite면 스레드 검사 해제 + pragma 리스너 등록."""
    is_sqlite = url.startswith("sqlite")
    eng = create_engine(url, connect_args={"check_same_thread": False} if is_sqlite else {})
    if is_sqlite:
        event.listen(eng, "connect", _set_sqlite_pragma)
    return eng


def init_db(bind: Engine) -> None:
    """모델 테이블 생성 (마이그레이션 없이 쓰는 개발/테스트용)"""
    from gagyebu import models  # noqa: F401 - 메타데이터 등록

    Base.metadata.create_all(bind)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
