from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from fitassess.settings import get_database_url

Base = declarative_base()


def make_engine(url: str) -> Engine:
    """
    SQLite: разрешаем доступ из других потоков (автосохранение пишет через to_thread),
    а in-memory базу держим на одном соединении, иначе у каждого потока своя пустая БД.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


DATABASE_URL = get_database_url()
engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Создаёт таблицы всех моделей."""
    from fitassess import models  # noqa: F401  регистрирует таблицы в Base.metadata
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
