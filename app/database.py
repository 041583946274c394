from sqlmodel import SQLModel, create_engine, Session
from app.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # worker threads share one file-backed database
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {
        "pool_pre_ping": True,      # checks dead connections
        "pool_recycle": 1800,       # refresh every 30 min
        "isolation_level": settings.db_isolation_level,
    }


engine = create_engine(
    settings.database_url,
    echo=False,
    **_engine_options(settings.database_url),
)


def create_db_and_tables():
    import app.models  # noqa: F401  registers every table on the metadata
    SQLModel.metadata.create_all(engine)


def new_session() -> Session:
    return Session(engine, expire_on_commit=False)


def get_session():
    with Session(engine) as session:
        yield session
