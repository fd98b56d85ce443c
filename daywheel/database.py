import logging
import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

# SQLite file location; containers and tests point this elsewhere
DB_PATH = os.getenv("DB_PATH", str(Path(__file__).resolve().parent.parent / "time_tracker.sqlite3"))
DB_ECHO = os.getenv("DAYWHEEL_DB_ECHO", "0") == "1"
# SQLite creates the file itself, but not its directory
Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)
SQLALCHEMY_DATABASE_URL = f"sqlite:///{DB_PATH}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    pool_pre_ping=True,
    echo=DB_ECHO,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    # activities must point at a real category and user
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    from . import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", DB_PATH)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
