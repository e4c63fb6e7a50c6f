import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine and session factory for one process.

    Built once at startup and kept on ``app.state.db``; repositories only
    ever see the sessions it hands out.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection, otherwise every session sees an empty db
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, echo=echo, **kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        from app.models import models  # noqa: F401

        logger.info("Creating database tables (if not present)...")
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database ping failed")
            return False

    def dispose(self) -> None:
        self.engine.dispose()

    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.db.session()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit when the block finishes, roll back on anything raised inside it."""
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
