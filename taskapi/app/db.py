from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def build_engine(
    url: str | URL,
    *,
    pool_size: int = 5,
    timeout_sec: int = 60,
) -> Engine:
    url_str = url if isinstance(url, str) else url.render_as_string(hide_password=False)
    if url_str.startswith("sqlite"):
        # SQLite requires check_same_thread=False for usage across threads
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=pool_size,
        pool_timeout=timeout_sec,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=engine)
