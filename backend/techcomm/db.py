from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./techcomm.db"

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
	connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
	return create_engine(url, connect_args=connect_args, future=True)


def make_session_factory(bind: Engine) -> sessionmaker:
	return sessionmaker(autocommit=False, autoflush=False, bind=bind, future=True)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def ensure_schema(bind: Engine = engine) -> None:
	# Import so the table is registered on Base.metadata
	from . import models  # noqa: F401
	Base.metadata.create_all(bind=bind)
