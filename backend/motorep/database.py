from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_database_url, settings

Base = declarative_base()

_engine_lock = Lock()
_engine = None
_session_local = None
_current_database_url = ""


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            # Una sola conexion compartida para que la base en memoria sobreviva entre sesiones.
            options["poolclass"] = StaticPool
        return create_engine(database_url, echo=settings.SQL_ECHO, **options)
    return create_engine(database_url, echo=settings.SQL_ECHO, pool_pre_ping=True)


def refresh_engine(force: bool = False):
    global _engine, _session_local, _current_database_url

    target_database_url = get_database_url()
    with _engine_lock:
        if not force and _engine is not None and target_database_url == _current_database_url:
            return _engine

        if _engine is not None:
            _engine.dispose()

        _engine = _build_engine(target_database_url)
        _session_local = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
        _current_database_url = target_database_url
        return _engine


def get_engine():
    return refresh_engine(force=False)


def get_session_local():
    refresh_engine(force=False)
    return _session_local


def get_current_database_url() -> str:
    refresh_engine(force=False)
    return _current_database_url
