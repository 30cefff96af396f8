# db.py
import logging
import threading
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from config import get_settings
from errors import DatabaseUnavailable

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_attempted = False
_lock = threading.Lock()


def _connect() -> Optional[Engine]:
  settings = get_settings()
  if not settings.database_url:
    logger.error("DATABASE_URL is not set; database operations will fail")
    return None

  connect_args = {}
  if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

  try:
    engine = create_engine(
      settings.database_url,
      echo=settings.sql_echo,
      pool_pre_ping=True,
      connect_args=connect_args,
    )
    with engine.connect():
      pass
  except (SQLAlchemyError, ValueError) as e:
    logger.error("Database connection failed: %s", e)
    return None

  logger.info("Database connected (%s)", engine.url.get_backend_name())
  return engine


def get_engine() -> Optional[Engine]:
  """Shared engine, created on first use. Concurrent first callers wait on one attempt."""
  global _engine, _attempted
  if _attempted:
    return _engine
  with _lock:
    if not _attempted:
      _engine = _connect()
      _attempted = True
  return _engine


def set_engine(engine: Optional[Engine]) -> None:
  global _engine, _attempted
  with _lock:
    _engine = engine
    _attempted = True


def reset_engine() -> None:
  global _engine, _attempted
  with _lock:
    if _engine is not None:
      _engine.dispose()
    _engine = None
    _attempted = False


def require_engine() -> Engine:
  engine = get_engine()
  if engine is None:
    raise DatabaseUnavailable("Database Error: connection unavailable.")
  return engine


def init_db() -> None:
  import models  # noqa: F401  registers the tables on SQLModel.metadata
  SQLModel.metadata.create_all(require_engine())


def get_session():
  with Session(require_engine()) as session:
    yield session
