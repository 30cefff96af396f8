# config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
  database_url: Optional[str]
  log_level: str
  cors_origins: List[str]
  google_client_id: Optional[str]
  bcrypt_rounds: int
  sql_echo: bool


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
  v = os.getenv(name, default)
  if v is None:
    return None
  v = v.strip()
  return v if v else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Only place env vars are read. Loads `.env` if present."""
  load_dotenv(override=False)

  origins = _getenv("CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000") or ""
  return Settings(
    database_url=_getenv("DATABASE_URL"),
    log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
    cors_origins=[x.strip() for x in origins.split(",") if x.strip()],
    google_client_id=_getenv("GOOGLE_CLIENT_ID"),
    bcrypt_rounds=int(_getenv("BCRYPT_ROUNDS", "10") or "10"),
    sql_echo=(_getenv("SQL_ECHO", "false") or "false").lower() == "true",
  )
