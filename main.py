# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from dashboard_route import router as dashboard_router
from db import get_engine, init_db, reset_engine
from errors import DatabaseUnavailable, DataError, NotFoundError, Redirect

settings = get_settings()

logging.basicConfig(
  level=getattr(logging, settings.log_level, logging.INFO),
  format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
  # a missing or unreachable database must not stop startup
  if get_engine() is not None:
    try:
      init_db()
    except SQLAlchemyError as e:
      logger.error("Skipping table creation: %s", e)
  else:
    logger.warning("Starting without a database connection")
  yield
  reset_engine()


app = FastAPI(title="Acme Dashboard Backend", version="1.0.0", lifespan=lifespan)
app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origins,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)


@app.exception_handler(Redirect)
async def redirect_handler(request: Request, exc: Redirect):
  return RedirectResponse(url=exc.url, status_code=303)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
  return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(DatabaseUnavailable)
async def unavailable_handler(request: Request, exc: DatabaseUnavailable):
  return JSONResponse(status_code=503, content={"detail": exc.message})


@app.exception_handler(DataError)
async def data_error_handler(request: Request, exc: DataError):
  return JSONResponse(status_code=500, content={"detail": exc.message})


app.include_router(dashboard_router)


@app.get("/health")
def health():
  return {"ok": True, "database": get_engine() is not None}
