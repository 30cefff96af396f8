"""Pytest configuration.

Every test gets its own SQLite file installed as the shared engine, and an empty page cache.
"""

from __future__ import annotations

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

import db
import models  # noqa: F401
from cache import page_cache
from models import Customer, Invoice


@pytest.fixture
def engine(tmp_path):
  eng = create_engine(
    f"sqlite:///{tmp_path / 'dashboard.db'}",
    connect_args={"check_same_thread": False},
  )
  SQLModel.metadata.create_all(eng)
  db.set_engine(eng)
  page_cache.clear()
  yield eng
  db.reset_engine()
  page_cache.clear()


@pytest.fixture
def session(engine):
  with Session(engine) as s:
    yield s


@pytest.fixture
def client(engine):
  from main import app

  return TestClient(app, follow_redirects=False)


@pytest.fixture
def make_customer(session):
  def _make(name: str = "Ann", email: str = "a@x.com", image_url: str = "/i.png") -> Customer:
    c = Customer(name=name, email=email, image_url=image_url)
    session.add(c)
    session.commit()
    session.refresh(c)
    return c

  return _make


@pytest.fixture
def make_invoice(session):
  counter = {"n": 0}

  def _make(
    customer_id: str,
    amount: int = 1000,
    status: str = "pending",
    date: dt.date = dt.date(2024, 1, 1),
  ) -> Invoice:
    counter["n"] += 1
    inv = Invoice(
      customer_id=customer_id,
      amount=amount,
      status=status,
      date=date,
      created_at=dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc) + dt.timedelta(minutes=counter["n"]),
    )
    session.add(inv)
    session.commit()
    session.refresh(inv)
    return inv

  return _make
