# models.py
import datetime as dt
import uuid
from typing import Dict, List, Literal, Optional

from sqlmodel import SQLModel, Field

InvoiceStatus = Literal["pending", "paid"]


def _new_id() -> str:
  return uuid.uuid4().hex


def _utcnow() -> dt.datetime:
  return dt.datetime.now(dt.timezone.utc)


class User(SQLModel, table=True):
  __tablename__ = "users"

  id: str = Field(default_factory=_new_id, primary_key=True)
  name: str
  email: str = Field(index=True, unique=True)
  password: str  # bcrypt hash


class Customer(SQLModel, table=True):
  __tablename__ = "customers"

  id: str = Field(default_factory=_new_id, primary_key=True)
  name: str
  email: str
  image_url: str


class Invoice(SQLModel, table=True):
  __tablename__ = "invoices"

  id: str = Field(default_factory=_new_id, primary_key=True)
  customer_id: str = Field(index=True)  # customers.id, not enforced
  amount: int  # cents
  status: str = "pending"  # pending|paid
  date: dt.date = Field(default_factory=dt.date.today)
  created_at: dt.datetime = Field(default_factory=_utcnow)


class Revenue(SQLModel, table=True):
  __tablename__ = "revenue"

  month: int = Field(primary_key=True)  # 1..12
  revenue: float


# read models

class LatestInvoice(SQLModel):
  id: str
  name: str
  email: str
  image_url: str
  amount: str  # formatted


class InvoiceRow(SQLModel):
  id: str
  amount: int
  date: dt.date
  status: str
  name: str
  email: str
  image_url: str


class InvoiceDetail(SQLModel):
  id: str
  customer_id: str
  amount: float  # dollars
  status: str
  date: dt.date


class CardData(SQLModel):
  number_of_customers: int
  number_of_invoices: int
  total_paid_invoices: str
  total_pending_invoices: str


class CustomerField(SQLModel):
  id: str
  name: str
  email: str
  image_url: str


class InvoicesPage(SQLModel):
  items: List[InvoiceRow]
  total_pages: int


class CustomersPage(SQLModel):
  items: List[CustomerField]
  total_pages: int


class ActionResult(SQLModel):
  message: str
  ok: bool = True


class FormState(SQLModel):
  errors: Dict[str, List[str]] = Field(default_factory=dict)
  message: Optional[str] = None
