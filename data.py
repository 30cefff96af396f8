# data.py
import asyncio
import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from errors import DataError, NotFoundError
from models import (
  CardData,
  Customer,
  CustomerField,
  CustomersPage,
  Invoice,
  InvoiceDetail,
  InvoiceRow,
  InvoicesPage,
  LatestInvoice,
  Revenue,
  User,
)
from utils import format_currency, total_pages

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 6

# customers.id is matched against the untyped invoices.customer_id; unmatched invoices drop out
_CUSTOMER_JOIN = Customer.id == Invoice.customer_id

# stable across pages
_INVOICE_ORDER = (Invoice.date.desc(), Invoice.created_at.desc(), Invoice.id)
_CUSTOMER_ORDER = (Customer.name, Customer.id)


@contextmanager
def _reading(message: str):
  try:
    yield
  except SQLAlchemyError as e:
    logger.exception("Database Error: %s", message)
    raise DataError(message) from e


def _offset(page: int) -> int:
  return (max(page or 1, 1) - 1) * ITEMS_PER_PAGE


def _invoice_filter(query: Optional[str]):
  q = (query or "").strip()
  if not q:
    return None
  return or_(
    Customer.name.icontains(q, autoescape=True),
    Customer.email.icontains(q, autoescape=True),
    cast(Invoice.amount, String).icontains(q, autoescape=True),
    cast(Invoice.date, String).icontains(q, autoescape=True),
    Invoice.status.icontains(q, autoescape=True),
  )


def _customer_filter(query: Optional[str]):
  q = (query or "").strip()
  if not q:
    return None
  return or_(
    Customer.name.icontains(q, autoescape=True),
    Customer.email.icontains(q, autoescape=True),
    Customer.image_url.icontains(q, autoescape=True),
  )


def _where(stmt, predicate):
  return stmt if predicate is None else stmt.where(predicate)


def _invoice_row(invoice: Invoice, customer: Customer) -> InvoiceRow:
  return InvoiceRow(
    id=str(invoice.id),
    amount=invoice.amount,
    date=invoice.date,
    status=invoice.status,
    name=customer.name,
    email=customer.email,
    image_url=customer.image_url,
  )


def _customer_field(c: Customer) -> CustomerField:
  return CustomerField(id=str(c.id), name=c.name, email=c.email, image_url=c.image_url)


# ---------- dashboard ----------

def fetch_revenue(session: Session) -> List[Revenue]:
  with _reading("Failed to fetch revenue data."):
    return list(session.exec(select(Revenue).order_by(Revenue.month)).all())


def fetch_latest_invoices(session: Session, limit: int = 5) -> List[LatestInvoice]:
  stmt = (
    select(Invoice, Customer)
    .select_from(Invoice)
    .join(Customer, _CUSTOMER_JOIN)
    .order_by(Invoice.created_at.desc(), Invoice.id)
    .limit(limit)
  )
  with _reading("Failed to fetch the latest invoices."):
    rows = session.exec(stmt).all()
  return [
    LatestInvoice(
      id=str(inv.id),
      name=cust.name,
      email=cust.email,
      image_url=cust.image_url,
      amount=format_currency(inv.amount),
    )
    for inv, cust in rows
  ]


async def fetch_card_data(engine: Engine) -> CardData:
  """Counts and paid/pending totals, the four queries run concurrently."""

  def scalar(stmt):
    with Session(engine) as session:
      return session.exec(stmt).one()

  def amount_sum(status: str):
    return select(func.coalesce(func.sum(Invoice.amount), 0)).where(Invoice.status == status)

  with _reading("Failed to fetch card data."):
    invoices, customers, paid, pending = await asyncio.gather(
      asyncio.to_thread(scalar, select(func.count()).select_from(Invoice)),
      asyncio.to_thread(scalar, select(func.count()).select_from(Customer)),
      asyncio.to_thread(scalar, amount_sum("paid")),
      asyncio.to_thread(scalar, amount_sum("pending")),
    )

  return CardData(
    number_of_invoices=int(invoices or 0),
    number_of_customers=int(customers or 0),
    total_paid_invoices=format_currency(paid or 0),
    total_pending_invoices=format_currency(pending or 0),
  )


# ---------- invoices ----------

def fetch_filtered_invoices(session: Session, query: str, page: int) -> List[InvoiceRow]:
  stmt = _where(
    select(Invoice, Customer).select_from(Invoice).join(Customer, _CUSTOMER_JOIN),
    _invoice_filter(query),
  )
  stmt = stmt.order_by(*_INVOICE_ORDER).offset(_offset(page)).limit(ITEMS_PER_PAGE)
  with _reading("Failed to fetch invoices."):
    rows = session.exec(stmt).all()
  return [_invoice_row(inv, cust) for inv, cust in rows]


def count_filtered_invoices(session: Session, query: str) -> int:
  stmt = _where(
    select(func.count()).select_from(Invoice).join(Customer, _CUSTOMER_JOIN),
    _invoice_filter(query),
  )
  with _reading("Failed to fetch total number of invoices."):
    return int(session.exec(stmt).one())


def fetch_invoices_pages(session: Session, query: str) -> int:
  return total_pages(count_filtered_invoices(session, query), ITEMS_PER_PAGE)


def fetch_invoices_page_data(session: Session, query: str, page: int) -> InvoicesPage:
  """Rows and page count read on one session, inside the same transaction."""
  items = fetch_filtered_invoices(session, query, page)
  pages = fetch_invoices_pages(session, query)
  return InvoicesPage(items=items, total_pages=pages)


def fetch_invoice_by_id(session: Session, invoice_id: str) -> InvoiceDetail:
  with _reading("Failed to fetch invoice."):
    invoice = session.get(Invoice, invoice_id)
  if invoice is None:
    raise NotFoundError("Invoice not found.")
  return InvoiceDetail(
    id=str(invoice.id),
    customer_id=invoice.customer_id,
    status=invoice.status,
    date=invoice.date,
    amount=invoice.amount / 100,
  )


# ---------- customers ----------

def fetch_customers(session: Session) -> List[CustomerField]:
  with _reading("Failed to fetch all customers."):
    rows = session.exec(select(Customer).order_by(*_CUSTOMER_ORDER)).all()
  return [_customer_field(c) for c in rows]


def fetch_filtered_customers(session: Session, query: str, page: int) -> List[CustomerField]:
  stmt = _where(select(Customer), _customer_filter(query))
  stmt = stmt.order_by(*_CUSTOMER_ORDER).offset(_offset(page)).limit(ITEMS_PER_PAGE)
  with _reading("Failed to fetch customers."):
    rows = session.exec(stmt).all()
  return [_customer_field(c) for c in rows]


def fetch_customers_page(session: Session, query: str) -> int:
  stmt = _where(select(func.count()).select_from(Customer), _customer_filter(query))
  with _reading("Failed to fetch total number of customers."):
    count = int(session.exec(stmt).one())
  return total_pages(count, ITEMS_PER_PAGE)


def fetch_customers_page_data(session: Session, query: str, page: int) -> CustomersPage:
  items = fetch_filtered_customers(session, query, page)
  pages = fetch_customers_page(session, query)
  return CustomersPage(items=items, total_pages=pages)


def fetch_customer_by_id(session: Session, customer_id: str) -> CustomerField:
  with _reading("Failed to fetch customer."):
    customer = session.get(Customer, customer_id)
  if customer is None:
    raise NotFoundError("Customer not found.")
  return _customer_field(customer)


# ---------- users ----------

def get_user(session: Session, email: str) -> Optional[User]:
  with _reading("Failed to fetch user."):
    return session.exec(select(User).where(User.email == email)).first()
