# dashboard_route.py
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

import actions
import auth
import data
from cache import CUSTOMERS_PATH, DASHBOARD_PATH, INVOICES_PATH, page_cache, revalidate_path
from db import get_session, require_engine
from models import (
  ActionResult,
  CardData,
  Customer,
  CustomerField,
  CustomersPage,
  FormState,
  Invoice,
  InvoiceDetail,
  InvoicesPage,
  LatestInvoice,
  Revenue,
  User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])


def _form_failure(state: FormState) -> JSONResponse:
  # field errors are the caller's to fix; a bare message means the write itself failed
  status_code = 422 if state.errors else 500
  return JSONResponse(status_code=status_code, content=state.model_dump())


def _action_result(result: ActionResult) -> JSONResponse:
  return JSONResponse(status_code=200 if result.ok else 500, content=result.model_dump())


# ---------- dashboard ----------

@router.get("/revenue", response_model=List[Revenue])
def list_revenue(session: Session = Depends(get_session)):
  return data.fetch_revenue(session)


@router.get("/cards", response_model=CardData)
async def card_data():
  return await data.fetch_card_data(require_engine())


# ---------- invoices ----------

@router.get("/invoices/latest", response_model=List[LatestInvoice])
def latest_invoices(limit: int = Query(5, ge=1, le=100), session: Session = Depends(get_session)):
  return data.fetch_latest_invoices(session, limit=limit)


@router.get("/invoices/pages")
def invoices_pages(query: str = "", session: Session = Depends(get_session)):
  pages = page_cache.get_or_set(
    INVOICES_PATH, ("pages", query), lambda: data.fetch_invoices_pages(session, query)
  )
  return {"total_pages": pages}


@router.get("/invoices", response_model=InvoicesPage)
def list_invoices(query: str = "", page: int = 1, session: Session = Depends(get_session)):
  return page_cache.get_or_set(
    INVOICES_PATH, ("page", query, page), lambda: data.fetch_invoices_page_data(session, query, page)
  )


@router.get("/invoices/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: str, session: Session = Depends(get_session)):
  return data.fetch_invoice_by_id(session, invoice_id)


@router.post("/invoices")
def create_invoice(
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  state = actions.create_invoice(session, {"customerId": customerId, "amount": amount, "status": status})
  return _form_failure(state)


@router.post("/invoices/{invoice_id}")
def update_invoice(
  invoice_id: str,
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  state = actions.update_invoice(
    session, invoice_id, {"customerId": customerId, "amount": amount, "status": status}
  )
  return _form_failure(state)


@router.delete("/invoices/{invoice_id}", response_model=ActionResult)
def delete_invoice(invoice_id: str, session: Session = Depends(get_session)):
  return _action_result(actions.delete_invoice(session, invoice_id))


# ---------- customers ----------

@router.get("/customers/all", response_model=List[CustomerField])
def all_customers(session: Session = Depends(get_session)):
  return data.fetch_customers(session)


@router.get("/customers/pages")
def customers_pages(query: str = "", session: Session = Depends(get_session)):
  pages = page_cache.get_or_set(
    CUSTOMERS_PATH, ("pages", query), lambda: data.fetch_customers_page(session, query)
  )
  return {"total_pages": pages}


@router.get("/customers", response_model=CustomersPage)
def list_customers(query: str = "", page: int = 1, session: Session = Depends(get_session)):
  return page_cache.get_or_set(
    CUSTOMERS_PATH, ("page", query, page), lambda: data.fetch_customers_page_data(session, query, page)
  )


@router.get("/customers/{customer_id}", response_model=CustomerField)
def get_customer(customer_id: str, session: Session = Depends(get_session)):
  return data.fetch_customer_by_id(session, customer_id)


@router.post("/customers")
def create_customer(
  name: Optional[str] = Form(None),
  email: Optional[str] = Form(None),
  image_url: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  state = actions.create_customer(session, {"name": name, "email": email, "image_url": image_url})
  return _form_failure(state)


@router.post("/customers/{customer_id}")
def update_customer(
  customer_id: str,
  name: Optional[str] = Form(None),
  email: Optional[str] = Form(None),
  image_url: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  state = actions.update_customer(
    session, customer_id, {"name": name, "email": email, "image_url": image_url}
  )
  return _form_failure(state)


@router.delete("/customers/{customer_id}", response_model=ActionResult)
def delete_customer(customer_id: str, session: Session = Depends(get_session)):
  return _action_result(actions.delete_customer(session, customer_id))


# ---------- accounts ----------

@router.post("/signup")
def signup(
  name: Optional[str] = Form(None),
  email: Optional[str] = Form(None),
  password: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  state = actions.create_account(session, {"name": name, "email": email, "password": password})
  return _form_failure(state)


@router.post("/login")
def login(
  email: Optional[str] = Form(None),
  password: Optional[str] = Form(None),
  session: Session = Depends(get_session),
):
  message = auth.authenticate(session, {"email": email, "password": password})
  return JSONResponse(status_code=401, content={"message": message})


@router.post("/login/google")
async def login_google(id_token: str = Form("")):
  message = await auth.authenticate_google(id_token)
  return JSONResponse(status_code=401, content={"message": message})


# ---------- seed ----------

PLACEHOLDER_CUSTOMERS = [
  ("Delba de Oliveira", "delba@oliveira.com", "/customers/delba-de-oliveira.png"),
  ("Lee Robinson", "lee@robinson.com", "/customers/lee-robinson.png"),
  ("Hector Simpson", "hector@simpson.com", "/customers/hector-simpson.png"),
  ("Steven Tey", "steven@tey.com", "/customers/steven-tey.png"),
  ("Steph Dietz", "steph@dietz.com", "/customers/steph-dietz.png"),
  ("Michael Novotny", "michael@novotny.com", "/customers/michael-novotny.png"),
]

# (customer email, cents, status, date)
PLACEHOLDER_INVOICES = [
  ("delba@oliveira.com", 15795, "pending", date(2022, 12, 6)),
  ("lee@robinson.com", 20348, "pending", date(2022, 11, 14)),
  ("hector@simpson.com", 3040, "paid", date(2022, 10, 29)),
  ("steven@tey.com", 44800, "paid", date(2023, 9, 10)),
  ("steph@dietz.com", 34577, "pending", date(2023, 8, 5)),
  ("michael@novotny.com", 54246, "pending", date(2023, 7, 16)),
  ("delba@oliveira.com", 666, "pending", date(2023, 6, 27)),
  ("steven@tey.com", 32545, "paid", date(2023, 6, 9)),
  ("steph@dietz.com", 1250, "paid", date(2023, 6, 17)),
  ("lee@robinson.com", 8546, "paid", date(2023, 6, 7)),
]

MONTHLY_REVENUE = [2000, 1800, 2200, 2500, 2300, 3200, 3500, 3700, 2500, 2800, 3000, 4800]


@router.post("/seed")
def seed_if_empty(session: Session = Depends(get_session)):
  # each table is filled only where its placeholder rows are missing
  added = 0

  by_email = {c.email: c for c in session.exec(select(Customer)).all()}
  for name, email, image_url in PLACEHOLDER_CUSTOMERS:
    if email not in by_email:
      by_email[email] = Customer(name=name, email=email, image_url=image_url)
      session.add(by_email[email])
      added += 1

  if session.exec(select(Invoice)).first() is None:
    for email, amount, status, day in PLACEHOLDER_INVOICES:
      session.add(Invoice(
        customer_id=by_email[email].id,
        amount=amount,
        status=status,
        date=day,
        created_at=datetime(day.year, day.month, day.day, tzinfo=timezone.utc),
      ))
      added += 1

  months = set(session.exec(select(Revenue.month)).all())
  for i, r in enumerate(MONTHLY_REVENUE):
    if i + 1 not in months:
      session.add(Revenue(month=i + 1, revenue=float(r)))
      added += 1

  if data.get_user(session, "user@nextmail.com") is None:
    session.add(User(name="User", email="user@nextmail.com", password=auth.hash_password("123456")))
    added += 1

  if not added:
    return {"ok": True, "seeded": False}

  session.commit()
  for path in (INVOICES_PATH, CUSTOMERS_PATH, DASHBOARD_PATH):
    revalidate_path(path)
  logger.info("seeded %d placeholder rows", added)
  return {"ok": True, "seeded": True}
