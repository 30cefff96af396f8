# actions.py
"""
Form-driven writes.

Create/update return a FormState only when they fail; success revalidates the cached
listing and raises Redirect to it. Deletes answer with a short message instead.
Backend failures, including an id that no longer resolves, are logged and reported
as a generic database error.
"""

import datetime as dt
import logging
from typing import Any, Mapping, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from auth import hash_password
from cache import CUSTOMERS_PATH, DASHBOARD_PATH, INVOICES_PATH, revalidate_path
from errors import Redirect
from models import ActionResult, Customer, FormState, Invoice, User
from utils import to_cents
from validation import validate_customer, validate_invoice, validate_signup

logger = logging.getLogger(__name__)


def _save(session: Session, row: SQLModel, failure: str) -> bool:
  try:
    session.add(row)
    session.commit()
    return True
  except Exception:
    session.rollback()
    logger.exception(failure)
    return False


def _load(session: Session, model: Type[SQLModel], row_id: str, failure: str):
  try:
    row = session.get(model, row_id)
  except SQLAlchemyError:
    session.rollback()
    logger.exception(failure)
    return None
  if row is None:
    logger.warning("%s: %s %s not found", failure, model.__name__, row_id)
  return row


def _delete(session: Session, model: Type[SQLModel], row_id: str, failure: str) -> bool:
  row = _load(session, model, row_id, failure)
  if row is None:
    return False
  try:
    session.delete(row)
    session.commit()
    return True
  except Exception:
    session.rollback()
    logger.exception(failure)
    return False


# ---------- invoices ----------

def create_invoice(session: Session, data: Mapping[str, Any]) -> FormState:
  form = validate_invoice(data, "Create")
  if isinstance(form, FormState):
    return form

  failure = "Database Error: Failed to Create Invoice."
  invoice = Invoice(
    customer_id=form.customer_id,
    amount=to_cents(form.amount),
    status=form.status,
    date=dt.date.today(),
  )
  if not _save(session, invoice, failure):
    return FormState(message=failure)

  revalidate_path(INVOICES_PATH)
  revalidate_path(DASHBOARD_PATH)
  raise Redirect(INVOICES_PATH)


def update_invoice(session: Session, invoice_id: str, data: Mapping[str, Any]) -> FormState:
  form = validate_invoice(data, "Update")
  if isinstance(form, FormState):
    return form

  failure = "Database Error: Failed to Update Invoice."
  invoice = _load(session, Invoice, invoice_id, failure)
  if invoice is None:
    return FormState(message=failure)

  invoice.customer_id = form.customer_id
  invoice.amount = to_cents(form.amount)
  invoice.status = form.status
  if not _save(session, invoice, failure):
    return FormState(message=failure)

  revalidate_path(INVOICES_PATH)
  revalidate_path(DASHBOARD_PATH)
  raise Redirect(INVOICES_PATH)


def delete_invoice(session: Session, invoice_id: str) -> ActionResult:
  if not _delete(session, Invoice, invoice_id, "Database Error: Failed to Delete Invoice."):
    return ActionResult(message="Database Error: Failed to Delete Invoice.", ok=False)
  revalidate_path(INVOICES_PATH)
  revalidate_path(DASHBOARD_PATH)
  return ActionResult(message="Deleted Invoice.")


# ---------- customers ----------

def create_customer(session: Session, data: Mapping[str, Any]) -> FormState:
  form = validate_customer(data, "Create")
  if isinstance(form, FormState):
    return form

  failure = "Database Error: Failed to Create Customer."
  customer = Customer(name=form.name, email=form.email, image_url=form.image_url)
  if not _save(session, customer, failure):
    return FormState(message=failure)

  revalidate_path(CUSTOMERS_PATH)
  raise Redirect(CUSTOMERS_PATH)


def update_customer(session: Session, customer_id: str, data: Mapping[str, Any]) -> FormState:
  form = validate_customer(data, "Update")
  if isinstance(form, FormState):
    return form

  failure = "Database Error: Failed to Update Customer."
  customer = _load(session, Customer, customer_id, failure)
  if customer is None:
    return FormState(message=failure)

  customer.name = form.name
  customer.email = form.email
  customer.image_url = form.image_url
  if not _save(session, customer, failure):
    return FormState(message=failure)

  # joined invoice rows show the customer's name/email
  revalidate_path(CUSTOMERS_PATH)
  revalidate_path(INVOICES_PATH)
  raise Redirect(CUSTOMERS_PATH)


def delete_customer(session: Session, customer_id: str) -> ActionResult:
  # invoices pointing at this customer are left in place and drop out of joined reads
  if not _delete(session, Customer, customer_id, "Database Error: Failed to Delete Customer."):
    return ActionResult(message="Database Error: Failed to Delete Customer.", ok=False)
  revalidate_path(CUSTOMERS_PATH)
  revalidate_path(INVOICES_PATH)
  revalidate_path(DASHBOARD_PATH)
  return ActionResult(message="Deleted Customer.")


# ---------- accounts ----------

def create_account(session: Session, data: Mapping[str, Any]) -> FormState:
  form = validate_signup(data)
  if isinstance(form, FormState):
    return form

  failure = "Database Error: Failed to Create Account."
  user = User(name=form.name, email=form.email, password=hash_password(form.password))
  if not _save(session, user, failure):
    return FormState(message=failure)

  revalidate_path("/")
  raise Redirect("/")
