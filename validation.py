# validation.py
from typing import Any, Dict, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models import FormState, InvoiceStatus
from utils import to_cents

M = TypeVar("M", bound=BaseModel)

# stored cents must fit a signed 64-bit column
MAX_AMOUNT = 10**15


class _Form(BaseModel):
  model_config = ConfigDict(str_strip_whitespace=True)


class InvoiceForm(_Form):
  customer_id: str = Field(alias="customerId", min_length=1)
  amount: float = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)  # dollars as typed by the user
  status: InvoiceStatus

  @field_validator("amount")
  @classmethod
  def at_least_one_cent(cls, v: float) -> float:
    if to_cents(v) < 1:
      raise ValueError("amount rounds to zero cents")
    return v


class CustomerForm(_Form):
  name: str = Field(min_length=1)
  email: str = Field(min_length=1)
  image_url: str = Field(min_length=1)


class SignupForm(_Form):
  name: str = Field(min_length=1)
  email: str = Field(min_length=1)
  password: str = Field(min_length=6)


class LoginForm(_Form):
  email: str = Field(min_length=1)
  password: str = Field(min_length=6)


INVOICE_MESSAGES = {
  "customerId": "Please select a customer.",
  "amount": "Please enter an amount greater than $0.",
  "status": "Please select an invoice status.",
}

CUSTOMER_MESSAGES = {
  "name": "Please enter a customer name.",
  "email": "Please enter a customer email.",
  "image_url": "Please enter a customer image url.",
}

SIGNUP_MESSAGES = {
  "name": "Please enter your name.",
  "email": "Please enter your email.",
  "password": "Password must be at least 6 characters.",
}


def field_errors(exc: ValidationError, messages: Mapping[str, str]) -> Dict[str, List[str]]:
  """Flatten pydantic errors into {field: [message, ...]}, one fixed message per field."""
  errors: Dict[str, List[str]] = {}
  for err in exc.errors():
    field = str(err["loc"][0]) if err["loc"] else "form"
    msg = messages.get(field, err["msg"])
    bucket = errors.setdefault(field, [])
    if msg not in bucket:
      bucket.append(msg)
  return errors


def _validate(
  model: Type[M],
  data: Mapping[str, Any],
  messages: Mapping[str, str],
  failure: str,
) -> Union[M, FormState]:
  try:
    return model.model_validate(dict(data))
  except ValidationError as e:
    return FormState(errors=field_errors(e, messages), message=failure)


def validate_invoice(data: Mapping[str, Any], action: str = "Create") -> Union[InvoiceForm, FormState]:
  return _validate(InvoiceForm, data, INVOICE_MESSAGES, f"Missing Fields. Failed to {action} Invoice.")


def validate_customer(data: Mapping[str, Any], action: str = "Create") -> Union[CustomerForm, FormState]:
  return _validate(CustomerForm, data, CUSTOMER_MESSAGES, f"Missing Fields. Failed to {action} Customer.")


def validate_signup(data: Mapping[str, Any]) -> Union[SignupForm, FormState]:
  return _validate(SignupForm, data, SIGNUP_MESSAGES, "Missing Fields. Failed to Create Account.")
