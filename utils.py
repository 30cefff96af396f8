# utils.py
import math
from typing import Any


def format_currency(cents: Any) -> str:
  """Minor units (cents) to an en-US dollar string, e.g. 123456 -> "$1,234.56"."""
  value = (cents or 0) / 100
  return f"-${abs(value):,.2f}" if value < 0 else f"${value:,.2f}"


def to_cents(amount: float) -> int:
  return int(round(amount * 100))


def total_pages(count: int, per_page: int) -> int:
  return math.ceil(count / per_page) if count > 0 else 0
