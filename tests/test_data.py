from __future__ import annotations

import asyncio
import datetime as dt

import pytest
from sqlmodel import Session, create_engine

import data
from errors import DataError, NotFoundError
from models import Revenue, User


@pytest.fixture
def ledger(make_customer, make_invoice):
  """Two customers, fourteen invoices, plus one invoice pointing nowhere."""
  delba = make_customer("Delba de Oliveira", "delba@oliveira.com", "/customers/delba.png")
  lee = make_customer("Lee Robinson", "lee@robinson.com", "/customers/lee.png")
  invoices = []
  for i in range(8):
    invoices.append(make_invoice(delba.id, amount=1000 + i, status="pending", date=dt.date(2023, 6, 1 + i)))
  for i in range(6):
    invoices.append(make_invoice(lee.id, amount=15795 + i, status="paid", date=dt.date(2022, 12, 1 + i)))
  orphan = make_invoice("000000000000000000000000", amount=777, status="paid", date=dt.date(2024, 1, 1))
  return {"delba": delba, "lee": lee, "invoices": invoices, "orphan": orphan}


def _all_pages(session, query):
  pages = data.fetch_invoices_pages(session, query)
  rows = []
  for page in range(1, pages + 1):
    chunk = data.fetch_filtered_invoices(session, query, page)
    assert len(chunk) <= data.ITEMS_PER_PAGE
    rows.extend(chunk)
  return pages, rows


@pytest.mark.parametrize("query", ["", "delba", "LEE", "paid", "2023-06", "1579", "robinson.com", "zzz"])
def test_pages_cover_every_match_exactly_once(session, ledger, query) -> None:
  pages, rows = _all_pages(session, query)
  total = data.count_filtered_invoices(session, query)

  assert len(rows) == total
  assert len({r.id for r in rows}) == total
  if pages:
    assert pages * data.ITEMS_PER_PAGE >= total > (pages - 1) * data.ITEMS_PER_PAGE
  else:
    assert total == 0


def test_filter_spans_joined_customer_fields(session, ledger) -> None:
  assert data.count_filtered_invoices(session, "") == 14
  assert data.count_filtered_invoices(session, "dElBa") == 8
  assert data.count_filtered_invoices(session, "lee@robinson") == 6
  assert data.count_filtered_invoices(session, "pending") == 8
  assert data.count_filtered_invoices(session, "2022-12") == 6
  assert data.count_filtered_invoices(session, "15797") == 1


def test_filter_is_literal_substring(session, ledger) -> None:
  assert data.count_filtered_invoices(session, "%") == 0
  assert data.count_filtered_invoices(session, "_") == 0


def test_orphaned_invoices_are_dropped(session, ledger) -> None:
  orphan_id = ledger["orphan"].id
  _, rows = _all_pages(session, "")
  assert orphan_id not in {r.id for r in rows}

  latest = data.fetch_latest_invoices(session, limit=50)
  assert orphan_id not in {r.id for r in latest}
  assert len(latest) == 14


def test_filtered_invoice_rows_carry_customer(session, ledger) -> None:
  rows = data.fetch_filtered_invoices(session, "lee", 1)
  assert [r.date for r in rows] == sorted((r.date for r in rows), reverse=True)
  first = rows[0]
  assert first.name == "Lee Robinson"
  assert first.email == "lee@robinson.com"
  assert first.image_url == "/customers/lee.png"
  assert isinstance(first.id, str)


def test_pages_are_stable_across_calls(session, ledger) -> None:
  first = [r.id for r in data.fetch_filtered_invoices(session, "", 2)]
  second = [r.id for r in data.fetch_filtered_invoices(session, "", 2)]
  assert first == second


def test_page_below_one_is_first_page(session, ledger) -> None:
  assert data.fetch_filtered_invoices(session, "", 0) == data.fetch_filtered_invoices(session, "", 1)


def test_page_data_matches_separate_calls(session, ledger) -> None:
  result = data.fetch_invoices_page_data(session, "delba", 2)
  assert result.total_pages == 2
  assert len(result.items) == 2


def test_latest_invoices_newest_first_and_formatted(session, ledger) -> None:
  latest = data.fetch_latest_invoices(session)
  assert len(latest) == 5
  # lee's invoices were created last
  assert latest[0].name == "Lee Robinson"
  assert latest[0].amount == "$158.00"
  assert all(r.amount.startswith("$") for r in latest)


def test_card_data_totals(engine, ledger) -> None:
  cards = asyncio.run(data.fetch_card_data(engine))
  assert cards.number_of_customers == 2
  assert cards.number_of_invoices == 15
  # six paid lee invoices 15795..15800 plus the orphan 777
  assert cards.total_paid_invoices == "$955.62"
  assert cards.total_pending_invoices == "$80.28"


def test_card_data_with_no_invoices_is_zero(engine) -> None:
  cards = asyncio.run(data.fetch_card_data(engine))
  assert cards.number_of_invoices == 0
  assert cards.number_of_customers == 0
  assert cards.total_paid_invoices == "$0.00"
  assert cards.total_pending_invoices == "$0.00"


def test_card_data_with_only_pending(engine, make_customer, make_invoice) -> None:
  c = make_customer()
  make_invoice(c.id, amount=12345, status="pending")
  cards = asyncio.run(data.fetch_card_data(engine))
  assert cards.total_paid_invoices == "$0.00"
  assert cards.total_pending_invoices == "$123.45"


def test_invoice_by_id_converts_to_dollars(session, ledger) -> None:
  inv = ledger["invoices"][-1]
  detail = data.fetch_invoice_by_id(session, inv.id)
  assert detail.amount == pytest.approx(158.00)
  assert detail.customer_id == ledger["lee"].id
  assert detail.status == "paid"


def test_invoice_by_id_missing(session) -> None:
  with pytest.raises(NotFoundError):
    data.fetch_invoice_by_id(session, "does-not-exist")


def test_customers_filter_and_pages(session, make_customer) -> None:
  for i in range(7):
    make_customer(f"Acme {i}", f"ops{i}@acme.io", f"/customers/acme-{i}.png")
  make_customer("Globex", "hello@globex.com", "/customers/globex.png")

  assert data.fetch_customers_page(session, "") == 2
  assert data.fetch_customers_page(session, "ACME") == 2
  assert data.fetch_customers_page(session, "globex.png") == 1
  assert data.fetch_customers_page(session, "nobody") == 0

  first = data.fetch_filtered_customers(session, "acme", 1)
  second = data.fetch_filtered_customers(session, "acme", 2)
  assert len(first) == 6
  assert len(second) == 1
  assert not {c.id for c in first} & {c.id for c in second}

  page = data.fetch_customers_page_data(session, "acme", 2)
  assert page.total_pages == 2
  assert [c.name for c in page.items] == ["Acme 6"]

  assert len(data.fetch_customers(session)) == 8


def test_customer_by_id(session, make_customer) -> None:
  c = make_customer("Ann", "a@x.com", "/i.png")
  got = data.fetch_customer_by_id(session, c.id)
  assert (got.id, got.name, got.email, got.image_url) == (c.id, "Ann", "a@x.com", "/i.png")

  with pytest.raises(NotFoundError):
    data.fetch_customer_by_id(session, "missing")


def test_revenue_verbatim(session) -> None:
  session.add_all([Revenue(month=2, revenue=1800.0), Revenue(month=1, revenue=2000.0)])
  session.commit()
  rows = data.fetch_revenue(session)
  assert [(r.month, r.revenue) for r in rows] == [(1, 2000.0), (2, 1800.0)]


def test_get_user_absent_is_none(session) -> None:
  assert data.get_user(session, "nobody@x.com") is None
  session.add(User(name="U", email="u@x.com", password="hash"))
  session.commit()
  assert data.get_user(session, "u@x.com").name == "U"


def test_backend_failure_becomes_data_error(tmp_path) -> None:
  bare = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
  with Session(bare) as session:
    with pytest.raises(DataError) as exc:
      data.fetch_revenue(session)
  assert exc.value.message == "Failed to fetch revenue data."
