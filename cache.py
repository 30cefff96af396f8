# cache.py
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"
CUSTOMERS_PATH = "/dashboard/customers"
DASHBOARD_PATH = "/dashboard"

MAX_ENTRIES_PER_PATH = 256


class PageCache:
  """Rendered listing data keyed by route path; writers drop a path with revalidate_path().

  Each path keeps at most ``max_entries`` keys, least recently used first out.
  """

  def __init__(self, max_entries: int = MAX_ENTRIES_PER_PATH) -> None:
    self.max_entries = max_entries
    self._entries: Dict[str, "OrderedDict[Hashable, Any]"] = {}
    self._lock = threading.Lock()

  def get_or_set(self, path: str, key: Hashable, loader: Callable[[], Any]) -> Any:
    with self._lock:
      page = self._entries.get(path)
      if page is not None and key in page:
        page.move_to_end(key)
        return page[key]
    value = loader()
    with self._lock:
      page = self._entries.setdefault(path, OrderedDict())
      page[key] = value
      page.move_to_end(key)
      while len(page) > self.max_entries:
        page.popitem(last=False)
    return value

  def size(self, path: str) -> int:
    with self._lock:
      return len(self._entries.get(path, ()))

  def revalidate_path(self, path: str) -> None:
    with self._lock:
      dropped = self._entries.pop(path, None)
    if dropped:
      logger.debug("revalidated %s (%d entries)", path, len(dropped))

  def clear(self) -> None:
    with self._lock:
      self._entries.clear()


page_cache = PageCache()


def revalidate_path(path: str) -> None:
  page_cache.revalidate_path(path)
