"""Base stage class and utilities."""

import sys
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, NamedTuple, Optional, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

T = TypeVar("T")
R = TypeVar("R")


def progress(*args: Any) -> None:
    """Narrate pipeline progress on stderr; stdout carries the registry."""
    print(*args, file=sys.stderr, flush=True)


def get_session(retries: int = 3) -> requests.Session:
    """Create a requests session with retry logic."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class Settled(NamedTuple):
    """Outcome of one fanned-out call."""

    item: Any
    result: Any
    error: Optional[BaseException]


def join_all(fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
    """Run ``fn`` for every item at once and return results in input order.

    The first failure (in input order) is re-raised once every call settled,
    so one bad item fails the whole batch.
    """
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as executor:
        futures = [executor.submit(fn, item) for item in items]
        return [future.result() for future in futures]


def join_settled(fn: Callable[[T], R], items: Iterable[T]) -> list[Settled]:
    """Run ``fn`` for every item at once and collect every outcome.

    Never raises for an item's failure; the exception is returned in its
    ``Settled`` entry instead.
    """
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as executor:
        futures = [(item, executor.submit(fn, item)) for item in items]
        outcomes = []
        for item, future in futures:
            error = future.exception()
            result = None if error else future.result()
            outcomes.append(Settled(item, result, error))
        return outcomes


class BaseStage(ABC):
    """Abstract base class for network-backed pipeline stages."""

    stage_name: str = "unknown"

    REQUEST_TIMEOUT = 30

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or get_session()
        self.errors: list[str] = []

    @abstractmethod
    def run(self, data):
        """Consume the previous stage's output and return this stage's output."""
        pass

    def get_json(self, url: str, **kwargs) -> Any:
        """GET ``url`` and decode its JSON body.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If the body is not valid JSON.
        """
        response = self.session.get(url, timeout=self.REQUEST_TIMEOUT, **kwargs)
        response.raise_for_status()
        return response.json()
