import pytest

from tests.factories import make_test
from timed_assessment.services.catalog import InMemoryTestCatalog
from timed_assessment.services.clock import ManualClock
from timed_assessment.services.result_store import InMemoryResultStore
from timed_assessment.services.session_engine import SessionEngine
from timed_assessment.services.ticker import Ticker


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def ticker() -> Ticker:
    return Ticker(interval=1.0)


@pytest.fixture
def catalog() -> InMemoryTestCatalog:
    return InMemoryTestCatalog([make_test()])


@pytest.fixture
def store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def engine(catalog, store, clock, ticker) -> SessionEngine:
    return SessionEngine(catalog=catalog, result_store=store, clock=clock, ticker=ticker)
