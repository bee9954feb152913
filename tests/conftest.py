# tests/conftest.py
import pytest
import pytest_asyncio

from broker_remover.db.database import create_engine, create_session_factory, init_db, seed_brokers
from broker_remover.db.repository import BrokerRepository
from broker_remover.services.automation import AutomationEngine
from broker_remover.services.progress import ProgressTracker
from broker_remover.services.request_manager import RequestManager


class ScriptedRandom:
    """Stands in for random.Random with fixed draws.

    ``value`` is returned by random(); below the success probability the
    submission succeeds, at or above it the submission fails.
    """

    def __init__(self, value: float = 0.0, page_load_ms: int = 2000, choice_index: int = 0):
        self.value = value
        self.page_load_ms = page_load_ms
        self.choice_index = choice_index
        self.calls = []

    def randint(self, a, b):
        self.calls.append("randint")
        return self.page_load_ms

    def random(self):
        self.calls.append("random")
        return self.value

    def choice(self, seq):
        self.calls.append("choice")
        return seq[self.choice_index]


async def no_sleep(seconds):
    return None


def make_engine(value: float = 0.0, **kwargs) -> AutomationEngine:
    """Engine with forced outcome and no simulated latency."""
    kwargs.setdefault("rng", ScriptedRandom(value))
    kwargs.setdefault("sleep", no_sleep)
    kwargs.setdefault("delay_scale", 0.0)
    return AutomationEngine(**kwargs)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'broker-remover.db'}"


@pytest_asyncio.fixture(scope="function")
async def session_factory(database_url):
    """Fresh file-backed database per test, without the seed catalog."""
    engine = create_engine(database_url)
    factory = create_session_factory(engine)
    await init_db(engine, factory, seed=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def repository(session_factory) -> BrokerRepository:
    return BrokerRepository(session_factory)


@pytest_asyncio.fixture
async def seeded_repository(session_factory) -> BrokerRepository:
    await seed_brokers(session_factory)
    return BrokerRepository(session_factory)


@pytest.fixture
def tracker(repository) -> ProgressTracker:
    return ProgressTracker(repository)


@pytest.fixture
def manager(repository, tracker) -> RequestManager:
    return RequestManager(repository, make_engine(0.0), tracker)
