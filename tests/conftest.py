"""
Shared fixtures: every test gets its own SQLite file store seeded with
the default menu, and an in-process broadcaster it can observe.
"""

import httpx
import pytest
from sqlalchemy import select

from orderdesk.core.config import Settings
from orderdesk.database import Database
from orderdesk.main import create_app
from orderdesk.models import MenuItem
from orderdesk.services import CatalogStore, OrderLedger, StatusMachine
from orderdesk.services.notifications import LocalBroadcaster, Subscription
from orderdesk.services.seed import seed_catalog


def drain(subscription: Subscription) -> list[dict]:
    """Pop every event currently waiting for an observer."""
    events = []
    while not subscription.queue.empty():
        events.append(subscription.queue.get_nowait())
    return events


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        seed_catalog=True,
        strict_status_transitions=False,
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.init()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session_maker() as session:
        yield session


@pytest.fixture
async def menu(session) -> dict[str, int]:
    """Seed the default menu and return {item name: item id}."""
    await seed_catalog(session)
    result = await session.execute(select(MenuItem))
    ids = {item.name: item.id for item in result.scalars().all()}
    await session.commit()
    return ids


@pytest.fixture
def broadcaster() -> LocalBroadcaster:
    return LocalBroadcaster(queue_size=10)


@pytest.fixture
def observer(broadcaster) -> Subscription:
    return broadcaster.subscribe()


@pytest.fixture
def events(observer):
    """Callable returning the events the observer has received so far."""
    return lambda: drain(observer)


@pytest.fixture
def catalog(session) -> CatalogStore:
    return CatalogStore(session)


@pytest.fixture
def ledger(session, broadcaster) -> OrderLedger:
    return OrderLedger(session, broadcaster=broadcaster, status_machine=StatusMachine())


@pytest.fixture
async def client(settings, database, broadcaster, menu):
    app = create_app(settings=settings, database=database, broadcaster=broadcaster)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
