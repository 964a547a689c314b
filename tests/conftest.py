import sys
import pathlib
import logging as _logging

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ensure project root is on PYTHONPATH for test runs
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from quickdates import holidays_cache, utils
from quickdates.main import app

# dateparser logs every failed locale probe at DEBUG; keep test output readable
_logging.getLogger('dateparser').setLevel(_logging.WARNING)


@pytest.fixture(autouse=True)
def _isolate_shared_state():
    """Every test starts with holidays disabled and an empty parse memo."""
    cache = holidays_cache.default_cache
    previous = cache.snapshot
    cache.set_locale('')
    cache.pop_notice()
    utils.clear_parse_memo()
    yield
    cache._snapshot = previous
    cache.pop_notice()
    utils.clear_parse_memo()


@pytest.fixture
def us_holidays():
    """Activate the US holiday locale for the duration of a test."""
    cache = holidays_cache.default_cache
    assert cache.set_locale('US') == 'US'
    yield cache
    cache.set_locale('')


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
