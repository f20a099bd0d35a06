import pytest


@pytest.fixture
def anyio_backend() -> str:
    # The board code is asyncio-based (asyncio.Lock, asyncio.wait_for).
    return "asyncio"
