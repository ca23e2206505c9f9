"""
Shared fixtures for platform adapter tests.

HTTP adapters get an httpx.AsyncClient backed by httpx.MockTransport, so no
request leaves the process.
"""

import asyncio

import httpx
import pytest

from finishline.config import DEFAULT_RACES_FILE
from finishline.features.races.catalog import load_race_configs


@pytest.fixture(scope="session")
def races():
    """Bundled race configs by id."""
    return {c.id: c for c in load_race_configs(DEFAULT_RACES_FILE)}


@pytest.fixture
def run_adapter():
    """Run ``call(adapter)`` against a mocked HTTP transport.

    Usage:
        result = run_adapter(NYRRAdapter, handler, lambda a: a.fetch_candidates(...))
    """
    def _run(adapter_cls, handler, call):
        async def go():
            transport = httpx.MockTransport(handler)
            async with httpx.AsyncClient(transport=transport) as client:
                return await call(adapter_cls(client=client))

        return asyncio.run(go())

    return _run
