from __future__ import annotations

import pytest
from fake_backend import FakeStoreBackend

from fleetrecon.config import ReconConfig


@pytest.fixture
def config() -> ReconConfig:
    return ReconConfig(
        project_id="demo-fleet",
        database_url="https://demo-fleet-default-rtdb.firebaseio.test",
        feed_resolve_timeout=0.2,
        page_size=2,
    )


@pytest.fixture
def backend(config: ReconConfig) -> FakeStoreBackend:
    return FakeStoreBackend(config)
