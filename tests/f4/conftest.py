"""Fixtures for F4 tests - Web API."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from studytrack.backend.memory import MemoryBackend
from studytrack.web.api import create_app
from studytrack.web.deps import reset_backend, set_backend
from studytrack.web.timers import get_timer_manager, reset_timer_manager


@pytest.fixture
def backend():
    """Fresh memory backend installed as the global backend."""
    backend = MemoryBackend()
    set_backend(backend)
    reset_timer_manager()
    yield backend
    reset_backend()
    reset_timer_manager()


@pytest.fixture
def client(backend):
    """Create test client (lifespan not started: timers tick only on demand)."""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register an account and return its Authorization header."""

    def _register(name="Ana", email="ana@example.com", password="secret1") -> dict:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register


@pytest.fixture
def auth_headers(register):
    """Authorization header of a freshly registered user."""
    return register()


@pytest.fixture
def tick():
    """Advance every live timer a number of intervals."""

    def _tick(times: int = 1) -> list:
        async def run():
            recorded = []
            manager = get_timer_manager()
            for _ in range(times):
                recorded.extend(await manager.tick_all())
            return recorded

        return asyncio.run(run())

    return _tick
