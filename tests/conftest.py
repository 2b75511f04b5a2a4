"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from healthagg.api.server import create_app
from healthagg.checks.registry import Configuration
from healthagg.health.engine import HealthEvaluator
from tests.helpers import FakeTargets


@pytest.fixture
def targets() -> FakeTargets:
    return FakeTargets()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to a temp config file and return its path."""

    def _write(text: str, name: str = "config.yml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def api_client(targets: FakeTargets) -> Generator[Callable[[Configuration], TestClient], None, None]:
    """Factory: TestClient for an app whose probes hit ``targets``."""
    clients: list[TestClient] = []

    def _make(config: Configuration) -> TestClient:
        evaluator = HealthEvaluator(config, client=targets.client())
        client = TestClient(create_app(config, evaluator=evaluator))
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()
