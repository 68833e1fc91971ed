"""Shared fixtures: in-memory catalog, unit of work and cache"""

from __future__ import annotations

import pytest

from willow_vault.observability import metrics

from fakes import FakeCache, FakeEntityRepository, FakeUnitOfWork, build_tree


@pytest.fixture
def repo() -> FakeEntityRepository:
    return FakeEntityRepository(build_tree())


@pytest.fixture
def uow(repo) -> FakeUnitOfWork:
    return FakeUnitOfWork(repo)


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
